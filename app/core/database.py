from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from app.core.config import settings

SQLITE_PRAGMAS = (
    text("PRAGMA journal_mode=WAL"),
    text("PRAGMA synchronous=NORMAL"),
    text("PRAGMA foreign_keys=ON"),
    text("PRAGMA busy_timeout=5000"),
)


def install_sqlite_pragmas(engine: AsyncEngine) -> None:
    """Enable WAL, foreign keys and a busy timeout on every new sqlite connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[arg-type]
        cursor = dbapi_connection.cursor()
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma.text)
            if pragma.text.startswith("PRAGMA journal_mode"):
                cursor.fetchone()
        cursor.close()


# Create async engine
database_url = make_url(settings.DATABASE_URL)

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    future=True,
)

if database_url.get_backend_name() == "sqlite":
    install_sqlite_pragmas(engine)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


async def get_db():
    """Dependency for getting database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db():
    """Initialize database - create all tables."""
    # Register every model on Base.metadata before creating tables.
    from app.domain.users.models import User  # noqa: F401
    from app.domain.accounts.models import Account  # noqa: F401
    from app.domain.transactions.models import Transaction  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
