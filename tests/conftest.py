import os
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Test settings must be in place before app modules are imported.
_scratch_dir = tempfile.mkdtemp(prefix="fundboard-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("ENV", "test")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_scratch_dir}/unused.db"
os.environ["LOG_DIR"] = os.path.join(_scratch_dir, "logs")

from app.core.database import Base, get_db, install_sqlite_pragmas  # noqa: E402
from app.core.rate_limit import rate_limiter  # noqa: E402
from app.domain.accounts.models import Account  # noqa: E402
from app.domain.transactions.models import Transaction  # noqa: E402
from app.domain.users.models import User  # noqa: E402


class Store:
    """Arrange and inspect committed state through short-lived sessions."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory
        self._clock = datetime(2024, 1, 1, 12, 0, 0)

    async def _save(self, obj):
        async with self._session_factory() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def add_user(self, external_id: str = "user_1") -> User:
        return await self._save(User(external_id=external_id, email=f"{external_id}@example.com"))

    async def add_account(
        self,
        user: User,
        *,
        name: str = "Checking",
        balance: str = "0.00",
        is_default: bool = False,
        type: str = "CURRENT",
    ) -> Account:
        return await self._save(
            Account(
                user_id=user.id,
                name=name,
                type=type,
                balance=Decimal(balance),
                is_default=is_default,
            )
        )

    async def add_transaction(
        self,
        user: User,
        account: Account,
        *,
        type: str,
        amount: str,
    ) -> Transaction:
        self._clock += timedelta(minutes=1)
        return await self._save(
            Transaction(
                user_id=user.id,
                account_id=account.id,
                type=type,
                amount=Decimal(amount),
                date=self._clock,
            )
        )

    async def balance(self, account_id: int) -> Decimal:
        async with self._session_factory() as session:
            result = await session.execute(select(Account.balance).where(Account.id == account_id))
            return result.scalar_one()

    async def transaction_ids(self, user_id: int | None = None) -> set[int]:
        async with self._session_factory() as session:
            stmt = select(Transaction.id)
            if user_id is not None:
                stmt = stmt.where(Transaction.user_id == user_id)
            result = await session.execute(stmt)
            return set(result.scalars().all())

    async def default_account_ids(self, user_id: int) -> list[int]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Account.id)
                .where(Account.user_id == user_id, Account.is_default.is_(True))
                .order_by(Account.id)
            )
            return list(result.scalars().all())

    async def account_count(self, user_id: int) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(Account.id).where(Account.user_id == user_id))
            return len(result.scalars().all())


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    install_sqlite_pragmas(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session_factory) -> Store:
    return Store(session_factory)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    from main import app

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
