from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from app.core.config import settings
from app.core.database import init_db
from app.core.logging_config import setup_logging
from app.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from app.web.routes import api, health

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize app on startup."""
    # Initialize database
    await init_db()
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Personal finance dashboard: accounts, balances and transactions",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.ALLOWED_HOSTS,
)
app.add_middleware(RequestContextMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# Include routers
app.include_router(api.router, prefix="/api", tags=["api"])
app.include_router(health.router, tags=["health"])


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    """Render domain and HTTP errors as ``{"detail": message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
