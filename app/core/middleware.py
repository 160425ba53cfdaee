"""Custom middleware components for the application."""
from __future__ import annotations

import logging
import secrets
import time
from typing import Callable, Awaitable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.config import settings

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request id and timing, and log a compact access line."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._skip_prefixes = ("/health",)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        request.state.request_id = request_id
        path = request.url.path
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Unhandled error for %s %s [request_id=%s]",
                request.method,
                path,
                request_id,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers.setdefault("X-Request-ID", request_id)

        if not path.startswith(self._skip_prefixes):
            status = getattr(response, "status_code", "unknown")
            client = request.client.host if request.client else "unknown"
            logger.info(
                "Handled %s %s -> %s in %.1fms (client=%s) [request_id=%s]",
                request.method,
                path,
                status,
                duration_ms,
                client,
                request_id,
            )

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Apply security headers and keep balance data out of shared caches."""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        response = await call_next(request)

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")

        # Balances change on every mutation; clients must revalidate.
        if request.url.path.startswith("/api"):
            response.headers.setdefault("Cache-Control", "no-store")

        if settings.ENV.lower() == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains",
            )

        return response


__all__ = ["RequestContextMiddleware", "SecurityHeadersMiddleware"]
