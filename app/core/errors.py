"""Error taxonomy shared by the ledger and account services."""
from __future__ import annotations

from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for errors raised by domain services.

    Subclasses carry their own status code so FastAPI can render them
    directly, while services can still catch them as ordinary exceptions.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request failed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)


class Unauthenticated(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InvalidArgument(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid argument"


class RateLimited(DomainError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests. Please try again later."


class StorageFailure(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Storage operation failed"


def error_message(exc: BaseException) -> str:
    """Return the human readable message carried by an exception."""
    if isinstance(exc, HTTPException):
        return str(exc.detail)
    return str(exc) or exc.__class__.__name__


__all__ = [
    "DomainError",
    "InvalidArgument",
    "NotFound",
    "RateLimited",
    "StorageFailure",
    "Unauthenticated",
    "error_message",
]
