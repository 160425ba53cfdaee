"""Utilities for working with the signed session cookie."""
from __future__ import annotations

from itsdangerous import BadSignature, URLSafeSerializer

from app.core.config import settings
from app.core.errors import Unauthenticated

SESSION_COOKIE_NAME = "user_session"
_serializer = URLSafeSerializer(settings.SECRET_KEY, salt="session-cookie")


def make_session_value(external_id: str) -> str:
    """Create a signed session payload containing the identity-provider user id."""
    return _serializer.dumps({"sub": external_id})


def parse_session_cookie(raw_value: str | None) -> str:
    """Parse and validate the signed session cookie, returning the external user id."""
    if not raw_value:
        raise Unauthenticated("Not authenticated")
    try:
        data = _serializer.loads(raw_value)
    except BadSignature:
        raise Unauthenticated("Invalid session") from None
    external_id = data.get("sub") if isinstance(data, dict) else None
    if not external_id:
        raise Unauthenticated("Invalid session")
    return str(external_id)

