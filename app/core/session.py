"""Session helpers and dependencies."""
from __future__ import annotations

from typing import Optional

from fastapi import Cookie, Depends

from app.core.cookies import SESSION_COOKIE_NAME, parse_session_cookie
from app.core.errors import Unauthenticated


async def resolve_current_user_id(
    session_value: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
) -> str | None:
    """Return the external user id from the session cookie, or None when absent/invalid."""
    if not session_value:
        return None
    try:
        return parse_session_cookie(session_value)
    except Unauthenticated:
        return None


async def require_current_user_id(
    external_id: str | None = Depends(resolve_current_user_id),
) -> str:
    """Return the external user id or raise 401."""
    if not external_id:
        raise Unauthenticated("Not authenticated")
    return external_id
