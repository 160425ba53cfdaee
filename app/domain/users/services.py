"""Lookups that map identity-provider ids onto local users."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, Unauthenticated
from app.domain.users.models import User


async def find_user_by_external_id(db: AsyncSession, external_id: str | None) -> User:
    """Return the user owning external_id.

    Raises Unauthenticated when no id was resolved and NotFound when the
    identity provider knows the caller but no local user exists.
    """
    if not external_id:
        raise Unauthenticated()

    result = await db.execute(select(User).where(User.external_id == external_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user
