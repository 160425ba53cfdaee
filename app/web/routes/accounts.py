"""JSON API routes for accounts and the default-account switch."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import NotFound
from app.core.session import require_current_user_id, resolve_current_user_id
from app.domain.accounts import services as account_services
from app.domain.accounts.schemas import AccountCreate, AccountDetailOut, AccountOut
from app.domain.shared.schemas import MutationResult

router = APIRouter()


@router.get("", response_model=List[AccountOut])
async def list_accounts(
    external_id: str = Depends(require_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> List[AccountOut]:
    """Return all accounts for the current user."""
    return await account_services.list_user_accounts(db, external_id=external_id)


@router.post("", response_model=MutationResult, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: AccountCreate,
    external_id: str = Depends(require_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MutationResult:
    """Create a new account for the current user."""
    return await account_services.create_account(db, external_id=external_id, data=payload)


@router.get("/{account_id}", response_model=AccountDetailOut)
async def get_account(
    account_id: int,
    external_id: str = Depends(require_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> AccountDetailOut:
    """Return one account with its transactions."""
    account = await account_services.get_account_with_transactions(
        db, external_id=external_id, account_id=account_id
    )
    if account is None:
        raise NotFound("Account not found")
    return account


@router.post("/{account_id}/default", response_model=MutationResult)
async def set_default_account(
    account_id: int,
    external_id: str | None = Depends(resolve_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MutationResult:
    """Promote an account to the user's default; failures come back in the body."""
    return await account_services.set_default_account(
        db, external_id=external_id, account_id=account_id
    )
