"""Account services, including the only code paths that write ``is_default``."""
from __future__ import annotations

import logging
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.errors import (
    DomainError,
    InvalidArgument,
    NotFound,
    RateLimited,
    StorageFailure,
    Unauthenticated,
    error_message,
)
from app.core.rate_limit import rate_limiter
from app.core.validation import normalize_choice, parse_money
from app.domain.accounts.models import ACCOUNT_TYPES, Account
from app.domain.accounts.schemas import AccountCreate, AccountDetailOut, AccountOut
from app.domain.shared.schemas import MutationResult
from app.domain.transactions.models import Transaction
from app.domain.transactions.services import DASHBOARD_VIEW
from app.domain.users.services import find_user_by_external_id

logger = logging.getLogger(__name__)


async def _lock_user_accounts(db: AsyncSession, user_id: int) -> List[Account]:
    """Load and lock every account of the user so default switches serialize."""
    result = await db.execute(
        select(Account)
        .where(Account.user_id == user_id)
        .order_by(Account.id)
        .with_for_update()
    )
    return list(result.scalars().all())


async def _clear_default_flags(db: AsyncSession, user_id: int) -> None:
    await db.execute(
        update(Account)
        .where(Account.user_id == user_id, Account.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


async def _mark_default(db: AsyncSession, *, user_id: int, account_id: int) -> None:
    await db.execute(
        update(Account)
        .where(Account.id == account_id, Account.user_id == user_id)
        .values(is_default=True)
        .execution_options(synchronize_session="fetch")
    )


async def _enforce_create_rate_limit(external_id: str) -> None:
    decision = await rate_limiter.hit(
        f"account-create:{external_id}",
        settings.ACCOUNT_CREATE_RATE_LIMIT_MAX,
        settings.ACCOUNT_CREATE_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not decision.allowed:
        logger.warning(
            "RATE_LIMIT_EXCEEDED on account creation (remaining=%s, reset_in_seconds=%s)",
            decision.remaining,
            decision.reset_in_seconds,
        )
        raise RateLimited()


async def create_account(
    db: AsyncSession,
    *,
    external_id: str | None,
    data: AccountCreate,
) -> MutationResult:
    """Create an account for the caller.

    The first account of a user always becomes the default one. When the new
    account is the default, the flag is cleared on the user's other accounts
    in the same commit.
    """
    if not external_id:
        raise Unauthenticated()

    await _enforce_create_rate_limit(external_id)
    user = await find_user_by_external_id(db, external_id)
    user_id = user.id

    name = data.name.strip()
    if not name:
        raise InvalidArgument("Account name is required")
    account_type = normalize_choice(data.type, ACCOUNT_TYPES, "account type")
    balance, warnings = parse_money(data.balance)
    for warning in warnings:
        logger.info("Account balance normalized for user %s: %s", user_id, warning)

    try:
        existing = await _lock_user_accounts(db, user_id)
        should_be_default = True if not existing else data.is_default

        if should_be_default:
            await _clear_default_flags(db, user_id)

        account = Account(
            user_id=user_id,
            name=name,
            type=account_type,
            balance=balance,
            is_default=should_be_default,
        )
        db.add(account)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Unable to create account for user %s", user_id, exc_info=True)
        raise StorageFailure("Unable to create account") from exc

    await db.refresh(account)
    logger.info(
        "Created account %s for user %s (default=%s)", account.id, user_id, account.is_default
    )
    return MutationResult(
        success=True,
        data=AccountOut.model_validate(account),
        stale_views=[DASHBOARD_VIEW],
    )


async def set_default_account(
    db: AsyncSession,
    *,
    external_id: str | None,
    account_id: int,
) -> MutationResult:
    """Make account_id the caller's only default account.

    Clearing the old default and setting the new one happen in one commit.
    Naming the account that is already default succeeds without writing.
    Failures are reported through the returned result, never raised.
    """
    try:
        user = await find_user_by_external_id(db, external_id)
        accounts = await _lock_user_accounts(db, user.id)
        target = next((account for account in accounts if account.id == account_id), None)
        if target is None:
            raise NotFound("Account not found")

        if not target.is_default:
            await _clear_default_flags(db, user.id)
            await _mark_default(db, user_id=user.id, account_id=target.id)

        await db.commit()
        await db.refresh(target)
    except Exception as exc:  # noqa: BLE001
        await db.rollback()
        logger.warning(
            "Unable to set default account %s: %s",
            account_id,
            error_message(exc),
            exc_info=not isinstance(exc, DomainError),
        )
        return MutationResult.failure(error_message(exc))

    logger.info("Account %s is now the default for user %s", target.id, user.id)
    return MutationResult(
        success=True,
        data=AccountOut.model_validate(target),
        stale_views=[DASHBOARD_VIEW],
    )


async def list_user_accounts(db: AsyncSession, *, external_id: str | None) -> List[AccountOut]:
    """Return the caller's accounts, newest first, with their transaction counts."""
    user = await find_user_by_external_id(db, external_id)
    result = await db.execute(
        select(Account, func.count(Transaction.id))
        .outerjoin(Transaction, Transaction.account_id == Account.id)
        .where(Account.user_id == user.id)
        .group_by(Account.id)
        .order_by(Account.created_at.desc(), Account.id.desc())
    )
    return [
        AccountOut.model_validate(account).model_copy(update={"transaction_count": count})
        for account, count in result.all()
    ]


async def get_account_with_transactions(
    db: AsyncSession,
    *,
    external_id: str | None,
    account_id: int,
) -> AccountDetailOut | None:
    """Return the caller's account with its transactions, or None if not theirs."""
    user = await find_user_by_external_id(db, external_id)
    result = await db.execute(
        select(Account)
        .options(selectinload(Account.transactions))
        .where(Account.id == account_id, Account.user_id == user.id)
    )
    account = result.scalar_one_or_none()
    if account is None:
        return None

    detail = AccountDetailOut.model_validate(account)
    detail.transaction_count = len(detail.transactions)
    return detail
