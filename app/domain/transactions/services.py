"""Balance ledger: keeps cached account balances in step with deleted transactions."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DomainError, InvalidArgument, StorageFailure, error_message
from app.core.logging_config import LEDGER_LOGGER_NAME
from app.domain.accounts.models import Account
from app.domain.shared.schemas import MutationResult
from app.domain.transactions.models import Transaction
from app.domain.transactions.schemas import TransactionOut
from app.domain.users.services import find_user_by_external_id

logger = logging.getLogger(LEDGER_LOGGER_NAME)

DASHBOARD_VIEW = "/dashboard"


def account_view(account_id: int) -> str:
    return f"/account/{account_id}"


def reversal_delta(transaction: Transaction) -> Decimal:
    """Return the balance adjustment that undoes the transaction.

    Deleting an expense gives the money back; deleting an income takes it away.
    """
    amount = Decimal(str(transaction.amount))
    if transaction.type == "EXPENSE":
        return amount
    if transaction.type == "INCOME":
        return -amount
    raise InvalidArgument(f"Unknown transaction type: {transaction.type!r}")


def aggregate_reversal_deltas(transactions: Iterable[Transaction]) -> Dict[int, Decimal]:
    """Sum reversal deltas per account id using exact decimal addition."""
    changes: Dict[int, Decimal] = {}
    for transaction in transactions:
        changes[transaction.account_id] = (
            changes.get(transaction.account_id, Decimal("0")) + reversal_delta(transaction)
        )
    return changes


async def _increment_balance(
    db: AsyncSession, *, user_id: int, account_id: int, delta: Decimal
) -> None:
    await db.execute(
        update(Account)
        .where(Account.id == account_id, Account.user_id == user_id)
        .values(balance=Account.balance + delta)
        .execution_options(synchronize_session="fetch")
    )


async def _lock_accounts(db: AsyncSession, *, user_id: int, account_ids: List[int]) -> None:
    """Lock the touched accounts and make sure every one of them belongs to the user."""
    result = await db.execute(
        select(Account.id)
        .where(Account.id.in_(account_ids), Account.user_id == user_id)
        .order_by(Account.id)
        .with_for_update()
    )
    found = set(result.scalars().all())
    missing = sorted(set(account_ids) - found)
    if missing:
        raise StorageFailure(f"Accounts {missing} are not owned by the transaction owner")


async def bulk_delete_transactions(
    db: AsyncSession,
    *,
    external_id: str | None,
    transaction_ids: Iterable[int],
) -> MutationResult:
    """Delete the caller's transactions and reverse their effect on account balances.

    Ids that do not exist or belong to someone else are skipped silently. The
    deletion and every balance increment are committed together or not at all.
    Failures are reported through the returned result, never raised.
    """
    requested_ids = sorted(set(transaction_ids))
    try:
        user = await find_user_by_external_id(db, external_id)

        if not requested_ids:
            return MutationResult(success=True, deleted=0)

        result = await db.execute(
            select(Transaction)
            .where(Transaction.id.in_(requested_ids), Transaction.user_id == user.id)
            .order_by(Transaction.id)
            .with_for_update()
        )
        transactions = result.scalars().all()
        resolved_ids = [transaction.id for transaction in transactions]
        changes = aggregate_reversal_deltas(transactions)

        if resolved_ids:
            await _lock_accounts(db, user_id=user.id, account_ids=sorted(changes))
            await db.execute(
                delete(Transaction).where(
                    Transaction.id.in_(resolved_ids),
                    Transaction.user_id == user.id,
                )
            )
            for account_id, delta in sorted(changes.items()):
                await _increment_balance(db, user_id=user.id, account_id=account_id, delta=delta)

        await db.commit()
    except Exception as exc:  # noqa: BLE001
        await db.rollback()
        logger.warning(
            "Bulk delete failed for %d requested transactions: %s",
            len(requested_ids),
            error_message(exc),
            exc_info=not isinstance(exc, DomainError),
        )
        return MutationResult.failure(error_message(exc))

    skipped = len(requested_ids) - len(resolved_ids)
    logger.info(
        "Deleted %d transactions for user %s across %d accounts (%d ids skipped)",
        len(resolved_ids),
        user.id,
        len(changes),
        skipped,
    )
    stale_views = [DASHBOARD_VIEW] + [account_view(account_id) for account_id in sorted(changes)]
    return MutationResult(success=True, deleted=len(resolved_ids), stale_views=stale_views)


async def get_dashboard_transactions(
    db: AsyncSession, *, external_id: str | None
) -> List[TransactionOut]:
    """Return every transaction of the caller, newest first."""
    user = await find_user_by_external_id(db, external_id)
    result = await db.execute(
        select(Transaction)
        .where(Transaction.user_id == user.id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
    )
    return [TransactionOut.model_validate(row) for row in result.scalars().all()]
