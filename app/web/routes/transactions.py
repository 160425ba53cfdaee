"""JSON API routes for dashboard transactions."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.session import require_current_user_id, resolve_current_user_id
from app.domain.shared.schemas import MutationResult
from app.domain.transactions import services as ledger
from app.domain.transactions.schemas import BulkDeleteRequest, TransactionOut

router = APIRouter()


@router.get("/dashboard/transactions", response_model=List[TransactionOut])
async def dashboard_transactions(
    external_id: str = Depends(require_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> List[TransactionOut]:
    """Return the current user's transactions, newest first."""
    return await ledger.get_dashboard_transactions(db, external_id=external_id)


@router.post("/transactions/bulk-delete", response_model=MutationResult)
async def bulk_delete(
    payload: BulkDeleteRequest,
    external_id: str | None = Depends(resolve_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> MutationResult:
    """Delete transactions and adjust balances; failures come back in the body."""
    return await ledger.bulk_delete_transactions(
        db, external_id=external_id, transaction_ids=payload.transaction_ids
    )
