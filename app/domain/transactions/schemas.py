"""Pydantic schemas for transaction payloads."""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.domain.shared.schemas import Money


class TransactionOut(BaseModel):
    """Schema for returning transaction data."""

    id: int
    account_id: int
    type: str
    amount: Money
    category: Optional[str] = None
    description: Optional[str] = None
    date: datetime

    model_config = ConfigDict(from_attributes=True)


class BulkDeleteRequest(BaseModel):
    """Ids of the transactions to delete; duplicates are tolerated."""

    transaction_ids: List[int] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
