"""Pydantic schemas for account operations."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict

from app.domain.shared.schemas import Money
from app.domain.transactions.schemas import TransactionOut


class AccountCreate(BaseModel):
    """Schema for creating an account.

    ``balance`` and ``type`` are kept loose here; the service parses them so
    malformed values surface as InvalidArgument rather than a 422.
    """

    name: str
    type: str
    balance: Union[str, int, float, Decimal] = "0"
    is_default: bool = False

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class AccountOut(BaseModel):
    """Schema for returning account data."""

    id: int
    name: str
    type: str
    balance: Money
    is_default: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    transaction_count: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class AccountDetailOut(AccountOut):
    """Account with its transactions, newest first."""

    transactions: List[TransactionOut] = []
