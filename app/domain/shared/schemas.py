"""Pydantic types shared by the account and transaction payloads."""
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, Field, PlainSerializer

# Decimal internally, plain JSON number once serialized.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="always")]


class MutationResult(BaseModel):
    """Uniform result of the balance-mutating operations.

    Callers check ``success`` instead of relying on exceptions. ``stale_views``
    lists the dashboard pages whose cached rendering must be refreshed.
    """

    success: bool
    error: Optional[str] = None
    data: Optional[Any] = None
    deleted: Optional[int] = None
    stale_views: List[str] = Field(default_factory=list)

    @classmethod
    def failure(cls, message: str) -> "MutationResult":
        return cls(success=False, error=message)
