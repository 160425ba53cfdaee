"""JSON API router."""
from __future__ import annotations

from fastapi import APIRouter

from app.web.routes import accounts
from app.web.routes import transactions

router = APIRouter()

router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
router.include_router(transactions.router, tags=["transactions"])
