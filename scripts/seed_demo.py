"""Seed a demo user with two accounts and a handful of transactions."""

import argparse
import asyncio
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path
import sys
from typing import List

from sqlalchemy import select

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from app.core.database import AsyncSessionLocal, init_db  # noqa: E402
from app.domain.accounts.models import Account  # noqa: E402
from app.domain.transactions.models import Transaction  # noqa: E402
from app.domain.users.models import User  # noqa: E402

DEMO_TRANSACTIONS: List[dict] = [
    {"type": "INCOME", "amount": Decimal("2500.00"), "category": "Salary"},
    {"type": "EXPENSE", "amount": Decimal("950.00"), "category": "Rent"},
    {"type": "EXPENSE", "amount": Decimal("120.35"), "category": "Groceries"},
    {"type": "EXPENSE", "amount": Decimal("64.90"), "category": "Utilities"},
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed a demo user, accounts and transactions")
    parser.add_argument("--external-id", default="demo-user", help="Identity-provider user id")
    parser.add_argument("--email", default="demo@example.com")
    return parser.parse_args()


async def seed_demo(external_id: str, email: str) -> None:
    await init_db()
    async with AsyncSessionLocal() as session:
        existing = await session.execute(select(User).where(User.external_id == external_id))
        if existing.scalar_one_or_none() is not None:
            print(f"User {external_id} already exists; nothing to do")
            return

        user = User(external_id=external_id, email=email, name="Demo")
        session.add(user)
        await session.flush()

        current = Account(user_id=user.id, name="Everyday", type="CURRENT", balance=Decimal("0"), is_default=True)
        savings = Account(user_id=user.id, name="Rainy day", type="SAVINGS", balance=Decimal("1000.00"), is_default=False)
        session.add_all([current, savings])
        await session.flush()

        # Cached balance follows the seeded transactions.
        now = datetime.utcnow()
        for offset, item in enumerate(DEMO_TRANSACTIONS):
            session.add(
                Transaction(
                    user_id=user.id,
                    account_id=current.id,
                    date=now - timedelta(days=offset),
                    **item,
                )
            )
            signed = item["amount"] if item["type"] == "INCOME" else -item["amount"]
            current.balance = current.balance + signed

        await session.commit()
        print(f"Seeded user {external_id} with accounts {current.id} and {savings.id}")


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(seed_demo(args.external_id, args.email))
