"""Balance ledger: bulk transaction deletion against the database."""
from decimal import Decimal

import pytest

from app.domain.transactions import services as ledger
from app.domain.transactions.services import bulk_delete_transactions, get_dashboard_transactions

pytestmark = pytest.mark.asyncio


async def test_deleting_expense_restores_balance(db, store):
    user = await store.add_user()
    account = await store.add_account(user, balance="100.00", is_default=True)
    expense = await store.add_transaction(user, account, type="EXPENSE", amount="30.00")

    result = await bulk_delete_transactions(db, external_id=user.external_id, transaction_ids=[expense.id])

    assert result.success is True
    assert result.deleted == 1
    assert await store.balance(account.id) == Decimal("130.00")
    assert await store.transaction_ids() == set()


async def test_deleting_income_reduces_balance(db, store):
    user = await store.add_user()
    account = await store.add_account(user, balance="50.00", is_default=True)
    income = await store.add_transaction(user, account, type="INCOME", amount="20.00")

    result = await bulk_delete_transactions(db, external_id=user.external_id, transaction_ids=[income.id])

    assert result.success is True
    assert await store.balance(account.id) == Decimal("30.00")


async def test_delete_across_accounts_in_one_call(db, store):
    user = await store.add_user()
    x = await store.add_account(user, name="X", balance="100.00", is_default=True)
    y = await store.add_account(user, name="Y", balance="50.00")
    expense = await store.add_transaction(user, x, type="EXPENSE", amount="10.00")
    income = await store.add_transaction(user, y, type="INCOME", amount="5.00")
    kept = await store.add_transaction(user, y, type="EXPENSE", amount="7.00")

    result = await bulk_delete_transactions(
        db, external_id=user.external_id, transaction_ids=[expense.id, income.id]
    )

    assert result.success is True
    assert result.deleted == 2
    assert result.stale_views == ["/dashboard", f"/account/{x.id}", f"/account/{y.id}"]
    assert await store.balance(x.id) == Decimal("110.00")
    assert await store.balance(y.id) == Decimal("45.00")
    assert await store.transaction_ids() == {kept.id}


async def test_balance_change_equals_sum_of_reversal_deltas(db, store):
    user = await store.add_user()
    account = await store.add_account(user, balance="1000.00", is_default=True)
    amounts = [("INCOME", "12.34"), ("EXPENSE", "0.01"), ("EXPENSE", "99.99"), ("INCOME", "0.10")]
    ids = []
    for type, amount in amounts:
        ids.append((await store.add_transaction(user, account, type=type, amount=amount)).id)

    result = await bulk_delete_transactions(db, external_id=user.external_id, transaction_ids=ids)

    expected = Decimal("1000.00") - Decimal("12.34") + Decimal("0.01") + Decimal("99.99") - Decimal("0.10")
    assert result.success is True
    assert await store.balance(account.id) == expected


async def test_many_small_reversals_keep_the_balance_exact_to_the_cent(db, store):
    user = await store.add_user()
    account = await store.add_account(user, balance="0.00", is_default=True)

    for _ in range(10):
        ids = []
        for amount in ("0.10", "0.20", "0.01"):
            ids.append((await store.add_transaction(user, account, type="EXPENSE", amount=amount)).id)
        result = await bulk_delete_transactions(db, external_id=user.external_id, transaction_ids=ids)
        assert result.success is True

    assert await store.balance(account.id) == Decimal("3.10")

    income = await store.add_transaction(user, account, type="INCOME", amount="3.10")
    await bulk_delete_transactions(db, external_id=user.external_id, transaction_ids=[income.id])

    balance = await store.balance(account.id)
    assert balance == Decimal("0.00")
    assert balance.as_tuple().exponent == -2


async def test_duplicate_ids_are_counted_once(db, store):
    user = await store.add_user()
    account = await store.add_account(user, balance="10.00", is_default=True)
    expense = await store.add_transaction(user, account, type="EXPENSE", amount="4.00")

    result = await bulk_delete_transactions(
        db, external_id=user.external_id, transaction_ids=[expense.id, expense.id, expense.id]
    )

    assert result.deleted == 1
    assert await store.balance(account.id) == Decimal("14.00")


async def test_empty_request_is_a_successful_noop(db, store):
    user = await store.add_user()
    account = await store.add_account(user, balance="10.00", is_default=True)
    txn = await store.add_transaction(user, account, type="EXPENSE", amount="4.00")

    result = await bulk_delete_transactions(db, external_id=user.external_id, transaction_ids=[])

    assert result.success is True
    assert result.deleted == 0
    assert result.stale_views == []
    assert await store.transaction_ids() == {txn.id}


async def test_other_users_transactions_are_never_touched(db, store):
    owner = await store.add_user("owner")
    intruder = await store.add_user("intruder")
    owner_account = await store.add_account(owner, balance="100.00", is_default=True)
    intruder_account = await store.add_account(intruder, balance="5.00", is_default=True)
    victim = await store.add_transaction(owner, owner_account, type="EXPENSE", amount="40.00")
    own = await store.add_transaction(intruder, intruder_account, type="INCOME", amount="1.00")

    result = await bulk_delete_transactions(
        db, external_id=intruder.external_id, transaction_ids=[victim.id, own.id, 999_999]
    )

    assert result.success is True
    assert result.deleted == 1
    assert await store.transaction_ids(owner.id) == {victim.id}
    assert await store.balance(owner_account.id) == Decimal("100.00")
    assert await store.balance(intruder_account.id) == Decimal("4.00")


async def test_failure_midway_rolls_everything_back(db, store, monkeypatch):
    user = await store.add_user()
    x = await store.add_account(user, name="X", balance="100.00", is_default=True)
    y = await store.add_account(user, name="Y", balance="50.00")
    first = await store.add_transaction(user, x, type="EXPENSE", amount="10.00")
    second = await store.add_transaction(user, y, type="INCOME", amount="5.00")

    original = ledger._increment_balance
    calls = []

    async def flaky_increment(session, **kwargs):
        calls.append(kwargs["account_id"])
        if len(calls) == 2:
            raise RuntimeError("storage went away")
        await original(session, **kwargs)

    monkeypatch.setattr(ledger, "_increment_balance", flaky_increment)

    result = await bulk_delete_transactions(
        db, external_id=user.external_id, transaction_ids=[first.id, second.id]
    )

    assert calls == [x.id, y.id]
    assert result.success is False
    assert result.error == "storage went away"
    assert await store.transaction_ids() == {first.id, second.id}
    assert await store.balance(x.id) == Decimal("100.00")
    assert await store.balance(y.id) == Decimal("50.00")


async def test_unknown_user_is_reported_not_raised(db, store):
    result = await bulk_delete_transactions(db, external_id="ghost", transaction_ids=[1])

    assert result.success is False
    assert result.error == "User not found"


async def test_missing_identity_is_reported_not_raised(db):
    result = await bulk_delete_transactions(db, external_id=None, transaction_ids=[1])

    assert result.success is False
    assert result.error == "Unauthorized"


async def test_dashboard_lists_only_own_transactions_newest_first(db, store):
    user = await store.add_user()
    other = await store.add_user("other")
    account = await store.add_account(user, is_default=True)
    other_account = await store.add_account(other, is_default=True)
    older = await store.add_transaction(user, account, type="EXPENSE", amount="1.00")
    newer = await store.add_transaction(user, account, type="INCOME", amount="2.50")
    await store.add_transaction(other, other_account, type="INCOME", amount="3.00")

    rows = await get_dashboard_transactions(db, external_id=user.external_id)

    assert [row.id for row in rows] == [newer.id, older.id]
    assert rows[0].model_dump()["amount"] == 2.5
