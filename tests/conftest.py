"""
Shared fixtures.

Run with:
$ pytest -q
"""

from datetime import date, datetime, timedelta
from pathlib import Path

import pytest

from fakes import EchoTool, FailingTool

from budgetbot.store.json_store import JsonRecommendationStore, JsonTransactionStore
from budgetbot.store.types import Transaction


@pytest.fixture
def echo_tool() -> EchoTool:
    return EchoTool()


@pytest.fixture
def failing_tool() -> FailingTool:
    return FailingTool()


@pytest.fixture
def imported_at() -> datetime:
    return datetime(2024, 3, 1, 9, 0, 0)


@pytest.fixture
def transactions(imported_at: datetime) -> list[Transaction]:
    """A month of spending for user "u1" plus one foreign transaction."""
    rows = [
        ("t1", "NETFLIX.COM", -15.99, "Entertainment"),
        ("t2", "Spotify Premium", -9.99, "Entertainment"),
        ("t3", "Starbucks Coffee #123", -5.75, "Dining"),
        ("t4", "Blue Bottle Coffee", -6.50, "Dining"),
        ("t5", "Whole Foods Market", -84.20, "Groceries"),
        ("t6", "ACME Corp Payroll", 3200.00, "Income"),
        ("t7", "Shell Gas Station", -45.00, None),
    ]
    out = [
        Transaction(
            id=tid,
            user_id="u1",
            date=date(2024, 2, 1) + timedelta(days=i),
            description=desc,
            amount=amount,
            category=category,
            account="Checking",
            imported_at=imported_at,
        )
        for i, (tid, desc, amount, category) in enumerate(rows)
    ]
    out.append(Transaction(
        id="x1", user_id="u2", date=date(2024, 2, 3), description="Starbucks Coffee",
        amount=-4.00, category="Dining", imported_at=imported_at,
    ))
    return out


@pytest.fixture
def transaction_store(tmp_path: Path, transactions: list[Transaction]) -> JsonTransactionStore:
    store = JsonTransactionStore(tmp_path / "transactions.json")
    store.add(transactions)
    return store


@pytest.fixture
def recommendation_store(tmp_path: Path) -> JsonRecommendationStore:
    return JsonRecommendationStore(tmp_path / "recommendations.json")
