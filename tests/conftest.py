"""
Shared fixtures.

No test touches the real data directory: stores run on InMemoryStorage
or on a pytest tmp_path.
"""

from datetime import date
from decimal import Decimal

import pytest

from petty_cash.demo import demo_expenses
from petty_cash.models import Expense, ExpenseCategory, ExpenseStatus
from petty_cash.services.storage import InMemoryStorage, StorageWriteError
from petty_cash.store import ExpenseStore


class FailingStorage(InMemoryStorage):
    """Reads work, every write fails."""

    def set(self, key: str, value: str) -> None:
        raise StorageWriteError("disk full")


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def seeded_store(storage):
    """Store over empty storage, so it starts from the demo dataset."""
    return ExpenseStore(storage, seed=demo_expenses)


@pytest.fixture
def failing_store():
    return ExpenseStore(FailingStorage(), seed=demo_expenses)


@pytest.fixture
def make_expense():
    """Factory for standalone expenses used by the aggregation tests."""
    counter = iter(range(1, 10_000))

    def _make(
        description: str = "Item",
        amount: str = "10.00",
        day: date = date(2026, 3, 1),
        status: ExpenseStatus = ExpenseStatus.PENDING,
        area: str = None,
        provider: str = None,
        user: str = "Ana",
        category: ExpenseCategory = ExpenseCategory.OFFICE_SUPPLIES,
        **extra,
    ) -> Expense:
        return Expense(
            id=f"e{next(counter)}",
            description=description,
            amount=Decimal(amount),
            expense_date=day,
            status=status,
            category=category,
            user=user,
            area=area,
            provider=provider,
            **extra,
        )

    return _make
