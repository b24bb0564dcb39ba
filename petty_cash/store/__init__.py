"""Expense store package."""

from petty_cash.store.expense_store import DEFAULT_EXPENSES_KEY, ExpenseStore

__all__ = ["DEFAULT_EXPENSES_KEY", "ExpenseStore"]
