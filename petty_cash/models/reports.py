"""
Derived report models.

Everything in this module is computed from the expense collection on
demand and never persisted. Keeping them out of the store avoids any
drift between a stored summary and the expenses it summarizes.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from petty_cash.models.expense import Expense, ExpenseStatus


class DailySummary(BaseModel):
    """
    Dashboard summary for one day's expenses.

    progress_percent is not clamped: spending past the limit
    shows as more than 100.
    """
    total_spent: Decimal = Decimal("0")
    limit: Decimal = Field(
        default=Decimal("2000"),
        gt=0,
        description="Daily ceiling in currency units"
    )
    pending_count: int = Field(default=0, ge=0)
    approved_count: int = Field(default=0, ge=0)
    rejected_count: int = Field(default=0, ge=0)
    observed_count: int = Field(default=0, ge=0)

    @property
    def balance(self) -> Decimal:
        return self.limit - self.total_spent

    @property
    def progress_percent(self) -> float:
        return float(self.total_spent / self.limit * 100)

    @property
    def total_count(self) -> int:
        return (
            self.pending_count
            + self.approved_count
            + self.rejected_count
            + self.observed_count
        )

    @property
    def over_limit(self) -> bool:
        return self.total_spent > self.limit


class AreaTotal(BaseModel):
    """Sum and count of expenses charged to one area."""
    area: str
    total: Decimal = Decimal("0")
    count: int = 0


class ProviderTotal(BaseModel):
    """Sum and count of expenses paid to one provider."""
    provider: str
    total: Decimal = Decimal("0")
    count: int = 0


class PersonTotal(BaseModel):
    """Sum and count of expenses submitted by one person."""
    user: str
    total: Decimal = Decimal("0")
    count: int = 0


class PatternAlert(BaseModel):
    """An item bought more often than the threshold inside the window."""
    item: str
    count: int = Field(..., ge=1)
    area: str


class RepeatedItem(BaseModel):
    """An item with its overall purchase count."""
    item: str
    count: int = Field(..., ge=1)
    area: str


class StatusTotals(BaseModel):
    """Count and amount of expenses in one status."""
    status: ExpenseStatus
    count: int = 0
    total: Decimal = Decimal("0")


class DailyClose(BaseModel):
    """
    Result of closing a day.

    `latest` holds the most recent movements shown on the close screen.
    """
    day: date
    approved: StatusTotals
    pending: StatusTotals
    observed: StatusTotals
    rejected: StatusTotals
    total_count: int = 0
    total_amount: Decimal = Decimal("0")
    latest: list[Expense] = Field(default_factory=list)


class ReportIndicators(BaseModel):
    """Headline numbers for the reports screen."""
    total_spent: Decimal = Decimal("0")
    expense_count: int = 0
    average: Decimal = Decimal("0")
    observed_count: int = 0
    observed_percent: float = 0.0
    top_area: Optional[str] = None
