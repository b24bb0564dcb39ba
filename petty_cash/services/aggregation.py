"""
Aggregation Service

DESIGN DECISION: Every function here is a pure function of the expense
sequence it is given. There is no cache and no hidden state; the View
Layer calls these again after every store change. Collections are small,
so O(n) recomputation is fine.

Ordering rules (so results are deterministic):
- by_category returns every category, in enum declaration order
- groupings keep first-seen order from the input sequence
- rankings sort by total (or count) descending; ties keep first-seen order
"""

import unicodedata
from collections import Counter
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from petty_cash.models.expense import (
    BlacklistedProvider,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
)
from petty_cash.models.reports import (
    AreaTotal,
    DailyClose,
    DailySummary,
    PatternAlert,
    PersonTotal,
    ProviderTotal,
    RepeatedItem,
    ReportIndicators,
    StatusTotals,
)
from petty_cash.models.session import ReviewFilter


DEFAULT_DAILY_LIMIT = Decimal("2000")
DEFAULT_PATTERN_WINDOW_DAYS = 30
DEFAULT_PATTERN_THRESHOLD = 2

UNASSIGNED_AREA = "Sin área"
UNKNOWN_PROVIDER = "Sin proveedor"

ZERO = Decimal("0")


def total_amount(expenses: Iterable[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), ZERO)


def expenses_on(expenses: Iterable[Expense], day: date) -> list[Expense]:
    """The expenses dated `day`, in input order."""
    return [e for e in expenses if e.expense_date == day]


def latest_expense_date(expenses: Iterable[Expense]) -> Optional[date]:
    return max((e.expense_date for e in expenses), default=None)


# =============================================================================
# DASHBOARD
# =============================================================================

def daily_summary(
    expenses: Sequence[Expense],
    limit: Decimal = DEFAULT_DAILY_LIMIT,
) -> DailySummary:
    """
    Totals and per-status counts for a (conceptually "today") collection.

    The four counts always add up to len(expenses).
    """
    if limit <= 0:
        raise ValueError("limit must be > 0")

    counts = Counter(e.status for e in expenses)
    return DailySummary(
        total_spent=total_amount(expenses),
        limit=limit,
        pending_count=counts[ExpenseStatus.PENDING],
        approved_count=counts[ExpenseStatus.APPROVED],
        rejected_count=counts[ExpenseStatus.REJECTED],
        observed_count=counts[ExpenseStatus.OBSERVED],
    )


def by_category(expenses: Iterable[Expense]) -> dict[ExpenseCategory, Decimal]:
    """Sum per category. Every category is present; unmatched ones are zero."""
    totals = {category: ZERO for category in ExpenseCategory}
    for expense in expenses:
        totals[expense.category] += expense.amount
    return totals


# =============================================================================
# GROUPINGS
# =============================================================================

def _group(
    expenses: Iterable[Expense],
    key: Callable[[Expense], str],
) -> dict[str, list[Expense]]:
    """Group by key, keeping first-seen order of keys and input order within."""
    groups: dict[str, list[Expense]] = {}
    for expense in expenses:
        groups.setdefault(key(expense), []).append(expense)
    return groups


def _area_of(expense: Expense) -> str:
    return expense.area or UNASSIGNED_AREA


def by_area(expenses: Iterable[Expense]) -> dict[str, AreaTotal]:
    """Sum and count per area, in first-seen order. No area -> UNASSIGNED_AREA."""
    return {
        area: AreaTotal(area=area, total=total_amount(group), count=len(group))
        for area, group in _group(expenses, _area_of).items()
    }


def rank_areas(expenses: Iterable[Expense]) -> list[AreaTotal]:
    """Areas by total, highest first. Equal totals keep first-seen order."""
    return sorted(by_area(expenses).values(), key=lambda a: a.total, reverse=True)


def by_provider(expenses: Iterable[Expense]) -> dict[str, ProviderTotal]:
    """Sum and count per provider, in first-seen order. No provider -> UNKNOWN_PROVIDER."""
    return {
        name: ProviderTotal(provider=name, total=total_amount(group), count=len(group))
        for name, group in _group(expenses, lambda e: e.provider or UNKNOWN_PROVIDER).items()
    }


def by_person(expenses: Iterable[Expense]) -> dict[str, PersonTotal]:
    """Sum and count per submitter, in first-seen order."""
    return {
        name: PersonTotal(user=name, total=total_amount(group), count=len(group))
        for name, group in _group(expenses, lambda e: e.user).items()
    }


def rank_providers(expenses: Iterable[Expense]) -> list[ProviderTotal]:
    """Providers by total, highest first. Equal totals keep first-seen order."""
    return sorted(by_provider(expenses).values(), key=lambda p: p.total, reverse=True)


def rank_people(expenses: Iterable[Expense]) -> list[PersonTotal]:
    """Submitters by total, highest first. Equal totals keep first-seen order."""
    return sorted(by_person(expenses).values(), key=lambda p: p.total, reverse=True)


# =============================================================================
# REPEAT PURCHASES
# =============================================================================

def normalize_item(description: str) -> str:
    """
    Key used to decide that two descriptions are the same item.

    Case-folded, accents stripped, whitespace collapsed:
    "  Martíllo " and "martillo" are the same item.
    """
    decomposed = unicodedata.normalize("NFKD", description)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return " ".join(stripped.casefold().split())


def _dominant_area(group: list[Expense]) -> str:
    # most_common is stable, so ties go to the first-seen area
    return Counter(_area_of(e) for e in group).most_common(1)[0][0]


def pattern_alerts(
    expenses: Sequence[Expense],
    window_days: int = DEFAULT_PATTERN_WINDOW_DAYS,
    threshold: int = DEFAULT_PATTERN_THRESHOLD,
    as_of: Optional[date] = None,
) -> list[PatternAlert]:
    """
    Items bought more than `threshold` times in the `window_days` ending at `as_of`.

    The window is (as_of - window_days, as_of]. `as_of` defaults to the
    latest expense date in the input, so the result depends only on the
    arguments. The reported item label is the first-seen description and
    the area is the one the item was charged to most often.
    """
    if window_days < 1:
        raise ValueError("window_days must be >= 1")
    if threshold < 0:
        raise ValueError("threshold must be >= 0")

    if as_of is None:
        as_of = latest_expense_date(expenses)
        if as_of is None:
            return []

    start = as_of - timedelta(days=window_days)
    in_window = [e for e in expenses if start < e.expense_date <= as_of]

    alerts = [
        PatternAlert(
            item=group[0].description,
            count=len(group),
            area=_dominant_area(group),
        )
        for group in _group(in_window, lambda e: normalize_item(e.description)).values()
        if len(group) > threshold
    ]
    return sorted(alerts, key=lambda a: a.count, reverse=True)


def most_repeated_items(
    expenses: Iterable[Expense],
    limit: int = 3,
) -> list[RepeatedItem]:
    """Items by purchase count over the whole input, most repeated first."""
    items = [
        RepeatedItem(
            item=group[0].description,
            count=len(group),
            area=_dominant_area(group),
        )
        for group in _group(expenses, lambda e: normalize_item(e.description)).values()
    ]
    return sorted(items, key=lambda i: i.count, reverse=True)[:limit]


# =============================================================================
# REPORTS / CLOSE
# =============================================================================

def report_indicators(expenses: Sequence[Expense]) -> ReportIndicators:
    """Headline numbers for the reports screen."""
    count = len(expenses)
    total = total_amount(expenses)
    observed = sum(1 for e in expenses if e.status == ExpenseStatus.OBSERVED)
    ranked = rank_areas(expenses)

    return ReportIndicators(
        total_spent=total,
        expense_count=count,
        average=(total / count).quantize(Decimal("0.01")) if count else ZERO,
        observed_count=observed,
        observed_percent=round(observed / count * 100, 1) if count else 0.0,
        top_area=ranked[0].area if ranked else None,
    )


def _status_totals(expenses: Sequence[Expense], status: ExpenseStatus) -> StatusTotals:
    matching = [e for e in expenses if e.status == status]
    return StatusTotals(status=status, count=len(matching), total=total_amount(matching))


def daily_close(
    expenses: Sequence[Expense],
    day: date,
    latest: int = 5,
) -> DailyClose:
    """
    Close a day: per-status counts and amounts for the expenses dated `day`,
    plus the `latest` most recent of them.
    """
    todays = expenses_on(expenses, day)
    return DailyClose(
        day=day,
        approved=_status_totals(todays, ExpenseStatus.APPROVED),
        pending=_status_totals(todays, ExpenseStatus.PENDING),
        observed=_status_totals(todays, ExpenseStatus.OBSERVED),
        rejected=_status_totals(todays, ExpenseStatus.REJECTED),
        total_count=len(todays),
        total_amount=total_amount(todays),
        latest=todays[:latest],
    )


# =============================================================================
# REVIEW
# =============================================================================

def blacklisted_expenses(
    expenses: Iterable[Expense],
    blacklist: Iterable[BlacklistedProvider],
) -> list[Expense]:
    """Expenses paid to a blacklisted provider, in input order."""
    blacklist = list(blacklist)
    return [e for e in expenses if any(p.matches(e.provider) for p in blacklist)]


def review_queue(
    expenses: Sequence[Expense],
    review_filter: ReviewFilter,
    blacklist: Iterable[BlacklistedProvider] = (),
) -> list[Expense]:
    """
    Expenses shown under a review filter chip.

    RISK = carries an alert, or is paid to a blacklisted provider.
    """
    if review_filter == ReviewFilter.PENDING:
        return [e for e in expenses if e.status == ExpenseStatus.PENDING]
    if review_filter == ReviewFilter.APPROVED:
        return [e for e in expenses if e.status == ExpenseStatus.APPROVED]

    flagged = {e.id for e in blacklisted_expenses(expenses, blacklist)}
    return [e for e in expenses if e.has_alerts or e.id in flagged]
