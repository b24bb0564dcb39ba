"""
Data Models Package

This package contains all Pydantic models used in the Petty Cash system.
All data flowing through the system must conform to these schemas.
"""

from petty_cash.models.expense import (
    DEFAULT_CURRENCY,
    RECEIPT_PLACEHOLDER,
    TERMINAL_STATUSES,
    AlertSeverity,
    BlacklistedProvider,
    Expense,
    ExpenseAlert,
    ExpenseCategory,
    ExpenseDraft,
    ExpenseStatus,
    HistoryEntry,
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
from petty_cash.models.session import (
    AppState,
    ReviewFilter,
    Role,
    View,
)
from petty_cash.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Expense models
    "DEFAULT_CURRENCY",
    "RECEIPT_PLACEHOLDER",
    "TERMINAL_STATUSES",
    "AlertSeverity",
    "BlacklistedProvider",
    "Expense",
    "ExpenseAlert",
    "ExpenseCategory",
    "ExpenseDraft",
    "ExpenseStatus",
    "HistoryEntry",
    # Report models
    "AreaTotal",
    "DailyClose",
    "DailySummary",
    "PatternAlert",
    "PersonTotal",
    "ProviderTotal",
    "RepeatedItem",
    "ReportIndicators",
    "StatusTotals",
    # UI state
    "AppState",
    "ReviewFilter",
    "Role",
    "View",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
