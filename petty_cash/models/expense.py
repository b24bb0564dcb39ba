"""
Core Data Models for Petty Cash

These models define the schemas for every expense flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Be serializable to the key-value slot in the same JSON shape the
   mobile front-end used (camelCase keys)
3. Be immutable: a status change produces a new Expense instance

DESIGN DECISION: Expense is frozen. The store swaps whole records, so a
snapshot handed to the View Layer can never change underneath it.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


RECEIPT_PLACEHOLDER = "/assets/receipt.svg"
DEFAULT_CURRENCY = "S/."


def utcnow() -> datetime:
    """Timezone-aware current time, used for history timestamps."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseStatus(str, Enum):
    """
    Expense review status.

    Values are the labels shown to users and stored in the JSON slot.
    APPROVED and REJECTED are terminal; OBSERVED is only ever set by
    review flows outside this package.
    """
    PENDING = "Pendiente"
    APPROVED = "Aprobado"
    REJECTED = "Rechazado"
    OBSERVED = "Observado"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({ExpenseStatus.APPROVED, ExpenseStatus.REJECTED})


class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: Using explicit categories rather than free text ensures
    consistent grouping in the reports.
    """
    OFFICE_SUPPLIES = "Papeleria"
    TRANSPORT = "Transporte"
    MAINTENANCE = "Mantenimiento"
    FOOD = "Alimentación"
    OPERATIONS = "Operaciones"
    PROJECTS = "Proyectos"


class AlertSeverity(str, Enum):
    """Severity of a risk flag attached to an expense."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


# =============================================================================
# EXPENSE MODELS
# =============================================================================

class CamelModel(BaseModel):
    """Base for models persisted with camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


class ExpenseAlert(CamelModel):
    """
    A risk flag attached to an expense by external analysis.

    Alerts are never computed here; they are carried as data.
    """
    severity: AlertSeverity = Field(
        ...,
        alias="type",
        description="Alert severity"
    )
    message: str = Field(
        ...,
        min_length=1,
    )


class HistoryEntry(CamelModel):
    """
    One snapshot in an expense's history.

    History is append-only: entries are never edited or reordered.
    """
    timestamp: datetime = Field(
        default_factory=utcnow,
        alias="date",
        description="When the status was recorded"
    )
    user: str = Field(
        ...,
        min_length=1,
        description="Who caused this entry"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
    )
    status: ExpenseStatus
    detail: Optional[str] = None


class ExpenseDraft(CamelModel):
    """
    Input for creating an expense.

    CRITICAL: description and amount are NOT constrained here. The store
    checks them and raises its own ValidationError, so the caller gets one
    error type for bad input regardless of which rule failed.
    """
    description: str = ""
    amount: Decimal = Decimal("0")
    currency: str = DEFAULT_CURRENCY
    expense_date: date = Field(
        default_factory=date.today,
        alias="date",
    )
    category: ExpenseCategory = ExpenseCategory.OFFICE_SUPPLIES
    user: str = Field(
        ...,
        min_length=1,
        description="Submitter display name"
    )
    receipt_image: Optional[str] = RECEIPT_PLACEHOLDER
    code: Optional[str] = None
    provider: Optional[str] = None
    area: Optional[str] = None
    responsible_area: Optional[str] = None
    observations: Optional[str] = None
    alerts: tuple[ExpenseAlert, ...] = Field(default_factory=tuple)


class Expense(CamelModel):
    """
    A petty-cash expense.

    Only `status` and `history` ever change after creation, and only
    through the transition service.
    """
    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    description: str = Field(
        ...,
        min_length=1,
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in the expense currency"
    )
    currency: str = DEFAULT_CURRENCY
    expense_date: date = Field(
        ...,
        alias="date",
        description="Calendar date of the expense"
    )
    status: ExpenseStatus = ExpenseStatus.PENDING
    category: ExpenseCategory
    user: str = Field(
        ...,
        min_length=1,
    )
    receipt_image: Optional[str] = RECEIPT_PLACEHOLDER
    code: Optional[str] = None
    provider: Optional[str] = None
    area: Optional[str] = None
    responsible_area: Optional[str] = None
    observations: Optional[str] = None
    alerts: tuple[ExpenseAlert, ...] = Field(default_factory=tuple)
    history: tuple[HistoryEntry, ...] = Field(default_factory=tuple)

    @field_validator("receipt_image")
    @classmethod
    def default_receipt(cls, v: Optional[str]) -> str:
        """Missing receipts fall back to the placeholder image."""
        return v or RECEIPT_PLACEHOLDER

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_alerts(self) -> bool:
        return len(self.alerts) > 0

    @property
    def last_history_entry(self) -> Optional[HistoryEntry]:
        return self.history[-1] if self.history else None


class BlacklistedProvider(CamelModel):
    """Static reference data: a provider that must not be paid."""
    id: str
    name: str = Field(..., min_length=1)
    reason: str

    def matches(self, provider_name: Optional[str]) -> bool:
        """Case-insensitive match against a provider name."""
        if not provider_name:
            return False
        return self.name.casefold() == provider_name.strip().casefold()
