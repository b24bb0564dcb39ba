"""
Audit Models for Petty Cash

Every intent against the expense store is logged for audit purposes.
This provides:
1. Traceability of who approved or rejected what
2. Debugging information when a write fails
3. A record of failed intents (bad input, illegal transitions)

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from petty_cash.models.expense import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_SEEDED = "store_seeded"
    STORE_REHYDRATED = "store_rehydrated"

    # Expense intents
    EXPENSE_CREATED = "expense_created"
    EXPENSE_APPROVED = "expense_approved"
    EXPENSE_REJECTED = "expense_rejected"

    # Failed intents
    VALIDATION_FAILED = "validation_failed"
    ILLEGAL_TRANSITION = "illegal_transition"
    PERSISTENCE_FAILED = "persistence_failed"

    # Reporting
    DAILY_CLOSE_GENERATED = "daily_close_generated"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'store', 'close')"
    )
    entity_id: Optional[str] = None

    # Correlation - ties the events of one user intent together
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, user, amount)
        event = AuditEventBuilder.expense_approved(expense_id, actor)
    """

    @staticmethod
    def store_seeded(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_SEEDED,
            entity_type="store",
            description=f"Store seeded with {count} demo expenses",
            details={"count": count},
        )

    @staticmethod
    def store_rehydrated(count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_REHYDRATED,
            entity_type="store",
            description=f"Store rehydrated with {count} expenses",
            details={"count": count},
        )

    @staticmethod
    def expense_created(
        expense_id: str,
        user: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense registered by {user}: {amount}",
            details={
                "user": user,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_approved(
        expense_id: str,
        actor: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_APPROVED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense approved by {actor}",
            details={"actor": actor},
            is_user_action=True,
        )

    @staticmethod
    def expense_rejected(
        expense_id: str,
        actor: str,
        reason: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_REJECTED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense rejected by {actor}",
            details={
                "actor": actor,
                "reason": reason or "No reason provided",
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        fields: list[str],
        message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense rejected at validation ({len(fields)} fields)",
            details={"fields": fields},
            error_message=message,
            is_user_action=True,
        )

    @staticmethod
    def illegal_transition(
        expense_id: str,
        current: str,
        target: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ILLEGAL_TRANSITION,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Illegal transition {current} -> {target}",
            details={
                "current": current,
                "target": target,
            },
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(
        error_message: str,
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Expense collection could not be persisted",
            error_message=error_message,
        )

    @staticmethod
    def daily_close_generated(
        day: str,
        total_count: int,
        total_amount: str,
        actor: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DAILY_CLOSE_GENERATED,
            entity_type="close",
            entity_id=day,
            correlation_id=correlation_id,
            description=f"Daily close generated for {day}: {total_count} expenses",
            details={
                "total_count": total_count,
                "total_amount": total_amount,
                "actor": actor,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
