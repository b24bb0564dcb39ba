"""
Audit Logger

DESIGN DECISION: Every intent against the expense store is logged.
This provides:
1. Traceability of approvals and rejections
2. Debugging capability when persistence fails
3. A record of refused intents

The audit logger:
- Is synchronous, like the rest of the core
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from petty_cash.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from petty_cash.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit storage slot (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("petty_cash.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_store_loaded(self, count: int, seeded: bool) -> None:
        if seeded:
            self.log(AuditEventBuilder.store_seeded(count))
        else:
            self.log(AuditEventBuilder.store_rehydrated(count))

    def log_expense_created(
        self,
        expense_id: str,
        user: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log expense registration."""
        self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            user=user,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_expense_approved(
        self,
        expense_id: str,
        actor: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_approved(
            expense_id=expense_id,
            actor=actor,
            correlation_id=correlation_id,
        ))

    def log_expense_rejected(
        self,
        expense_id: str,
        actor: str,
        reason: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.expense_rejected(
            expense_id=expense_id,
            actor=actor,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        fields: list[str],
        message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            fields=fields,
            message=message,
            correlation_id=correlation_id,
        ))

    def log_illegal_transition(
        self,
        expense_id: str,
        current: str,
        target: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.illegal_transition(
            expense_id=expense_id,
            current=current,
            target=target,
            correlation_id=correlation_id,
        ))

    def log_persistence_failed(
        self,
        error_message: str,
        expense_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.persistence_failed(
            error_message=error_message,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_daily_close(
        self,
        day: str,
        total_count: int,
        total_amount: str,
        actor: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.daily_close_generated(
            day=day,
            total_count=total_count,
            total_amount=total_amount,
            actor=actor,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., an approval).
    Pass it through all subsequent operations.
    """
    return uuid4()
