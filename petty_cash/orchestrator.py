"""
Main Orchestrator for Petty Cash

This module ties together all the components and defines the flows the
View Layer calls:
1. Register expense (draft -> validate -> store -> persist)
2. Review (approve / reject -> store -> persist)
3. Reports (store snapshot -> aggregation)
4. Daily close (store snapshot -> close summary)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Status changes only go through the transition service
- Reports are always recomputed from the current snapshot
- Every intent, including refused ones, is audited

Errors are audited here and then re-raised unchanged, so the View Layer
can show its own message for each error type.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from petty_cash.audit import AuditLogger, configure_logging, create_correlation_id
from petty_cash.config import AppSettings, StorageSettings, get_settings
from petty_cash.demo import blacklisted_providers, demo_expenses
from petty_cash.errors import (
    IllegalTransitionError,
    PersistenceError,
    ValidationError,
)
from petty_cash.models.expense import (
    BlacklistedProvider,
    Expense,
    ExpenseCategory,
    ExpenseDraft,
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
)
from petty_cash.models.session import ReviewFilter
from petty_cash.services import aggregation
from petty_cash.services.storage import (
    KeyValueAuditStorage,
    KeyValueStorageInterface,
    create_storage,
)
from petty_cash.services.transitions import StatusTransitionService
from petty_cash.store import ExpenseStore


logger = structlog.get_logger(__name__)


class ExpenseWorkflow:
    """
    Orchestrates every user intent against the expense store.

    Flow for a review action:
    1. View sends approve/reject with the acting user
    2. Transition service checks the current status
    3. Store swaps the record and persists
    4. Audit logs the outcome (or the refusal)
    5. View re-reads list() and the aggregations
    """

    def __init__(
        self,
        store: ExpenseStore,
        transitions: Optional[StatusTransitionService] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
        blacklist: Optional[Iterable[BlacklistedProvider]] = None,
    ):
        self._settings = app_settings or AppSettings()
        self._store = store
        self._transitions = transitions or StatusTransitionService(
            store,
            default_actor=self._settings.default_reviewer,
        )
        self._audit_logger = audit_logger or AuditLogger()
        self._blacklist = list(blacklist) if blacklist is not None else blacklisted_providers()

    @property
    def store(self) -> ExpenseStore:
        return self._store

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def blacklist(self) -> list[BlacklistedProvider]:
        return list(self._blacklist)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_expenses(self) -> list[Expense]:
        return self._store.list()

    def get_expense(self, expense_id: str) -> Expense:
        return self._store.get(expense_id)

    def can_review(self, expense: Expense) -> bool:
        """Whether approve/reject buttons make sense for this expense."""
        return not expense.is_terminal and self._transitions.can_transition(
            expense, ExpenseStatus.APPROVED
        )

    def is_blacklisted(self, provider: Optional[str]) -> Optional[BlacklistedProvider]:
        """The blacklist entry matching a provider name, if any."""
        for entry in self._blacklist:
            if entry.matches(provider):
                return entry
        return None

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    def build_draft(self, correlation_id: Optional[UUID] = None, **fields) -> ExpenseDraft:
        """
        Turn raw form input into an ExpenseDraft.

        Raises:
            ValidationError: A field was rejected (blank user, NaN amount...)
        """
        try:
            return ExpenseDraft(**fields)
        except PydanticValidationError as e:
            error = ValidationError.from_pydantic(e)
            self._audit_logger.log_validation_failed(
                fields=error.fields,
                message=str(error),
                correlation_id=correlation_id or create_correlation_id(),
            )
            raise error from e

    def create_expense(
        self,
        draft: ExpenseDraft,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Register a new expense.

        Raises:
            ValidationError: Bad input; nothing stored
            PersistenceError: Stored in memory but not written
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            expense = self._store.create(draft, actor=actor)
        except ValidationError as e:
            self._audit_logger.log_validation_failed(
                fields=e.fields,
                message=str(e),
                correlation_id=correlation_id,
            )
            raise
        except PersistenceError as e:
            self._audit_logger.log_persistence_failed(
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        self._audit_logger.log_expense_created(
            expense_id=expense.id,
            user=expense.user,
            amount=f"{expense.currency} {expense.amount}",
            correlation_id=correlation_id,
        )
        return expense

    def approve(
        self,
        expense_id: str,
        actor: Optional[str] = None,
        detail: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Approve a pending expense. See StatusTransitionService.approve."""
        correlation_id = correlation_id or create_correlation_id()
        actor = actor or self._settings.default_reviewer

        expense = self._run_transition(
            self._transitions.approve, expense_id, actor, detail, correlation_id
        )
        self._audit_logger.log_expense_approved(
            expense_id=expense_id,
            actor=actor,
            correlation_id=correlation_id,
        )
        return expense

    def reject(
        self,
        expense_id: str,
        actor: Optional[str] = None,
        detail: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Reject a pending expense. See StatusTransitionService.reject."""
        correlation_id = correlation_id or create_correlation_id()
        actor = actor or self._settings.default_reviewer

        expense = self._run_transition(
            self._transitions.reject, expense_id, actor, detail, correlation_id
        )
        self._audit_logger.log_expense_rejected(
            expense_id=expense_id,
            actor=actor,
            reason=detail,
            correlation_id=correlation_id,
        )
        return expense

    def _run_transition(
        self,
        transition,
        expense_id: str,
        actor: str,
        detail: Optional[str],
        correlation_id: UUID,
    ) -> Expense:
        try:
            return transition(expense_id, actor=actor, detail=detail)
        except IllegalTransitionError as e:
            self._audit_logger.log_illegal_transition(
                expense_id=expense_id,
                current=e.current,
                target=e.target,
                correlation_id=correlation_id,
            )
            raise
        except PersistenceError as e:
            self._audit_logger.log_persistence_failed(
                error_message=str(e),
                expense_id=expense_id,
                correlation_id=correlation_id,
            )
            raise

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def latest_expense_date(self) -> date:
        """Date of the most recent expense, or today when there are none."""
        return aggregation.latest_expense_date(self._store.list()) or date.today()

    def dashboard(self, day: Optional[date] = None) -> DailySummary:
        """Daily summary for `day`, or for the whole collection when no day is given."""
        expenses = self._store.list()
        if day is not None:
            expenses = aggregation.expenses_on(expenses, day)
        return aggregation.daily_summary(expenses, limit=self._settings.daily_limit)

    def category_totals(self) -> dict[ExpenseCategory, Decimal]:
        return aggregation.by_category(self._store.list())

    def area_totals(self) -> dict[str, AreaTotal]:
        return aggregation.by_area(self._store.list())

    def area_ranking(self) -> list[AreaTotal]:
        return aggregation.rank_areas(self._store.list())

    def provider_ranking(self) -> list[ProviderTotal]:
        return aggregation.rank_providers(self._store.list())

    def person_ranking(self) -> list[PersonTotal]:
        return aggregation.rank_people(self._store.list())

    def pattern_alerts(self, as_of: Optional[date] = None) -> list[PatternAlert]:
        return aggregation.pattern_alerts(
            self._store.list(),
            window_days=self._settings.pattern_window_days,
            threshold=self._settings.pattern_threshold,
            as_of=as_of,
        )

    def repeated_items(self, limit: int = 3) -> list[RepeatedItem]:
        return aggregation.most_repeated_items(self._store.list(), limit=limit)

    def indicators(self) -> ReportIndicators:
        return aggregation.report_indicators(self._store.list())

    def review_queue(self, review_filter: ReviewFilter) -> list[Expense]:
        return aggregation.review_queue(
            self._store.list(), review_filter, blacklist=self._blacklist
        )

    def generate_daily_close(
        self,
        day: date,
        actor: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DailyClose:
        """Compute the close for `day` and record that it was generated."""
        close = aggregation.daily_close(self._store.list(), day)
        self._audit_logger.log_daily_close(
            day=day.isoformat(),
            total_count=close.total_count,
            total_amount=str(close.total_amount),
            actor=actor or self._settings.default_reviewer,
            correlation_id=correlation_id,
        )
        return close


def create_app_components(
    storage: Optional[KeyValueStorageInterface] = None,
    storage_settings: Optional[StorageSettings] = None,
    app_settings: Optional[AppSettings] = None,
    seed_demo_data: bool = True,
) -> tuple[ExpenseWorkflow, KeyValueStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        storage: Key-value backend to use. Built from settings when None.
        storage_settings / app_settings: Override the environment settings.
        seed_demo_data: Start from the demo dataset when the slot is empty.

    Returns:
        (workflow, storage)

    Raises:
        PersistenceError: If stored expenses exist but cannot be read
    """
    settings = get_settings()
    storage_settings = storage_settings or settings.storage
    app_settings = app_settings or settings.app

    configure_logging(app_settings.log_level)

    if storage is None:
        storage = create_storage(storage_settings.backend, storage_settings.data_dir)

    audit_logger = AuditLogger(
        KeyValueAuditStorage(storage, key=storage_settings.audit_key)
    )

    try:
        store = ExpenseStore(
            storage,
            key=storage_settings.expenses_key,
            seed=demo_expenses if seed_demo_data else None,
        )
    except PersistenceError as e:
        audit_logger.log_error(
            error_type="store_load_failed",
            error_message=str(e),
        )
        raise

    audit_logger.log_store_loaded(len(store), seeded=store.seeded)

    workflow = ExpenseWorkflow(
        store=store,
        audit_logger=audit_logger,
        app_settings=app_settings,
    )
    logger.info(
        "app_components_created",
        backend=storage_settings.backend,
        expenses=len(store),
    )
    return workflow, storage
