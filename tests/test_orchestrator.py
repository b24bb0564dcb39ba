"""
Tests for the orchestrator flows.

Integration tests: real store, real transitions and a real audit log,
all on InMemoryStorage.
"""

from datetime import date
from decimal import Decimal

import pytest

from petty_cash.audit import AuditLogger, create_correlation_id
from petty_cash.config import AppSettings, StorageSettings
from petty_cash.demo import demo_expenses
from petty_cash.errors import (
    IllegalTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from petty_cash.models import (
    AuditEventType,
    ExpenseCategory,
    ExpenseDraft,
    ExpenseStatus,
    ReviewFilter,
)
from petty_cash.orchestrator import ExpenseWorkflow, create_app_components
from petty_cash.services.storage import InMemoryStorage, KeyValueAuditStorage
from petty_cash.store import DEFAULT_EXPENSES_KEY, ExpenseStore


def _draft(**overrides) -> ExpenseDraft:
    fields = dict(
        description="Cinta de embalaje",
        amount=Decimal("12.40"),
        expense_date=date(2026, 2, 14),
        category=ExpenseCategory.OFFICE_SUPPLIES,
        user="Maria Lopez",
        area="Proyectos",
    )
    fields.update(overrides)
    return ExpenseDraft(**fields)


@pytest.fixture
def components(storage):
    return create_app_components(
        storage=storage,
        storage_settings=StorageSettings(backend="memory"),
        app_settings=AppSettings(),
    )


@pytest.fixture
def workflow(components):
    return components[0]


@pytest.fixture
def audit(storage):
    """Reader over the audit slot the workflow writes to."""
    return KeyValueAuditStorage(storage)


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_seeds_demo_data(self, workflow, audit):
        assert len(workflow.list_expenses()) == 5
        events = audit.get_recent_events()
        assert [e.event_type for e in events] == [AuditEventType.STORE_SEEDED]

    def test_returns_the_storage(self, storage, components):
        assert components[1] is storage

    def test_rehydrates_on_second_start(self, storage, workflow, audit):
        workflow.create_expense(_draft())

        second, _ = create_app_components(
            storage=storage,
            storage_settings=StorageSettings(backend="memory"),
            app_settings=AppSettings(),
        )
        assert len(second.list_expenses()) == 6
        assert second.list_expenses()[0].description == "Cinta de embalaje"
        assert audit.get_recent_events()[0].event_type == AuditEventType.STORE_REHYDRATED

    def test_without_demo_data(self, storage):
        workflow, _ = create_app_components(
            storage=storage,
            storage_settings=StorageSettings(backend="memory"),
            app_settings=AppSettings(),
            seed_demo_data=False,
        )
        assert workflow.list_expenses() == []

    def test_unreadable_store_raises(self):
        storage = InMemoryStorage({DEFAULT_EXPENSES_KEY: "{oops"})
        with pytest.raises(PersistenceError):
            create_app_components(
                storage=storage,
                storage_settings=StorageSettings(backend="memory"),
                app_settings=AppSettings(),
            )
        events = KeyValueAuditStorage(storage).get_recent_events()
        assert events[0].event_type == AuditEventType.SYSTEM_ERROR


class TestCreateExpense:
    """Tests for the register flow."""

    def test_create(self, workflow, audit):
        correlation_id = create_correlation_id()
        expense = workflow.create_expense(_draft(), correlation_id=correlation_id)

        assert workflow.list_expenses()[0] == expense
        events = audit.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.EXPENSE_CREATED]
        assert events[0].entity_id == expense.id

    def test_invalid_input_is_audited_and_raised(self, workflow, audit):
        correlation_id = create_correlation_id()

        with pytest.raises(ValidationError):
            workflow.create_expense(_draft(description=""), correlation_id=correlation_id)

        assert len(workflow.list_expenses()) == 5
        events = audit.get_events_by_correlation_id(correlation_id)
        assert events[0].event_type == AuditEventType.VALIDATION_FAILED
        assert events[0].details["fields"] == ["description"]

    def test_build_draft(self, workflow):
        draft = workflow.build_draft(description="Taxi", amount=Decimal("18.00"), user="Ana")
        assert draft.amount == Decimal("18.00")

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"user": "   "}, "user"),
            ({"amount": Decimal("NaN")}, "amount"),
            ({"amount": Decimal("Infinity")}, "amount"),
        ],
    )
    def test_build_draft_reports_bad_field(self, workflow, audit, overrides, field):
        fields = dict(description="Taxi", amount=Decimal("18.00"), user="Ana")
        fields.update(overrides)
        correlation_id = create_correlation_id()

        with pytest.raises(ValidationError) as exc_info:
            workflow.build_draft(correlation_id=correlation_id, **fields)

        assert exc_info.value.fields == [field]
        events = audit.get_events_by_correlation_id(correlation_id)
        assert events[0].event_type == AuditEventType.VALIDATION_FAILED
        assert events[0].details["fields"] == [field]


class TestReview:
    """Tests for approve / reject flows."""

    def test_approve(self, workflow, audit):
        correlation_id = create_correlation_id()
        expense = workflow.approve("1", correlation_id=correlation_id)

        assert expense.status == ExpenseStatus.APPROVED
        assert expense.history[-1].user == "Admin User"
        events = audit.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.EXPENSE_APPROVED]

    def test_reject_with_reason(self, workflow, audit):
        workflow.reject("5", actor="Laura Jefe", detail="Proveedor en lista negra")

        events = audit.get_events_by_entity("expense", "5")
        assert events[-1].event_type == AuditEventType.EXPENSE_REJECTED
        assert events[-1].details["reason"] == "Proveedor en lista negra"
        assert events[-1].details["actor"] == "Laura Jefe"

    def test_long_reject_reason_is_stored_and_audited(self, workflow, audit):
        reason = "x" * 501
        expense = workflow.reject("5", detail=reason)

        assert expense.history[-1].detail == reason
        events = audit.get_events_by_entity("expense", "5")
        assert events[-1].details["reason"] == reason

    def test_illegal_transition_is_audited_and_raised(self, workflow, audit):
        correlation_id = create_correlation_id()

        with pytest.raises(IllegalTransitionError):
            workflow.approve("4", correlation_id=correlation_id)

        events = audit.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.ILLEGAL_TRANSITION]
        assert workflow.get_expense("4").status == ExpenseStatus.REJECTED

    def test_unknown_expense(self, workflow):
        with pytest.raises(NotFoundError):
            workflow.reject("nope")

    def test_can_review(self, workflow):
        assert workflow.can_review(workflow.get_expense("1"))
        assert not workflow.can_review(workflow.get_expense("4"))

    def test_persistence_failure_is_audited(self, failing_store):
        audit_storage = KeyValueAuditStorage(InMemoryStorage())
        workflow = ExpenseWorkflow(
            failing_store,
            audit_logger=AuditLogger(audit_storage),
        )

        with pytest.raises(PersistenceError):
            workflow.approve("1")

        assert workflow.get_expense("1").status == ExpenseStatus.APPROVED
        events = audit_storage.get_events_by_entity("expense", "1")
        assert events[-1].event_type == AuditEventType.PERSISTENCE_FAILED


class TestReports:
    """Tests for the read-side flows."""

    def test_dashboard_whole_collection(self, workflow):
        summary = workflow.dashboard()
        assert summary.total_spent == Decimal("2286.50")
        assert summary.pending_count == 4

    def test_dashboard_for_a_day(self, workflow):
        summary = workflow.dashboard(date(2026, 2, 14))
        assert summary.total_spent == Decimal("320.80")
        assert summary.total_count == 1

    def test_latest_expense_date(self, workflow):
        assert workflow.latest_expense_date() == date(2026, 2, 14)
        assert workflow.generate_daily_close(workflow.latest_expense_date()).total_count == 1

    def test_latest_expense_date_without_expenses(self, storage):
        workflow = ExpenseWorkflow(ExpenseStore(storage))
        assert workflow.latest_expense_date() == date.today()

    def test_dashboard_uses_configured_limit(self, storage):
        workflow = ExpenseWorkflow(
            ExpenseStore(storage, seed=demo_expenses),
            app_settings=AppSettings(daily_limit=Decimal("3000")),
        )
        assert workflow.dashboard().balance == Decimal("713.50")

    def test_reports_follow_mutations(self, workflow):
        workflow.create_expense(_draft(amount=Decimal("1000.00")))

        assert workflow.indicators().expense_count == 6
        assert workflow.area_ranking()[0].area == "Proyectos"
        assert workflow.category_totals()[ExpenseCategory.OFFICE_SUPPLIES] == Decimal("1125.50")

    def test_pattern_alerts_use_settings(self, storage):
        workflow = ExpenseWorkflow(
            ExpenseStore(storage),
            app_settings=AppSettings(pattern_threshold=1),
        )
        workflow.create_expense(_draft())
        workflow.create_expense(_draft(description="cinta de embalaje"))

        alerts = workflow.pattern_alerts()
        assert len(alerts) == 1
        assert alerts[0].count == 2

    def test_review_queue_risk(self, workflow):
        assert [e.id for e in workflow.review_queue(ReviewFilter.RISK)] == ["5"]

    def test_is_blacklisted(self, workflow):
        assert workflow.is_blacklisted("insumos pro").name == "Insumos Pro"
        assert workflow.is_blacklisted("Ferretería Central") is None
        assert workflow.is_blacklisted(None) is None

    def test_daily_close_is_audited(self, workflow, audit):
        close = workflow.generate_daily_close(date(2026, 2, 13), actor="Admin User")

        assert close.total_count == 3
        events = audit.get_events_by_entity("close", "2026-02-13")
        assert events[0].event_type == AuditEventType.DAILY_CLOSE_GENERATED
        assert events[0].details["total_amount"] == "1515.70"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
