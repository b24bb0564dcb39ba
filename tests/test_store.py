"""
Tests for the expense store: loading, create, and the replace guard.
"""

import json
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from pydantic import TypeAdapter

from petty_cash.demo import demo_expenses
from petty_cash.errors import (
    IllegalTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from petty_cash.models import Expense, ExpenseCategory, ExpenseDraft, ExpenseStatus, HistoryEntry
from petty_cash.services.storage import InMemoryStorage, JsonFileStorage
from petty_cash.store import DEFAULT_EXPENSES_KEY, ExpenseStore


FIXED_NOW = datetime(2026, 2, 15, 10, 30, tzinfo=timezone.utc)


def _draft(**overrides) -> ExpenseDraft:
    fields = dict(
        description="Taxi al cliente",
        amount=Decimal("25.00"),
        expense_date=date(2026, 2, 15),
        category=ExpenseCategory.TRANSPORT,
        user="Ana Patricia Torres",
        provider="Taxi Express SAC",
        area="Ventas",
    )
    fields.update(overrides)
    return ExpenseDraft(**fields)


class TestLoading:
    """Tests for seeding and rehydration."""

    def test_empty_slot_starts_from_seed(self, storage, seeded_store):
        assert len(seeded_store) == 5
        assert seeded_store.seeded is True
        assert [e.id for e in seeded_store.list()] == ["1", "2", "3", "4", "5"]

    def test_seeding_does_not_write(self, storage, seeded_store):
        assert DEFAULT_EXPENSES_KEY not in storage

    def test_no_seed_starts_empty(self, storage):
        store = ExpenseStore(storage)
        assert len(store) == 0
        assert store.list() == []

    def test_stored_empty_collection_is_not_reseeded(self):
        """Test that an explicitly empty slot stays empty."""
        storage = InMemoryStorage({DEFAULT_EXPENSES_KEY: "[]"})
        store = ExpenseStore(storage, seed=demo_expenses)
        assert len(store) == 0
        assert store.seeded is False

    def test_unreadable_slot_raises(self):
        storage = InMemoryStorage({DEFAULT_EXPENSES_KEY: "not json"})
        with pytest.raises(PersistenceError):
            ExpenseStore(storage, seed=demo_expenses)

    def test_duplicate_ids_raise(self):
        expense = demo_expenses()[0]
        payload = TypeAdapter(list[Expense]).dump_json([expense, expense], by_alias=True)
        storage = InMemoryStorage({DEFAULT_EXPENSES_KEY: payload.decode("utf-8")})

        with pytest.raises(PersistenceError, match="Duplicate"):
            ExpenseStore(storage)

    def test_rehydrates_what_was_written(self, tmp_path):
        """Test that a second store over the same directory sees the same collection."""
        storage = JsonFileStorage(tmp_path)
        store = ExpenseStore(storage, seed=demo_expenses, clock=lambda: FIXED_NOW)
        store.create(_draft())

        reloaded = ExpenseStore(JsonFileStorage(tmp_path), seed=demo_expenses)

        assert reloaded.seeded is False
        assert [e.model_dump() for e in reloaded.list()] == [
            e.model_dump() for e in store.list()
        ]

    def test_written_document_uses_camel_case(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        ExpenseStore(storage, seed=demo_expenses).create(_draft())

        document = json.loads((tmp_path / f"{DEFAULT_EXPENSES_KEY}.json").read_text(encoding="utf-8"))
        assert len(document) == 6
        assert document[0]["date"] == "2026-02-15"
        assert document[0]["receiptImage"] == "/assets/receipt.svg"
        assert document[0]["history"][0]["status"] == "Pendiente"


class TestReads:
    """Tests for list/get."""

    def test_list_returns_a_copy(self, seeded_store):
        snapshot = seeded_store.list()
        snapshot.clear()
        assert len(seeded_store) == 5

    def test_list_is_idempotent(self, storage, seeded_store):
        assert seeded_store.list() == seeded_store.list()
        assert DEFAULT_EXPENSES_KEY not in storage

    def test_get(self, seeded_store):
        assert seeded_store.get("2").description == "Arreglo de máquinas"

    def test_get_unknown_raises(self, seeded_store):
        with pytest.raises(NotFoundError):
            seeded_store.get("nope")

    def test_contains(self, seeded_store):
        assert "1" in seeded_store
        assert "nope" not in seeded_store


class TestCreate:
    """Tests for registering expenses."""

    def test_create_inserts_pending_at_front(self, seeded_store):
        expense = seeded_store.create(_draft())

        assert len(seeded_store) == 6
        assert seeded_store.list()[0].id == expense.id
        assert expense.status == ExpenseStatus.PENDING
        assert expense.id not in {"1", "2", "3", "4", "5"}

    def test_create_records_initial_history(self, storage):
        store = ExpenseStore(storage, clock=lambda: FIXED_NOW)
        expense = store.create(_draft())

        assert len(expense.history) == 1
        entry = expense.history[0]
        assert entry.timestamp == FIXED_NOW
        assert entry.user == "Ana Patricia Torres"
        assert entry.amount == Decimal("25.00")
        assert entry.status == ExpenseStatus.PENDING

    def test_create_actor_overrides_history_user(self, storage):
        expense = ExpenseStore(storage).create(_draft(), actor="Admin User")
        assert expense.user == "Ana Patricia Torres"
        assert expense.history[0].user == "Admin User"

    def test_create_persists(self, storage, seeded_store):
        seeded_store.create(_draft())
        assert len(json.loads(storage.get(DEFAULT_EXPENSES_KEY))) == 6

    def test_empty_description_is_rejected(self, storage, seeded_store):
        with pytest.raises(ValidationError) as exc_info:
            seeded_store.create(_draft(description=""))

        assert exc_info.value.fields == ["description"]
        assert len(seeded_store) == 5
        assert DEFAULT_EXPENSES_KEY not in storage

    def test_blank_description_is_rejected(self, seeded_store):
        with pytest.raises(ValidationError):
            seeded_store.create(_draft(description="   "))

    def test_long_description_is_accepted(self, seeded_store):
        expense = seeded_store.create(_draft(description="d" * 301))

        assert len(expense.description) == 301
        assert len(seeded_store) == 6

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_amount_is_rejected(self, seeded_store, amount):
        with pytest.raises(ValidationError) as exc_info:
            seeded_store.create(_draft(amount=Decimal(amount)))

        assert exc_info.value.fields == ["amount"]
        assert len(seeded_store) == 5

    def test_all_bad_fields_reported_together(self, seeded_store):
        with pytest.raises(ValidationError) as exc_info:
            seeded_store.create(_draft(description="", amount=Decimal("0")))
        assert set(exc_info.value.fields) == {"description", "amount"}

    def test_amount_with_too_many_decimals_is_rejected(self, seeded_store):
        with pytest.raises(ValidationError) as exc_info:
            seeded_store.create(_draft(amount=Decimal("10.005")))
        assert "amount" in exc_info.value.fields
        assert len(seeded_store) == 5

    def test_generated_id_avoids_collisions(self, storage):
        ids = iter(["1", "3", "fresh"])
        store = ExpenseStore(storage, seed=demo_expenses, id_factory=lambda: next(ids))

        assert store.create(_draft()).id == "fresh"

    def test_write_failure_keeps_expense_in_memory(self, failing_store):
        with pytest.raises(PersistenceError):
            failing_store.create(_draft())

        assert len(failing_store) == 6
        assert failing_store.list()[0].description == "Taxi al cliente"


class TestReplace:
    """Tests for the lifecycle guard on replace()."""

    def _approved(self, expense: Expense) -> Expense:
        entry = HistoryEntry(
            timestamp=FIXED_NOW,
            user="Admin User",
            amount=expense.amount,
            status=ExpenseStatus.APPROVED,
        )
        return expense.model_copy(
            update={"status": ExpenseStatus.APPROVED, "history": expense.history + (entry,)}
        )

    def test_valid_replace(self, seeded_store):
        updated = self._approved(seeded_store.get("1"))
        assert seeded_store.replace("1", updated) == updated
        assert seeded_store.get("1").status == ExpenseStatus.APPROVED

    def test_replace_unknown_raises(self, seeded_store):
        with pytest.raises(NotFoundError):
            seeded_store.replace("nope", seeded_store.get("1"))

    def test_terminal_expense_cannot_change(self, seeded_store):
        rejected = seeded_store.get("4")
        with pytest.raises(IllegalTransitionError):
            seeded_store.replace("4", self._approved(rejected))

    @pytest.mark.parametrize(
        "field,value",
        [
            ("amount", Decimal("1.00")),
            ("description", "Otra cosa"),
            ("category", ExpenseCategory.FOOD),
            ("id", "99"),
        ],
    )
    def test_immutable_fields(self, seeded_store, field, value):
        updated = self._approved(seeded_store.get("1")).model_copy(update={field: value})
        with pytest.raises(IllegalTransitionError):
            seeded_store.replace("1", updated)
        assert seeded_store.get("1").status == ExpenseStatus.PENDING

    def test_history_is_append_only(self, seeded_store):
        current = seeded_store.get("1")
        updated = current.model_copy(
            update={"status": ExpenseStatus.APPROVED, "history": ()}
        )
        with pytest.raises(IllegalTransitionError):
            seeded_store.replace("1", updated)

    def test_last_entry_must_match_status(self, seeded_store):
        current = seeded_store.get("1")
        updated = current.model_copy(update={"status": ExpenseStatus.APPROVED})
        with pytest.raises(IllegalTransitionError):
            seeded_store.replace("1", updated)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
