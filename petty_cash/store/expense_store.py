"""
Expense Store

The single source of truth for expenses: one ordered collection,
most-recent-first, written through to a key-value slot after every
successful mutation.

DESIGN DECISION: The whole collection is serialized under one key.
The key-value backend's overwrite is the unit of atomicity, so there is
no partial-write recovery here.

KNOWN LIMITATION: If the write fails, the in-memory mutation stays
applied and PersistenceError is raised. Memory runs ahead of the slot
until the next successful write.
"""

from datetime import datetime
from typing import Callable, Iterable, Optional
from uuid import uuid4

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from petty_cash.errors import (
    IllegalTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from petty_cash.models.expense import (
    Expense,
    ExpenseDraft,
    ExpenseStatus,
    HistoryEntry,
    utcnow,
)
from petty_cash.services.storage import KeyValueStorageInterface


logger = structlog.get_logger(__name__)

DEFAULT_EXPENSES_KEY = "cajachica_expenses"

_EXPENSES = TypeAdapter(list[Expense])


def _new_expense_id() -> str:
    return uuid4().hex[:9]


class ExpenseStore:
    """
    Ordered, persisted collection of expenses.

    Usage:
        store = ExpenseStore(JsonFileStorage(path), seed=demo_expenses)
        expense = store.create(draft)
        store.get(expense.id)
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        key: str = DEFAULT_EXPENSES_KEY,
        seed: Optional[Callable[[], Iterable[Expense]]] = None,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = _new_expense_id,
    ):
        """
        Load the collection.

        Rehydrates from `key` when the slot holds a value, otherwise starts
        from `seed()` (or empty). Seeding does not write; the slot is first
        written by the first mutation.

        Raises:
            PersistenceError: If the slot exists but cannot be read or parsed
        """
        self._storage = storage
        self._key = key
        self._clock = clock
        self._id_factory = id_factory
        self._expenses: list[Expense] = []
        self.seeded = False
        self._load(seed)

    # -------------------------------------------------------------------------
    # Loading / persistence
    # -------------------------------------------------------------------------

    def _load(self, seed: Optional[Callable[[], Iterable[Expense]]]) -> None:
        raw = self._storage.get(self._key)

        if raw is not None:
            try:
                expenses = _EXPENSES.validate_json(raw)
            except PydanticValidationError as e:
                raise PersistenceError(
                    f"Stored expenses under '{self._key}' are unreadable: {e}"
                ) from e
            self.seeded = False
        else:
            expenses = list(seed()) if seed else []
            self.seeded = True

        ids = [e.id for e in expenses]
        if len(ids) != len(set(ids)):
            raise PersistenceError(f"Duplicate expense ids under '{self._key}'")

        self._expenses = expenses
        logger.info(
            "expense_store_loaded",
            key=self._key,
            count=len(expenses),
            seeded=self.seeded,
        )

    def _persist(self) -> None:
        """Serialize the full collection and overwrite the slot."""
        try:
            payload = _EXPENSES.dump_json(self._expenses, by_alias=True).decode("utf-8")
            self._storage.set(self._key, payload)
        except PersistenceError as e:
            logger.error("expense_store_persist_failed", key=self._key, error=str(e))
            raise
        except Exception as e:
            logger.error("expense_store_persist_failed", key=self._key, error=str(e))
            raise PersistenceError(f"Failed to persist expenses: {e}") from e

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list(self) -> list[Expense]:
        """Current snapshot, most-recent-first. No side effects."""
        return list(self._expenses)

    def get(self, expense_id: str) -> Expense:
        """
        Get one expense.

        Raises:
            NotFoundError: If no expense has this id
        """
        return self._expenses[self._index_of(expense_id)]

    def ids(self) -> set[str]:
        return {e.id for e in self._expenses}

    def __len__(self) -> int:
        return len(self._expenses)

    def __contains__(self, expense_id: object) -> bool:
        return any(e.id == expense_id for e in self._expenses)

    def _index_of(self, expense_id: str) -> int:
        for idx, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return idx
        raise NotFoundError(expense_id)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _check_draft(self, draft: ExpenseDraft) -> None:
        """Checks done before anything is stored."""
        problems = {}
        if not draft.description or not draft.description.strip():
            problems["description"] = "Description is required"
        if draft.amount <= 0:
            problems["amount"] = "Amount must be greater than zero"

        if problems:
            raise ValidationError(
                "; ".join(problems.values()),
                fields=list(problems.keys()),
            )

    def _next_id(self) -> str:
        existing = self.ids()
        expense_id = self._id_factory()
        while expense_id in existing:
            expense_id = self._id_factory()
        return expense_id

    def create(self, draft: ExpenseDraft, actor: Optional[str] = None) -> Expense:
        """
        Register a new expense.

        The expense starts Pending with one history entry and is inserted
        at the front of the collection.

        Raises:
            ValidationError: Empty description or non-positive amount.
                The store is unchanged.
            PersistenceError: The write failed. The expense IS in memory.
        """
        self._check_draft(draft)

        try:
            expense = Expense(
                id=self._next_id(),
                status=ExpenseStatus.PENDING,
                history=(
                    HistoryEntry(
                        timestamp=self._clock(),
                        user=actor or draft.user,
                        amount=draft.amount,
                        status=ExpenseStatus.PENDING,
                    ),
                ),
                **draft.model_dump(),
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        self._expenses.insert(0, expense)
        logger.info("expense_created", expense_id=expense.id, amount=str(expense.amount))
        self._persist()
        return expense

    def replace(self, expense_id: str, updated: Expense) -> Expense:
        """
        Swap in a new version of an expense.

        Internal to the transition service. Only status and history may
        change; history may only grow; terminal expenses are final.

        Raises:
            NotFoundError: If no expense has this id
            IllegalTransitionError: If the update breaks the lifecycle rules
            PersistenceError: The write failed. The update IS in memory.
        """
        idx = self._index_of(expense_id)
        current = self._expenses[idx]
        self._check_replacement(current, updated)

        self._expenses[idx] = updated
        logger.info(
            "expense_replaced",
            expense_id=expense_id,
            status=updated.status.value,
        )
        self._persist()
        return updated

    def _check_replacement(self, current: Expense, updated: Expense) -> None:
        status = current.status.value

        def refuse(message: str) -> IllegalTransitionError:
            return IllegalTransitionError(
                current.id, status, updated.status.value, message=message
            )

        if updated.id != current.id:
            raise refuse(f"Expense id cannot change ({current.id} -> {updated.id})")
        if current.is_terminal:
            raise refuse(f"Expense {current.id} is {status} and can no longer change")
        for field in ("amount", "description", "category"):
            if getattr(updated, field) != getattr(current, field):
                raise refuse(f"Expense {current.id}: {field} cannot change after creation")

        n = len(current.history)
        if len(updated.history) < n or updated.history[:n] != current.history:
            raise refuse(f"Expense {current.id}: history is append-only")
        last = updated.last_history_entry
        if last is None or last.status != updated.status:
            raise refuse(
                f"Expense {current.id}: last history entry must match status {updated.status.value}"
            )
