"""
Status Transition Service

The only way an expense's status changes.

    Pendiente --approve--> Aprobado   (terminal)
    Pendiente --reject---> Rechazado  (terminal)

Observado is reachable only from review flows outside this package and
has no outgoing transitions here.

GUARANTEES:
- A transition never changes amount, description or category
- Every transition appends exactly one history entry
- A refused transition leaves the store untouched
"""

from datetime import datetime
from typing import Callable, Optional

from petty_cash.errors import IllegalTransitionError
from petty_cash.models.expense import Expense, ExpenseStatus, HistoryEntry, utcnow
from petty_cash.store import ExpenseStore


ALLOWED_TRANSITIONS: dict[ExpenseStatus, frozenset[ExpenseStatus]] = {
    ExpenseStatus.PENDING: frozenset({ExpenseStatus.APPROVED, ExpenseStatus.REJECTED}),
}


def can_transition(current: ExpenseStatus, target: ExpenseStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


class StatusTransitionService:
    """Applies approve/reject to expenses held by an ExpenseStore."""

    def __init__(
        self,
        store: ExpenseStore,
        clock: Callable[[], datetime] = utcnow,
        default_actor: str = "Admin User",
    ):
        self._store = store
        self._clock = clock
        self._default_actor = default_actor

    def can_transition(self, expense: Expense, target: ExpenseStatus) -> bool:
        """Whether `target` is reachable from the expense's current status."""
        return can_transition(expense.status, target)

    def approve(
        self,
        expense_id: str,
        actor: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> Expense:
        """
        Approve a pending expense.

        Raises:
            NotFoundError: Unknown id
            IllegalTransitionError: Expense is not Pendiente
            PersistenceError: Write failed (the approval stays in memory)
        """
        return self._transition(expense_id, ExpenseStatus.APPROVED, actor, detail)

    def reject(
        self,
        expense_id: str,
        actor: Optional[str] = None,
        detail: Optional[str] = None,
    ) -> Expense:
        """
        Reject a pending expense.

        Raises:
            NotFoundError: Unknown id
            IllegalTransitionError: Expense is not Pendiente
            PersistenceError: Write failed (the rejection stays in memory)
        """
        return self._transition(expense_id, ExpenseStatus.REJECTED, actor, detail)

    def _transition(
        self,
        expense_id: str,
        target: ExpenseStatus,
        actor: Optional[str],
        detail: Optional[str],
    ) -> Expense:
        current = self._store.get(expense_id)

        if not self.can_transition(current, target):
            raise IllegalTransitionError(
                expense_id, current.status.value, target.value
            )

        entry = HistoryEntry(
            timestamp=self._clock(),
            user=(actor or "").strip() or self._default_actor,
            amount=current.amount,
            status=target,
            detail=(detail or "").strip() or None,
        )
        updated = current.model_copy(
            update={
                "status": target,
                "history": current.history + (entry,),
            }
        )
        return self._store.replace(expense_id, updated)
