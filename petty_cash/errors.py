"""
Error taxonomy for the expense lifecycle.

DESIGN DECISION: Every failure of an intent is a typed exception raised
synchronously to the caller (the View Layer). Nothing is retried and
nothing is silently corrected.

- ValidationError: bad create input
- NotFoundError: unknown expense id
- IllegalTransitionError: status change not allowed from the current state
- PersistenceError: the key-value layer could not be read or written.
  The in-memory mutation that triggered the write is NOT rolled back.
"""

from typing import Optional


class PettyCashError(Exception):
    """Base exception for the petty cash core."""
    pass


class ValidationError(PettyCashError):
    """Create input rejected before anything was stored."""

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__(message)
        self.fields = fields or []

    @classmethod
    def from_pydantic(cls, error, prefix: str = "Invalid expense") -> "ValidationError":
        """Wrap a pydantic ValidationError, keeping the top-level fields it rejected."""
        fields = sorted({str(err["loc"][0]) for err in error.errors() if err["loc"]})
        return cls(f"{prefix}: {error}", fields=fields)


class NotFoundError(PettyCashError):
    """Expense id not present in the store."""

    def __init__(self, expense_id: str):
        super().__init__(f"Expense not found: {expense_id}")
        self.expense_id = expense_id


class IllegalTransitionError(PettyCashError):
    """Attempted a status change (or field change) the lifecycle forbids."""

    def __init__(
        self,
        expense_id: str,
        current: str,
        target: Optional[str] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = (
                f"Expense {expense_id} cannot move from "
                f"'{current}' to '{target}'"
            )
        super().__init__(message)
        self.expense_id = expense_id
        self.current = current
        self.target = target


class PersistenceError(PettyCashError):
    """Reading or writing the key-value slot failed."""
    pass
