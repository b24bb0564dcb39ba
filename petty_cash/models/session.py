"""
Application (UI) state.

DESIGN DECISION: The front-end keeps no ambient globals for the current
screen, the selected expense or the role. One frozen AppState object is
threaded through the views; every user action yields a NEW AppState.
The Streamlit session only ever holds the current instance.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class View(str, Enum):
    """Screens of the app."""
    LOGIN = "login"
    DASHBOARD = "dashboard"
    EXPENSES = "expenses"
    NEW = "new"
    REPORTS = "reports"
    PROFILE = "profile"
    DETAIL = "detail"
    REVIEW = "review"
    REVIEW_DETAIL = "review_detail"
    CLOSE = "close"
    SUCCESS = "success"
    REJECT = "reject"


class Role(str, Enum):
    """Who is using the app. Chosen on the login screen, never authenticated."""
    ADMIN = "admin"
    JEFE = "jefe"
    USER = "user"

    @property
    def can_review(self) -> bool:
        return self in (Role.ADMIN, Role.JEFE)


class ReviewFilter(str, Enum):
    """Filter chips on the review list."""
    RISK = "Riesgo"
    PENDING = "Pendientes"
    APPROVED = "Aprobados"


# Screens that need a selected expense
DETAIL_VIEWS = frozenset({View.DETAIL, View.REVIEW_DETAIL})


class AppState(BaseModel):
    """Immutable snapshot of the UI state."""
    model_config = ConfigDict(frozen=True)

    view: View = View.LOGIN
    role: Role = Role.ADMIN
    selected_expense_id: Optional[str] = None
    review_filter: ReviewFilter = ReviewFilter.PENDING

    def navigate(self, view: View) -> "AppState":
        """Go to another screen. Leaving the detail screens drops the selection."""
        if view in DETAIL_VIEWS and self.selected_expense_id is None:
            raise ValueError(f"Cannot open {view.value} without a selected expense")
        update: dict = {"view": view}
        if view not in DETAIL_VIEWS:
            update["selected_expense_id"] = None
        return self.model_copy(update=update)

    def select(self, expense_id: str, view: View = View.DETAIL) -> "AppState":
        """Select an expense and open one of the detail screens."""
        if view not in DETAIL_VIEWS:
            raise ValueError(f"{view.value} is not a detail screen")
        return self.model_copy(
            update={"selected_expense_id": expense_id, "view": view}
        )

    def with_role(self, role: Role) -> "AppState":
        return self.model_copy(update={"role": role})

    def with_review_filter(self, review_filter: ReviewFilter) -> "AppState":
        return self.model_copy(update={"review_filter": review_filter})

    def login(self, role: Role) -> "AppState":
        return AppState(view=View.DASHBOARD, role=role)

    def logout(self) -> "AppState":
        return AppState()
