"""
Demo dataset.

Used to seed the store when the key-value slot holds nothing yet.
"""

from datetime import date, datetime, timezone
from decimal import Decimal

from petty_cash.models.expense import (
    BlacklistedProvider,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
    HistoryEntry,
)


def _at(day: date, hour: int = 9) -> datetime:
    return datetime(day.year, day.month, day.day, hour, 0, tzinfo=timezone.utc)


BLACKLISTED_PROVIDERS: tuple[BlacklistedProvider, ...] = (
    BlacklistedProvider(
        id="1",
        name="Servicios Fantasmas SAC",
        reason="Facturación de servicios no realizados detectada en auditoría.",
    ),
    BlacklistedProvider(
        id="2",
        name="Insumos Pro",
        reason="Calidad de productos por debajo de los estándares requeridos.",
    ),
    BlacklistedProvider(
        id="3",
        name="Transportes Veloz",
        reason="Múltiples reportes de retrasos críticos y falta de comprobantes válidos.",
    ),
)


_DEMO_EXPENSES: tuple[Expense, ...] = (
    Expense(
        id="1",
        description="Compra de papelería",
        amount=Decimal("125.50"),
        expense_date=date(2026, 2, 13),
        status=ExpenseStatus.PENDING,
        category=ExpenseCategory.OFFICE_SUPPLIES,
        user="Carlos Bazan",
        code="B001-00123456",
        provider="Papelería El Sol",
        area="Administración",
        observations="Pendiente de validación física",
        history=(
            HistoryEntry(
                timestamp=_at(date(2026, 2, 13)),
                user="Carlos Bazan",
                amount=Decimal("125.50"),
                status=ExpenseStatus.PENDING,
            ),
        ),
    ),
    Expense(
        id="2",
        description="Arreglo de máquinas",
        amount=Decimal("850"),
        expense_date=date(2026, 2, 13),
        status=ExpenseStatus.PENDING,
        category=ExpenseCategory.MAINTENANCE,
        user="Carlos Ruiz",
        provider="Taxi Express SAC",
        area="Ventas",
        observations="Mantenimiento preventivo de impresora industrial",
        history=(
            HistoryEntry(
                timestamp=_at(date(2026, 2, 13)),
                user="Carlos Ruiz",
                amount=Decimal("850"),
                status=ExpenseStatus.PENDING,
            ),
        ),
    ),
    Expense(
        id="3",
        description="Suministro de herramientas",
        amount=Decimal("540.20"),
        expense_date=date(2026, 2, 13),
        status=ExpenseStatus.PENDING,
        category=ExpenseCategory.OPERATIONS,
        user="Maria Lopez",
        provider="Ferretería Central",
        area="Proyectos",
        observations="Kit de destornilladores y taladro",
        history=(
            HistoryEntry(
                timestamp=_at(date(2026, 2, 13)),
                user="Maria Lopez",
                amount=Decimal("540.20"),
                status=ExpenseStatus.PENDING,
            ),
        ),
    ),
    Expense(
        id="4",
        description="Mantenimiento de equipos",
        amount=Decimal("450"),
        expense_date=date(2026, 2, 10),
        status=ExpenseStatus.REJECTED,
        category=ExpenseCategory.MAINTENANCE,
        user="Jorge Sanchez",
        provider="Clima Tech",
        area="Operaciones",
        observations="Monto excede el presupuesto mensual del área",
        history=(
            HistoryEntry(
                timestamp=_at(date(2026, 2, 10)),
                user="Jorge Sanchez",
                amount=Decimal("450"),
                status=ExpenseStatus.PENDING,
            ),
            HistoryEntry(
                timestamp=_at(date(2026, 2, 11)),
                user="Admin User",
                amount=Decimal("450"),
                status=ExpenseStatus.REJECTED,
                detail="Monto excede presupuesto",
            ),
        ),
    ),
    Expense(
        id="5",
        description="Compra de insumos",
        amount=Decimal("320.80"),
        expense_date=date(2026, 2, 14),
        status=ExpenseStatus.PENDING,
        category=ExpenseCategory.OPERATIONS,
        user="Ana Patricia Torres",
        provider="Insumos Pro",
        area="Operaciones",
        observations="Insumos de limpieza para planta",
        history=(
            HistoryEntry(
                timestamp=_at(date(2026, 2, 14)),
                user="Ana Patricia Torres",
                amount=Decimal("320.80"),
                status=ExpenseStatus.PENDING,
            ),
        ),
    ),
)


def demo_expenses() -> list[Expense]:
    """The five demo expenses, in the order the store keeps them."""
    return list(_DEMO_EXPENSES)


def blacklisted_providers() -> list[BlacklistedProvider]:
    return list(BLACKLISTED_PROVIDERS)
