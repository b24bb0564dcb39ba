"""
Streamlit Frontend for Petty Cash

This is the screen set used by people submitting petty-cash expenses and
by the heads who review them.

DESIGN PRINCIPLES:
1. The View Layer never mutates expenses directly
2. Every action goes through the ExpenseWorkflow
3. Numbers on screen are recomputed from the store on every rerun
4. One AppState object in st.session_state decides what is shown

Status changes only happen on an explicit button press:
- Reviewer opens an expense
- Reviewer approves or rejects it
- The outcome screen confirms what was saved
"""

from datetime import date
from decimal import Decimal, InvalidOperation

import streamlit as st

from petty_cash.audit import create_correlation_id
from petty_cash.config import validate_all_settings
from petty_cash.errors import (
    IllegalTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from petty_cash.models import (
    AppState,
    Expense,
    ExpenseCategory,
    ExpenseStatus,
    ReviewFilter,
    Role,
    View,
)
from petty_cash.orchestrator import ExpenseWorkflow, create_app_components


# Page configuration
st.set_page_config(
    page_title="Caja Chica",
    page_icon="💵",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


STATUS_ICONS = {
    ExpenseStatus.PENDING: "🟡",
    ExpenseStatus.APPROVED: "🟢",
    ExpenseStatus.REJECTED: "🔴",
    ExpenseStatus.OBSERVED: "🟠",
}

NAVIGATION = {
    "🏠 Inicio": View.DASHBOARD,
    "🧾 Mis gastos": View.EXPENSES,
    "➕ Nuevo gasto": View.NEW,
    "✅ Revisión": View.REVIEW,
    "📊 Reportes": View.REPORTS,
    "📅 Cierre del día": View.CLOSE,
    "👤 Perfil": View.PROFILE,
}

ROLE_LABELS = {
    Role.ADMIN: "Administrador",
    Role.JEFE: "Jefe de área",
    Role.USER: "Colaborador",
}


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def get_state() -> AppState:
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState()
    return st.session_state.app_state


def set_state(state: AppState) -> None:
    """Swap in the next AppState and redraw."""
    st.session_state.app_state = state
    st.rerun()


def money(workflow: ExpenseWorkflow, amount: Decimal) -> str:
    return f"{workflow.settings.currency} {amount:,.2f}"


def main():
    """Main application entry point."""
    try:
        workflow, _ = get_components()
    except PersistenceError as e:
        st.markdown(f"""
        <div class="error-box">
            <h4>❌ No se pudieron cargar los gastos guardados</h4>
            <p>{e}</p>
        </div>
        """, unsafe_allow_html=True)
        st.stop()

    state = get_state()

    if state.view == View.LOGIN:
        render_login_page(state)
        return

    render_sidebar(state)

    pages = {
        View.DASHBOARD: render_dashboard_page,
        View.EXPENSES: render_expenses_page,
        View.NEW: render_new_expense_page,
        View.DETAIL: render_detail_page,
        View.REVIEW: render_review_page,
        View.REVIEW_DETAIL: render_detail_page,
        View.REPORTS: render_reports_page,
        View.CLOSE: render_close_page,
        View.PROFILE: render_profile_page,
        View.SUCCESS: render_outcome_page,
        View.REJECT: render_outcome_page,
    }
    pages[state.view](workflow, state)


def render_sidebar(state: AppState):
    st.sidebar.title("💵 Caja Chica")
    st.sidebar.caption(ROLE_LABELS[state.role])
    st.sidebar.markdown("---")

    for label, view in NAVIGATION.items():
        if view == View.REVIEW and not state.role.can_review:
            continue
        if st.sidebar.button(label, key=f"nav_{view.value}"):
            set_state(state.navigate(view))

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Salir"):
        set_state(state.logout())


def render_login_page(state: AppState):
    """Role picker. There is no authentication."""
    st.title("💵 Caja Chica")
    st.markdown("Elige con qué perfil quieres ingresar.")

    role = st.radio(
        "Perfil",
        options=list(Role),
        format_func=lambda r: ROLE_LABELS[r],
        index=list(Role).index(state.role),
    )

    if st.button("Ingresar", type="primary"):
        set_state(state.login(role))


def render_dashboard_page(workflow: ExpenseWorkflow, state: AppState):
    """Render the daily summary."""
    st.title("🏠 Resumen")

    summary = workflow.dashboard()

    col1, col2, col3 = st.columns(3)
    col1.metric("Gastado", money(workflow, summary.total_spent))
    col2.metric("Límite", money(workflow, summary.limit))
    col3.metric("Saldo", money(workflow, summary.balance))

    st.progress(min(summary.progress_percent, 100.0) / 100)
    if summary.over_limit:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ Límite superado</h4>
            <p>Se gastó {money(workflow, summary.total_spent)} de un límite de
            {money(workflow, summary.limit)}.</p>
        </div>
        """, unsafe_allow_html=True)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Pendientes", summary.pending_count)
    col2.metric("Aprobados", summary.approved_count)
    col3.metric("Rechazados", summary.rejected_count)
    col4.metric("Observados", summary.observed_count)

    st.markdown("### Últimos gastos")
    render_expense_list(workflow, state, workflow.list_expenses()[:5], View.DETAIL)


def render_expense_list(
    workflow: ExpenseWorkflow,
    state: AppState,
    expenses: list[Expense],
    detail_view: View,
):
    if not expenses:
        st.info("📋 No hay gastos para mostrar.")
        return

    for expense in expenses:
        col1, col2, col3 = st.columns([4, 2, 1])
        with col1:
            st.markdown(
                f"{STATUS_ICONS[expense.status]} **{expense.description}**  \n"
                f"{expense.user} · {expense.expense_date.strftime('%d/%m/%Y')}"
            )
        with col2:
            st.markdown(f"**{money(workflow, expense.amount)}**  \n{expense.status.value}")
        with col3:
            if st.button("Ver", key=f"open_{detail_view.value}_{expense.id}"):
                set_state(state.select(expense.id, detail_view))


def render_expenses_page(workflow: ExpenseWorkflow, state: AppState):
    """Render every expense, most recent first."""
    st.title("🧾 Gastos")

    status_filter = st.selectbox(
        "Filtrar por estado",
        options=[None] + list(ExpenseStatus),
        format_func=lambda s: "Todos" if s is None else s.value,
    )

    expenses = workflow.list_expenses()
    if status_filter is not None:
        expenses = [e for e in expenses if e.status == status_filter]

    render_expense_list(workflow, state, expenses, View.DETAIL)


def render_new_expense_page(workflow: ExpenseWorkflow, state: AppState):
    """Render the new expense form."""
    st.title("➕ Nuevo gasto")

    with st.form("new_expense"):
        col1, col2 = st.columns(2)

        with col1:
            description = st.text_input("Descripción *")
            amount_text = st.text_input(
                f"Monto ({workflow.settings.currency}) *",
                placeholder="0.00",
            )
            category = st.selectbox(
                "Categoría *",
                options=list(ExpenseCategory),
                format_func=lambda c: c.value,
            )
            expense_date = st.date_input("Fecha *", value=date.today())

        with col2:
            user = st.text_input("Solicitante *", value=ROLE_LABELS[state.role])
            provider = st.text_input("Proveedor")
            code = st.text_input("Número de comprobante")
            area = st.text_input("Área")

        observations = st.text_area("Observaciones")
        submitted = st.form_submit_button("Registrar gasto", type="primary")

    if not submitted:
        return

    blacklisted = workflow.is_blacklisted(provider)
    if blacklisted:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ Proveedor en lista negra</h4>
            <p><strong>{blacklisted.name}:</strong> {blacklisted.reason}</p>
        </div>
        """, unsafe_allow_html=True)

    try:
        amount = Decimal(amount_text.replace(",", ".").strip() or "0")
    except InvalidOperation:
        st.error("El monto debe ser un número")
        return

    correlation_id = create_correlation_id()
    try:
        draft = workflow.build_draft(
            correlation_id=correlation_id,
            description=description,
            amount=amount,
            currency=workflow.settings.currency,
            expense_date=expense_date,
            category=category,
            user=user,
            provider=provider or None,
            code=code or None,
            area=area or None,
            observations=observations or None,
        )
        expense = workflow.create_expense(draft, correlation_id=correlation_id)
    except ValidationError as e:
        st.error(f"Revisa los campos: {', '.join(e.fields) or str(e)}")
        return
    except PersistenceError as e:
        st.warning(f"El gasto se registró pero no se pudo guardar: {e}")
        return

    st.session_state.last_outcome = expense.id
    set_state(state.navigate(View.SUCCESS))


def render_detail_page(workflow: ExpenseWorkflow, state: AppState):
    """Render one expense with its history and, for reviewers, the actions."""
    try:
        expense = workflow.get_expense(state.selected_expense_id)
    except NotFoundError:
        st.error("El gasto ya no existe.")
        if st.button("Volver"):
            set_state(state.navigate(View.EXPENSES))
        return

    back = View.REVIEW if state.view == View.REVIEW_DETAIL else View.EXPENSES
    if st.button("← Volver"):
        set_state(state.navigate(back))

    st.title(expense.description)
    st.markdown(f"<div class='big-number'>{money(workflow, expense.amount)}</div>", unsafe_allow_html=True)
    st.markdown(f"{STATUS_ICONS[expense.status]} **{expense.status.value}**")

    col1, col2 = st.columns(2)
    with col1:
        st.markdown(f"**Fecha:** {expense.expense_date.strftime('%d/%m/%Y')}")
        st.markdown(f"**Categoría:** {expense.category.value}")
        st.markdown(f"**Solicitante:** {expense.user}")
        st.markdown(f"**Área:** {expense.area or '-'}")
    with col2:
        st.markdown(f"**Proveedor:** {expense.provider or '-'}")
        st.markdown(f"**Comprobante:** {expense.code or '-'}")
        st.markdown(f"**Observaciones:** {expense.observations or '-'}")

    blacklisted = workflow.is_blacklisted(expense.provider)
    if blacklisted:
        st.markdown(f"""
        <div class="error-box">
            <h4>🚫 Proveedor en lista negra</h4>
            <p>{blacklisted.reason}</p>
        </div>
        """, unsafe_allow_html=True)

    for alert in expense.alerts:
        st.warning(f"{alert.severity.value.upper()}: {alert.message}")

    with st.expander("📜 Historial"):
        for entry in expense.history:
            st.markdown(
                f"- {entry.timestamp.strftime('%d/%m/%Y %H:%M')} · {entry.user} · "
                f"{entry.status.value}" + (f" · {entry.detail}" if entry.detail else "")
            )

    if state.role.can_review and workflow.can_review(expense):
        render_review_actions(workflow, state, expense)


def render_review_actions(workflow: ExpenseWorkflow, state: AppState, expense: Expense):
    st.markdown("---")
    detail = st.text_input("Comentario (opcional)", key=f"detail_{expense.id}")

    col1, col2 = st.columns(2)
    outcome = None
    with col1:
        if st.button("✅ Aprobar", type="primary"):
            outcome = (workflow.approve, View.SUCCESS)
    with col2:
        if st.button("❌ Rechazar"):
            outcome = (workflow.reject, View.REJECT)

    if outcome is None:
        return

    action, next_view = outcome
    try:
        action(expense.id, detail=detail or None, correlation_id=create_correlation_id())
    except IllegalTransitionError as e:
        st.error(str(e))
        return
    except PersistenceError as e:
        st.warning(f"El cambio se aplicó pero no se pudo guardar: {e}")
        return

    st.session_state.last_outcome = expense.id
    set_state(state.navigate(next_view))


def render_outcome_page(workflow: ExpenseWorkflow, state: AppState):
    """Confirmation after a registration, an approval or a rejection."""
    expense_id = st.session_state.get("last_outcome")
    expense = workflow.get_expense(expense_id) if expense_id in workflow.store else None

    if state.view == View.REJECT:
        box, title = "error-box", "❌ Gasto rechazado"
    else:
        box, title = "success-box", "✅ Listo"

    body = ""
    if expense is not None:
        body = (
            f"<p><strong>{expense.description}</strong></p>"
            f"<p>{money(workflow, expense.amount)} · {expense.status.value}</p>"
        )

    st.markdown(f"""
    <div class="{box}">
        <h3>{title}</h3>
        {body}
    </div>
    """, unsafe_allow_html=True)

    back = View.REVIEW if state.role.can_review and state.view == View.REJECT else View.DASHBOARD
    if st.button("Continuar"):
        st.session_state.last_outcome = None
        set_state(state.navigate(back))


def render_review_page(workflow: ExpenseWorkflow, state: AppState):
    """Render the review queue with its filter chips."""
    st.title("✅ Revisión")

    if not state.role.can_review:
        st.error("Tu perfil no puede revisar gastos.")
        return

    options = list(ReviewFilter)
    review_filter = st.radio(
        "Filtro",
        options=options,
        format_func=lambda f: f.value,
        index=options.index(state.review_filter),
        horizontal=True,
    )
    if review_filter != state.review_filter:
        set_state(state.with_review_filter(review_filter))

    render_expense_list(
        workflow,
        state,
        workflow.review_queue(state.review_filter),
        View.REVIEW_DETAIL,
    )


def render_reports_page(workflow: ExpenseWorkflow, state: AppState):
    """Render indicators, breakdowns and repeat-purchase alerts."""
    st.title("📊 Reportes")

    indicators = workflow.indicators()
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total", money(workflow, indicators.total_spent))
    col2.metric("Gastos", indicators.expense_count)
    col3.metric("Promedio", money(workflow, indicators.average))
    col4.metric("Observados", f"{indicators.observed_percent}%")

    tab_category, tab_area, tab_provider, tab_person = st.tabs(
        ["Por categoría", "Por área", "Por proveedor", "Por persona"]
    )

    with tab_category:
        totals = workflow.category_totals()
        st.bar_chart({c.value: float(v) for c, v in totals.items()})

    with tab_area:
        for rank, area in enumerate(workflow.area_ranking(), start=1):
            st.markdown(f"{rank}. **{area.area}** · {money(workflow, area.total)} ({area.count})")

    with tab_provider:
        for rank, provider in enumerate(workflow.provider_ranking(), start=1):
            flag = " 🚫" if workflow.is_blacklisted(provider.provider) else ""
            st.markdown(
                f"{rank}. **{provider.provider}**{flag} · "
                f"{money(workflow, provider.total)} ({provider.count})"
            )

    with tab_person:
        for rank, person in enumerate(workflow.person_ranking(), start=1):
            st.markdown(f"{rank}. **{person.user}** · {money(workflow, person.total)} ({person.count})")

    st.markdown("### Ítems más repetidos")
    for item in workflow.repeated_items():
        st.markdown(f"- **{item.item}** · {item.count} veces · {item.area}")

    st.markdown("### Alertas de patrón")
    alerts = workflow.pattern_alerts()
    if not alerts:
        st.success("Sin compras repetidas fuera de lo normal.")
    for alert in alerts:
        st.markdown(f"""
        <div class="warning-box">
            <strong>{alert.item}</strong> se compró {alert.count} veces en
            {workflow.settings.pattern_window_days} días ({alert.area}).
        </div>
        """, unsafe_allow_html=True)


def render_close_page(workflow: ExpenseWorkflow, state: AppState):
    """Render the daily close for a chosen day."""
    st.title("📅 Cierre del día")

    day = st.date_input("Día", value=workflow.latest_expense_date())

    if st.button("Generar cierre", type="primary"):
        st.session_state.daily_close = workflow.generate_daily_close(
            day,
            actor=ROLE_LABELS[state.role],
            correlation_id=create_correlation_id(),
        )

    close = st.session_state.get("daily_close")
    if close is None or close.day != day:
        return

    st.markdown(f"<div class='big-number'>{money(workflow, close.total_amount)}</div>", unsafe_allow_html=True)
    st.caption(f"{close.total_count} gastos el {close.day.strftime('%d/%m/%Y')}")

    col1, col2, col3, col4 = st.columns(4)
    for col, totals in zip(
        (col1, col2, col3, col4),
        (close.approved, close.pending, close.observed, close.rejected),
    ):
        col.metric(totals.status.value, totals.count, money(workflow, totals.total), delta_color="off")

    st.markdown("### Últimos movimientos")
    render_expense_list(workflow, state, close.latest, View.DETAIL)


def render_profile_page(workflow: ExpenseWorkflow, state: AppState):
    """Render the profile and configuration status."""
    st.title("👤 Perfil")

    role = st.selectbox(
        "Perfil activo",
        options=list(Role),
        format_func=lambda r: ROLE_LABELS[r],
        index=list(Role).index(state.role),
    )
    if role != state.role:
        set_state(state.with_role(role))

    st.markdown("---")
    st.markdown("### Configuración")

    status = validate_all_settings()
    for name, key in [("Almacenamiento", "storage"), ("Aplicación", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'No configurado')}")

    st.markdown(
        "La configuración se toma de variables `PETTY_CASH_*` o de un archivo `.env`. "
        "Ver `.env.example`."
    )


if __name__ == "__main__":
    main()
