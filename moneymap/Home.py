"""Main entry point for the Streamlit multi-page app: budget setup.

Pages in the pages/ directory will automatically appear in the sidebar.
"""

from __future__ import annotations

import sys
from datetime import date
from pathlib import Path

import streamlit as st

# Add project root to path for imports
project_root = Path(__file__).parent.parent.resolve()
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from moneymap.budget_setup import CategoryInput, SetupForm, template_categories, template_names
from moneymap.currency import currency_symbol, format_currency
from moneymap.dates import WEEKDAY_NAMES
from moneymap.errors import BudgetValidationError, SavingsGoalWarning
from moneymap.models import (
    FREQUENCIES,
    INCOME_CONTINUE,
    INCOME_ONE_TIME,
    INCOME_RECURRING,
    SAVINGS_LABEL,
    OneTimeSchedule,
    RecurringSchedule,
)
from moneymap.presets import get_setup_config
from moneymap.session import BudgetState
from moneymap.shared_sidebar import render_shared_sidebar, rerun

INCOME_LABELS = {
    INCOME_ONE_TIME: "One-Time Budget",
    INCOME_RECURRING: "Expected Gross Income",
    INCOME_CONTINUE: "Continue Existing Budget",
}


def _render_active(session, currency: str) -> None:
    budget = session.budget
    st.subheader("Current budget")
    col1, col2, col3 = st.columns(3)
    col1.metric("Total budget", format_currency(budget.total_budget * session.exchange_rate, currency))
    col2.metric("Savings", format_currency(budget.remaining_budget * session.exchange_rate, currency))
    col3.metric("Days", budget.total_days)
    st.dataframe(
        [
            {
                'Category': c.label,
                'Amount': format_currency(c.expected * session.exchange_rate, currency),
                'Schedule': 'Spread daily' if c.is_undated else c.schedule.describe(),
            }
            for c in budget.categories
        ],
        use_container_width=True,
    )
    st.info("Use the Calendar page to track each day.")
    st.caption("Choose \"Continue Existing Budget\" during setup to keep the entered actuals.")
    if st.button("🔁 Redo setup"):
        session.begin_setup()
        st.session_state.pop('setup_categories', None)
        rerun()


def _schedule_inputs(label: str):
    """Optional schedule widgets for one category."""
    kind = st.selectbox(
        "Schedule", ['None', 'One-time payment', 'Recurring'], key=f"sched_kind_{label}"
    )
    if kind == 'One-time payment':
        when = st.date_input("Payment date", key=f"sched_date_{label}")
        return OneTimeSchedule(date=when)
    if kind == 'Recurring':
        frequency = st.selectbox("Frequency", list(FREQUENCIES), key=f"sched_freq_{label}")
        if frequency == 'monthly':
            day = st.number_input("Day of month", min_value=1, max_value=31, value=1, key=f"sched_dom_{label}")
            return RecurringSchedule(frequency=frequency, day=int(day))
        if frequency == 'custom':
            interval = st.number_input("Every N days", min_value=1, value=7, key=f"sched_int_{label}")
            return RecurringSchedule(frequency=frequency, interval=int(interval))
        weekday = st.selectbox("Day", list(WEEKDAY_NAMES), key=f"sched_wd_{label}")
        return RecurringSchedule(frequency=frequency, day=weekday)
    return None


def _render_setup(session, currency: str) -> None:
    symbol = currency_symbol(currency)
    presets = get_setup_config()
    st.subheader("Budget setup")

    income_type = st.radio(
        "Select the type of budget you have",
        options=list(INCOME_LABELS),
        format_func=INCOME_LABELS.get,
        horizontal=True,
    )
    form = SetupForm(income_type=income_type, exchange_rate=session.exchange_rate)
    if income_type == INCOME_RECURRING:
        form.gross_income = st.number_input(f"Gross income ({symbol})", min_value=0.0, step=50.0)
        form.income_interval = st.selectbox("Income interval", list(presets['income_intervals']))
    else:
        form.total_budget = st.number_input(f"Total budget ({symbol})", min_value=0.0, step=50.0)

    col1, col2 = st.columns(2)
    with col1:
        form.time_period = st.selectbox("Time period", list(presets['time_periods']) + ['custom'])
    with col2:
        form.start_date = st.date_input("Start date", value=date.today())
    if form.time_period == 'custom':
        form.custom_days = st.number_input("Custom days", min_value=1, value=30, step=1)

    form.savings_goal_enabled = st.checkbox("Enable savings goal")
    if form.savings_goal_enabled:
        form.savings_goal = st.number_input(f"Savings goal ({symbol})", min_value=0.0, step=50.0)

    template = st.selectbox("Template", template_names())
    if st.session_state.get('setup_template') != template:
        st.session_state.setup_template = template
        st.session_state.setup_categories = [c.label for c in template_categories(template)]
    labels = st.session_state.setdefault('setup_categories', [])

    new_label = st.text_input("New category")
    if st.button("➕ Add category") and new_label.strip() and new_label.strip() not in labels:
        labels.append(new_label.strip())
        rerun()

    for label in list(labels):
        with st.expander(label, expanded=True):
            use_dollars = st.toggle(f"Use {symbol}", key=f"use_dollars_{label}")
            value = st.number_input(
                f"Amount ({symbol})" if use_dollars else "Percent of total",
                min_value=0.0,
                max_value=None if use_dollars else 100.0,
                key=f"value_{label}",
            )
            schedule = _schedule_inputs(label)
            form.categories.append(CategoryInput(label, value, use_dollars, schedule))
            if st.button("🗑️ Remove", key=f"remove_{label}"):
                labels.remove(label)
                rerun()
    st.caption(f"{SAVINGS_LABEL} receives whatever is not allocated.")

    if st.button("✅ Complete setup", type="primary"):
        try:
            session.complete_setup(form)
        except SavingsGoalWarning as warning:
            st.warning(f"{warning} Click Complete setup again to continue anyway.")
            return
        except BudgetValidationError as exc:
            st.error(str(exc))
            return
        st.success("Budget created!")
        rerun()

    uploaded = st.file_uploader("…or load a previously exported budget (JSON)", type=['json'])
    if uploaded is not None and st.button("📥 Import"):
        try:
            session.apply_import(uploaded.getvalue())
        except BudgetValidationError as exc:
            st.error(str(exc))
            return
        rerun()


def main() -> None:
    st.set_page_config(page_title="MoneyMap", page_icon="💰", layout="wide")
    sidebar = render_shared_sidebar()
    session = sidebar['session']
    st.title("Welcome to MoneyMap")
    st.markdown(
        "Plan your expenses, track your spending day by day, and export your budget to Excel, PDF or JSON."
    )
    if session.is_active:
        _render_active(session, sidebar['currency'])
        return
    if session.state == BudgetState.UNINITIALIZED:
        session.begin_setup()
    _render_setup(session, sidebar['currency'])


if __name__ == "__main__":
    main()
