"""Shared sidebar and session helpers for the multi-page app.

Every page calls :func:`render_shared_sidebar` first.  It owns the
currency picker, the exchange-rate fetch and the per-browser
``BudgetSession`` kept in ``st.session_state``.
"""

from __future__ import annotations

from typing import Any, Dict

import streamlit as st

from moneymap.config import BASE_CURRENCY, configure_logging, ensure_data_directories
from moneymap.currency import ExchangeRateService, available_currencies
from moneymap.session import BudgetSession


@st.cache_resource(show_spinner=False)
def _rate_service() -> ExchangeRateService:
    service = ExchangeRateService()
    service.refresh()
    return service


def get_session() -> BudgetSession:
    if 'budget_session' not in st.session_state:
        ensure_data_directories()
        st.session_state.budget_session = BudgetSession()
    return st.session_state.budget_session


def render_shared_sidebar() -> Dict[str, Any]:
    """Render the sidebar shared by all pages.

    Returns:
        Dict with keys: 'session', 'currency', 'exchange_rate', 'provisional'
    """
    configure_logging()
    session = get_session()
    service = _rate_service()

    st.sidebar.title("💰 MoneyMap")
    currencies = available_currencies()
    codes = [c.code for c in currencies]
    current = st.session_state.get('currency', BASE_CURRENCY)
    currency = st.sidebar.selectbox(
        "Display currency",
        options=codes,
        index=codes.index(current) if current in codes else 0,
        format_func=lambda code: next(c.display_name for c in currencies if c.code == code),
    )
    st.session_state.currency = currency

    if service.is_provisional:
        st.sidebar.caption("⚠️ Exchange rates unavailable; amounts shown in base currency.")
        if st.sidebar.button("🔄 Retry rates"):
            service.refresh()
            st.rerun()

    session.exchange_rate = service.rate_for(currency)

    if session.is_active:
        start, end = session.window
        st.sidebar.caption(f"Budget: {start:%b %d, %Y} → {end:%b %d, %Y}")

    return {
        'session': session,
        'currency': currency,
        'exchange_rate': session.exchange_rate,
        'provisional': service.is_provisional,
    }


def rerun() -> None:
    """Trigger a Streamlit rerun across versions."""
    if hasattr(st, 'rerun'):
        st.rerun()
    else:
        st.experimental_rerun()
