"""Plotly visualisation helpers for MoneyMap.

Each function accepts a frame produced by :mod:`moneymap.aggregation`
and returns a `plotly.graph_objects.Figure` that Streamlit renders via
``st.plotly_chart``.
"""

from __future__ import annotations

from datetime import date

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .dates import WEEKDAY_NAMES


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_calendar_heatmap(
    daily: pd.DataFrame,
    month: date,
    value_column: str = 'budgeted',
    currency_symbol: str = '$',
    title: str | None = None,
) -> go.Figure:
    """Month grid with one tile per day, coloured by ``value_column``.

    Parameters
    ----------
    daily : pandas.DataFrame
        Output of :func:`moneymap.aggregation.daily_totals_frame`,
        indexed by date.  Days outside the month are ignored.
    month : datetime.date
        Any day in the month to draw.
    value_column : str
        Column used for colour and tile text.
    currency_symbol : str
        Prefix for the tile labels.

    Returns
    -------
    plotly.graph_objects.Figure
        Heatmap with weeks as rows and weekdays as columns.
    """
    first = pd.Timestamp(month.replace(day=1))
    last = first + pd.offsets.MonthEnd(0)
    days = pd.date_range(first, last, freq='D')
    weeks = (days.day + first.weekday() - 1) // 7

    values = np.full((weeks.max() + 1, 7), np.nan)
    text = np.full((weeks.max() + 1, 7), '', dtype=object)
    for day, week in zip(days, weeks):
        label = f"{day.day}"
        if day in daily.index:
            amount = float(daily.loc[day, value_column])
            values[week, day.weekday()] = amount
            label = f"{day.day}<br>{currency_symbol}{amount:,.2f}"
        text[week, day.weekday()] = label

    fig = go.Figure(go.Heatmap(
        z=values,
        x=list(WEEKDAY_NAMES),
        y=[f"Week {w + 1}" for w in range(values.shape[0])],
        text=text,
        texttemplate="%{text}",
        colorscale='Greens',
        showscale=False,
        hoverinfo='text',
        xgap=3,
        ygap=3,
    ))
    fig.update_yaxes(autorange='reversed', showticklabels=False)
    fig.update_layout(
        title=title or first.strftime('%B %Y'),
        margin=dict(l=10, r=10, t=50, b=10),
    )
    return fig


def create_category_bar_chart(categories: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Grouped bars of Budgeted vs Actual per category."""
    if categories.empty:
        return _empty_figure()
    melted = categories.melt(
        id_vars='Category', value_vars=['Budgeted', 'Actual'], var_name='Metric', value_name='Amount'
    )
    fig = px.bar(melted, x='Category', y='Amount', color='Metric', barmode='group')
    fig.update_layout(title=title or "Budgeted vs actual by category", yaxis_title='Amount')
    return fig


def create_savings_line_chart(daily: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Running total of derived savings across the range."""
    if daily.empty:
        return _empty_figure()
    cumulative = daily['savings'].cumsum().rename('Cumulative savings').reset_index()
    fig = px.line(cumulative, x='date', y='Cumulative savings')
    fig.update_layout(title=title or "Cumulative savings", xaxis_title='Date')
    return fig


def create_planned_spend_chart(planned: pd.DataFrame, title: str | None = None) -> go.Figure:
    """Stacked daily bars of planned spend, one colour per category.

    ``planned`` is :func:`moneymap.allocation.expected_frame` output; NaN
    marks days a scheduled category does not apply and is drawn as zero.
    """
    if planned.empty or planned.columns.empty:
        return _empty_figure()
    long = (
        planned.fillna(0.0)
        .reset_index()
        .melt(id_vars='date', var_name='Category', value_name='Planned')
    )
    fig = px.bar(long, x='date', y='Planned', color='Category', barmode='stack')
    fig.update_layout(title=title or "Planned spend per day", xaxis_title='Date', yaxis_title='Amount')
    return fig
