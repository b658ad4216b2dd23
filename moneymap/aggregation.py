"""Sum day ledgers over a date range.

Used by the calendar tiles, the summary page and the exports.  Days are
always walked one at a time so that month lengths and leap years fall
out naturally; nothing is derived from a monthly rate.
"""

from __future__ import annotations

from datetime import date
from typing import List

import pandas as pd

from .dates import DateLike, iter_days, to_date
from .ledger import build_day_record
from .models import BudgetDefinition, DayRecord, RangeTotals
from .storage import ActualsStore

TOTAL_COLUMNS = ['budgeted', 'actual', 'difference', 'savings', 'unexpected_expenses']


def day_records(
    start: DateLike,
    end: DateLike,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> List[DayRecord]:
    """Read-only day records for ``[start, end]``; nothing is persisted."""
    start, end = to_date(start), to_date(end)
    return [
        build_day_record(day, budget, store, exchange_rate=exchange_rate, persist=False)
        for day in iter_days(start, end)
    ]


def aggregate_range(
    start: DateLike,
    end: DateLike,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> RangeTotals:
    """Totals over the inclusive range; an inverted range sums to zero."""
    return RangeTotals.from_records(day_records(start, end, budget, store, exchange_rate))


def daily_totals_frame(
    start: DateLike,
    end: DateLike,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> pd.DataFrame:
    """Per-day totals as a DataFrame indexed by date.

    Columns: budgeted, actual, difference, savings, unexpected_expenses.
    """
    rows = []
    for record in day_records(start, end, budget, store, exchange_rate):
        rows.append({
            'date': pd.Timestamp(record.date),
            'budgeted': record.total_expected,
            'actual': record.total_actual,
            'difference': record.total_difference,
            'savings': record.derived_savings,
            'unexpected_expenses': record.total_unexpected_expenses,
        })
    if not rows:
        return pd.DataFrame(columns=TOTAL_COLUMNS, index=pd.DatetimeIndex([], name='date'), dtype=float)
    return pd.DataFrame(rows).set_index('date')[TOTAL_COLUMNS]


def category_totals_frame(
    start: DateLike,
    end: DateLike,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> pd.DataFrame:
    """Budgeted vs actual per category across the range.

    Columns: Category, Budgeted, Actual, Difference.  Categories that
    never apply in the range are left out.
    """
    rows = [
        {
            'Category': row.label,
            'Budgeted': row.expected,
            'Actual': row.actual if row.actual is not None else 0.0,
            'Difference': row.difference,
        }
        for record in day_records(start, end, budget, store, exchange_rate)
        for row in record.rows
    ]
    if not rows:
        return pd.DataFrame(columns=['Category', 'Budgeted', 'Actual', 'Difference'])
    grouped = pd.DataFrame(rows).groupby('Category', sort=False).sum().reset_index()
    order = {c.label: i for i, c in enumerate(budget.categories)}
    grouped['_order'] = grouped['Category'].map(order)
    return grouped.sort_values('_order').drop(columns='_order').reset_index(drop=True)


def month_bounds(value: date) -> tuple:
    """First and last day of the month containing ``value``."""
    first = value.replace(day=1)
    last = (pd.Timestamp(first) + pd.offsets.MonthEnd(0)).date()
    return first, last
