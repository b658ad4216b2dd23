"""Per-day expected amounts for budget categories.

Undated categories are spread evenly over every day of the budget
window; scheduled categories contribute their full amount on the days
their rule matches and nothing on the others.  All amounts are in the
budget's base currency; callers apply the display exchange rate.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .dates import iter_days, total_days_in_range
from .models import BudgetDefinition, CategoryPlan
from .recurrence import applies


def allocate(category: CategoryPlan, day: date, budget: BudgetDefinition) -> Optional[float]:
    """Expected amount of ``category`` on ``day``.

    Returns ``None`` when a scheduled category does not apply that day,
    in which case the category must not appear in the day's rows.
    """
    if category.is_undated:
        return category.expected / total_days_in_range(budget.start_date, budget.end_date)
    if applies(category.schedule, day, budget.start_date):
        return category.expected
    return None


def daily_budgeted_savings(budget: BudgetDefinition) -> float:
    """Share of the unallocated remainder assigned to each day."""
    return budget.remaining_budget / total_days_in_range(budget.start_date, budget.end_date)


def expected_series(
    category: CategoryPlan,
    start: date,
    end: date,
    budget: BudgetDefinition,
) -> pd.Series:
    """Expected amounts for ``category`` on each day of ``[start, end]``.

    Days where the category does not apply hold ``NaN``.
    """
    days = list(iter_days(start, end))
    values = [allocate(category, d, budget) for d in days]
    return pd.Series(
        [np.nan if v is None else v for v in values],
        index=pd.DatetimeIndex(days, name='date'),
        name=category.label,
        dtype=float,
    )


def expected_frame(start: date, end: date, budget: BudgetDefinition) -> pd.DataFrame:
    """One column per spending category, one row per day."""
    columns: Dict[str, pd.Series] = {
        c.label: expected_series(c, start, end, budget) for c in budget.spending_categories
    }
    if not columns:
        return pd.DataFrame(index=pd.DatetimeIndex(list(iter_days(start, end)), name='date'))
    return pd.DataFrame(columns)
