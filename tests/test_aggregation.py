from datetime import date

import pytest

from moneymap.aggregation import (
    aggregate_range,
    category_totals_frame,
    daily_totals_frame,
    month_bounds,
)
from moneymap.ledger import add_entry, build_day_record, set_actual
from moneymap.models import UNEXPECTED, BudgetDefinition, CategoryPlan, RecurringSchedule, SAVINGS_LABEL
from moneymap.storage import MemoryActualsStore


def _budget(start=date(2024, 1, 1), end=date(2024, 1, 30)):
    categories = (
        CategoryPlan('Food', 300.0),
        CategoryPlan('Rent', 900.0, RecurringSchedule(frequency='monthly', day=1)),
        CategoryPlan(SAVINGS_LABEL, 150.0),
    )
    return BudgetDefinition(
        total_budget=1350.0,
        start_date=start,
        end_date=end,
        categories=categories,
        remaining_budget=150.0,
    )


def test_whole_window_sums_to_the_plan():
    budget = _budget()
    totals = aggregate_range(budget.start_date, budget.end_date, budget, MemoryActualsStore())
    assert totals.budgeted == pytest.approx(1200.0)
    assert totals.actual == 0.0
    assert totals.difference == pytest.approx(1200.0)
    assert totals.savings == pytest.approx(150.0 + 1200.0)
    assert totals.unexpected_expenses == 0.0


def test_undated_category_over_thirty_days():
    budget = _budget()
    frame = category_totals_frame(budget.start_date, budget.end_date, budget, MemoryActualsStore())
    food = frame[frame['Category'] == 'Food'].iloc[0]
    assert food['Budgeted'] == pytest.approx(300.0)
    assert list(frame['Category']) == ['Food', 'Rent']


def test_single_day_range_matches_day_record():
    budget, store = _budget(), MemoryActualsStore()
    set_actual('2024-01-01', 'Food', 8.0, budget, store)
    add_entry('2024-01-01', UNEXPECTED, 'Taxi', 20.0, budget, store)
    record = build_day_record('2024-01-01', budget, store)
    totals = aggregate_range('2024-01-01', '2024-01-01', budget, store)
    assert totals.budgeted == pytest.approx(record.total_expected)
    assert totals.actual == pytest.approx(record.total_actual)
    assert totals.difference == pytest.approx(record.total_difference)
    assert totals.savings == pytest.approx(record.derived_savings)
    assert totals.unexpected_expenses == pytest.approx(20.0)


def test_aggregation_does_not_write():
    budget, store = _budget(), MemoryActualsStore()
    aggregate_range(budget.start_date, budget.end_date, budget, store)
    assert store.keys() == []


def test_inverted_range_is_zero():
    budget = _budget()
    totals = aggregate_range('2024-01-10', '2024-01-01', budget, MemoryActualsStore())
    assert totals.to_dict() == {
        'budgeted': 0.0, 'actual': 0.0, 'difference': 0.0, 'savings': 0.0, 'unexpectedExpenses': 0.0,
    }
    frame = daily_totals_frame('2024-01-10', '2024-01-01', budget, MemoryActualsStore())
    assert frame.empty


def test_range_past_the_window_counts_only_budget_days():
    budget = _budget()
    inside = aggregate_range('2024-01-01', '2024-01-30', budget, MemoryActualsStore())
    wider = aggregate_range('2023-12-25', '2024-02-10', budget, MemoryActualsStore())
    assert wider.budgeted == pytest.approx(inside.budgeted)
    assert wider.savings == pytest.approx(inside.savings)


def test_daily_totals_frame_layout():
    budget = _budget()
    frame = daily_totals_frame('2024-01-01', '2024-01-03', budget, MemoryActualsStore())
    assert list(frame.columns) == ['budgeted', 'actual', 'difference', 'savings', 'unexpected_expenses']
    assert len(frame) == 3
    assert frame['budgeted'].iloc[0] == pytest.approx(910.0)
    assert frame['budgeted'].iloc[1] == pytest.approx(10.0)


def test_leap_february_is_walked_day_by_day():
    budget = _budget(start=date(2024, 2, 1), end=date(2024, 2, 29))
    totals = aggregate_range(budget.start_date, budget.end_date, budget, MemoryActualsStore())
    assert budget.total_days == 29
    assert totals.budgeted == pytest.approx(300.0 + 900.0)


def test_month_bounds():
    assert month_bounds(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))
