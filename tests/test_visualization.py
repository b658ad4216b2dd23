from datetime import date

import pandas as pd

from moneymap.allocation import expected_frame
from moneymap.models import BudgetDefinition, CategoryPlan, RecurringSchedule, SAVINGS_LABEL
from moneymap.visualization import create_calendar_heatmap, create_planned_spend_chart


def _budget():
    return BudgetDefinition(
        total_budget=1350.0,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 30),
        categories=(
            CategoryPlan('Food', 300.0),
            CategoryPlan('Rent', 900.0, RecurringSchedule(frequency='monthly', day=1)),
            CategoryPlan(SAVINGS_LABEL, 150.0),
        ),
        remaining_budget=150.0,
    )


def test_planned_spend_chart_has_one_trace_per_category():
    frame = expected_frame(date(2024, 1, 1), date(2024, 1, 7), _budget())
    fig = create_planned_spend_chart(frame)
    assert sorted(trace.name for trace in fig.data) == ['Food', 'Rent']


def test_planned_spend_chart_without_categories():
    frame = pd.DataFrame(index=pd.DatetimeIndex([], name='date'))
    fig = create_planned_spend_chart(frame)
    assert fig.layout.title.text == "No data to display"


def test_calendar_heatmap_places_days_on_weekdays():
    daily = pd.DataFrame(
        {'budgeted': [910.0, 10.0]},
        index=pd.DatetimeIndex(['2024-01-01', '2024-01-02'], name='date'),
    )
    fig = create_calendar_heatmap(daily, date(2024, 1, 15))
    heatmap = fig.data[0]
    assert heatmap.z[0][0] == 910.0
    assert heatmap.z[0][1] == 10.0
    assert fig.layout.title.text == 'January 2024'
