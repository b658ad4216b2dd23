from datetime import date, datetime

import pandas as pd
import pytest

from moneymap.dates import date_key, iter_days, to_date, total_days_in_range
from moneymap.models import DayRecord, LedgerEntry, LedgerRow, RangeTotals


def test_to_date_accepts_common_forms():
    assert to_date('2024-01-05') == date(2024, 1, 5)
    assert to_date(datetime(2024, 1, 5, 13, 30)) == date(2024, 1, 5)
    assert to_date(pd.Timestamp('2024-01-05')) == date(2024, 1, 5)
    assert date_key(date(2024, 1, 5)) == '2024-01-05'
    with pytest.raises(ValueError):
        to_date('')
    with pytest.raises(ValueError):
        to_date(None)


def test_day_counts_are_inclusive():
    assert total_days_in_range(date(2024, 1, 1), date(2024, 1, 30)) == 30
    assert total_days_in_range(date(2024, 1, 1), date(2024, 1, 1)) == 1
    assert len(list(iter_days(date(2024, 2, 27), date(2024, 3, 1)))) == 4


def test_difference_is_derived():
    assert LedgerRow('Food', 10.0).difference == 10.0
    assert LedgerRow('Food', 10.0, 12.5).difference == -2.5
    assert LedgerRow('Food', 10.0, 12.5).to_dict()['difference'] == -2.5


def test_scaled_copy_leaves_original_untouched():
    record = DayRecord(
        date='2024-01-01',
        rows=[LedgerRow('Food', 10.0, None)],
        supplemental_incomes=[LedgerEntry('Gift', 4.0)],
        derived_savings=19.0,
        budgeted_savings=5.0,
    )
    scaled = record.scaled(0.5)
    assert scaled.rows[0].expected == 5.0
    assert scaled.rows[0].actual is None
    assert scaled.supplemental_incomes[0].amount == 2.0
    assert scaled.budgeted_savings == 2.5
    assert scaled.derived_savings == 9.5
    assert 'budgetedSavings' not in record.to_dict()
    assert record.rows[0].expected == 10.0

    copy = record.scaled(1.0)
    copy.rows.append(LedgerRow('Rent', 1.0))
    assert len(record.rows) == 1


def test_stored_difference_is_ignored_on_read():
    record = DayRecord.from_dict('2024-01-01', {
        'rows': [{'label': 'Food', 'expected': 10, 'actual': 3, 'difference': 999}],
        'supplementalIncomes': 'junk',
    })
    assert record.row('Food').difference == 7.0
    assert record.supplemental_incomes == []


def test_range_totals_accumulate():
    records = [
        DayRecord('2024-01-01', rows=[LedgerRow('Food', 10.0, 4.0)], derived_savings=11.0),
        DayRecord('2024-01-02', unexpected_expenses=[LedgerEntry('Taxi', 20.0)], derived_savings=-15.0),
    ]
    totals = RangeTotals.from_records(records)
    assert totals.to_dict() == {
        'budgeted': 10.0, 'actual': 4.0, 'difference': 6.0, 'savings': -4.0, 'unexpectedExpenses': 20.0,
    }
