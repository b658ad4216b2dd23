import json
from datetime import date

import pytest

from moneymap.models import (
    BudgetDefinition,
    CategoryPlan,
    DayRecord,
    LedgerEntry,
    LedgerRow,
    OneTimeSchedule,
    RecurringSchedule,
    SAVINGS_LABEL,
    schedule_from_dict,
)
from moneymap.storage import BudgetStore, JsonActualsStore, MemoryActualsStore


def _record(key='2024-01-02'):
    return DayRecord(
        date=key,
        rows=[LedgerRow('Food', 10.0, 4.0)],
        unexpected_expenses=[LedgerEntry('Taxi', 20.0)],
        derived_savings=-9.0,
    )


def test_json_store_round_trip(tmp_path):
    target = tmp_path / 'daily_data.json'
    store = JsonActualsStore(target)
    store.put('2024-01-02', _record())

    reopened = JsonActualsStore(target)
    assert reopened.keys() == ['2024-01-02']
    assert reopened.get('2024-01-02') == _record()
    on_disk = json.loads(target.read_text())
    assert on_disk['2024-01-02']['rows'][0]['difference'] == 6.0
    assert on_disk['2024-01-02']['derivedSavings'] == -9.0


def test_json_store_sees_writes_from_another_instance(tmp_path):
    target = tmp_path / 'daily_data.json'
    first, second = JsonActualsStore(target), JsonActualsStore(target)
    assert second.get('2024-01-02') is None
    first.put('2024-01-02', _record())
    assert second.get('2024-01-02') is not None


def test_malformed_file_is_treated_as_empty(tmp_path):
    target = tmp_path / 'daily_data.json'
    target.write_text('{not json')
    store = JsonActualsStore(target)
    assert store.get('2024-01-02') is None
    assert store.keys() == []


def test_non_mapping_file_is_treated_as_empty(tmp_path):
    target = tmp_path / 'daily_data.json'
    target.write_text('[1, 2, 3]')
    assert JsonActualsStore(target).keys() == []


def test_malformed_record_is_skipped():
    store = MemoryActualsStore({'2024-01-02': 'garbage'})
    assert store.get('2024-01-02') is None


def test_bare_row_list_is_accepted():
    store = MemoryActualsStore({'2024-01-02': [{'label': 'Food', 'expected': 10, 'actual': '3'}]})
    record = store.get('2024-01-02')
    assert record.row('Food').actual == 3.0
    assert record.supplemental_incomes == []


def test_remove_all_deletes_file(tmp_path):
    target = tmp_path / 'daily_data.json'
    store = JsonActualsStore(target)
    store.put_many([_record('2024-01-01'), _record('2024-01-02')])
    assert store.keys() == ['2024-01-01', '2024-01-02']
    store.remove_all()
    assert not target.exists()
    assert store.keys() == []


def test_budget_store_round_trip(tmp_path):
    budget = BudgetDefinition(
        total_budget=1000.0,
        start_date=date(2024, 3, 1),
        end_date=date(2024, 3, 30),
        categories=(
            CategoryPlan('Rent', 500.0, RecurringSchedule('monthly', day=1)),
            CategoryPlan('Trip', 200.0, OneTimeSchedule(date(2024, 3, 15))),
            CategoryPlan(SAVINGS_LABEL, 300.0),
        ),
        savings_goal=100.0,
        remaining_budget=300.0,
    )
    store = BudgetStore(tmp_path / 'budget.json')
    store.save(budget)
    assert store.load() == budget
    raw = json.loads((tmp_path / 'budget.json').read_text())
    assert raw['budgetGoals'] == {'savingsGoal': 100.0}
    assert raw['startDate'] == '2024-03-01'
    store.clear()
    assert store.load() is None


def test_budget_store_ignores_corrupted_file(tmp_path):
    target = tmp_path / 'budget.json'
    target.write_text('{"totalBudget": 5}')
    assert BudgetStore(target).load() is None


def test_legacy_days_schedule_is_rejected():
    with pytest.raises(ValueError):
        schedule_from_dict({'days': ['Monday', 'Thursday']})
    with pytest.raises(ValueError):
        schedule_from_dict({'type': 'yearly'})
    assert schedule_from_dict(None) is None


def test_memory_store_put_many():
    store = MemoryActualsStore()
    store.put_many([_record('2024-01-01'), _record('2024-01-02')])
    assert store.keys() == ['2024-01-01', '2024-01-02']
    assert store.get('2024-01-02') == _record('2024-01-02')
