from datetime import date

import pytest

from moneymap.budget_setup import CategoryInput, SetupForm
from moneymap.errors import BudgetStateError, BudgetValidationError, ImportValidationError, SavingsGoalWarning
from moneymap.models import SUPPLEMENTAL
from moneymap.session import BudgetSession, BudgetState
from moneymap.storage import BudgetStore, JsonActualsStore, MemoryActualsStore, MemoryBudgetStore


def _form(**overrides):
    values = dict(
        total_budget=1350.0,
        time_period='custom',
        custom_days=30,
        start_date=date(2024, 1, 1),
        categories=[CategoryInput('Food', 300.0, True), CategoryInput('Rent', 900.0, True)],
    )
    values.update(overrides)
    return SetupForm(**values)


def _active_session():
    session = BudgetSession(actuals=MemoryActualsStore(), budgets=MemoryBudgetStore())
    session.begin_setup()
    session.complete_setup(_form())
    return session


def test_ledger_requires_an_active_budget():
    session = BudgetSession(actuals=MemoryActualsStore(), budgets=MemoryBudgetStore())
    assert session.state == BudgetState.UNINITIALIZED
    with pytest.raises(BudgetStateError):
        session.day_record(date(2024, 1, 1))
    with pytest.raises(BudgetStateError):
        session.complete_setup(_form())


def test_complete_setup_activates_and_persists(tmp_path):
    budgets = BudgetStore(tmp_path / 'budget.json')
    session = BudgetSession(actuals=JsonActualsStore(tmp_path / 'daily.json'), budgets=budgets)
    session.begin_setup()
    budget = session.complete_setup(_form())
    assert session.is_active
    assert session.window == (date(2024, 1, 1), date(2024, 1, 30))
    assert session.aggregate(*session.window).savings == pytest.approx(150.0 + 1200.0)

    reloaded = BudgetSession(actuals=JsonActualsStore(tmp_path / 'daily.json'), budgets=budgets)
    assert reloaded.is_active
    assert reloaded.budget == budget


def test_savings_goal_warning_is_shown_once_per_form():
    session = BudgetSession(actuals=MemoryActualsStore(), budgets=MemoryBudgetStore())
    session.begin_setup()
    form = _form(savings_goal_enabled=True, savings_goal=1000.0)
    with pytest.raises(SavingsGoalWarning):
        session.complete_setup(form)
    assert session.state == BudgetState.SETUP_IN_PROGRESS
    budget = session.complete_setup(form)
    assert budget.savings_goal == 1000.0


def test_changed_form_warns_again():
    session = BudgetSession(actuals=MemoryActualsStore(), budgets=MemoryBudgetStore())
    session.begin_setup()
    with pytest.raises(SavingsGoalWarning):
        session.complete_setup(_form(savings_goal_enabled=True, savings_goal=1000.0))
    with pytest.raises(SavingsGoalWarning):
        session.complete_setup(_form(savings_goal_enabled=True, savings_goal=900.0))


def test_redo_setup_keeps_actuals_when_continuing():
    session = _active_session()
    session.add_entry(date(2024, 1, 3), SUPPLEMENTAL, 'Gift', 25.0)

    session.begin_setup()
    assert session.actuals.keys() == ['2024-01-03']
    session.complete_setup(_form(income_type='continue-existing'))
    assert session.actuals.keys() == ['2024-01-03']
    assert session.day_record(date(2024, 1, 3)).total_supplemental_income == 25.0


def test_redo_setup_clears_actuals_only_once_a_fresh_budget_completes():
    session = _active_session()
    session.add_entry(date(2024, 1, 3), SUPPLEMENTAL, 'Gift', 25.0)

    session.begin_setup()
    with pytest.raises(BudgetValidationError):
        session.complete_setup(_form(total_budget='abc'))
    assert session.actuals.keys() == ['2024-01-03']

    session.complete_setup(_form())
    assert session.actuals.keys() == []


def test_exchange_rate_applies_to_reads_and_edits():
    session = _active_session()
    session.exchange_rate = 2.0
    record = session.set_actual(date(2024, 1, 2), 'Food', 20.0)
    assert record.row('Food').expected == pytest.approx(20.0)
    assert session.actuals.get('2024-01-02').row('Food').actual == pytest.approx(10.0)


def test_export_then_import_restores_totals():
    source = _active_session()
    source.set_actual(date(2024, 1, 2), 'Food', 4.0)
    payload = source.export_payload(*source.window)
    expected = source.aggregate(*source.window)

    target = BudgetSession(actuals=MemoryActualsStore(), budgets=MemoryBudgetStore())
    budget = target.apply_import(payload)
    assert target.is_active
    assert budget.income_type == 'continue-existing'
    assert target.window == source.window
    restored = target.aggregate(*target.window)
    assert restored.budgeted == pytest.approx(expected.budgeted)
    assert restored.actual == pytest.approx(expected.actual)
    assert restored.savings == pytest.approx(expected.savings)


def test_bad_import_changes_nothing():
    session = _active_session()
    session.add_entry(date(2024, 1, 3), SUPPLEMENTAL, 'Gift', 25.0)
    before = session.budget
    with pytest.raises(ImportValidationError):
        session.apply_import(b'{"dailyData": [{"date": "not a date", "rows": []}]}')
    assert session.budget == before
    assert session.actuals.keys() == ['2024-01-03']


def test_clamp_keeps_days_inside_the_window():
    session = _active_session()
    assert session.clamp(date(2023, 12, 1)) == date(2024, 1, 1)
    assert session.clamp(date(2024, 6, 1)) == date(2024, 1, 30)
    assert session.clamp(date(2024, 1, 15)) == date(2024, 1, 15)


def test_import_writes_the_ledger_file_once(tmp_path, monkeypatch):
    payload = _active_session().export_payload(date(2024, 1, 1), date(2024, 1, 5))
    store = JsonActualsStore(tmp_path / 'daily.json')
    writes = []
    original_write = store._write

    def counting_write(data):
        writes.append(len(data))
        original_write(data)

    monkeypatch.setattr(store, '_write', counting_write)
    target = BudgetSession(actuals=store, budgets=MemoryBudgetStore())
    target.apply_import(payload)
    assert writes == [5]
    assert store.keys() == ['2024-01-01', '2024-01-02', '2024-01-03', '2024-01-04', '2024-01-05']


def test_planned_frame_is_in_display_currency():
    session = _active_session()
    session.exchange_rate = 2.0
    frame = session.planned_frame(date(2024, 1, 1), date(2024, 1, 2))
    assert list(frame.columns) == ['Food', 'Rent']
    assert frame['Food'].tolist() == [20.0, 20.0]
    assert frame['Rent'].tolist() == [60.0, 60.0]
