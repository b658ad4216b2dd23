"""Build and edit the ledger for a single day.

A day record combines the computed expectation of every spending
category with whatever the user has entered for that date: actuals per
category, supplemental incomes and unexpected expenses.  Its savings
figure is always derived::

    derived_savings = daily budgeted savings
                      + supplemental income
                      - unexpected expenses
                      + sum of row differences

Every edit goes through a read-modify-write of the whole record so that
``derived_savings`` is never left stale in storage.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import date
from typing import List, Optional

from .allocation import allocate, daily_budgeted_savings
from .dates import DateLike, date_key, to_date
from .errors import LedgerValidationError
from .models import (
    ENTRY_KINDS,
    SUPPLEMENTAL,
    BudgetDefinition,
    DayRecord,
    LedgerEntry,
    LedgerRow,
)
from .storage import ActualsStore

logger = logging.getLogger(__name__)


def computed_rows(day: date, budget: BudgetDefinition, stored: Optional[DayRecord]) -> List[LedgerRow]:
    """Rows for ``day`` with actuals merged in by label."""
    if not budget.contains(day):
        return []
    rows: List[LedgerRow] = []
    for category in budget.spending_categories:
        expected = allocate(category, day, budget)
        if expected is None:
            continue
        persisted = stored.row(category.label) if stored else None
        rows.append(LedgerRow(category.label, expected, persisted.actual if persisted else None))
    return rows


def derive_savings(record: DayRecord, budget: BudgetDefinition, day: date) -> None:
    """Set the day's budgeted savings share and its derived savings."""
    record.budgeted_savings = daily_budgeted_savings(budget) if budget.contains(day) else 0.0
    record.derived_savings = record.savings_from(record.budgeted_savings)


def _base_record(day: date, budget: BudgetDefinition, store: ActualsStore) -> DayRecord:
    key = date_key(day)
    stored = store.get(key)
    record = DayRecord(
        date=key,
        rows=computed_rows(day, budget, stored),
        supplemental_incomes=list(stored.supplemental_incomes) if stored else [],
        unexpected_expenses=list(stored.unexpected_expenses) if stored else [],
    )
    derive_savings(record, budget, day)
    return record


def build_day_record(
    day: DateLike,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
    persist: bool = True,
) -> DayRecord:
    """Return the full ledger for ``day`` in display currency.

    With ``persist`` the base-currency record is written back, but only
    when it has at least one row or entry and differs from what is
    stored.  Pass ``persist=False`` for read-only previews.
    """
    day = to_date(day)
    record = _base_record(day, budget, store)
    if persist and not record.is_empty():
        stored = store.get(record.date)
        if stored is None or stored.to_dict() != record.to_dict():
            store.put(record.date, record)
    return record.scaled(exchange_rate)


def _to_base(amount: float, exchange_rate: float) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise LedgerValidationError(f"Amount must be a number, got {amount!r}") from None
    if not math.isfinite(value) or value < 0:
        raise LedgerValidationError(f"Amount must be a non-negative number, got {amount!r}")
    if not exchange_rate or exchange_rate <= 0:
        raise LedgerValidationError(f"Invalid exchange rate {exchange_rate!r}")
    return value / exchange_rate


def _clean_label(label: str) -> str:
    cleaned = (label or '').strip()
    if not cleaned:
        raise LedgerValidationError("Label cannot be empty")
    return cleaned


def _check_kind(kind: str) -> None:
    if kind not in ENTRY_KINDS:
        raise LedgerValidationError(f"Unknown entry kind {kind!r}; expected one of {ENTRY_KINDS}")


def _commit(
    day: date,
    record: DayRecord,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float,
) -> DayRecord:
    derive_savings(record, budget, day)
    store.put(record.date, record)
    logger.debug("Saved %s: savings %.2f", record.date, record.derived_savings)
    return record.scaled(exchange_rate)


def set_actual(
    day: DateLike,
    label: str,
    amount: Optional[float],
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> DayRecord:
    """Record what was really spent on ``label``; ``None`` clears it."""
    day = to_date(day)
    record = _base_record(day, budget, store)
    if record.row(label) is None:
        raise LedgerValidationError(f"'{label}' is not budgeted on {record.date}")
    value = None if amount is None else _to_base(amount, exchange_rate)
    record.rows = [replace(r, actual=value) if r.label == label else r for r in record.rows]
    return _commit(day, record, budget, store, exchange_rate)


def add_entry(
    day: DateLike,
    kind: str,
    label: str,
    amount: float,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> DayRecord:
    """Append a supplemental income or unexpected expense to ``day``."""
    _check_kind(kind)
    entry = LedgerEntry(_clean_label(label), _to_base(amount, exchange_rate))
    day = to_date(day)
    record = _base_record(day, budget, store)
    record.entries(kind).append(entry)
    return _commit(day, record, budget, store, exchange_rate)


def update_entry(
    day: DateLike,
    kind: str,
    index: int,
    label: str,
    amount: float,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> DayRecord:
    _check_kind(kind)
    entry = LedgerEntry(_clean_label(label), _to_base(amount, exchange_rate))
    day = to_date(day)
    record = _base_record(day, budget, store)
    entries = record.entries(kind)
    if not 0 <= index < len(entries):
        raise LedgerValidationError(f"No {kind} entry #{index} on {record.date}")
    entries[index] = entry
    return _commit(day, record, budget, store, exchange_rate)


def remove_entry(
    day: DateLike,
    kind: str,
    index: int,
    budget: BudgetDefinition,
    store: ActualsStore,
    exchange_rate: float = 1.0,
) -> DayRecord:
    _check_kind(kind)
    day = to_date(day)
    record = _base_record(day, budget, store)
    entries = record.entries(kind)
    if not 0 <= index < len(entries):
        raise LedgerValidationError(f"No {kind} entry #{index} on {record.date}")
    del entries[index]
    return _commit(day, record, budget, store, exchange_rate)


def entry_kind_label(kind: str) -> str:
    return 'Supplemental income' if kind == SUPPLEMENTAL else 'Unexpected expense'
