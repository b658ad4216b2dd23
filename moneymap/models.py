"""Budget, schedule and day-ledger data structures.

Everything persisted by MoneyMap is built from the dataclasses in this
module.  Each type knows how to turn itself into the JSON-compatible
dictionary layout used by the stores and exports (camelCase keys, date
keys as ISO strings) and how to read that layout back.

Amounts are plain floats in the budget's base currency unless a record
has been produced with :meth:`DayRecord.scaled` for display.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .dates import date_key, to_date, total_days_in_range

SAVINGS_LABEL = 'Savings'

INCOME_ONE_TIME = 'one-time'
INCOME_RECURRING = 'recurring-income'
INCOME_CONTINUE = 'continue-existing'
INCOME_TYPES = (INCOME_ONE_TIME, INCOME_RECURRING, INCOME_CONTINUE)

WEEKLY = 'weekly'
BI_WEEKLY = 'bi-weekly'
MONTHLY = 'monthly'
CUSTOM = 'custom'
FREQUENCIES = (WEEKLY, BI_WEEKLY, MONTHLY, CUSTOM)

SUPPLEMENTAL = 'supplemental'
UNEXPECTED = 'unexpected'
ENTRY_KINDS = (SUPPLEMENTAL, UNEXPECTED)


def _as_amount(value: Any, default: float = 0.0) -> float:
    """Read a persisted number, falling back for blanks and junk."""
    if value is None or value == '':
        return default
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return default
    return amount if math.isfinite(amount) else default


@dataclass(frozen=True)
class OneTimeSchedule:
    """Full amount applies on exactly one date."""

    date: date

    def to_dict(self) -> Dict[str, Any]:
        return {'type': 'one-time', 'date': date_key(self.date)}

    def describe(self) -> str:
        return f"Once on {self.date:%b %d, %Y}"


@dataclass(frozen=True)
class RecurringSchedule:
    """Full amount applies on every date matched by the frequency.

    ``day`` is a weekday name for weekly and bi-weekly rules and a
    day-of-month (1-31) for monthly rules.  ``interval`` is the spacing
    in days for custom rules.
    """

    frequency: str
    day: Optional[Union[str, int]] = None
    interval: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'recurring',
            'frequency': self.frequency,
            'day': self.day,
            'interval': self.interval,
        }

    def describe(self) -> str:
        """Readable form, e.g. "Monthly on day 1" or "Every 3 days"."""
        frequency = (self.frequency or '').strip().lower()
        if frequency == CUSTOM:
            return f"Every {self.interval} days"
        if frequency == MONTHLY:
            return f"Monthly on day {self.day}"
        if frequency == BI_WEEKLY:
            return f"Every other {self.day}"
        if frequency == WEEKLY:
            return f"Every {self.day}"
        return f"{self.frequency} ({self.day})"


ScheduleRule = Union[OneTimeSchedule, RecurringSchedule]


def schedule_from_dict(data: Any) -> Optional[ScheduleRule]:
    """Rebuild a schedule from its persisted form.

    Raises:
        ValueError: For unknown schedule types or the legacy
            ``{"days": [...]}`` shape, which is not migrated.
    """
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"Schedule must be a mapping, got {type(data).__name__}")
    if 'days' in data and 'frequency' not in data:
        raise ValueError("Legacy 'days' schedules are not supported")
    kind = data.get('type', 'recurring')
    if kind == 'one-time':
        return OneTimeSchedule(date=to_date(data.get('date')))
    if kind == 'recurring':
        try:
            interval = int(data.get('interval') or 1)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid interval: {data.get('interval')!r}") from None
        return RecurringSchedule(
            frequency=str(data.get('frequency', '')),
            day=data.get('day'),
            interval=interval,
        )
    raise ValueError(f"Unknown schedule type: {kind!r}")


@dataclass(frozen=True)
class CategoryPlan:
    label: str
    expected: float
    schedule: Optional[ScheduleRule] = None

    @property
    def is_savings(self) -> bool:
        return self.label == SAVINGS_LABEL

    @property
    def is_undated(self) -> bool:
        return self.schedule is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'expected': self.expected,
            'schedule': self.schedule.to_dict() if self.schedule else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CategoryPlan':
        return cls(
            label=str(data['label']),
            expected=_as_amount(data.get('expected')),
            schedule=schedule_from_dict(data.get('schedule')),
        )


@dataclass(frozen=True)
class BudgetDefinition:
    """The plan created at setup; immutable until setup is redone."""

    total_budget: float
    start_date: date
    end_date: date
    categories: Tuple[CategoryPlan, ...] = ()
    income_type: str = INCOME_ONE_TIME
    savings_goal: float = 0.0
    remaining_budget: float = 0.0

    @property
    def total_days(self) -> int:
        return total_days_in_range(self.start_date, self.end_date)

    @property
    def spending_categories(self) -> Tuple[CategoryPlan, ...]:
        """Categories that produce ledger rows (everything but Savings)."""
        return tuple(c for c in self.categories if not c.is_savings)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def category(self, label: str) -> Optional[CategoryPlan]:
        return next((c for c in self.categories if c.label == label), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalBudget': self.total_budget,
            'startDate': date_key(self.start_date),
            'endDate': date_key(self.end_date),
            'categories': [c.to_dict() for c in self.categories],
            'incomeType': self.income_type,
            'budgetGoals': {'savingsGoal': self.savings_goal},
            'remainingBudget': self.remaining_budget,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BudgetDefinition':
        goals = data.get('budgetGoals') or {}
        return cls(
            total_budget=_as_amount(data.get('totalBudget')),
            start_date=to_date(data['startDate']),
            end_date=to_date(data['endDate']),
            categories=tuple(CategoryPlan.from_dict(c) for c in data.get('categories') or []),
            income_type=data.get('incomeType') or INCOME_ONE_TIME,
            savings_goal=_as_amount(goals.get('savingsGoal') if isinstance(goals, dict) else None),
            remaining_budget=_as_amount(data.get('remainingBudget')),
        )


@dataclass(frozen=True)
class LedgerRow:
    """One category on one day.  ``difference`` is always derived."""

    label: str
    expected: float
    actual: Optional[float] = None

    @property
    def difference(self) -> float:
        return self.expected - (self.actual if self.actual is not None else 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'expected': self.expected,
            'actual': self.actual,
            'difference': self.difference,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerRow':
        actual = data.get('actual')
        return cls(
            label=str(data['label']),
            expected=_as_amount(data.get('expected')),
            actual=None if actual is None or actual == '' else _as_amount(actual),
        )


@dataclass(frozen=True)
class LedgerEntry:
    """A supplemental income or unexpected expense."""

    label: str
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {'label': self.label, 'amount': self.amount}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerEntry':
        return cls(label=str(data.get('label', '')), amount=_as_amount(data.get('amount')))


def _entries(values: Any) -> List[LedgerEntry]:
    if not isinstance(values, list):
        return []
    return [LedgerEntry.from_dict(v) for v in values if isinstance(v, dict)]


@dataclass
class DayRecord:
    """One day of the ledger.

    ``budgeted_savings`` is the day's share of the unallocated budget.  It
    is derived from the plan on every build and never persisted.
    """

    date: str
    rows: List[LedgerRow] = field(default_factory=list)
    supplemental_incomes: List[LedgerEntry] = field(default_factory=list)
    unexpected_expenses: List[LedgerEntry] = field(default_factory=list)
    derived_savings: float = 0.0
    budgeted_savings: float = 0.0

    @property
    def total_expected(self) -> float:
        return sum(r.expected for r in self.rows)

    @property
    def total_actual(self) -> float:
        return sum(r.actual for r in self.rows if r.actual is not None)

    @property
    def total_difference(self) -> float:
        return sum(r.difference for r in self.rows)

    @property
    def total_supplemental_income(self) -> float:
        return sum(e.amount for e in self.supplemental_incomes)

    @property
    def total_unexpected_expenses(self) -> float:
        return sum(e.amount for e in self.unexpected_expenses)

    def is_empty(self) -> bool:
        return not (self.rows or self.supplemental_incomes or self.unexpected_expenses)

    def row(self, label: str) -> Optional[LedgerRow]:
        return next((r for r in self.rows if r.label == label), None)

    def entries(self, kind: str) -> List[LedgerEntry]:
        if kind == SUPPLEMENTAL:
            return self.supplemental_incomes
        if kind == UNEXPECTED:
            return self.unexpected_expenses
        raise ValueError(f"Unknown entry kind: {kind!r}")

    def savings_from(self, budgeted_savings: float) -> float:
        return (
            budgeted_savings
            + self.total_supplemental_income
            - self.total_unexpected_expenses
            + self.total_difference
        )

    def scaled(self, rate: float) -> 'DayRecord':
        """Copy with every amount multiplied by ``rate``.

        ``derived_savings`` is re-derived from the scaled parts so that the
        savings identity holds exactly in display currency too.
        """
        if rate == 1.0:
            return replace(
                self,
                rows=list(self.rows),
                supplemental_incomes=list(self.supplemental_incomes),
                unexpected_expenses=list(self.unexpected_expenses),
            )
        record = DayRecord(
            date=self.date,
            rows=[
                LedgerRow(r.label, r.expected * rate, None if r.actual is None else r.actual * rate)
                for r in self.rows
            ],
            supplemental_incomes=[LedgerEntry(e.label, e.amount * rate) for e in self.supplemental_incomes],
            unexpected_expenses=[LedgerEntry(e.label, e.amount * rate) for e in self.unexpected_expenses],
            budgeted_savings=self.budgeted_savings * rate,
        )
        record.derived_savings = record.savings_from(record.budgeted_savings)
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rows': [r.to_dict() for r in self.rows],
            'supplementalIncomes': [e.to_dict() for e in self.supplemental_incomes],
            'unexpectedExpenses': [e.to_dict() for e in self.unexpected_expenses],
            'derivedSavings': self.derived_savings,
        }

    @classmethod
    def from_dict(cls, key: str, data: Any) -> 'DayRecord':
        """Read a stored record.  A bare list is treated as the row list."""
        if isinstance(data, list):
            data = {'rows': data}
        if not isinstance(data, dict):
            raise ValueError(f"Day record for {key} must be a mapping")
        rows = data.get('rows') or []
        if not isinstance(rows, list):
            rows = []
        return cls(
            date=key,
            rows=[LedgerRow.from_dict(r) for r in rows if isinstance(r, dict) and 'label' in r],
            supplemental_incomes=_entries(data.get('supplementalIncomes')),
            unexpected_expenses=_entries(data.get('unexpectedExpenses')),
            derived_savings=_as_amount(data.get('derivedSavings')),
        )


@dataclass
class RangeTotals:
    budgeted: float = 0.0
    actual: float = 0.0
    difference: float = 0.0
    savings: float = 0.0
    unexpected_expenses: float = 0.0

    def add(self, record: DayRecord) -> None:
        self.budgeted += record.total_expected
        self.actual += record.total_actual
        self.difference += record.total_difference
        self.savings += record.derived_savings
        self.unexpected_expenses += record.total_unexpected_expenses

    @classmethod
    def from_records(cls, records: Iterable[DayRecord]) -> 'RangeTotals':
        totals = cls()
        for record in records:
            totals.add(record)
        return totals

    def to_dict(self) -> Dict[str, float]:
        return {
            'budgeted': self.budgeted,
            'actual': self.actual,
            'difference': self.difference,
            'savings': self.savings,
            'unexpectedExpenses': self.unexpected_expenses,
        }
