"""Budget lifecycle and the entry points the pages call.

``BudgetSession`` ties together the persisted budget definition, the
day-ledger store and the current exchange rate, and enforces the
lifecycle::

    UNINITIALIZED -> SETUP_IN_PROGRESS -> ACTIVE -> SETUP_IN_PROGRESS ...

Ledger reads, edits and aggregation are only available while ACTIVE.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

import pandas as pd

from . import aggregation, allocation, exports, ledger
from .budget_setup import SetupForm, build_budget_definition, clears_actuals
from .dates import DateLike, to_date
from .errors import BudgetStateError, SavingsGoalWarning
from .models import BudgetDefinition, DayRecord, RangeTotals
from .storage import ActualsStore, BudgetStore, JsonActualsStore, MemoryActualsStore

logger = logging.getLogger(__name__)


class BudgetState(str, Enum):
    UNINITIALIZED = 'uninitialized'
    SETUP_IN_PROGRESS = 'setup-in-progress'
    ACTIVE = 'active'


class BudgetSession:
    def __init__(
        self,
        actuals: Optional[ActualsStore] = None,
        budgets: Optional[BudgetStore] = None,
        exchange_rate: float = 1.0,
    ):
        self.actuals = actuals if actuals is not None else JsonActualsStore()
        self.budgets = budgets if budgets is not None else BudgetStore()
        self.exchange_rate = exchange_rate
        self.budget: Optional[BudgetDefinition] = self.budgets.load()
        self.state = BudgetState.ACTIVE if self.budget else BudgetState.UNINITIALIZED
        self._warned_signature: Optional[str] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def begin_setup(self) -> None:
        """Enter setup.  Nothing stored changes until setup completes."""
        self.state = BudgetState.SETUP_IN_PROGRESS
        self._warned_signature = None

    def complete_setup(self, form: SetupForm) -> BudgetDefinition:
        """Validate ``form`` and activate the resulting budget.

        The savings-goal warning is raised once per distinct form;
        submitting the same form again goes through.
        """
        if self.state != BudgetState.SETUP_IN_PROGRESS:
            raise BudgetStateError("Call begin_setup() before completing setup")
        signature = form.signature()
        try:
            budget = build_budget_definition(
                form, confirm_savings_goal=signature == self._warned_signature
            )
        except SavingsGoalWarning:
            self._warned_signature = signature
            raise
        if clears_actuals(form.income_type):
            self.actuals.remove_all()
            logger.info("Cleared stored day records for a fresh budget")
        self._activate(budget)
        return budget

    def _activate(self, budget: BudgetDefinition) -> None:
        self.budgets.save(budget)
        self.budget = budget
        self.state = BudgetState.ACTIVE
        self._warned_signature = None
        logger.info(
            "Budget active: %s to %s, %d categories",
            budget.start_date, budget.end_date, len(budget.categories),
        )

    def reset(self) -> None:
        self.actuals.remove_all()
        self.budgets.clear()
        self.budget = None
        self.state = BudgetState.UNINITIALIZED

    def _require_active(self) -> BudgetDefinition:
        if self.state != BudgetState.ACTIVE or self.budget is None:
            raise BudgetStateError(f"No active budget (state: {self.state.value})")
        return self.budget

    @property
    def is_active(self) -> bool:
        return self.state == BudgetState.ACTIVE and self.budget is not None

    # ------------------------------------------------------------------ #
    # Day ledger
    # ------------------------------------------------------------------ #

    def day_record(self, day: DateLike, persist: bool = True) -> DayRecord:
        return ledger.build_day_record(day, self._require_active(), self.actuals, self.exchange_rate, persist)

    def set_actual(self, day: DateLike, label: str, amount: Optional[float]) -> DayRecord:
        return ledger.set_actual(day, label, amount, self._require_active(), self.actuals, self.exchange_rate)

    def add_entry(self, day: DateLike, kind: str, label: str, amount: float) -> DayRecord:
        return ledger.add_entry(day, kind, label, amount, self._require_active(), self.actuals, self.exchange_rate)

    def update_entry(self, day: DateLike, kind: str, index: int, label: str, amount: float) -> DayRecord:
        return ledger.update_entry(
            day, kind, index, label, amount, self._require_active(), self.actuals, self.exchange_rate
        )

    def remove_entry(self, day: DateLike, kind: str, index: int) -> DayRecord:
        return ledger.remove_entry(day, kind, index, self._require_active(), self.actuals, self.exchange_rate)

    # ------------------------------------------------------------------ #
    # Ranges and exports
    # ------------------------------------------------------------------ #

    def aggregate(self, start: DateLike, end: DateLike) -> RangeTotals:
        return aggregation.aggregate_range(start, end, self._require_active(), self.actuals, self.exchange_rate)

    def daily_totals(self, start: DateLike, end: DateLike) -> pd.DataFrame:
        return aggregation.daily_totals_frame(start, end, self._require_active(), self.actuals, self.exchange_rate)

    def category_totals(self, start: DateLike, end: DateLike) -> pd.DataFrame:
        return aggregation.category_totals_frame(start, end, self._require_active(), self.actuals, self.exchange_rate)

    def planned_frame(self, start: DateLike, end: DateLike) -> pd.DataFrame:
        """Planned spend per category and day, in display currency."""
        frame = allocation.expected_frame(to_date(start), to_date(end), self._require_active())
        return frame * self.exchange_rate

    def export_payload(self, start: DateLike, end: DateLike) -> Dict[str, Any]:
        return exports.build_export_payload(start, end, self._require_active(), self.actuals, self.exchange_rate)

    def apply_import(self, raw: Any) -> BudgetDefinition:
        """Replace the budget and ledger with an import file's contents.

        ``raw`` is the file content (bytes/str) or an already decoded
        mapping.  The file is fully validated before anything changes.
        """
        if isinstance(raw, (bytes, str)):
            imported = exports.load_import_file(raw, self.exchange_rate)
        else:
            imported = exports.parse_import_payload(raw, self.exchange_rate)
        budget = exports.definition_from_import(imported)

        # Savings are re-derived from the new plan before the single write
        staging = MemoryActualsStore()
        staging.put_many(imported.records)
        rebuilt = [
            ledger.build_day_record(record.date, budget, staging, persist=False)
            for record in imported.records
        ]
        self.actuals.remove_all()
        self.actuals.put_many(r for r in rebuilt if not r.is_empty())
        self._activate(budget)
        logger.info("Imported %d days (%s to %s)", len(imported.records), budget.start_date, budget.end_date)
        return budget

    @property
    def window(self) -> Optional[tuple]:
        if self.budget is None:
            return None
        return self.budget.start_date, self.budget.end_date

    def clamp(self, day: date) -> date:
        """Nearest day inside the budget window."""
        budget = self._require_active()
        return min(max(day, budget.start_date), budget.end_date)
