"""Exception types raised at the MoneyMap boundaries.

The allocation and aggregation core never raises for a structurally
valid budget; these exceptions belong to setup, import, ledger edits and
session lifecycle checks.
"""

from __future__ import annotations

from typing import Optional


class MoneyMapError(Exception):
    """Base class for all MoneyMap errors."""


class BudgetValidationError(MoneyMapError, ValueError):
    """Setup input was rejected; nothing was changed."""


class ImportValidationError(BudgetValidationError):
    """An import file could not be applied as a whole."""


class LedgerValidationError(MoneyMapError, ValueError):
    """A day-ledger edit was rejected before any write."""


class BudgetStateError(MoneyMapError, RuntimeError):
    """An operation was attempted in the wrong lifecycle state."""


class SavingsGoalWarning(MoneyMapError):
    """Savings goal exceeds what is left after category allocations.

    This is a soft warning: re-submitting the same setup proceeds.
    """

    def __init__(self, goal: float, remaining: float, message: Optional[str] = None):
        self.goal = goal
        self.remaining = remaining
        super().__init__(
            message
            or f"Savings goal {goal:,.2f} exceeds the remaining budget {remaining:,.2f}."
        )
