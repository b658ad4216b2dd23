"""Budget setup: turn the setup form into a validated BudgetDefinition.

All checks happen here, before anything is stored.  Percentages are
resolved to absolute amounts against the total, amounts typed in the
display currency are converted back to the base currency, and whatever
is not allocated becomes the reserved ``Savings`` category.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from .dates import date_key
from .errors import BudgetValidationError, SavingsGoalWarning
from .models import (
    CUSTOM,
    FREQUENCIES,
    INCOME_CONTINUE,
    INCOME_ONE_TIME,
    INCOME_RECURRING,
    INCOME_TYPES,
    MONTHLY,
    SAVINGS_LABEL,
    BudgetDefinition,
    CategoryPlan,
    OneTimeSchedule,
    RecurringSchedule,
    ScheduleRule,
)
from .presets import get_config_value, get_setup_config
from .recurrence import day_of_month, normalize_weekday


@dataclass
class CategoryInput:
    """One category row of the setup form.

    ``value`` is a percentage of the total (0-100) unless
    ``use_dollar_amount`` is set, in which case it is an amount in the
    display currency.
    """

    label: str
    value: Optional[float] = None
    use_dollar_amount: bool = False
    schedule: Optional[ScheduleRule] = None


@dataclass
class SetupForm:
    income_type: str = INCOME_ONE_TIME
    total_budget: Optional[float] = None
    gross_income: Optional[float] = None
    income_interval: str = 'monthly'
    time_period: str = 'monthly'
    custom_days: Optional[int] = None
    start_date: date = field(default_factory=date.today)
    end_date: Optional[date] = None
    categories: List[CategoryInput] = field(default_factory=list)
    savings_goal_enabled: bool = False
    savings_goal: Optional[float] = None
    exchange_rate: float = 1.0

    def signature(self) -> str:
        """Stable text form used to recognise an identical re-submit."""
        payload: Dict[str, Any] = {
            'income_type': self.income_type,
            'total_budget': self.total_budget,
            'gross_income': self.gross_income,
            'income_interval': self.income_interval,
            'time_period': self.time_period,
            'custom_days': self.custom_days,
            'start_date': date_key(self.start_date),
            'end_date': date_key(self.end_date) if self.end_date else None,
            'categories': [
                [c.label, c.value, c.use_dollar_amount, c.schedule.to_dict() if c.schedule else None]
                for c in self.categories
            ],
            'savings_goal_enabled': self.savings_goal_enabled,
            'savings_goal': self.savings_goal,
            'exchange_rate': self.exchange_rate,
        }
        return json.dumps(payload, sort_keys=True, default=str)


def templates() -> List[Dict[str, Any]]:
    return get_setup_config()['templates']


def template_names() -> List[str]:
    return [t['name'] for t in templates()]


def template_categories(name: str) -> List[CategoryInput]:
    """Empty category rows for a template; Savings is system-managed."""
    for template in templates():
        if template['name'] == name:
            return [CategoryInput(label) for label in template['categories'] if label != SAVINGS_LABEL]
    raise BudgetValidationError(f"Unknown template '{name}'")


def _number(value: Any, what: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise BudgetValidationError(f"Please enter a valid {what}.") from None
    if not math.isfinite(number):
        raise BudgetValidationError(f"Please enter a valid {what}.")
    return number


def period_days(
    time_period: str,
    custom_days: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> int:
    """Length of the budget window in days.

    Custom periods take either a positive day count or an explicit end
    date on or after the start date.
    """
    presets = get_setup_config()['time_periods']
    if time_period in presets:
        return int(presets[time_period])
    if time_period != CUSTOM:
        raise BudgetValidationError("Please specify a valid time period.")
    if custom_days not in (None, ''):
        try:
            days = int(custom_days)
        except (TypeError, ValueError):
            days = 0
        if days <= 0:
            raise BudgetValidationError("Please enter a valid number of days for the custom time period.")
        return days
    if start_date and end_date:
        if end_date < start_date:
            raise BudgetValidationError("The end date must be on or after the start date.")
        return (end_date - start_date).days + 1
    raise BudgetValidationError("Please enter a valid number of days for the custom time period.")


def resolve_total(form: SetupForm, days: int) -> float:
    """Total budget for the window in the base currency."""
    rate = _number(form.exchange_rate, 'exchange rate')
    if rate <= 0:
        raise BudgetValidationError("Please enter a valid exchange rate.")
    if form.income_type == INCOME_RECURRING:
        gross = _number(form.gross_income, 'gross income')
        interval_days = get_config_value('setup', 'income_intervals', form.income_interval)
        if not interval_days:
            raise BudgetValidationError("Please choose a valid income interval.")
        total = gross / interval_days * days
    else:
        total = _number(form.total_budget, 'total budget')
    if total < 0:
        raise BudgetValidationError("Please enter a valid total budget.")
    return total / rate


def validate_schedule(schedule: Optional[ScheduleRule], label: str) -> None:
    if schedule is None or isinstance(schedule, OneTimeSchedule):
        return
    if not isinstance(schedule, RecurringSchedule):
        raise BudgetValidationError(f"Unsupported schedule for '{label}'.")
    if schedule.frequency not in FREQUENCIES:
        raise BudgetValidationError(f"Unknown frequency '{schedule.frequency}' for '{label}'.")
    if schedule.frequency == CUSTOM:
        if schedule.interval is None or schedule.interval < 1:
            raise BudgetValidationError(f"The interval for '{label}' must be at least 1 day.")
    elif schedule.frequency == MONTHLY:
        if day_of_month(schedule.day) is None:
            raise BudgetValidationError(f"The day of month for '{label}' must be between 1 and 31.")
    elif normalize_weekday(schedule.day) is None:
        raise BudgetValidationError(f"Please choose a weekday for '{label}'.")


def resolve_categories(form: SetupForm, total: float) -> List[CategoryPlan]:
    """Absolute category plans in base currency, in form order."""
    seen = set()
    total_ratio = 0.0
    plans: List[CategoryPlan] = []
    for item in form.categories:
        label = (item.label or '').strip()
        if not label:
            raise BudgetValidationError("Category names cannot be empty.")
        if label == SAVINGS_LABEL:
            raise BudgetValidationError(f"'{SAVINGS_LABEL}' is managed automatically and cannot be added.")
        if label in seen:
            raise BudgetValidationError(f"Category '{label}' appears more than once.")
        seen.add(label)
        validate_schedule(item.schedule, label)

        raw = 0.0 if item.value in (None, '') else _number(item.value, f"amount for '{label}'")
        if item.use_dollar_amount:
            if raw < 0:
                raise BudgetValidationError(f"The amount for '{label}' cannot be negative.")
            expected = raw / form.exchange_rate
        else:
            if not 0 <= raw <= 100:
                raise BudgetValidationError(f"The percentage for '{label}' must be between 0 and 100.")
            total_ratio += raw
            expected = raw / 100 * total
        plans.append(CategoryPlan(label=label, expected=expected, schedule=item.schedule))

    if total_ratio > 100:
        raise BudgetValidationError("The total ratio exceeds 100%. Please adjust the values.")
    return plans


def build_budget_definition(form: SetupForm, *, confirm_savings_goal: bool = False) -> BudgetDefinition:
    """Validate ``form`` and produce the budget definition.

    Raises:
        BudgetValidationError: For any invalid input.
        SavingsGoalWarning: When the savings goal exceeds the remaining
            budget and ``confirm_savings_goal`` is not set.
    """
    if form.income_type not in INCOME_TYPES:
        raise BudgetValidationError(f"Unknown budget type '{form.income_type}'.")
    days = period_days(form.time_period, form.custom_days, form.start_date, form.end_date)
    start = form.start_date
    end = start + timedelta(days=days - 1)

    total = resolve_total(form, days)
    plans = resolve_categories(form, total)
    remaining = total - sum(p.expected for p in plans)
    if remaining < -1e-9:
        raise BudgetValidationError("Category amounts exceed the total budget.")
    remaining = max(remaining, 0.0)

    goal = 0.0
    if form.savings_goal_enabled:
        goal = _number(form.savings_goal, 'savings goal') / form.exchange_rate
        if goal < 0:
            raise BudgetValidationError("The savings goal cannot be negative.")
        if goal > remaining and not confirm_savings_goal:
            raise SavingsGoalWarning(goal * form.exchange_rate, remaining * form.exchange_rate)

    plans.append(CategoryPlan(label=SAVINGS_LABEL, expected=remaining))
    return BudgetDefinition(
        total_budget=total,
        start_date=start,
        end_date=end,
        categories=tuple(plans),
        income_type=form.income_type,
        savings_goal=goal,
        remaining_budget=remaining,
    )


def clears_actuals(income_type: str) -> bool:
    """A new setup starts fresh unless it continues the existing budget."""
    return income_type != INCOME_CONTINUE
