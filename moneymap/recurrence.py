"""Decide which calendar days a scheduled category applies to."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Set

from .dates import WEEKDAY_NAMES, days_between, weekday_name
from .models import (
    BI_WEEKLY,
    CUSTOM,
    MONTHLY,
    WEEKLY,
    OneTimeSchedule,
    RecurringSchedule,
    ScheduleRule,
)

logger = logging.getLogger(__name__)

_WEEKDAY_LOOKUP = {name.lower(): name for name in WEEKDAY_NAMES}
_warned: Set[str] = set()


def _warn_once(rule: ScheduleRule, reason: str) -> None:
    # Keyed on repr: persisted rules may carry unhashable values
    key = repr(rule)
    if key in _warned:
        return
    _warned.add(key)
    logger.warning("Schedule %r never applies: %s", rule, reason)


def normalize_weekday(value: object) -> Optional[str]:
    """Canonical weekday name for ``value`` ("monday" -> "Monday")."""
    if not isinstance(value, str):
        return None
    return _WEEKDAY_LOOKUP.get(value.strip().lower())


def day_of_month(value: object) -> Optional[int]:
    """Parse a monthly rule's day; ``None`` when it is not 1-31."""
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if 1 <= number <= 31 else None


def applies(rule: ScheduleRule, day: date, budget_start: date) -> bool:
    """Return True when ``rule`` places its full amount on ``day``.

    Week parity for bi-weekly rules and the phase of custom intervals
    are anchored on ``budget_start``.  Rules that cannot match (unknown
    frequency, bad day, interval below one) evaluate to False.
    """
    if isinstance(rule, OneTimeSchedule):
        return day == rule.date
    if not isinstance(rule, RecurringSchedule):
        _warn_once(rule, "unsupported rule type")
        return False

    frequency = (rule.frequency or '').strip().lower()
    if frequency in (WEEKLY, BI_WEEKLY):
        weekday = normalize_weekday(rule.day)
        if weekday is None:
            _warn_once(rule, f"invalid weekday {rule.day!r}")
            return False
        if weekday_name(day) != weekday:
            return False
        if frequency == WEEKLY:
            return True
        return (days_between(budget_start, day) // 7) % 2 == 0
    if frequency == MONTHLY:
        target = day_of_month(rule.day)
        if target is None:
            _warn_once(rule, f"invalid day of month {rule.day!r}")
            return False
        return day.day == target
    if frequency == CUSTOM:
        if rule.interval is None or rule.interval < 1:
            _warn_once(rule, f"invalid interval {rule.interval!r}")
            return False
        return days_between(budget_start, day) % rule.interval == 0

    _warn_once(rule, f"unknown frequency {rule.frequency!r}")
    return False
