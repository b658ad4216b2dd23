"""Calendar helpers shared by the allocation engine and the pages."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Union

import pandas as pd

DateLike = Union[date, datetime, str, pd.Timestamp]

# ISO calendar date, e.g. "2024-01-31"
DATE_KEY_FORMAT = "%Y-%m-%d"

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def to_date(value: DateLike) -> date:
    """Coerce a date-like value to a plain ``datetime.date``.

    Strings are parsed with pandas so that both ISO keys and the longer
    forms found in older exports ("Mon Jan 01 2024") are accepted.

    Raises:
        ValueError: If the value cannot be interpreted as a date.
    """
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            raise ValueError("Missing date")
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        parsed = pd.to_datetime(value.strip(), errors='coerce')
        if not pd.isna(parsed):
            return parsed.date()
    raise ValueError(f"Invalid date: {value!r}")


def date_key(value: DateLike) -> str:
    """Stable textual key used to index persisted day records."""
    return to_date(value).strftime(DATE_KEY_FORMAT)


def days_between(start: date, end: date) -> int:
    """Signed number of whole days from ``start`` to ``end``."""
    return (end - start).days


def total_days_in_range(start: date, end: date) -> int:
    """Inclusive day count of ``[start, end]``, never less than one."""
    return max(1, days_between(start, end) + 1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]
