"""Persistence for day ledgers and the budget definition.

Both blobs are plain JSON files.  The day ledger is a single mapping of
date-key to day record; the budget definition is a single object.  A
missing or corrupted file is treated as "no data" and never raised to
the caller.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .config import BUDGET_PATH, DAILY_DATA_PATH
from .models import BudgetDefinition, DayRecord

logger = logging.getLogger(__name__)


class ActualsStore(Protocol):
    """Date-keyed store of day records.

    ``put`` overwrites the whole record; callers read-modify-write.
    """

    def get(self, key: str) -> Optional[DayRecord]:
        ...

    def put(self, key: str, record: DayRecord) -> None:
        ...

    def put_many(self, records: Iterable[DayRecord]) -> None:
        ...

    def remove_all(self) -> None:
        ...

    def keys(self) -> List[str]:
        ...


def _record_from_raw(key: str, raw: Any) -> Optional[DayRecord]:
    try:
        return DayRecord.from_dict(key, raw)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Ignoring malformed day record %s: %s", key, exc)
        return None


class MemoryActualsStore:
    """In-memory store holding the serialized form, like the JSON file."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def get(self, key: str) -> Optional[DayRecord]:
        if key not in self._data:
            return None
        return _record_from_raw(key, self._data[key])

    def put(self, key: str, record: DayRecord) -> None:
        self._data[key] = record.to_dict()

    def put_many(self, records: Iterable[DayRecord]) -> None:
        for record in records:
            self._data[record.date] = record.to_dict()

    def remove_all(self) -> None:
        self._data.clear()

    def keys(self) -> List[str]:
        return sorted(self._data)

    def raw(self) -> Dict[str, Any]:
        return dict(self._data)


class JsonActualsStore:
    """Day records persisted to one JSON file.

    The file is re-read whenever its modification time changes so that a
    second browser tab sees the latest write (last write wins).
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or DAILY_DATA_PATH)
        self._cache: Dict[str, Any] = {}
        self._mtime: Optional[float] = None

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            self._cache, self._mtime = {}, None
            return self._cache
        mtime = self.path.stat().st_mtime
        if self._mtime == mtime:
            return self._cache
        try:
            with self.path.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Could not read %s, treating as empty: %s", self.path, exc)
            data = {}
        if not isinstance(data, dict):
            logger.warning("Unexpected content in %s, treating as empty", self.path)
            data = {}
        self._cache, self._mtime = data, mtime
        return self._cache

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open('w', encoding='utf-8') as handle:
            json.dump(data, handle, indent=2, sort_keys=True)
        self._cache = data
        self._mtime = self.path.stat().st_mtime

    def get(self, key: str) -> Optional[DayRecord]:
        data = self._load()
        if key not in data:
            return None
        return _record_from_raw(key, data[key])

    def put(self, key: str, record: DayRecord) -> None:
        data = dict(self._load())
        data[key] = record.to_dict()
        self._write(data)

    def put_many(self, records: Iterable[DayRecord]) -> None:
        data = dict(self._load())
        for record in records:
            data[record.date] = record.to_dict()
        self._write(data)

    def remove_all(self) -> None:
        if self.path.exists():
            self.path.unlink()
        self._cache, self._mtime = {}, None

    def keys(self) -> List[str]:
        return sorted(self._load())


class BudgetStore:
    """Load, save and clear the persisted budget definition."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or BUDGET_PATH)

    def load(self) -> Optional[BudgetDefinition]:
        if not self.path.exists():
            return None
        try:
            with self.path.open('r', encoding='utf-8') as handle:
                data = json.load(handle)
            return BudgetDefinition.from_dict(data)
        except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Could not load budget from %s: %s", self.path, exc)
            return None

    def save(self, budget: BudgetDefinition) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with self.path.open('w', encoding='utf-8') as handle:
                json.dump(budget.to_dict(), handle, indent=2, sort_keys=True)
        except OSError as e:
            raise OSError(f"Failed to save budget to {self.path}: {e}") from e

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class MemoryBudgetStore:
    def __init__(self, budget: Optional[BudgetDefinition] = None):
        self._budget = budget

    def load(self) -> Optional[BudgetDefinition]:
        return self._budget

    def save(self, budget: BudgetDefinition) -> None:
        self._budget = budget

    def clear(self) -> None:
        self._budget = None
