"""Read-only presets shipped next to this module as JSON files.

``setup.json`` holds the setup templates, time periods and income
intervals; ``currencies.json`` the currencies offered in the sidebar.
Files are parsed once per process.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Tuple

PRESET_DIR = Path(__file__).parent

# Top-level keys each preset must provide
REQUIRED_KEYS: Dict[str, Tuple[str, ...]] = {
    'setup': ('templates', 'time_periods', 'income_intervals'),
    'currencies': ('base', 'currencies'),
}


@lru_cache(maxsize=None)
def load_config(config_name: str) -> Dict[str, Any]:
    """Parse ``<config_name>.json`` from the preset directory.

    Raises:
        FileNotFoundError: If there is no such preset.
        ValueError: If the file is not a JSON object or lacks a key
            listed in ``REQUIRED_KEYS``.
    """
    path = PRESET_DIR / f"{config_name}.json"
    if not path.exists():
        raise FileNotFoundError(f"Preset file not found: {path}")
    with path.open('r', encoding='utf-8') as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Preset {config_name} must be a JSON object")
    missing = [key for key in REQUIRED_KEYS.get(config_name, ()) if key not in data]
    if missing:
        raise ValueError(f"Preset {config_name} is missing {', '.join(missing)}")
    return data


def get_setup_config() -> Dict[str, Any]:
    return load_config('setup')


def get_currency_config() -> Dict[str, Any]:
    return load_config('currencies')


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Nested lookup, e.g. ``get_config_value('setup', 'time_periods', 'weekly')``.

    Returns ``default`` when any key along the path is absent.
    """
    value: Any = load_config(config_name)
    for key in keys:
        if not isinstance(value, dict) or key not in value:
            return default
        value = value[key]
    return value
