"""Configuration management for MoneyMap.

This module centralizes all configuration values including paths,
defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

# Base project root - assumes this file is in moneymap/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("MONEYMAP_DATA_DIR", _PROJECT_ROOT / "data"))
EXPORTS_DIR = DATA_DIR / "exports"

# Persisted blobs: per-day ledger mapping and the budget definition
DAILY_DATA_PATH = Path(
    os.getenv("MONEYMAP_DAILY_DATA_PATH", DATA_DIR / "daily_data.json")
).resolve()
BUDGET_PATH = Path(
    os.getenv("MONEYMAP_BUDGET_PATH", DATA_DIR / "budget.json")
).resolve()

# Exchange rates
BASE_CURRENCY = os.getenv("MONEYMAP_BASE_CURRENCY", "USD")
EXCHANGE_RATE_URL = os.getenv(
    "MONEYMAP_EXCHANGE_RATE_URL",
    f"https://api.exchangerate-api.com/v4/latest/{BASE_CURRENCY}",
)
EXCHANGE_RATE_TIMEOUT = float(os.getenv("MONEYMAP_EXCHANGE_RATE_TIMEOUT", "5"))

LOG_LEVEL = os.getenv("MONEYMAP_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, EXPORTS_DIR, DAILY_DATA_PATH.parent, BUDGET_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)


def configure_logging(level: str | None = None) -> None:
    """Install a root handler once; later calls only adjust the level."""
    resolved = (level or LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=resolved, format=LOG_FORMAT)
    else:
        root.setLevel(resolved)
