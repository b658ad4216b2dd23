"""Currency table, formatting and the exchange-rate collaborator.

Budgets are stored in a single base currency.  Display currency is a
multiplier applied on the way out (and divided out of user input on the
way in); rates are fetched once from a public endpoint and default to
1.0 until that fetch succeeds.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import requests

from .config import BASE_CURRENCY, EXCHANGE_RATE_TIMEOUT, EXCHANGE_RATE_URL
from .presets import get_currency_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Currency:
    code: str
    symbol: str
    name: str
    flag: str = ''

    @property
    def display_name(self) -> str:
        return f"{self.flag} {self.name} ({self.symbol})".strip()


def available_currencies() -> List[Currency]:
    return [Currency(**entry) for entry in get_currency_config()['currencies']]


def currency_symbols() -> Dict[str, str]:
    return {c.code: c.symbol for c in available_currencies()}


def currency_symbol(code: str) -> str:
    """Symbol for ``code``; unknown codes are shown as the code itself."""
    return currency_symbols().get(code, f"{code} ")


def round_money(amount: Union[float, int]) -> float:
    """Round to cents.  Only used at formatting and export boundaries."""
    return round(float(amount), 2) + 0.0


def format_currency(amount: Union[float, int], code: str = BASE_CURRENCY, include_sign: bool = True) -> str:
    """Format a currency amount with proper formatting.

    Args:
        amount: The amount to format
        code: ISO currency code used to pick the symbol
        include_sign: Whether to include the currency symbol

    Returns:
        Formatted currency string (e.g., "$1,234.56" or "-€12.00")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-12, 'EUR')
        '-€12.00'
    """
    formatted = f"{abs(amount):,.2f}"
    sign = '-' if amount < 0 and round(abs(amount), 2) != 0 else ''
    if not include_sign:
        return f"{sign}{formatted}"
    return f"{sign}{currency_symbol(code)}{formatted}"


class ExchangeRateService:
    """Holds rates relative to the base currency.

    ``refresh`` performs a single GET with a timeout and no retry.  Until
    it succeeds every rate is 1.0 and :attr:`is_provisional` stays True,
    so anything computed in the meantime must not be cached as final.
    """

    def __init__(
        self,
        url: str = EXCHANGE_RATE_URL,
        timeout: float = EXCHANGE_RATE_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.rates: Dict[str, float] = {}

    @property
    def is_provisional(self) -> bool:
        return not self.rates

    def refresh(self) -> bool:
        """Fetch the latest rates; returns False (and keeps 1.0) on failure."""
        try:
            response = self.session.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Error fetching exchange rates from %s: %s", self.url, exc)
            return False
        rates = payload.get('rates') if isinstance(payload, dict) else None
        if not isinstance(rates, dict):
            logger.error("Exchange rate response from %s has no 'rates' mapping", self.url)
            return False
        cleaned: Dict[str, float] = {}
        for code, value in rates.items():
            try:
                rate = float(value)
            except (TypeError, ValueError):
                continue
            if math.isfinite(rate) and rate > 0:
                cleaned[str(code)] = rate
        self.rates = cleaned
        logger.info("Loaded %d exchange rates", len(cleaned))
        return bool(cleaned)

    def rate_for(self, code: str) -> float:
        if code == BASE_CURRENCY:
            return 1.0
        rate = self.rates.get(code)
        if rate is None:
            if self.rates:
                logger.warning("No exchange rate for %s, using 1.0", code)
            return 1.0
        return rate
