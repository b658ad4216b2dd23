import types

import requests

from moneymap.config import BASE_CURRENCY
from moneymap.currency import (
    ExchangeRateService,
    available_currencies,
    currency_symbol,
    format_currency,
    round_money,
)


def _session_returning(payload):
    response = types.SimpleNamespace(raise_for_status=lambda: None, json=lambda: payload)
    return types.SimpleNamespace(get=lambda url, timeout: response)


def test_format_currency():
    assert format_currency(1234.56) == '$1,234.56'
    assert format_currency(-12, 'EUR') == '-€12.00'
    assert format_currency(5, 'USD', include_sign=False) == '5.00'
    assert format_currency(-0.001) == '$0.00'


def test_unknown_currency_symbol_falls_back_to_code():
    assert currency_symbol('XYZ') == 'XYZ '
    assert currency_symbol('GBP') == '£'


def test_round_money_has_no_negative_zero():
    assert round_money(-0.001) == 0.0
    assert str(round_money(-0.001)) == '0.0'
    assert round_money(2.675) in (2.67, 2.68)


def test_currency_table_contains_base():
    codes = [c.code for c in available_currencies()]
    assert codes[0] == BASE_CURRENCY
    assert 'EUR' in codes


def test_refresh_loads_positive_rates():
    service = ExchangeRateService(
        url='http://rates.test',
        session=_session_returning({'rates': {'USD': 1, 'EUR': 0.9, 'BAD': 'x', 'ZERO': 0}}),
    )
    assert service.is_provisional
    assert service.refresh()
    assert not service.is_provisional
    assert service.rate_for('EUR') == 0.9
    assert service.rate_for('USD') == 1.0
    assert 'ZERO' not in service.rates
    assert service.rate_for('ZERO') == 1.0


def test_failed_refresh_keeps_provisional_rates(caplog):
    def fail(url, timeout):
        raise requests.ConnectionError('offline')

    service = ExchangeRateService(url='http://rates.test', session=types.SimpleNamespace(get=fail))
    assert not service.refresh()
    assert service.is_provisional
    assert service.rate_for('EUR') == 1.0
    assert 'offline' in caplog.text


def test_response_without_rates_is_ignored():
    service = ExchangeRateService(url='http://rates.test', session=_session_returning({'error': 'quota'}))
    assert not service.refresh()
    assert service.is_provisional
