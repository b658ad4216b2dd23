import pytest

from moneymap.presets import get_config_value, get_setup_config, load_config


def test_setup_presets():
    config = get_setup_config()
    assert config['time_periods'] == {'weekly': 7, 'bi-weekly': 14, 'monthly': 30}
    assert config['income_intervals']['annually'] == 365


def test_nested_lookup_with_default():
    assert get_config_value('setup', 'time_periods', 'weekly') == 7
    assert get_config_value('setup', 'time_periods', 'hourly', default=0) == 0
    assert get_config_value('currencies', 'base') == 'USD'


def test_missing_preset():
    with pytest.raises(FileNotFoundError):
        load_config('does-not-exist')
