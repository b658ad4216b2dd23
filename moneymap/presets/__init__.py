"""Preset files and loaders.

Budget templates, time-period lengths, income intervals and the currency
table are stored in JSON files so they can be changed without code
changes.
"""

from .defaults import load_config, get_setup_config, get_currency_config, get_config_value

__all__ = ['load_config', 'get_setup_config', 'get_currency_config', 'get_config_value']
