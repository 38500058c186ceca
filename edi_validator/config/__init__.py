"""Configuration management components."""

from .defaults import ComparisonDefaults
from .settings import ComparisonSettings, get_settings, reset_settings, parse_bool

__all__ = ['ComparisonDefaults', 'ComparisonSettings', 'get_settings', 'reset_settings', 'parse_bool']
