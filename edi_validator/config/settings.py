"""
Environment-driven comparison settings.

ComparisonSettings is the single place where EDI_VALIDATOR_* environment variables
are read. Its flag map seeds the ComparisonContext config, below any per-rule-set
or per-context overrides.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError
from .defaults import ComparisonDefaults


ENV_PREFIX = "EDI_VALIDATOR_"
VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def parse_bool(value: Any, name: str = "value") -> bool:
    """
    Parse a boolean flag given as bool or as "true"/"false" text.

    Raises:
        ConfigurationError: If the value is neither
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text == 'true':
        return True
    if text == 'false':
        return False
    raise ConfigurationError(f"{name} must be 'true' or 'false', got '{value}'")


@dataclass
class ComparisonSettings:
    """Comparison flags with environment variable support."""
    case_sensitive: bool = ComparisonDefaults.CASE_SENSITIVE
    ignore_trailing_whitespace: bool = ComparisonDefaults.IGNORE_TRAILING_WHITESPACE
    detect_unexpected_segments: bool = ComparisonDefaults.DETECT_UNEXPECTED_SEGMENTS
    validate_segment_order: bool = ComparisonDefaults.VALIDATE_SEGMENT_ORDER
    fail_on_first_error: bool = ComparisonDefaults.FAIL_ON_FIRST_ERROR
    log_level: str = ComparisonDefaults.LOG_LEVEL

    def __post_init__(self):
        """Validate settings."""
        self.log_level = str(self.log_level).upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got '{self.log_level}'")

    @classmethod
    def from_environment(cls) -> 'ComparisonSettings':
        """Create settings from EDI_VALIDATOR_* environment variables."""
        def flag(name: str, default: bool) -> bool:
            raw = os.environ.get(f"{ENV_PREFIX}{name}")
            return default if raw is None else parse_bool(raw, f"{ENV_PREFIX}{name}")

        return cls(
            case_sensitive=flag('CASE_SENSITIVE', cls.case_sensitive),
            ignore_trailing_whitespace=flag('IGNORE_TRAILING_WHITESPACE', cls.ignore_trailing_whitespace),
            detect_unexpected_segments=flag('DETECT_UNEXPECTED_SEGMENTS', cls.detect_unexpected_segments),
            validate_segment_order=flag('VALIDATE_SEGMENT_ORDER', cls.validate_segment_order),
            fail_on_first_error=flag('FAIL_ON_FIRST_ERROR', cls.fail_on_first_error),
            log_level=os.environ.get(f"{ENV_PREFIX}LOG_LEVEL", cls.log_level),
        )

    def to_context_config(self) -> Dict[str, bool]:
        """Return the flag map understood by ComparisonContext."""
        return {
            'case_sensitive': self.case_sensitive,
            'ignore_trailing_whitespace': self.ignore_trailing_whitespace,
            'detect_unexpected_segments': self.detect_unexpected_segments,
            'validate_segment_order': self.validate_segment_order,
            'fail_on_first_error': self.fail_on_first_error,
        }


# Global settings instance
_global_settings: Optional[ComparisonSettings] = None


def get_settings() -> ComparisonSettings:
    """
    Get the global settings instance, reading the environment on first call.

    Returns:
        Global ComparisonSettings instance
    """
    global _global_settings

    if _global_settings is None:
        _global_settings = ComparisonSettings.from_environment()
        logging.getLogger(__name__).debug(f"Loaded comparison settings: {_global_settings}")

    return _global_settings


def reset_settings() -> None:
    """Reset the global settings instance."""
    global _global_settings
    _global_settings = None
