"""
Unit tests for environment-driven settings and centralized defaults.
"""

import logging
import os
import unittest
from unittest.mock import patch

from edi_validator.config import (
    ComparisonDefaults,
    ComparisonSettings,
    get_settings,
    parse_bool,
    reset_settings,
)
from edi_validator.config.settings import ENV_PREFIX
from edi_validator.exceptions import ConfigurationError


def _clean_environment():
    return {key: value for key, value in os.environ.items() if not key.startswith(ENV_PREFIX)}


class TestComparisonSettings(unittest.TestCase):
    """Test ComparisonSettings construction and environment loading."""

    def setUp(self):
        reset_settings()

    def tearDown(self):
        reset_settings()

    def test_defaults(self):
        settings = ComparisonSettings()

        self.assertTrue(settings.case_sensitive)
        self.assertFalse(settings.ignore_trailing_whitespace)
        self.assertFalse(settings.detect_unexpected_segments)
        self.assertFalse(settings.validate_segment_order)
        self.assertFalse(settings.fail_on_first_error)
        self.assertEqual(settings.log_level, "WARNING")

    @patch.dict(os.environ, _clean_environment(), clear=True)
    def test_environment_overrides(self):
        os.environ[f"{ENV_PREFIX}CASE_SENSITIVE"] = "false"
        os.environ[f"{ENV_PREFIX}FAIL_ON_FIRST_ERROR"] = "TRUE"
        os.environ[f"{ENV_PREFIX}LOG_LEVEL"] = "debug"

        settings = ComparisonSettings.from_environment()

        self.assertFalse(settings.case_sensitive)
        self.assertTrue(settings.fail_on_first_error)
        self.assertFalse(settings.detect_unexpected_segments)
        self.assertEqual(settings.log_level, "DEBUG")

    @patch.dict(os.environ, _clean_environment(), clear=True)
    def test_invalid_environment_flag(self):
        os.environ[f"{ENV_PREFIX}VALIDATE_SEGMENT_ORDER"] = "yes"

        with self.assertRaises(ConfigurationError) as ctx:
            ComparisonSettings.from_environment()
        self.assertIn("VALIDATE_SEGMENT_ORDER", str(ctx.exception))

    def test_invalid_log_level(self):
        with self.assertRaises(ConfigurationError):
            ComparisonSettings(log_level="VERBOSE")

    def test_to_context_config(self):
        config = ComparisonSettings(detect_unexpected_segments=True).to_context_config()

        self.assertEqual(set(config), {
            'case_sensitive', 'ignore_trailing_whitespace', 'detect_unexpected_segments',
            'validate_segment_order', 'fail_on_first_error',
        })
        self.assertTrue(config['detect_unexpected_segments'])

    @patch.dict(os.environ, _clean_environment(), clear=True)
    def test_global_settings_are_cached_until_reset(self):
        first = get_settings()
        self.assertIs(get_settings(), first)

        os.environ[f"{ENV_PREFIX}CASE_SENSITIVE"] = "false"
        self.assertTrue(get_settings().case_sensitive)

        reset_settings()
        self.assertFalse(get_settings().case_sensitive)


class TestParseBool(unittest.TestCase):
    """Test boolean flag parsing."""

    def test_accepts_bools_and_text(self):
        self.assertTrue(parse_bool(True))
        self.assertFalse(parse_bool(False))
        self.assertTrue(parse_bool(" True "))
        self.assertFalse(parse_bool("false"))

    def test_rejects_other_values(self):
        for value in ("1", "yes", "", None):
            with self.subTest(value=value):
                with self.assertRaises(ConfigurationError):
                    parse_bool(value, "flag")


class TestComparisonDefaults(unittest.TestCase):
    """Test the centralized defaults."""

    def test_to_dict_exports_upper_case_attributes(self):
        defaults = ComparisonDefaults.to_dict()

        self.assertEqual(defaults['EDIFACT_SEGMENT_DELIMITER'], "'")
        self.assertEqual(defaults['X12_ISA_LENGTH'], 106)
        self.assertNotIn('to_dict', defaults)

    def test_log_summary_uses_logger(self):
        logger = logging.getLogger("edi_validator.tests.defaults")
        with self.assertLogs(logger, level="INFO") as captured:
            ComparisonDefaults.log_summary(logger)
        self.assertIn("CASE_SENSITIVE: True", captured.output[0])
