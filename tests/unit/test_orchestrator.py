"""
Tests for MessageValidator: pass ordering, configuration layering and fail-fast.
"""

import unittest

from edi_validator.comparison import (
    ComparisonContext,
    CustomValidatorRegistry,
    DifferenceType,
    MessageValidator,
)
from edi_validator.config import ComparisonSettings
from edi_validator.exceptions import ParseError
from edi_validator.models import FileFormat
from edi_validator.rules import ComparisonRule, FieldRule, RuleSet


BOOKING = "UNB+UNOC:3+SENDER'UNH+1+IFTMBF:D:99B:UN'BGM+340+booking123+9'NAD+CZ+S1'NAD+CN+C1'UNZ+1'"


def _rule_set(config=None):
    return RuleSet(
        rules=[
            ComparisonRule("UNH", fields=[FieldRule("UNH.0001", validation="exists")]),
            ComparisonRule("BGM", fields=[
                FieldRule("BGM.0002", expected_value="BOOKING123"),
                FieldRule("BGM.0003", validation="custom", custom_validator="is_original"),
            ]),
            ComparisonRule("NAD", fields=[FieldRule("NAD.0001", validation="exists")]),
        ],
        message_type="IFTMBF",
        config=config or {},
    )


def _registry(passes=True):
    registry = CustomValidatorRegistry()
    registry.register("is_original", lambda value, segment, context: passes and value == "9")
    return registry


class TestMessageValidator(unittest.TestCase):
    """Test the validation orchestrator."""

    def setUp(self):
        self.settings = ComparisonSettings()

    def test_passes_run_in_order(self):
        validator = MessageValidator(
            _rule_set(),
            ComparisonContext(config={"detect_unexpected_segments": True}),
            registry=_registry(passes=False),
            settings=self.settings,
        )

        result = validator.validate_content(BOOKING)

        self.assertEqual(
            [d.type for d in result.differences],
            [
                DifferenceType.VALUE_MISMATCH,
                DifferenceType.SEGMENT_COUNT_MISMATCH,
                DifferenceType.UNEXPECTED_SEGMENT,
                DifferenceType.UNEXPECTED_SEGMENT,
                DifferenceType.CUSTOM_VALIDATION_FAILED,
            ],
        )
        self.assertEqual(result.segments_compared, 4)

    def test_rule_set_config_overrides_settings(self):
        validator = MessageValidator(
            _rule_set(config={"case_sensitive": False}),
            registry=_registry(),
            settings=self.settings,
        )

        result = validator.validate_content(BOOKING)

        self.assertEqual([d.type for d in result.differences], [DifferenceType.SEGMENT_COUNT_MISMATCH])

    def test_context_config_overrides_rule_set_config(self):
        validator = MessageValidator(
            _rule_set(config={"case_sensitive": False}),
            ComparisonContext(config={"case_sensitive": True}),
            registry=_registry(),
            settings=self.settings,
        )

        result = validator.validate_content(BOOKING)

        self.assertEqual(len(result.get_differences_of_type(DifferenceType.VALUE_MISMATCH)), 1)

    def test_settings_supply_defaults(self):
        validator = MessageValidator(
            _rule_set(),
            registry=_registry(),
            settings=ComparisonSettings(case_sensitive=False),
        )
        self.assertFalse(validator.context.get_config_bool("case_sensitive", True))

    def test_fail_on_first_error_truncates(self):
        validator = MessageValidator(
            _rule_set(),
            ComparisonContext(config={"fail_on_first_error": True}),
            registry=_registry(passes=False),
            settings=self.settings,
        )

        result = validator.validate_content(BOOKING)

        self.assertEqual(result.difference_count, 1)
        self.assertEqual(result.differences[0].type, DifferenceType.VALUE_MISMATCH)
        self.assertEqual(result.segments_compared, 4)

    def test_validate_content_with_explicit_format(self):
        validator = MessageValidator(_rule_set(), registry=_registry(), settings=self.settings)

        result = validator.validate_content(BOOKING, FileFormat.EDIFACT)

        self.assertEqual(result.actual_message.message_type, "IFTMBF")

    def test_parse_errors_propagate(self):
        validator = MessageValidator(_rule_set(), settings=self.settings)
        with self.assertRaises(ParseError):
            validator.validate_content("   ", FileFormat.EDIFACT)

    def test_message_type_mismatch_is_logged(self):
        validator = MessageValidator(_rule_set(), registry=_registry(), settings=self.settings)
        content = BOOKING.replace("IFTMBF", "IFTSTA")

        with self.assertLogs("edi_validator.comparison.orchestrator", level="WARNING"):
            validator.validate_content(content)

    def test_rule_set_required(self):
        with self.assertRaises(ValueError):
            MessageValidator(None)
