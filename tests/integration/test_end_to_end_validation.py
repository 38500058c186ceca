"""
End-to-end validation of the sample messages against the sample rule files.

Exercises the full path: rule loading (YAML and JSON), format detection, parsing
of all three formats, the comparison engine, the structural post-pass and the
custom validator pass.
"""

import unittest
from pathlib import Path

from edi_validator import (
    ComparisonContext,
    CustomValidatorRegistry,
    DifferenceType,
    MessageValidator,
    RuleLoader,
    parse_message_file,
)
from edi_validator.config import ComparisonSettings
from edi_validator.rules import ComparisonRule, FieldRule, RuleSet


SAMPLES = Path(__file__).resolve().parents[2] / "config" / "samples"


class TestEdifactBooking(unittest.TestCase):
    """IFTMBF booking request against booking_rules.yaml."""

    def setUp(self):
        self.rule_set = RuleLoader().load_from_file(SAMPLES / "booking_rules.yaml")
        self.message_path = SAMPLES / "sample-booking.edi"
        self.settings = ComparisonSettings()

    def _validate(self, **config):
        context = ComparisonContext(test_data={"bookingNumber": "BOOKING123"}, config=config)
        return MessageValidator(self.rule_set, context, settings=self.settings).validate_file(self.message_path)

    def test_sample_passes(self):
        result = self._validate()

        self.assertTrue(result.is_success(), result.get_detailed_report())
        self.assertEqual(result.segments_compared, 8)
        self.assertEqual(result.actual_message.message_type, "IFTMBF")
        self.assertEqual(result.actual_message.source_file_path, str(self.message_path.resolve()))

    def test_unexpected_envelope_segments(self):
        result = self._validate(detect_unexpected_segments=True)

        self.assertEqual(
            [(d.type, d.segment_tag, d.line_number) for d in result.differences],
            [
                (DifferenceType.UNEXPECTED_SEGMENT, "UNB", 1),
                (DifferenceType.UNEXPECTED_SEGMENT, "UNZ", 10),
            ],
        )

    def test_wrong_booking_number(self):
        context = ComparisonContext(test_data={"bookingNumber": "BOOKING999"})

        result = MessageValidator(self.rule_set, context, settings=self.settings).validate_file(self.message_path)

        self.assertEqual(result.difference_count, 1)
        difference = result.differences[0]
        self.assertEqual(difference.type, DifferenceType.VALUE_MISMATCH)
        self.assertEqual(difference.field_position, "BGM.0002")
        self.assertEqual(difference.actual, "BOOKING123")
        self.assertEqual(difference.line_number, 3)

    def test_missing_test_data_skips_dynamic_expectation(self):
        result = MessageValidator(self.rule_set, settings=self.settings).validate_file(self.message_path)
        self.assertTrue(result.is_success())

    def test_custom_validator_on_sample(self):
        rules = RuleSet(rules=[ComparisonRule("EQD", fields=[
            FieldRule("EQD.0002", validation="custom", custom_validator="owner_code"),
        ])])
        registry = CustomValidatorRegistry()
        registry.register("owner_code", lambda value, segment, context: value[:4] == context.get_test_data_string("owner"))

        passing = MessageValidator(rules, ComparisonContext(test_data={"owner": "ABCD"}),
                                   registry=registry, settings=self.settings)
        failing = MessageValidator(rules, ComparisonContext(test_data={"owner": "MSCU"}),
                                   registry=registry, settings=self.settings)

        self.assertTrue(passing.validate_file(self.message_path).is_success())
        result = failing.validate_file(self.message_path)
        self.assertEqual([d.type for d in result.differences], [DifferenceType.CUSTOM_VALIDATION_FAILED])


class TestXmlBooking(unittest.TestCase):
    """XML booking request against booking_rules.json."""

    def test_sample_passes_case_insensitively(self):
        rule_set = RuleLoader().load_from_file(SAMPLES / "booking_rules.json")
        context = ComparisonContext(test_data={"bookingNumber": "booking123"})

        result = MessageValidator(rule_set, context, settings=ComparisonSettings()).validate_file(
            SAMPLES / "sample-booking.xml")

        self.assertTrue(result.is_success(), result.get_detailed_report())
        self.assertEqual(result.actual_message.message_type, "Booking")
        self.assertEqual(result.segments_compared, 4)

    def test_case_sensitive_override_reports_attribute(self):
        rule_set = RuleLoader().load_from_file(SAMPLES / "booking_rules.json")
        context = ComparisonContext(test_data={"bookingNumber": "BOOKING123"}, config={"case_sensitive": True})

        result = MessageValidator(rule_set, context, settings=ComparisonSettings()).validate_file(
            SAMPLES / "sample-booking.xml")

        self.assertEqual([d.field_position for d in result.differences], ["Header[@type]"])


class TestX12ShipmentStatus(unittest.TestCase):
    """X12 214 shipment status against shipment_status_rules.yaml."""

    def setUp(self):
        self.rule_set = RuleLoader().load_from_file(SAMPLES / "shipment_status_rules.yaml")
        self.settings = ComparisonSettings()

    def test_sample_passes_without_inbound(self):
        context = ComparisonContext(test_data={"shipmentId": "SHIPMENT123"})

        result = MessageValidator(self.rule_set, context, settings=self.settings).validate_file(
            SAMPLES / "sample-214.x12")

        self.assertTrue(result.is_success(), result.get_detailed_report())
        self.assertEqual(result.actual_message.message_type, "214")

    def test_reference_resolved_from_inbound_message(self):
        inbound = parse_message_file(SAMPLES / "sample-850-inbound.x12")
        context = ComparisonContext(test_data={"shipmentId": "SHIPMENT123"}, inbound_message=inbound)

        result = MessageValidator(self.rule_set, context, settings=self.settings).validate_file(
            SAMPLES / "sample-214.x12")

        self.assertTrue(result.is_success(), result.get_detailed_report())

    def test_inbound_mismatch_is_reported(self):
        inbound = parse_message_file(SAMPLES / "sample-850-inbound.x12")
        content = (SAMPLES / "sample-214.x12").read_text(encoding="utf-8").replace("L11*PO98765", "L11*PO11111")
        context = ComparisonContext(test_data={"shipmentId": "SHIPMENT123"}, inbound_message=inbound)

        result = MessageValidator(self.rule_set, context, settings=self.settings).validate_content(content)

        self.assertEqual(result.difference_count, 1)
        self.assertEqual(result.differences[0].expected, "PO98765")
        self.assertEqual(result.differences[0].actual, "PO11111")


if __name__ == "__main__":
    unittest.main()
