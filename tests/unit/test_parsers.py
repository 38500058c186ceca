"""
Tests for the EDIFACT, ANSI X12 and XML parsers and format auto-detection.

Covers tokenizing, composite field positions, message type extraction,
delimiter overrides (UNA, ISA), XML flattening and parse error reporting.
"""

import io
import unittest
from pathlib import Path

import pytest

from edi_validator.exceptions import FormatDetectionError, ParseError
from edi_validator.models import FileFormat
from edi_validator.parsing import (
    AnsiX12Parser,
    DelimitedMessageParser,
    EdifactParser,
    XmlMessageParser,
    detect_format,
    get_parser,
    parse_message,
    parse_message_file,
)


SAMPLES_DIR = Path(__file__).resolve().parents[2] / "config" / "samples"


def _positions(segment):
    return [f.position for f in segment.fields]


class TestEdifactParser(unittest.TestCase):
    """Test EDIFACT tokenizing."""

    def setUp(self):
        self.parser = EdifactParser()

    def test_simple_segment_fields(self):
        """BGM+340+BOOKING123+9' yields three positional fields."""
        message = self.parser.parse("BGM+340+BOOKING123+9'")

        self.assertEqual(message.segment_count, 1)
        segment = message.segments[0]
        self.assertEqual(segment.tag, "BGM")
        self.assertEqual(_positions(segment), ["BGM.0001", "BGM.0002", "BGM.0003"])
        self.assertEqual(segment.get_field_value("BGM.0001"), "340")
        self.assertEqual(segment.get_field_value("BGM.0002"), "BOOKING123")
        self.assertEqual(segment.get_field_value("BGM.0003"), "9")
        self.assertEqual(segment.sequence_number, 0)
        self.assertEqual(segment.line_number, 1)
        self.assertEqual(message.file_format, FileFormat.EDIFACT)

    def test_composite_element_components(self):
        """Empty components are kept and numbered."""
        segment = self.parser.parse("NAD+CZ+SHIPPER001::92'").segments[0]

        self.assertEqual(_positions(segment), ["NAD.0001", "NAD.C001.0001", "NAD.C001.0002", "NAD.C001.0003"])
        self.assertEqual([f.value for f in segment.fields], ["CZ", "SHIPPER001", "", "92"])

    def test_second_composite_is_numbered_by_ordinal(self):
        segment = self.parser.parse("DTM+137:20240207:102+X+A:B'").segments[0]

        self.assertEqual(segment.get_field_value("DTM.C001.0002"), "20240207")
        self.assertEqual(segment.get_field_value("DTM.0002"), "X")
        self.assertEqual(segment.get_field_value("DTM.C002.0001"), "A")
        self.assertEqual(segment.get_field_value("DTM.C002.0002"), "B")

    def test_message_type_from_unh(self):
        message = self.parser.parse("UNH+1+IFTMBF:D:99B:UN'BGM+340'")
        self.assertEqual(message.message_type, "IFTMBF")

    def test_message_type_absent_without_unh(self):
        self.assertIsNone(self.parser.parse("BGM+340'").message_type)

    def test_blank_tokens_are_skipped_and_values_trimmed(self):
        message = self.parser.parse("BGM+340 '\n\n''\nDTM+137'\n")

        self.assertEqual(message.segment_tags, ("BGM", "DTM"))
        self.assertEqual(message.segments[0].get_field_value("BGM.0001"), "340")
        self.assertEqual([s.line_number for s in message.segments], [1, 2])
        self.assertEqual([s.sequence_number for s in message.segments], [0, 1])

    def test_una_service_string_advice(self):
        """UNA is consumed and the release character escapes delimiters."""
        message = self.parser.parse("UNA:+.? 'UNH+1+IFTMBF:D:99B:UN'FTX+AAI+++FRAGILE?: HANDLE?'S'")

        self.assertEqual(message.segment_tags, ("UNH", "FTX"))
        self.assertEqual(message.get_first_segment_by_tag("FTX").get_field_value("FTX.0004"), "FRAGILE: HANDLE'S")
        self.assertEqual(message.get_metadata_value("service_string_advice"), "UNA:+.? '")
        self.assertEqual(message.get_metadata_value("release_character"), "?")

    def test_una_overrides_delimiters(self):
        message = self.parser.parse("UNA|*.? ~UNH*1*ORDERS|D~BGM*220~")

        self.assertEqual(message.message_type, "ORDERS")
        self.assertEqual(message.get_first_segment_by_tag("BGM").get_field_value("BGM.0001"), "220")
        self.assertEqual(message.get_metadata_value("element_delimiter"), "*")
        self.assertEqual(message.get_metadata_value("segment_delimiter"), "~")

    def test_raw_content_is_kept(self):
        segment = self.parser.parse("BGM+340+BOOKING123'").segments[0]
        self.assertEqual(segment.raw_content, "BGM+340+BOOKING123")

    def test_empty_content_raises(self):
        for content in ("", "   \n", None):
            with self.assertRaises(ParseError):
                self.parser.parse(content)

    def test_only_delimiters_raises(self):
        with self.assertRaises(ParseError) as ctx:
            self.parser.parse("'''")
        self.assertIn("No valid segments", str(ctx.exception))

    def test_segment_without_tag_raises_with_line_number(self):
        with self.assertRaises(ParseError) as ctx:
            self.parser.parse("BGM+1'+340'")

        self.assertEqual(ctx.exception.line_number, 2)
        self.assertEqual(ctx.exception.content_preview, "+340")
        self.assertIn("at line 2", str(ctx.exception))

    def test_can_parse(self):
        self.assertTrue(self.parser.can_parse("UNA:+.? 'UNB+UNOC:3'"))
        self.assertTrue(self.parser.can_parse("UNB+UNOC:3+SENDER'"))
        self.assertTrue(self.parser.can_parse("BGM+340'"))
        self.assertFalse(self.parser.can_parse("<Booking/>"))
        self.assertFalse(self.parser.can_parse("ST*214*0001~"))
        self.assertFalse(self.parser.can_parse(""))

    def test_parse_is_repeatable(self):
        content = "UNH+1+IFTMBF:D:99B:UN'BGM+340+BOOKING123+9'"
        self.assertEqual(self.parser.parse(content), self.parser.parse(content))


class TestAnsiX12Parser(unittest.TestCase):
    """Test ANSI X12 tokenizing."""

    def setUp(self):
        self.parser = AnsiX12Parser()

    def _isa_header(self, element, terminator):
        header = element.join([
            "ISA", "00", " " * 10, "00", " " * 10, "ZZ", "SENDERID".ljust(15), "ZZ",
            "RECEIVERID".ljust(15), "240207", "1200", "U", "00401", "000000001", "0", "P", "^",
        ])
        self.assertEqual(len(header), 105)
        return header + terminator

    def test_simple_segments(self):
        message = self.parser.parse("ST*214*0001~B10*SHIPMENT123*1234567~")

        self.assertEqual(message.file_format, FileFormat.ANSI_X12)
        self.assertEqual(message.message_type, "214")
        b10 = message.get_first_segment_by_tag("B10")
        self.assertEqual(_positions(b10), ["B10.0001", "B10.0002"])
        self.assertEqual(b10.get_field_value("B10.0001"), "SHIPMENT123")
        self.assertEqual(b10.line_number, 2)

    def test_composite_with_colon(self):
        segment = self.parser.parse("SV1*HC:99213*40~").segments[0]

        self.assertEqual(_positions(segment), ["SV1.C01.01", "SV1.C01.02", "SV1.0002"])
        self.assertEqual(segment.get_field_value("SV1.C01.02"), "99213")
        self.assertEqual(segment.get_field_value("SV1.0002"), "40")

    def test_composite_with_greater_than(self):
        segment = self.parser.parse("SV1*40*HC>99213~").segments[0]

        self.assertEqual(segment.get_field_value("SV1.0001"), "40")
        self.assertEqual(segment.get_field_value("SV1.C02.01"), "HC")
        self.assertEqual(segment.get_field_value("SV1.C02.02"), "99213")

    def test_isa_header_supplies_separators(self):
        content = self._isa_header("|", "\n") + "ST|214|0001\nB10|SHIP1|99\n"
        message = self.parser.parse(content)

        self.assertEqual(message.segment_tags, ("ISA", "ST", "B10"))
        self.assertEqual(message.message_type, "214")
        self.assertEqual(message.get_first_segment_by_tag("B10").get_field_value("B10.0001"), "SHIP1")
        self.assertEqual(message.get_metadata_value("element_delimiter"), "|")
        self.assertEqual(message.get_metadata_value("segment_delimiter"), "\n")

    def test_short_isa_falls_back_to_defaults(self):
        message = self.parser.parse("ISA*00*short~ST*214*0001~")

        self.assertEqual(message.segment_tags, ("ISA", "ST"))
        self.assertEqual(message.message_type, "214")

    def test_can_parse(self):
        self.assertTrue(self.parser.can_parse("ISA*00*"))
        self.assertTrue(self.parser.can_parse("ST*214*0001~"))
        self.assertFalse(self.parser.can_parse("BGM+340'"))
        self.assertFalse(self.parser.can_parse("   "))

    def test_empty_content_raises(self):
        with self.assertRaises(ParseError):
            self.parser.parse("")


class TestXmlMessageParser(unittest.TestCase):
    """Test XML to segment/field mapping."""

    def setUp(self):
        self.parser = XmlMessageParser()

    def test_children_of_root_become_segments(self):
        message = self.parser.parse(
            '<Booking><Header type="original"><BookingNumber>BK1</BookingNumber></Header>'
            '<Equipment>ABCD1234567</Equipment></Booking>'
        )

        self.assertEqual(message.file_format, FileFormat.XML)
        self.assertEqual(message.message_type, "Booking")
        self.assertEqual(message.segment_tags, ("Header", "Equipment"))

        header = message.get_first_segment_by_tag("Header")
        self.assertEqual(_positions(header), ["Header[@type]", "Header.BookingNumber"])
        self.assertEqual(header.get_field_value("Header[@type]"), "original")
        self.assertEqual(header.get_field_by_name("BookingNumber").value, "BK1")

        equipment = message.get_first_segment_by_tag("Equipment")
        self.assertEqual(equipment.get_field_value("Equipment"), "ABCD1234567")

    def test_nested_leaves_are_flattened(self):
        message = self.parser.parse(
            "<Booking><Party><Id>S1</Id><Address><City>Hamburg</City><Country>DE</Country></Address></Party></Booking>"
        )
        party = message.segments[0]

        self.assertEqual(_positions(party), ["Party.Id", "Party.Address.City", "Party.Address.Country"])
        self.assertFalse(party.has_field("Party.Address"))
        self.assertEqual(party.get_field_value("Party.Address.City"), "Hamburg")

    def test_namespaces_are_stripped(self):
        message = self.parser.parse(
            '<ns:Booking xmlns:ns="urn:example"><ns:Header ns:kind="x"><ns:Id>1</ns:Id></ns:Header></ns:Booking>'
        )

        self.assertEqual(message.message_type, "Booking")
        header = message.segments[0]
        self.assertEqual(header.tag, "Header")
        self.assertEqual(header.get_field_value("Header.Id"), "1")
        self.assertEqual(header.get_field_value("Header[@kind]"), "x")

    def test_comments_and_processing_instructions_are_ignored(self):
        message = self.parser.parse("<Root><!-- note --><?pi data?><A>1</A></Root>")
        self.assertEqual(message.segment_tags, ("A",))

    def test_encoding_declaration_is_accepted(self):
        message = self.parser.parse('<?xml version="1.0" encoding="UTF-8"?>\n<Root><A>1</A></Root>')
        self.assertEqual(message.segments[0].get_field_value("A"), "1")

    def test_source_line_numbers(self):
        message = self.parser.parse("<Root>\n  <A>\n    <B>1</B>\n  </A>\n</Root>")
        segment = message.segments[0]

        self.assertEqual(segment.line_number, 2)
        self.assertEqual(segment.get_field_by_position("A.B").line_number, 3)

    def test_malformed_xml_raises_parse_error(self):
        with self.assertRaises(ParseError) as ctx:
            self.parser.parse("<Root><A>1</Root>")
        self.assertIsNotNone(ctx.exception.content_preview)

    def test_doctype_is_rejected(self):
        with self.assertRaises(ParseError):
            self.parser.parse('<!DOCTYPE Root [<!ENTITY x "y">]><Root><A>&x;</A></Root>')

    def test_root_without_children_raises(self):
        with self.assertRaises(ParseError):
            self.parser.parse("<Root>text</Root>")

    def test_can_parse(self):
        self.assertTrue(self.parser.can_parse("  <Root/>"))
        self.assertTrue(self.parser.can_parse("\ufeff<Root/>"))
        self.assertFalse(self.parser.can_parse("BGM+340'"))


class TestFormatDetection(unittest.TestCase):
    """Test format detection and parser lookup."""

    def test_detect_each_format(self):
        self.assertEqual(detect_format("<Booking><A>1</A></Booking>"), FileFormat.XML)
        self.assertEqual(detect_format("UNH+1+IFTMBF:D:99B:UN'"), FileFormat.EDIFACT)
        self.assertEqual(detect_format("ST*214*0001~"), FileFormat.ANSI_X12)

    def test_unknown_content_raises(self):
        with self.assertRaises(FormatDetectionError):
            detect_format("just some text")

    def test_get_parser(self):
        self.assertIsInstance(get_parser(FileFormat.EDIFACT), EdifactParser)
        self.assertIsInstance(get_parser(FileFormat.ANSI_X12), AnsiX12Parser)
        self.assertIsInstance(get_parser(FileFormat.XML), XmlMessageParser)

    def test_parse_message_detects_format(self):
        message = parse_message("ST*214*0001~B10*SHIPMENT123~")
        self.assertEqual(message.file_format, FileFormat.ANSI_X12)

    def test_parse_message_with_explicit_format(self):
        message = parse_message("BGM+340'", FileFormat.EDIFACT)
        self.assertEqual(message.segment_tags, ("BGM",))


class TestSampleFiles(unittest.TestCase):
    """Parse the bundled sample messages."""

    def test_edifact_sample(self):
        message = parse_message_file(SAMPLES_DIR / "sample-booking.edi")

        self.assertEqual(message.file_format, FileFormat.EDIFACT)
        self.assertEqual(message.message_type, "IFTMBF")
        self.assertEqual(message.segment_count, 10)
        self.assertFalse(message.has_segment("UNA"))
        self.assertEqual(message.get_segment_count("NAD"), 2)
        self.assertTrue(message.source_file_path.endswith("sample-booking.edi"))
        self.assertEqual(message.get_metadata_value("source_file"), message.source_file_path)

    def test_x12_sample(self):
        message = parse_message_file(SAMPLES_DIR / "sample-214.x12")

        self.assertEqual(message.message_type, "214")
        self.assertEqual(message.segment_tags[:3], ("ISA", "GS", "ST"))
        self.assertEqual(message.segment_count, 10)
        self.assertIsNotNone(message.get_metadata_value("interchange_header"))

    def test_xml_sample(self):
        message = parse_message_file(SAMPLES_DIR / "sample-booking.xml")

        self.assertEqual(message.message_type, "Booking")
        self.assertEqual(message.segment_tags, ("Header", "Party", "Equipment"))
        self.assertEqual(message.get_segment_count("Party"), 2)
        first_party = message.get_first_segment_by_tag("Party")
        self.assertEqual(first_party.get_field_value("Party.Address.City"), "Hamburg")


def test_parse_file_with_unknown_extension_sniffs_content(tmp_path):
    path = tmp_path / "booking.txt"
    path.write_text("UNH+1+IFTMBF:D:99B:UN'BGM+340'", encoding="utf-8")

    message = parse_message_file(path)

    assert message.file_format == FileFormat.EDIFACT
    assert message.source_file_path == str(path.resolve())


def test_parse_file_missing_raises(tmp_path):
    with pytest.raises(ParseError) as exc_info:
        EdifactParser().parse_file(tmp_path / "missing.edi")
    assert exc_info.value.source_file is not None


def test_parse_file_error_carries_source_file(tmp_path):
    path = tmp_path / "broken.xml"
    path.write_text("<Root><A></Root>", encoding="utf-8")

    with pytest.raises(ParseError) as exc_info:
        XmlMessageParser().parse_file(path)
    assert exc_info.value.source_file == str(path)


def test_parse_stream_accepts_text_and_bytes():
    parser = AnsiX12Parser()

    from_text = parser.parse_stream(io.StringIO("ST*214*0001~"))
    from_bytes = parser.parse_stream(io.BytesIO(b"\xef\xbb\xbfST*214*0001~"))

    assert from_text == from_bytes
    assert from_bytes.message_type == "214"


def test_delimited_parser_requires_component_positions():
    class NoComponentPositions(DelimitedMessageParser):
        def can_parse(self, content):
            return True

    with pytest.raises(TypeError):
        NoComponentPositions()
