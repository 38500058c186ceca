"""
UN/EDIFACT parser.

Default service characters are ' (segment), + (element), : (component) and
? (release). A leading UNA service string advice overrides them and is not
emitted as a segment.

Field positions:
    BGM+340+BOOKING123+9'  ->  BGM.0001, BGM.0002, BGM.0003
    NAD+CZ+SHIPPER001::92' ->  NAD.0001, NAD.C001.0001, NAD.C001.0002, NAD.C001.0003

Composite elements are numbered by their ordinal among the segment's composites
(C001, C002, ...) and components are 1-based.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from ..config.defaults import ComparisonDefaults
from ..models import FileFormat
from ..utils import StringUtils
from .base_parser import DelimitedMessageParser, Delimiters


class EdifactParser(DelimitedMessageParser):
    """Tokenizes EDIFACT interchanges into the uniform Message model."""

    file_format = FileFormat.EDIFACT
    default_delimiters = Delimiters(
        segment=ComparisonDefaults.EDIFACT_SEGMENT_DELIMITER,
        element=ComparisonDefaults.EDIFACT_ELEMENT_DELIMITER,
        components=(ComparisonDefaults.EDIFACT_COMPONENT_DELIMITER,),
        release=ComparisonDefaults.EDIFACT_RELEASE_CHARACTER,
    )

    SERVICE_STRING_TAG = "UNA"
    SERVICE_STRING_LENGTH = 9
    _SEGMENT_START = re.compile(r'^[A-Z][A-Z0-9]{1,2}\+')

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def can_parse(self, content: str) -> bool:
        if content is None or not content.strip():
            return False
        trimmed = content.strip()
        if trimmed.startswith(('UNA', 'UNB', 'UNH')):
            return True
        return bool(self._SEGMENT_START.match(trimmed)) and "'" in trimmed

    def _resolve_delimiters(self, content: str) -> Tuple[str, Delimiters, Dict[str, Any]]:
        stripped = content.lstrip()
        if not stripped.startswith(self.SERVICE_STRING_TAG) or len(stripped) < self.SERVICE_STRING_LENGTH:
            return content, self.default_delimiters, {}

        # UNA:+.? '  -> component, element, decimal mark, release, reserved, segment
        advice = stripped[3:self.SERVICE_STRING_LENGTH]
        release = advice[3] if advice[3] != ' ' else None
        delimiters = Delimiters(
            segment=advice[5],
            element=advice[1],
            components=(advice[0],),
            release=release,
        )
        self.logger.debug(f"UNA service string advice found: {stripped[:self.SERVICE_STRING_LENGTH]!r}")
        metadata = {
            'service_string_advice': stripped[:self.SERVICE_STRING_LENGTH],
            'decimal_mark': advice[2],
        }
        return stripped[self.SERVICE_STRING_LENGTH:], delimiters, metadata

    @staticmethod
    def _component_position(tag: str, element_index: int, composite_index: int, component_index: int) -> str:
        return f"{tag}.C{composite_index:03d}.{component_index:04d}"

    def _extract_message_type(self, tag: str, elements: List[str], delimiters: Delimiters) -> Optional[str]:
        # UNH+<reference>+<type>:<version>:<release>:<agency>'
        if tag != 'UNH' or len(elements) < 3:
            return None
        identifier = StringUtils.split_escaped(elements[2], delimiters.components[0], delimiters.release)
        message_type = StringUtils.unescape(identifier[0].strip(), delimiters.release)
        return message_type or None
