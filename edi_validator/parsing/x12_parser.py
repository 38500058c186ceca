"""
ANSI X12 parser.

Separators default to ~ (segment), * (element) and : or > (component, whichever
is found first in a given element). A fixed-width ISA interchange header
supplies the element separator (character 3) and segment terminator (character 105).

Field positions:
    B10*SHIPMENT123*1234567~  ->  B10.0001, B10.0002
    SV1*HC:99213*40~          ->  SV1.C01.01, SV1.C01.02, SV1.0002
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..config.defaults import ComparisonDefaults
from ..models import FileFormat
from .base_parser import DelimitedMessageParser, Delimiters


class AnsiX12Parser(DelimitedMessageParser):
    """Tokenizes ANSI X12 interchanges into the uniform Message model."""

    file_format = FileFormat.ANSI_X12
    default_delimiters = Delimiters(
        segment=ComparisonDefaults.X12_SEGMENT_DELIMITER,
        element=ComparisonDefaults.X12_ELEMENT_DELIMITER,
        components=ComparisonDefaults.X12_COMPONENT_DELIMITERS,
    )

    ISA_ELEMENT_COUNT = 16

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def can_parse(self, content: str) -> bool:
        if content is None or not content.strip():
            return False
        return content.strip().startswith('ISA') or '~' in content

    def _resolve_delimiters(self, content: str) -> Tuple[str, Delimiters, Dict[str, Any]]:
        stripped = content.lstrip()
        header_length = ComparisonDefaults.X12_ISA_LENGTH
        if not stripped.startswith('ISA') or len(stripped) < header_length:
            return content, self.default_delimiters, {}

        element = stripped[3]
        terminator = stripped[header_length - 1]
        header = stripped[:header_length - 1]
        if (element.isalnum() or terminator.isalnum() or terminator == element
                or header.count(element) != self.ISA_ELEMENT_COUNT):
            # Not a fixed-width header; keep the defaults
            return content, self.default_delimiters, {}

        self.logger.debug(f"ISA header separators: element={element!r}, segment={terminator!r}")
        delimiters = Delimiters(
            segment=terminator,
            element=element,
            components=self.default_delimiters.components,
        )
        return stripped, delimiters, {'interchange_header': header}

    @staticmethod
    def _component_position(tag: str, element_index: int, composite_index: int, component_index: int) -> str:
        return f"{tag}.C{element_index:02d}.{component_index:02d}"

    def _extract_message_type(self, tag: str, elements: List[str], delimiters: Delimiters) -> Optional[str]:
        # ST*<transaction set identifier>*<control number>~
        if tag != 'ST' or len(elements) < 2:
            return None
        return elements[1].strip() or None
