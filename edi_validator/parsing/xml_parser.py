"""
XML message parser.

Maps an XML document onto the uniform segment/field model using lxml:

- The root element name is the message type.
- Each direct child element of the root becomes one Segment (tag = element name).
- Attributes of a segment element become fields at "tag[@attr]".
- Descendants are flattened: an element without element children becomes a field
  at the dotted path of its ancestors ("tag.child.grandchild"); an element that
  has element children contributes only its flattened leaves.

Security: entity resolution, DTD loading and network access are disabled, and any
document carrying a DOCTYPE declaration is rejected.
"""

import logging
import re
from typing import List, Optional, Union

from lxml import etree

from ..exceptions import ParseError
from ..models import Field, FileFormat, Message, Segment
from .base_parser import BaseMessageParser


class XmlMessageParser(BaseMessageParser):
    """
    Parser for XML business documents.

    A new lxml parser object is created for every call, so one XmlMessageParser
    instance can be shared across threads.
    """

    file_format = FileFormat.XML

    _ENCODING_DECLARATION = re.compile(r'^(<\?xml[^>]*?)\s+encoding\s*=\s*["\'][^"\']*["\']', re.IGNORECASE)

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def can_parse(self, content: str) -> bool:
        if content is None or not content.strip():
            return False
        return self._clean_xml_content(content).startswith('<')

    def parse(self, content: str) -> Message:
        if content is None or not content.strip():
            raise ParseError("Content is empty")

        cleaned = self._clean_xml_content(content)
        # lxml refuses str input that still declares an encoding
        cleaned = self._ENCODING_DECLARATION.sub(r'\1', cleaned, count=1)
        return self._parse_document(cleaned, cleaned)

    def _parse_bytes(self, data: bytes) -> Message:
        """Hand raw bytes to lxml so the declared encoding is honoured."""
        if not data or not data.strip():
            raise ParseError("Content is empty")
        return self._parse_document(data.strip(), data[:200].decode('utf-8', errors='replace'))

    def _parse_document(self, source: Union[str, bytes], preview: str) -> Message:
        parser = etree.XMLParser(
            resolve_entities=False,  # Security: don't resolve external entities
            no_network=True,  # Security: disable network access
            load_dtd=False,
            dtd_validation=False,
            remove_comments=True,
            remove_pis=True,
            recover=False,
        )

        try:
            root = etree.fromstring(source, parser)
        except etree.XMLSyntaxError as e:
            line = e.lineno if e.lineno else None
            self.logger.error(f"Failed to parse XML content: {e}")
            raise ParseError(f"Failed to parse XML content: {e.msg}", line, preview) from e
        except ValueError as e:
            raise ParseError(f"Failed to parse XML content: {e}", None, preview) from e

        docinfo = root.getroottree().docinfo
        if docinfo.doctype or docinfo.internalDTD is not None:
            raise ParseError("DOCTYPE declarations are not allowed", None, preview)

        message_type = self._clean_tag_name(root)
        segments = []
        for child in root:
            if not self._is_element(child):
                continue
            segments.append(self._parse_segment(child, len(segments)))

        if not segments:
            raise ParseError(f"No child elements found under root element <{message_type}>", None, preview)

        self.logger.info(f"Parsed XML message: {len(segments)} segments, type={message_type}")
        return Message(
            file_format=self.file_format,
            segments=tuple(segments),
            message_type=message_type,
            metadata={'root_element': message_type},
        )

    def _parse_segment(self, element, sequence_number: int) -> Segment:
        tag = self._clean_tag_name(element)
        line_number = element.sourceline or 0
        fields: List[Field] = []

        for attr_name, attr_value in element.attrib.items():
            clean_name = etree.QName(attr_name).localname
            fields.append(Field(
                position=f"{tag}[@{clean_name}]",
                value=attr_value,
                name=clean_name,
                line_number=line_number,
            ))

        if self._has_element_children(element):
            self._flatten(element, tag, fields)
        else:
            # Text-only segment element: its own text is its single field
            text = self._text_of(element)
            if text:
                fields.append(Field(position=tag, value=text, name=tag, line_number=line_number))

        return Segment(
            tag=tag,
            fields=tuple(fields),
            sequence_number=sequence_number,
            line_number=line_number,
        )

    def _flatten(self, element, parent_path: str, fields: List[Field]) -> None:
        for child in element:
            if not self._is_element(child):
                continue
            name = self._clean_tag_name(child)
            path = f"{parent_path}.{name}"
            if self._has_element_children(child):
                self._flatten(child, path, fields)
            else:
                fields.append(Field(
                    position=path,
                    value=self._text_of(child),
                    name=name,
                    line_number=child.sourceline or 0,
                ))

    @staticmethod
    def _is_element(node) -> bool:
        # Comments, PIs and entity nodes have a non-string tag
        return isinstance(node.tag, str)

    def _has_element_children(self, element) -> bool:
        return any(self._is_element(child) for child in element)

    @staticmethod
    def _text_of(element) -> str:
        return ''.join(element.itertext()).strip()

    @staticmethod
    def _clean_tag_name(element) -> str:
        """Strip any namespace from an element tag."""
        return etree.QName(element).localname

    @staticmethod
    def _clean_xml_content(xml_content: str) -> str:
        """Remove a BOM and surrounding whitespace."""
        if xml_content.startswith('\ufeff'):
            xml_content = xml_content[1:]
        return xml_content.strip()
