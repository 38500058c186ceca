"""
Shared parser plumbing: file and stream entry points, and the delimited tokenizer
used by both EDIFACT and ANSI X12.
"""

from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Tuple, Union

from ..exceptions import ParseError
from ..interfaces import MessageParserInterface
from ..models import Field, FileFormat, Message, Segment
from ..utils import StringUtils


class BaseMessageParser(MessageParserInterface):
    """
    File and stream entry points shared by every parser.

    Subclasses implement parse() and can_parse(), and set self.logger.
    """

    file_format: FileFormat

    def parse_file(self, file_path: Union[str, Path]) -> Message:
        path = Path(file_path)
        if not path.is_file():
            raise ParseError(f"File does not exist: {path}", source_file=str(path))

        try:
            data = path.read_bytes()
        except OSError as e:
            raise ParseError(f"Failed to read file {path}: {e}", source_file=str(path)) from e

        try:
            message = self._parse_bytes(data)
        except ParseError as e:
            e.source_file = str(path)
            raise

        source = str(path.resolve())
        self.logger.debug(f"Parsed {path.name}: {message}")
        return message.evolve(
            source_file_path=source,
            metadata={**message.metadata, 'source_file': source},
        )

    def parse_stream(self, stream: IO) -> Message:
        if stream is None:
            raise ParseError("Stream is None")
        data = stream.read()
        if isinstance(data, bytes):
            return self._parse_bytes(data)
        return self.parse(data)

    def _parse_bytes(self, data: bytes) -> Message:
        """Decode UTF-8 (dropping a BOM) and parse."""
        try:
            text = data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ParseError(f"Content is not valid UTF-8: {e}") from e
        return self.parse(text)


@dataclass(frozen=True)
class Delimiters:
    """Service characters in effect for one delimited message."""
    segment: str
    element: str
    components: Tuple[str, ...]
    release: Optional[str] = None


class DelimitedMessageParser(BaseMessageParser):
    """
    Tokenizer for segment/element/component delimited formats.

    Element 0 of every segment is its tag. A simple element becomes one field at
    TAG.nnnn; an element holding a component delimiter becomes one field per
    component, positioned by _component_position().
    """

    default_delimiters: Delimiters

    def parse(self, content: str) -> Message:
        if content is None or not content.strip():
            raise ParseError("Content is empty")

        body, delimiters, metadata = self._resolve_delimiters(content)
        release = delimiters.release

        segments: List[Segment] = []
        message_type: Optional[str] = None
        line_number = 1

        for token in StringUtils.split_escaped(body, delimiters.segment, release):
            trimmed = token.strip()
            if not trimmed:
                continue

            elements = StringUtils.split_escaped(trimmed, delimiters.element, release)
            try:
                segment = self._build_segment(elements, trimmed, delimiters, line_number, len(segments))
            except ValueError as e:
                self.logger.error(f"Failed to parse {self.file_format} segment at line {line_number}: {e}")
                raise ParseError(f"Failed to parse segment: {e}", line_number, trimmed) from e

            if message_type is None:
                message_type = self._extract_message_type(segment.tag, elements, delimiters)

            segments.append(segment)
            line_number += 1

        if not segments:
            raise ParseError("No valid segments found in content", content=content.strip())

        metadata.update({
            'segment_delimiter': delimiters.segment,
            'element_delimiter': delimiters.element,
            'component_delimiters': delimiters.components,
            'release_character': release,
        })

        self.logger.info(f"Parsed {self.file_format} message: {len(segments)} segments, type={message_type}")
        return Message(
            file_format=self.file_format,
            segments=tuple(segments),
            message_type=message_type,
            metadata=metadata,
        )

    def _resolve_delimiters(self, content: str) -> Tuple[str, Delimiters, Dict[str, Any]]:
        """
        Determine the delimiters in effect.

        Returns:
            (content left to tokenize, delimiters, initial metadata)
        """
        return content, self.default_delimiters, {}

    def _build_segment(self, elements: List[str], raw: str, delimiters: Delimiters,
                       line_number: int, sequence_number: int) -> Segment:
        release = delimiters.release
        tag = StringUtils.unescape(elements[0].strip(), release)

        fields = []
        composite_index = 0
        for element_index, element in enumerate(elements[1:], start=1):
            component_delimiter = self._component_delimiter_for(element, delimiters)
            if component_delimiter is None:
                fields.append(Field(
                    position=self._element_position(tag, element_index),
                    value=StringUtils.unescape(element.strip(), release),
                    line_number=line_number,
                ))
                continue

            composite_index += 1
            components = StringUtils.split_escaped(element, component_delimiter, release)
            for component_index, component in enumerate(components, start=1):
                fields.append(Field(
                    position=self._component_position(tag, element_index, composite_index, component_index),
                    value=StringUtils.unescape(component.strip(), release),
                    line_number=line_number,
                ))

        return Segment(
            tag=tag,
            fields=tuple(fields),
            sequence_number=sequence_number,
            line_number=line_number,
            raw_content=raw,
        )

    def _component_delimiter_for(self, element: str, delimiters: Delimiters) -> Optional[str]:
        """Return the first configured component delimiter present in the element."""
        for candidate in delimiters.components:
            if StringUtils.contains_unescaped(element, candidate, delimiters.release):
                return candidate
        return None

    @staticmethod
    def _element_position(tag: str, element_index: int) -> str:
        return f"{tag}.{element_index:04d}"

    @staticmethod
    @abstractmethod
    def _component_position(tag: str, element_index: int, composite_index: int, component_index: int) -> str:
        """Position of one component of a composite element (format specific)."""

    def _extract_message_type(self, tag: str, elements: List[str], delimiters: Delimiters) -> Optional[str]:
        return None
