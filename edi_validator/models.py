"""
Core data models for the EDI message validation system.

This module defines the uniform tree every parser produces: a Message holding
ordered Segments, each holding ordered Fields addressed by a dotted position path.
All model types are immutable once built; use evolve() to obtain a modified copy.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class FileFormat(Enum):
    """Supported message formats with their default delimiters."""
    EDIFACT = ("EDIFACT", "edi", "'", "+", ":")
    ANSI_X12 = ("ANSI X12", "x12", "~", "*", ":")
    XML = ("XML", "xml", None, None, None)

    def __init__(self, display_name: str, file_extension: str,
                 segment_delimiter: Optional[str], element_delimiter: Optional[str],
                 component_delimiter: Optional[str]):
        self.display_name = display_name
        self.file_extension = file_extension
        self.segment_delimiter = segment_delimiter
        self.element_delimiter = element_delimiter
        self.component_delimiter = component_delimiter

    @property
    def is_edi_format(self) -> bool:
        """True for the delimited formats (EDIFACT, ANSI X12)."""
        return self in (FileFormat.EDIFACT, FileFormat.ANSI_X12)

    @classmethod
    def from_filename(cls, filename: Union[str, Path, None]) -> Optional['FileFormat']:
        """
        Guess the format from a file name extension.

        Args:
            filename: File name or path

        Returns:
            Matching FileFormat, or None when the extension is not recognized
        """
        if not filename:
            return None
        suffix = Path(filename).suffix.lower()
        if suffix in ('.edi', '.edifact'):
            return cls.EDIFACT
        if suffix in ('.x12', '.ansi'):
            return cls.ANSI_X12
        if suffix == '.xml':
            return cls.XML
        return None

    def __str__(self) -> str:
        return self.display_name


@dataclass(frozen=True)
class Field:
    """
    Smallest addressable datum of a message.

    Attributes:
        position: Dotted position path (e.g. "BGM.0001", "NAD.C001.0002", "Party[@type]")
        value: Field value as it appeared in the source
        name: Optional human readable name (XML element or attribute name)
        line_number: Source line of the owning segment (0 when unknown)
    """
    position: str
    value: Optional[str] = None
    name: Optional[str] = field(default=None, compare=False)
    line_number: int = field(default=0, compare=False)

    def __post_init__(self):
        """Validate field configuration."""
        if not self.position or not self.position.strip():
            raise ValueError("position cannot be empty")

    def has_value(self) -> bool:
        """Check whether the field carries a non-blank value."""
        return self.value is not None and self.value.strip() != ''

    def evolve(self, **changes) -> 'Field':
        """Return a copy of this field with the given attributes replaced."""
        return replace(self, **changes)

    def __str__(self) -> str:
        prefix = f"name='{self.name}', " if self.name else ""
        line = f", line={self.line_number}" if self.line_number > 0 else ""
        return f"Field{{{prefix}position='{self.position}', value='{self.value}'{line}}}"


@dataclass(frozen=True)
class Segment:
    """
    Named group of fields; the structural unit of a message.

    Equality is structural on tag and fields only, so two segments parsed from
    different lines of different files compare equal when their content matches.

    Attributes:
        tag: Segment tag (e.g. "BGM", "NAD", or an XML element name)
        fields: Ordered fields of the segment
        sequence_number: 0-based position of the segment in parse order
        line_number: Source line (1-based encounter order for delimited formats)
        raw_content: Optional raw segment text
    """
    tag: str
    fields: Tuple[Field, ...] = ()
    sequence_number: int = field(default=-1, compare=False)
    line_number: int = field(default=0, compare=False)
    raw_content: Optional[str] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        """Validate segment configuration and freeze the field list."""
        if not self.tag or not self.tag.strip():
            raise ValueError("tag cannot be empty")
        object.__setattr__(self, 'fields', tuple(self.fields))

    def get_field_by_position(self, position: str) -> Optional[Field]:
        """Return the first field whose position matches exactly, or None."""
        for candidate in self.fields:
            if candidate.position == position:
                return candidate
        return None

    def get_field_by_name(self, name: Optional[str]) -> Optional[Field]:
        """Return the first field with the given name, or None."""
        if name is None:
            return None
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None

    def get_field_value(self, position: str) -> Optional[str]:
        """Return the value at the given position, or None when absent."""
        found = self.get_field_by_position(position)
        return found.value if found is not None else None

    def has_field(self, position: str) -> bool:
        return self.get_field_by_position(position) is not None

    @property
    def field_count(self) -> int:
        return len(self.fields)

    def evolve(self, **changes) -> 'Segment':
        """Return a copy of this segment with the given attributes replaced."""
        return replace(self, **changes)

    def __str__(self) -> str:
        parts = [f"tag='{self.tag}'", f"fields={len(self.fields)}"]
        if self.line_number > 0:
            parts.append(f"line={self.line_number}")
        if self.sequence_number >= 0:
            parts.append(f"seq={self.sequence_number}")
        return "Segment{" + ", ".join(parts) + "}"

    def to_detailed_string(self) -> str:
        lines = [f"Segment{{tag='{self.tag}'" + (f", line={self.line_number}" if self.line_number > 0 else "") + ", fields=["]
        lines.extend(f"  {f}" for f in self.fields)
        lines.append("]}")
        return "\n".join(lines)


@dataclass(frozen=True)
class Message:
    """
    Whole parsed document.

    The tag index (tag -> ordered segment indices) is built once at construction
    and never mutated afterwards, so tag lookups never rescan the segment list.

    Attributes:
        file_format: Format the message was parsed from
        segments: Ordered segments
        message_type: Optional message type (UNH type, ST transaction set, XML root)
        metadata: Read-only map of parser-provided metadata
        source_file_path: Optional path of the parsed file
    """
    file_format: FileFormat
    segments: Tuple[Segment, ...] = ()
    message_type: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)
    source_file_path: Optional[str] = field(default=None, compare=False)
    _tag_index: Mapping[str, Tuple[int, ...]] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Validate message configuration, freeze collections and build the tag index."""
        if self.file_format is None:
            raise ValueError("file_format is required")
        object.__setattr__(self, 'segments', tuple(self.segments))
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata or {})))

        index: Dict[str, List[int]] = {}
        for position, segment in enumerate(self.segments):
            index.setdefault(segment.tag, []).append(position)
        object.__setattr__(self, '_tag_index',
                           MappingProxyType({tag: tuple(ids) for tag, ids in index.items()}))

    def get_segments_by_tag(self, tag: str) -> Tuple[Segment, ...]:
        """Return all segments with the given tag, in encounter order."""
        return tuple(self.segments[i] for i in self._tag_index.get(tag, ()))

    def get_first_segment_by_tag(self, tag: str) -> Optional[Segment]:
        indices = self._tag_index.get(tag)
        return self.segments[indices[0]] if indices else None

    def has_segment(self, tag: str) -> bool:
        return tag in self._tag_index

    def get_segment_count(self, tag: str) -> int:
        """Return the number of segments with the given tag."""
        return len(self._tag_index.get(tag, ()))

    def get_segment_indices(self, tag: str) -> Tuple[int, ...]:
        """Return the 0-based indices of the segments with the given tag."""
        return self._tag_index.get(tag, ())

    def get_segment_by_sequence(self, sequence_number: int) -> Optional[Segment]:
        """Return the segment at the given 0-based parse position, or None."""
        if 0 <= sequence_number < len(self.segments):
            return self.segments[sequence_number]
        return None

    @property
    def segment_tags(self) -> Tuple[str, ...]:
        """Distinct segment tags in order of first appearance."""
        return tuple(self._tag_index)

    @property
    def segment_count(self) -> int:
        return len(self.segments)

    def get_metadata_value(self, key: str) -> Any:
        return self.metadata.get(key)

    def find_segments_by_field_value(self, value: Optional[str]) -> Tuple[Segment, ...]:
        """Return every segment holding at least one field with exactly this value."""
        if value is None:
            return ()
        return tuple(s for s in self.segments if any(f.value == value for f in s.fields))

    def evolve(self, **changes) -> 'Message':
        """Return a copy of this message with the given attributes replaced."""
        return replace(self, **changes)

    def __str__(self) -> str:
        text = f"Message{{format={self.file_format}"
        if self.message_type:
            text += f", type='{self.message_type}'"
        text += f", segments={len(self.segments)}"
        if self.source_file_path:
            text += f", source='{self.source_file_path}'"
        return text + "}"

    def to_detailed_string(self) -> str:
        lines = [str(self), "Segments by type:"]
        for tag, indices in self._tag_index.items():
            lines.append(f"  {tag}: {len(indices)}")
        return "\n".join(lines)
