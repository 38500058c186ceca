"""
Comparison Result Data Models

This module defines the records produced by a comparison run:

- DifferenceType: Closed set of discrepancy kinds
- Difference: One recorded deviation between a rule and the actual message
- ComparisonResult: Ordered differences plus counters for a single compare() call

Every comparison-time defect is represented as a Difference and accumulated into
the result; nothing in this module raises for a failed expectation. Success is
defined solely as an empty difference list, there is no advisory severity.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..models import Message


class DifferenceType(Enum):
    """Kinds of discrepancies a comparison can record."""
    VALUE_MISMATCH = "value_mismatch"
    MISSING_FIELD = "missing_field"
    MISSING_SEGMENT = "missing_segment"
    UNEXPECTED_SEGMENT = "unexpected_segment"
    PATTERN_MISMATCH = "pattern_mismatch"
    DATE_FORMAT_INVALID = "date_format_invalid"
    SEGMENT_COUNT_MISMATCH = "segment_count_mismatch"
    SEGMENT_ORDER_MISMATCH = "segment_order_mismatch"
    CUSTOM_VALIDATION_FAILED = "custom_validation_failed"


@dataclass(frozen=True)
class Difference:
    """
    A single discrepancy with its location and expected vs actual values.

    Location Context:
    - segment_tag: Tag of the rule's segment
    - field_position / field_name: Set for field-level differences
    - line_number: Source line of the offending segment (0 when not applicable)

    Value Context:
    - expected / actual: Raw values as declared and as found (never normalized)
    - description: Optional free text; when absent, __str__ renders expected vs actual
    """
    type: DifferenceType
    segment_tag: Optional[str] = None
    field_position: Optional[str] = None
    field_name: Optional[str] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    line_number: int = 0
    description: Optional[str] = None

    @property
    def location(self) -> str:
        """Readable location, e.g. "BGM.0002 (Booking Number)"."""
        if not self.segment_tag:
            return ""
        location = self.segment_tag
        if self.field_position:
            # Positions usually carry their tag already ("BGM.0002")
            if self.field_position.startswith(self.segment_tag):
                location = self.field_position
            else:
                location = f"{self.segment_tag}.{self.field_position}"
        if self.field_name:
            location += f" ({self.field_name})"
        return location

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.name,
            'segment_tag': self.segment_tag,
            'field_position': self.field_position,
            'field_name': self.field_name,
            'expected': self.expected,
            'actual': self.actual,
            'line_number': self.line_number,
            'description': self.description,
        }

    def __str__(self) -> str:
        """String representation of the difference."""
        text = f"[{self.type.name}] {self.location}"
        if self.line_number > 0:
            text += f" at line {self.line_number}"
        text += ": "
        if self.description is not None:
            text += self.description
        else:
            text += f"Expected '{self.expected}' but got '{self.actual}'"
        return text


@dataclass(frozen=True)
class ComparisonResult:
    """
    Outcome of one comparison run.

    Attributes:
        differences: Differences in rule, then instance, then field order
        segments_compared: Total segment instances evaluated across all rules
        fields_compared: Sum of field rules evaluated per instance
        comparison_time_ms: Elapsed wall-clock time of the run
        expected_message: Optional reference message the run was associated with
        actual_message: The message that was validated
    """
    differences: Tuple[Difference, ...] = ()
    segments_compared: int = 0
    fields_compared: int = 0
    comparison_time_ms: float = 0.0
    expected_message: Optional[Message] = field(default=None, compare=False, repr=False)
    actual_message: Optional[Message] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'differences', tuple(self.differences))

    def is_success(self) -> bool:
        """True exactly when no difference was recorded."""
        return not self.differences

    def has_differences(self) -> bool:
        return bool(self.differences)

    @property
    def difference_count(self) -> int:
        return len(self.differences)

    def get_differences_of_type(self, difference_type: DifferenceType) -> Tuple[Difference, ...]:
        """Get differences filtered by type."""
        return tuple(d for d in self.differences if d.type == difference_type)

    def get_differences_for_segment(self, segment_tag: str) -> Tuple[Difference, ...]:
        """Get differences filtered by segment tag."""
        return tuple(d for d in self.differences if d.segment_tag == segment_tag)

    def merged_with(self, other: 'ComparisonResult') -> 'ComparisonResult':
        """
        Append another result's differences to this one.

        Counters and messages stay those of this result; elapsed times are added.
        """
        return replace(
            self,
            differences=self.differences + other.differences,
            comparison_time_ms=self.comparison_time_ms + other.comparison_time_ms,
        )

    def truncated(self, limit: int) -> 'ComparisonResult':
        """Return a copy keeping only the first `limit` differences."""
        if limit < 0:
            raise ValueError("limit cannot be negative")
        if len(self.differences) <= limit:
            return self
        return replace(self, differences=self.differences[:limit])

    def get_summary(self) -> str:
        """Generate a summary of the comparison."""
        summary_lines = [
            "Comparison Result:",
            f"  Status: {'SUCCESS' if self.is_success() else 'FAILED'}",
            f"  Differences: {self.difference_count}",
            f"  Segments compared: {self.segments_compared}",
            f"  Fields compared: {self.fields_compared}",
            f"  Time taken: {self.comparison_time_ms:.2f} ms",
        ]

        if self.differences:
            summary_lines.append("")
            summary_lines.append("Differences by type:")
            counts = Counter(d.type for d in self.differences)
            for difference_type in DifferenceType:
                if counts[difference_type]:
                    summary_lines.append(f"  {difference_type.name}: {counts[difference_type]}")

        return "\n".join(summary_lines) + "\n"

    def get_detailed_report(self) -> str:
        """Summary followed by every difference, numbered from 1."""
        report = self.get_summary()
        if self.differences:
            lines = ["", "Detailed differences:"]
            lines.extend(f"{index}. {difference}" for index, difference in enumerate(self.differences, start=1))
            report += "\n".join(lines) + "\n"
        return report

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to plain data, suitable for json.dumps()."""
        actual = self.actual_message
        return {
            'success': self.is_success(),
            'difference_count': self.difference_count,
            'segments_compared': self.segments_compared,
            'fields_compared': self.fields_compared,
            'comparison_time_ms': round(self.comparison_time_ms, 3),
            'message_type': actual.message_type if actual is not None else None,
            'source_file': actual.source_file_path if actual is not None else None,
            'differences': [d.to_dict() for d in self.differences],
        }

    def __str__(self) -> str:
        return (f"ComparisonResult{{differences={self.difference_count}, "
                f"success={self.is_success()}, time={self.comparison_time_ms:.2f}ms}}")
