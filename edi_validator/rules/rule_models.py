"""
Rule models describing what a parsed message is expected to contain.

Rules are pure data. They are produced by RuleLoader (or built directly in code)
and consumed read-only by the comparison engine.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union


logger = logging.getLogger(__name__)


class ValidationType(Enum):
    """Supported field validation semantics."""
    EXACT_MATCH = "exact_match"
    PATTERN_MATCH = "pattern_match"
    DATE_FORMAT = "date_format"
    EXISTS = "exists"
    CUSTOM = "custom"

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'ValidationType':
        """
        Resolve a lenient validation name ("exact", "regex", "date", ...).

        Unknown names fall back to EXACT_MATCH.
        """
        if value is None:
            return cls.EXACT_MATCH
        normalized = str(value).strip().lower().replace("_", "").replace("-", "")
        aliases = {
            "exactmatch": cls.EXACT_MATCH,
            "exact": cls.EXACT_MATCH,
            "patternmatch": cls.PATTERN_MATCH,
            "pattern": cls.PATTERN_MATCH,
            "regex": cls.PATTERN_MATCH,
            "dateformat": cls.DATE_FORMAT,
            "date": cls.DATE_FORMAT,
            "exists": cls.EXISTS,
            "custom": cls.CUSTOM,
        }
        if normalized not in aliases:
            logger.warning(f"Unknown validation type '{value}', using EXACT_MATCH")
            return cls.EXACT_MATCH
        return aliases[normalized]


@dataclass(frozen=True)
class FieldRule:
    """
    Expectation for a single field of a segment.

    Attributes:
        position: Exact field position to look up (e.g. "BGM.0002")
        name: Optional display name used in differences
        validation: Validation semantics applied when the field is present
        expected_value: Literal expected value
        source: Dynamic expected value reference ("testData.<key>" or "inbound.<tag>.<position>")
        pattern: Regular expression for PATTERN_MATCH (full-string match)
        date_format_field: Sibling field position holding the date format code
        custom_validator: Name of the hook used for CUSTOM validation
        required: Whether a missing field is reported
    """
    position: str
    name: Optional[str] = None
    validation: Union[ValidationType, str] = ValidationType.EXACT_MATCH
    expected_value: Optional[str] = None
    source: Optional[str] = None
    pattern: Optional[str] = None
    date_format_field: Optional[str] = None
    custom_validator: Optional[str] = None
    required: bool = True

    def __post_init__(self):
        """Validate field rule configuration and normalize validation."""
        if not self.position or not self.position.strip():
            raise ValueError("position cannot be empty")
        if not isinstance(self.validation, ValidationType):
            object.__setattr__(self, 'validation', ValidationType.from_string(self.validation))

    def evolve(self, **changes) -> 'FieldRule':
        return replace(self, **changes)


@dataclass(frozen=True)
class ComparisonRule:
    """
    Expectation for every instance of one segment tag.

    Attributes:
        segment: Segment tag the rule applies to
        fields: Ordered field rules evaluated on each instance
        required: Whether a missing segment is reported
        multiple_occurrences: Whether more than one instance is allowed
        order_matters: Whether the segment takes part in the order check
        expected_count: Optional exact number of instances
    """
    segment: str
    fields: Tuple[FieldRule, ...] = ()
    required: bool = True
    multiple_occurrences: bool = False
    order_matters: bool = False
    expected_count: Optional[int] = None

    def __post_init__(self):
        """Validate comparison rule configuration."""
        if not self.segment or not self.segment.strip():
            raise ValueError("segment cannot be empty")
        if self.expected_count is not None and self.expected_count < 0:
            raise ValueError("expected_count cannot be negative")
        object.__setattr__(self, 'fields', tuple(self.fields))

    def evolve(self, **changes) -> 'ComparisonRule':
        return replace(self, **changes)


@dataclass(frozen=True)
class RuleSet:
    """
    Complete expectation set for one message type.

    Attributes:
        rules: Ordered comparison rules, evaluated in declaration order
        message_type: Optional message type the rules describe
        description: Optional free-text description
        config: Read-only map of comparison flags supplied with the rules
    """
    rules: Tuple[ComparisonRule, ...] = ()
    message_type: Optional[str] = None
    description: Optional[str] = None
    config: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'rules', tuple(self.rules))
        object.__setattr__(self, 'config', MappingProxyType(dict(self.config or {})))

    def get_rule_for_segment(self, segment_tag: str) -> Optional[ComparisonRule]:
        """Return the first rule declared for the tag, or None."""
        for rule in self.rules:
            if rule.segment == segment_tag:
                return rule
        return None

    def has_rule_for_segment(self, segment_tag: str) -> bool:
        return self.get_rule_for_segment(segment_tag) is not None

    @property
    def rule_count(self) -> int:
        return len(self.rules)

    @property
    def covered_tags(self) -> Tuple[str, ...]:
        """Distinct segment tags named by the rules, in declaration order."""
        return tuple(dict.fromkeys(rule.segment for rule in self.rules))

    def evolve(self, **changes) -> 'RuleSet':
        return replace(self, **changes)
