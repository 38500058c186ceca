"""
Comparison Engine

Walks a RuleSet against a parsed Message and collects every discrepancy as a
Difference. The engine always completes a full pass over every rule and every
matching segment instance; any fail-fast policy is applied by the caller to the
returned result (see MessageValidator).

Evaluation order per rule, in declaration order:
1. Collect the actual instances of the rule's segment tag (encounter order).
2. No instance: MISSING_SEGMENT when the rule is required, otherwise skip the rule.
3. Cardinality: expected_count when set, else the multiple_occurrences flag.
   A cardinality finding never suppresses field evaluation.
4. Every field rule on every instance: MISSING_FIELD for absent required fields,
   then validation by type (EXACT_MATCH, PATTERN_MATCH, DATE_FORMAT; EXISTS is
   satisfied by presence; CUSTOM is left to CustomValidationPass).
"""

import logging
import re
import time
from typing import List, Optional

from ..models import Message, Segment
from ..rules.rule_models import ComparisonRule, FieldRule, RuleSet, ValidationType
from ..utils import StringUtils
from .comparison_models import ComparisonResult, Difference, DifferenceType
from .context import ComparisonContext


# EDIFACT date/time/period format qualifiers recognized by DATE_FORMAT
DATE_FORMAT_CODES = {
    "102": (8, "CCYYMMDD format (8 digits)"),
    "103": (12, "CCYYMMDDHHMM format (12 digits)"),
}


class ComparisonEngine:
    """
    Evaluates a rule set against actual messages.

    The engine holds only immutable inputs, so one instance can serve concurrent
    compare() calls.
    """

    def __init__(self, rule_set: RuleSet, context: ComparisonContext):
        """
        Initialize the comparison engine.

        Args:
            rule_set: Rules to evaluate
            context: Test data, inbound message and configuration flags

        Raises:
            ValueError: If rule_set or context is None
        """
        if rule_set is None:
            raise ValueError("rule_set cannot be None")
        if context is None:
            raise ValueError("context cannot be None")
        self.rule_set = rule_set
        self.context = context
        self.logger = logging.getLogger(__name__)

    def compare(self, actual_message: Message, expected_message: Optional[Message] = None) -> ComparisonResult:
        """
        Compare an actual message against the rule set.

        Args:
            actual_message: Parsed message to validate
            expected_message: Optional reference message recorded on the result

        Returns:
            ComparisonResult with differences in rule, instance, field order
        """
        if actual_message is None:
            raise ValueError("actual_message cannot be None")

        start_time = time.perf_counter()
        differences: List[Difference] = []
        segments_compared = 0
        fields_compared = 0

        for rule in self.rule_set.rules:
            instances = actual_message.get_segments_by_tag(rule.segment)
            self.logger.debug(f"Rule {rule.segment}: {len(instances)} instance(s) found")

            if not instances:
                if rule.required:
                    differences.append(Difference(
                        type=DifferenceType.MISSING_SEGMENT,
                        segment_tag=rule.segment,
                        description=f"Required segment {rule.segment} is missing",
                    ))
                continue

            count_difference = self._check_cardinality(rule, len(instances))
            if count_difference is not None:
                differences.append(count_difference)

            for segment in instances:
                segments_compared += 1
                differences.extend(self._compare_segment(rule, segment))
                fields_compared += len(rule.fields)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            f"Compared {segments_compared} segments, {fields_compared} fields: "
            f"{len(differences)} difference(s) in {elapsed_ms:.2f}ms"
        )

        return ComparisonResult(
            differences=tuple(differences),
            segments_compared=segments_compared,
            fields_compared=fields_compared,
            comparison_time_ms=elapsed_ms,
            expected_message=expected_message,
            actual_message=actual_message,
        )

    @staticmethod
    def _check_cardinality(rule: ComparisonRule, count: int) -> Optional[Difference]:
        if rule.expected_count is not None:
            if count == rule.expected_count:
                return None
            return Difference(
                type=DifferenceType.SEGMENT_COUNT_MISMATCH,
                segment_tag=rule.segment,
                expected=str(rule.expected_count),
                actual=str(count),
                description=f"Segment {rule.segment} should appear {rule.expected_count} time(s) but found {count}",
            )

        if not rule.multiple_occurrences and count > 1:
            return Difference(
                type=DifferenceType.SEGMENT_COUNT_MISMATCH,
                segment_tag=rule.segment,
                expected="1",
                actual=str(count),
                description=f"Segment {rule.segment} should appear only once but found {count}",
            )
        return None

    def _compare_segment(self, rule: ComparisonRule, segment: Segment) -> List[Difference]:
        differences = []

        for field_rule in rule.fields:
            actual_field = segment.get_field_by_position(field_rule.position)

            if actual_field is None:
                if field_rule.required:
                    differences.append(Difference(
                        type=DifferenceType.MISSING_FIELD,
                        segment_tag=rule.segment,
                        field_position=field_rule.position,
                        field_name=field_rule.name,
                        line_number=segment.line_number,
                        description=f"Required field {field_rule.position} is missing",
                    ))
                continue

            difference = self._validate_field(field_rule, actual_field.value, segment, rule.segment)
            if difference is not None:
                differences.append(difference)

        return differences

    def _validate_field(self, field_rule: FieldRule, actual_value: Optional[str],
                        segment: Segment, segment_tag: str) -> Optional[Difference]:
        validation = field_rule.validation

        if validation == ValidationType.EXACT_MATCH:
            return self._validate_exact_match(field_rule, actual_value, segment, segment_tag)
        if validation == ValidationType.PATTERN_MATCH:
            return self._validate_pattern(field_rule, actual_value, segment, segment_tag)
        if validation == ValidationType.DATE_FORMAT:
            return self._validate_date_format(field_rule, actual_value, segment, segment_tag)
        # EXISTS is satisfied by presence; CUSTOM belongs to CustomValidationPass
        return None

    def _resolve_expected_value(self, field_rule: FieldRule) -> Optional[str]:
        if field_rule.expected_value is not None:
            return field_rule.expected_value
        if field_rule.source is not None:
            return self.context.resolve_source(field_rule.source)
        return None

    def _validate_exact_match(self, field_rule: FieldRule, actual: Optional[str],
                              segment: Segment, segment_tag: str) -> Optional[Difference]:
        expected = self._resolve_expected_value(field_rule)
        if expected is None:
            return None

        case_sensitive = self.context.get_config_bool('case_sensitive', True)
        trim_whitespace = self.context.get_config_bool('ignore_trailing_whitespace', False)

        if actual is not None and (
                StringUtils.normalize_for_comparison(expected, case_sensitive, trim_whitespace)
                == StringUtils.normalize_for_comparison(actual, case_sensitive, trim_whitespace)):
            return None

        return Difference(
            type=DifferenceType.VALUE_MISMATCH,
            segment_tag=segment_tag,
            field_position=field_rule.position,
            field_name=field_rule.name,
            expected=expected,
            actual=actual,
            line_number=segment.line_number,
        )

    def _validate_pattern(self, field_rule: FieldRule, actual: Optional[str],
                          segment: Segment, segment_tag: str) -> Optional[Difference]:
        if field_rule.pattern is None:
            return None

        try:
            compiled = re.compile(field_rule.pattern)
        except re.error as e:
            self.logger.debug(f"Invalid pattern for {field_rule.position}: {e}")
            return Difference(
                type=DifferenceType.PATTERN_MISMATCH,
                segment_tag=segment_tag,
                field_position=field_rule.position,
                field_name=field_rule.name,
                line_number=segment.line_number,
                description=f"Invalid pattern: {e}",
            )

        if compiled.fullmatch(actual if actual is not None else "") is not None:
            return None

        return Difference(
            type=DifferenceType.PATTERN_MISMATCH,
            segment_tag=segment_tag,
            field_position=field_rule.position,
            field_name=field_rule.name,
            expected=f"Pattern: {field_rule.pattern}",
            actual=actual,
            line_number=segment.line_number,
            description=f"Value does not match pattern {field_rule.pattern}",
        )

    def _validate_date_format(self, field_rule: FieldRule, actual: Optional[str],
                              segment: Segment, segment_tag: str) -> Optional[Difference]:
        if not actual:
            return None

        format_code = None
        if field_rule.date_format_field is not None:
            format_code = segment.get_field_value(field_rule.date_format_field)

        # Unrecognized or absent codes are accepted
        if format_code not in DATE_FORMAT_CODES:
            return None

        length, description = DATE_FORMAT_CODES[format_code]
        if StringUtils.is_ascii_digits(actual, length):
            return None

        return Difference(
            type=DifferenceType.DATE_FORMAT_INVALID,
            segment_tag=segment_tag,
            field_position=field_rule.position,
            field_name=field_rule.name,
            expected=description,
            actual=actual,
            line_number=segment.line_number,
        )


def compare(rule_set: RuleSet, actual_message: Message,
            context: Optional[ComparisonContext] = None) -> ComparisonResult:
    """Convenience wrapper: compare a message against a rule set in one call."""
    return ComparisonEngine(rule_set, context if context is not None else ComparisonContext()).compare(actual_message)
