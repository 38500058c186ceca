"""
Structural checks run after the comparison engine.

The engine evaluates rules one segment tag at a time and never looks at segments
no rule names, nor at the relative order of tags. Both concerns live here, each
behind a configuration flag:

- detect_unexpected_segments: one UNEXPECTED_SEGMENT per segment instance whose
  tag is not covered by any rule.
- validate_segment_order: every rule takes part in the order check. Without the
  flag only rules with order_matters do. The first occurrences of the ordered
  tags must follow rule declaration order; each tag found before an earlier
  declared tag yields one SEGMENT_ORDER_MISMATCH.
"""

import logging
import time
from typing import List, Tuple

from ..models import Message
from ..rules.rule_models import RuleSet
from .comparison_models import ComparisonResult, Difference, DifferenceType
from .context import ComparisonContext


class StructureChecker:
    """Checks segment coverage and ordering of a message against a rule set."""

    def __init__(self, rule_set: RuleSet, context: ComparisonContext):
        if rule_set is None:
            raise ValueError("rule_set cannot be None")
        if context is None:
            raise ValueError("context cannot be None")
        self.rule_set = rule_set
        self.context = context
        self.logger = logging.getLogger(__name__)

    def check(self, message: Message) -> ComparisonResult:
        start_time = time.perf_counter()
        differences: List[Difference] = []

        if self.context.get_config_bool('detect_unexpected_segments', False):
            differences.extend(self.find_unexpected_segments(message))

        differences.extend(self.find_order_violations(message))

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.logger.debug(f"Structure checks found {len(differences)} difference(s)")
        return ComparisonResult(
            differences=tuple(differences),
            comparison_time_ms=elapsed_ms,
            actual_message=message,
        )

    def find_unexpected_segments(self, message: Message) -> List[Difference]:
        covered = set(self.rule_set.covered_tags)
        return [
            Difference(
                type=DifferenceType.UNEXPECTED_SEGMENT,
                segment_tag=segment.tag,
                actual=segment.tag,
                line_number=segment.line_number,
                description=f"Segment {segment.tag} is not covered by any rule",
            )
            for segment in message.segments
            if segment.tag not in covered
        ]

    def _ordered_tags(self) -> Tuple[str, ...]:
        check_all = self.context.get_config_bool('validate_segment_order', False)
        tags = (rule.segment for rule in self.rule_set.rules if check_all or rule.order_matters)
        return tuple(dict.fromkeys(tags))

    def find_order_violations(self, message: Message) -> List[Difference]:
        differences = []
        latest_tag = None
        latest_index = -1

        for tag in self._ordered_tags():
            indices = message.get_segment_indices(tag)
            if not indices:
                continue
            first_index = indices[0]
            if first_index < latest_index:
                segment = message.segments[first_index]
                differences.append(Difference(
                    type=DifferenceType.SEGMENT_ORDER_MISMATCH,
                    segment_tag=tag,
                    expected=f"after {latest_tag}",
                    actual=f"before {latest_tag}",
                    line_number=segment.line_number,
                    description=f"Segment {tag} appears before {latest_tag} but is declared after it",
                ))
                continue
            latest_tag = tag
            latest_index = first_index

        return differences
