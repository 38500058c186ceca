"""
Named custom validators for CUSTOM field rules.

A custom validator is a predicate ``(field_value, segment, context) -> bool``
registered under a name. FieldRule.custom_validator names the predicate to run.
The comparison engine never evaluates CUSTOM rules; CustomValidationPass does,
after the engine, and reports failures as CUSTOM_VALIDATION_FAILED.
"""

import logging
import time
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ..models import Message, Segment
from ..rules.rule_models import ComparisonRule, FieldRule, RuleSet, ValidationType
from .comparison_models import ComparisonResult, Difference, DifferenceType
from .context import ComparisonContext


CustomValidator = Callable[[Optional[str], Segment, ComparisonContext], bool]


class CustomValidatorRegistry:
    """
    Name to predicate mapping.

    Usage:
        registry = CustomValidatorRegistry()
        registry.register("container_check_digit", check_digit_is_valid)

        @registry.validator("non_zero")
        def non_zero(value, segment, context):
            return value not in (None, "", "0")
    """

    def __init__(self):
        self._validators: Dict[str, CustomValidator] = {}
        self.logger = logging.getLogger(__name__)

    def register(self, name: str, predicate: CustomValidator) -> None:
        if not name or not name.strip():
            raise ValueError("validator name cannot be empty")
        if not callable(predicate):
            raise ValueError(f"validator '{name}' must be callable")
        if name in self._validators:
            self.logger.warning(f"Replacing custom validator '{name}'")
        self._validators[name] = predicate

    def validator(self, name: str) -> Callable[[CustomValidator], CustomValidator]:
        """Decorator form of register()."""
        def decorator(predicate: CustomValidator) -> CustomValidator:
            self.register(name, predicate)
            return predicate
        return decorator

    def unregister(self, name: str) -> None:
        self._validators.pop(name, None)

    def get(self, name: Optional[str]) -> Optional[CustomValidator]:
        if name is None:
            return None
        return self._validators.get(name)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._validators)

    def __contains__(self, name) -> bool:
        return name in self._validators

    def __len__(self) -> int:
        return len(self._validators)


class CustomValidationPass:
    """Runs registered predicates for every CUSTOM field rule."""

    def __init__(self, registry: CustomValidatorRegistry, context: ComparisonContext):
        if registry is None:
            raise ValueError("registry cannot be None")
        if context is None:
            raise ValueError("context cannot be None")
        self.registry = registry
        self.context = context
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _custom_rules(rule_set: RuleSet) -> Iterator[Tuple[ComparisonRule, FieldRule]]:
        for rule in rule_set.rules:
            for field_rule in rule.fields:
                if field_rule.validation == ValidationType.CUSTOM:
                    yield rule, field_rule

    def run(self, rule_set: RuleSet, message: Message) -> ComparisonResult:
        start_time = time.perf_counter()
        differences: List[Difference] = []

        for rule, field_rule in self._custom_rules(rule_set):
            instances = message.get_segments_by_tag(rule.segment)
            if not instances:
                continue

            predicate = self.registry.get(field_rule.custom_validator)
            if predicate is None:
                # Reported once per field rule, not per instance
                self.logger.warning(f"Custom validator '{field_rule.custom_validator}' is not registered")
                differences.append(Difference(
                    type=DifferenceType.CUSTOM_VALIDATION_FAILED,
                    segment_tag=rule.segment,
                    field_position=field_rule.position,
                    field_name=field_rule.name,
                    expected=field_rule.custom_validator,
                    line_number=instances[0].line_number,
                    description=f"Custom validator '{field_rule.custom_validator}' is not registered",
                ))
                continue

            for segment in instances:
                difference = self._apply(predicate, rule, field_rule, segment)
                if difference is not None:
                    differences.append(difference)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        return ComparisonResult(
            differences=tuple(differences),
            comparison_time_ms=elapsed_ms,
            actual_message=message,
        )

    def _apply(self, predicate: CustomValidator, rule: ComparisonRule,
               field_rule: FieldRule, segment: Segment) -> Optional[Difference]:
        actual_field = segment.get_field_by_position(field_rule.position)
        if actual_field is None:
            # Absent fields are the engine's MISSING_FIELD concern
            return None

        name = field_rule.custom_validator
        try:
            passed = bool(predicate(actual_field.value, segment, self.context))
            description = f"Custom validator '{name}' rejected the value"
        except Exception as e:
            self.logger.warning(f"Custom validator '{name}' raised {type(e).__name__}: {e}")
            passed = False
            description = f"Custom validator '{name}' raised {type(e).__name__}: {e}"

        if passed:
            return None
        return Difference(
            type=DifferenceType.CUSTOM_VALIDATION_FAILED,
            segment_tag=rule.segment,
            field_position=field_rule.position,
            field_name=field_rule.name,
            expected=name,
            actual=actual_field.value,
            line_number=segment.line_number,
            description=description,
        )
