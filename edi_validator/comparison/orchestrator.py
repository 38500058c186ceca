"""
Validation Orchestration Layer

MessageValidator ties parsing, the comparison engine and the post-passes together
for one validation run:

1. Parse (validate_content / validate_file only)
2. ComparisonEngine: rule-by-rule field and cardinality checks
3. StructureChecker: unexpected segments and segment order
4. CustomValidationPass: named CUSTOM validators
5. fail_on_first_error: keep only the first difference of the merged result

Configuration flags are layered, later layers winning:
ComparisonSettings (environment) < RuleSet.config < ComparisonContext.config
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..config.settings import ComparisonSettings, get_settings
from ..models import FileFormat, Message
from ..parsing.format_detector import parse_message, parse_message_file
from ..rules.rule_models import RuleSet
from .comparison_models import ComparisonResult
from .context import ComparisonContext
from .custom_validators import CustomValidationPass, CustomValidatorRegistry
from .engine import ComparisonEngine
from .structure_checks import StructureChecker


class MessageValidator:
    """
    Central coordinator for validating messages against one rule set.

    Holds only immutable collaborators after construction, so one validator can
    check many messages.
    """

    def __init__(self, rule_set: RuleSet, context: Optional[ComparisonContext] = None,
                 registry: Optional[CustomValidatorRegistry] = None,
                 settings: Optional[ComparisonSettings] = None):
        """
        Initialize the validator.

        Args:
            rule_set: Rules to evaluate
            context: Optional test data, inbound message and config overrides
            registry: Optional custom validators for CUSTOM field rules
            settings: Optional base settings; the global environment settings by default
        """
        if rule_set is None:
            raise ValueError("rule_set cannot be None")
        self.logger = logging.getLogger(__name__)
        self.rule_set = rule_set
        self.settings = settings or get_settings()
        self.registry = registry or CustomValidatorRegistry()

        base_config = {**self.settings.to_context_config(), **dict(rule_set.config)}
        self.context = (context or ComparisonContext()).with_config_defaults(base_config)

        self.engine = ComparisonEngine(rule_set, self.context)
        self.structure_checker = StructureChecker(rule_set, self.context)
        self.custom_pass = CustomValidationPass(self.registry, self.context)

    @property
    def fail_on_first_error(self) -> bool:
        return self.context.get_config_bool('fail_on_first_error', False)

    def validate(self, actual_message: Message, expected_message: Optional[Message] = None) -> ComparisonResult:
        """
        Validate a parsed message.

        Returns:
            Engine result with post-pass differences appended in pass order
        """
        if (self.rule_set.message_type and actual_message.message_type
                and self.rule_set.message_type != actual_message.message_type):
            self.logger.warning(
                f"Rule set for {self.rule_set.message_type} applied to "
                f"{actual_message.message_type} message"
            )

        result = self.engine.compare(actual_message, expected_message)
        result = result.merged_with(self.structure_checker.check(actual_message))
        result = result.merged_with(self.custom_pass.run(self.rule_set, actual_message))

        if self.fail_on_first_error:
            result = result.truncated(1)

        self._log_result(actual_message, result)
        return result

    def validate_content(self, content: str, file_format: Optional[FileFormat] = None,
                         expected_message: Optional[Message] = None) -> ComparisonResult:
        """Parse raw content (auto-detecting the format when not given) and validate it."""
        return self.validate(parse_message(content, file_format), expected_message)

    def validate_file(self, file_path: Union[str, Path], file_format: Optional[FileFormat] = None,
                      expected_message: Optional[Message] = None) -> ComparisonResult:
        """Parse a message file and validate it."""
        return self.validate(parse_message_file(file_path, file_format), expected_message)

    def _log_result(self, message: Message, result: ComparisonResult) -> None:
        source = message.source_file_path or message.message_type or str(message.file_format)
        if result.is_success():
            self.logger.info(f"Validation passed for {source}")
        else:
            self.logger.info(f"Validation failed for {source}: {result.difference_count} difference(s)")
