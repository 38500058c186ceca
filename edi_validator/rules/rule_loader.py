"""
Rule definition loader.

Turns a YAML or JSON rule document into a validated RuleSet. Shape problems are
reported here, at load time, so the comparison engine can assume a valid tree.

Document keys:
    message_type, description, config{},
    rules[].segment / required / multiple_occurrences / order_matters / expected_count,
    rules[].fields[].position / name / validation / expected_value / source /
                     pattern / date_format_field / custom_validator / required

YAML numbers and timestamps are read as text, so ``expected_value: 00123`` stays
"00123" instead of becoming an octal integer.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..config.settings import parse_bool
from ..exceptions import ConfigurationError, RuleDefinitionError
from .rule_models import ComparisonRule, FieldRule, RuleSet, ValidationType


_TEXT_SCALAR_TAGS = (
    'tag:yaml.org,2002:int',
    'tag:yaml.org,2002:float',
    'tag:yaml.org,2002:timestamp',
)


class RuleYamlLoader(yaml.SafeLoader):
    """SafeLoader that keeps numeric and date-like scalars as strings."""


RuleYamlLoader.yaml_implicit_resolvers = {
    first_char: [(tag, regexp) for tag, regexp in resolvers if tag not in _TEXT_SCALAR_TAGS]
    for first_char, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class RuleLoader:
    """Loads rule sets from files, strings or already-decoded dictionaries."""

    SUPPORTED_SUFFIXES = ('.yaml', '.yml', '.json')

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _error(self, message: str, location: Optional[str] = None) -> RuleDefinitionError:
        """Log and build a RuleDefinitionError for the caller to raise."""
        error = RuleDefinitionError(message, location)
        self.logger.error(f"Invalid rule definition: {error}")
        return error

    def load_from_file(self, file_path: Union[str, Path]) -> RuleSet:
        """
        Load a rule set from a .yaml/.yml/.json file.

        Args:
            file_path: Path to the rule file

        Returns:
            Validated RuleSet

        Raises:
            RuleDefinitionError: If the file is missing, unreadable or invalid
        """
        if not file_path or not str(file_path).strip():
            raise self._error("Rule file path cannot be empty")

        path = Path(file_path)
        if not path.exists():
            raise self._error(f"Rule file not found: {path}")

        suffix = path.suffix.lower()
        if suffix not in self.SUPPORTED_SUFFIXES:
            raise self._error(f"Unsupported rule file format: {suffix}")

        try:
            content = path.read_text(encoding='utf-8')
        except OSError as e:
            raise self._error(f"Failed to read rule file {path}: {e}") from e

        rule_set = self.load_from_string(content, fmt='json' if suffix == '.json' else 'yaml')
        self.logger.info(f"Loaded {rule_set.rule_count} rules from {path}")
        return rule_set

    def load_from_string(self, content: str, fmt: str = 'yaml') -> RuleSet:
        """
        Load a rule set from YAML or JSON text.

        Args:
            content: Rule document text
            fmt: "yaml" or "json"
        """
        if not content or not content.strip():
            raise self._error("Rule content is empty")
        if fmt not in ('json', 'yaml'):
            raise self._error(f"Unsupported rule format: {fmt}")

        try:
            if fmt == 'json':
                data = json.loads(content)
            else:
                data = yaml.load(content, Loader=RuleYamlLoader)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise self._error(f"Failed to parse rule content: {e}") from e

        return self.load_from_dict(data)

    def load_from_dict(self, data: Any) -> RuleSet:
        """
        Build a RuleSet from decoded rule data.

        Raises:
            RuleDefinitionError: If the structure is invalid
        """
        if not isinstance(data, dict):
            raise self._error("Rule document must be a mapping")

        rules_data = data.get('rules')
        if not isinstance(rules_data, list) or not rules_data:
            raise self._error("RuleSet must contain at least one rule", "rules")

        config = data.get('config') or {}
        if not isinstance(config, dict):
            raise self._error("config must be a mapping", "config")

        rules = [self._parse_rule(rule_data, index) for index, rule_data in enumerate(rules_data)]

        return RuleSet(
            rules=tuple(rules),
            message_type=self._optional_str(data.get('message_type')),
            description=self._optional_str(data.get('description')),
            config=config,
        )

    def _parse_rule(self, rule_data: Any, index: int) -> ComparisonRule:
        location = f"rules[{index}]"
        if not isinstance(rule_data, dict):
            raise self._error("Rule must be a mapping", location)

        segment = self._optional_str(rule_data.get('segment'))
        if not segment or not segment.strip():
            raise self._error(f"Rule at index {index} must specify a segment", location)

        fields_data = rule_data.get('fields') or []
        if not isinstance(fields_data, list):
            raise self._error("fields must be a list", f"{location}.fields")

        field_rules = [
            self._parse_field_rule(field_data, segment, f"{location}.fields[{field_index}]")
            for field_index, field_data in enumerate(fields_data)
        ]

        expected_count = rule_data.get('expected_count')
        try:
            return ComparisonRule(
                segment=segment.strip(),
                fields=tuple(field_rules),
                required=self._flag(rule_data, 'required', True, location),
                multiple_occurrences=self._flag(rule_data, 'multiple_occurrences', False, location),
                order_matters=self._flag(rule_data, 'order_matters', False, location),
                expected_count=int(expected_count) if expected_count is not None else None,
            )
        except (TypeError, ValueError) as e:
            raise self._error(f"Invalid rule for segment {segment}: {e}", location) from e

    def _parse_field_rule(self, field_data: Any, segment: str, location: str) -> FieldRule:
        if not isinstance(field_data, dict):
            raise self._error("Field rule must be a mapping", location)

        position = self._optional_str(field_data.get('position'))
        if not position or not position.strip():
            raise self._error(f"Field rule in segment {segment} must specify a position", location)

        return FieldRule(
            position=position.strip(),
            name=self._optional_str(field_data.get('name')),
            validation=ValidationType.from_string(field_data.get('validation')),
            expected_value=self._optional_str(field_data.get('expected_value')),
            source=self._optional_str(field_data.get('source')),
            pattern=self._optional_str(field_data.get('pattern')),
            date_format_field=self._optional_str(field_data.get('date_format_field')),
            custom_validator=self._optional_str(field_data.get('custom_validator')),
            required=self._flag(field_data, 'required', True, location),
        )

    def _flag(self, data: Dict[str, Any], key: str, default: bool, location: str) -> bool:
        """Read a boolean key given as a YAML/JSON bool or "true"/"false" text."""
        value = data.get(key)
        if value is None:
            return default
        try:
            return parse_bool(value, key)
        except ConfigurationError as e:
            raise self._error(str(e), location) from e

    @staticmethod
    def _optional_str(value: Any) -> Optional[str]:
        """Stringify scalars (JSON numbers, YAML booleans); keep None as None."""
        if value is None:
            return None
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)


def load_rules(source: Union[str, Path, Dict[str, Any]]) -> RuleSet:
    """Load a rule set from a file path or an already-decoded dictionary."""
    loader = RuleLoader()
    if isinstance(source, dict):
        return loader.load_from_dict(source)
    return loader.load_from_file(source)
