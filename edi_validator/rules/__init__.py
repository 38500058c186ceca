"""Rule models and the rule definition loader."""

from .rule_models import ValidationType, FieldRule, ComparisonRule, RuleSet
from .rule_loader import RuleLoader, load_rules

__all__ = [
    'ValidationType',
    'FieldRule',
    'ComparisonRule',
    'RuleSet',
    'RuleLoader',
    'load_rules',
]
