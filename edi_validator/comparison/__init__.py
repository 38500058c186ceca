"""Rule evaluation: the comparison engine, its inputs, results and post-passes."""

from .comparison_models import ComparisonResult, Difference, DifferenceType
from .context import ComparisonContext
from .engine import ComparisonEngine, compare
from .structure_checks import StructureChecker
from .custom_validators import CustomValidationPass, CustomValidatorRegistry
from .orchestrator import MessageValidator

__all__ = [
    'ComparisonResult',
    'Difference',
    'DifferenceType',
    'ComparisonContext',
    'ComparisonEngine',
    'compare',
    'StructureChecker',
    'CustomValidationPass',
    'CustomValidatorRegistry',
    'MessageValidator',
]
