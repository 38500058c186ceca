"""
EDI Message Validation System

Parses EDIFACT, ANSI X12 and XML business messages into a uniform segment/field
tree and validates them against declarative rule sets, collecting every
discrepancy as a typed difference.
"""

__version__ = "1.0.0"

# Import core models and interfaces for easy access
from .models import (
    FileFormat,
    Field,
    Segment,
    Message
)

from .interfaces import MessageParserInterface

from .exceptions import (
    EDIValidationError,
    ParseError,
    FormatDetectionError,
    RuleDefinitionError,
    ConfigurationError
)

from .parsing import (
    EdifactParser,
    AnsiX12Parser,
    XmlMessageParser,
    detect_format,
    get_parser,
    parse_message,
    parse_message_file
)

from .rules import (
    ValidationType,
    FieldRule,
    ComparisonRule,
    RuleSet,
    RuleLoader,
    load_rules
)

from .comparison import (
    ComparisonContext,
    ComparisonEngine,
    ComparisonResult,
    Difference,
    DifferenceType,
    CustomValidatorRegistry,
    MessageValidator,
    compare
)

__all__ = [
    # Core models
    "FileFormat",
    "Field",
    "Segment",
    "Message",

    # Interfaces
    "MessageParserInterface",

    # Exceptions
    "EDIValidationError",
    "ParseError",
    "FormatDetectionError",
    "RuleDefinitionError",
    "ConfigurationError",

    # Parsing
    "EdifactParser",
    "AnsiX12Parser",
    "XmlMessageParser",
    "detect_format",
    "get_parser",
    "parse_message",
    "parse_message_file",

    # Rules
    "ValidationType",
    "FieldRule",
    "ComparisonRule",
    "RuleSet",
    "RuleLoader",
    "load_rules",

    # Comparison
    "ComparisonContext",
    "ComparisonEngine",
    "ComparisonResult",
    "Difference",
    "DifferenceType",
    "CustomValidatorRegistry",
    "MessageValidator",
    "compare"
]
