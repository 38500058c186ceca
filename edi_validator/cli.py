"""
Command-line interface for the EDI message validation system.

Validates one message file against a rule file and prints the comparison report.

Exit codes:
    0  message satisfies every rule
    1  differences were found
    2  the message, rule file or configuration could not be used
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from .comparison import ComparisonContext, MessageValidator
from .config.defaults import ComparisonDefaults
from .config.settings import VALID_LOG_LEVELS, get_settings, parse_bool
from .exceptions import ConfigurationError, EDIValidationError
from .models import FileFormat
from .parsing import parse_message_file
from .rules import RuleLoader


EXIT_SUCCESS = 0
EXIT_DIFFERENCES = 1
EXIT_ERROR = 2

FORMAT_CHOICES = {
    'edifact': FileFormat.EDIFACT,
    'x12': FileFormat.ANSI_X12,
    'xml': FileFormat.XML,
}

CONFIG_FLAGS = (
    'case_sensitive',
    'ignore_trailing_whitespace',
    'detect_unexpected_segments',
    'validate_segment_order',
    'fail_on_first_error',
)


def _parse_key_values(pairs: Optional[List[str]], option: str) -> Dict[str, str]:
    """Turn repeated KEY=VALUE options into a dict."""
    values = {}
    for pair in pairs or []:
        key, separator, value = pair.partition('=')
        if not separator or not key.strip():
            raise ConfigurationError(f"{option} expects KEY=VALUE, got '{pair}'")
        values[key.strip()] = value
    return values


def _parse_config_flags(pairs: Optional[List[str]]) -> Dict[str, bool]:
    config = {}
    for key, value in _parse_key_values(pairs, '--config').items():
        if key not in CONFIG_FLAGS:
            raise ConfigurationError(f"Unknown config flag '{key}' (expected one of {', '.join(CONFIG_FLAGS)})")
        config[key] = parse_bool(value, key)
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="edi-validate",
        description="Validate an EDIFACT, ANSI X12 or XML message against a rule file",
    )

    # Required arguments
    parser.add_argument("--rules", required=True, help="Rule file (.yaml, .yml or .json)")
    parser.add_argument("--message", required=True, help="Message file to validate")

    # Optional arguments
    parser.add_argument("--inbound", help="Inbound reference message for 'inbound.' sources")
    parser.add_argument("--format", choices=sorted(FORMAT_CHOICES),
                        help="Message format (default: detect from extension, then content)")
    parser.add_argument("--test-data", action="append", metavar="KEY=VALUE",
                        help="Test data value for 'testData.' sources (repeatable)")
    parser.add_argument("--config", action="append", metavar="KEY=VALUE",
                        help=f"Comparison flag override, true/false (repeatable): {', '.join(CONFIG_FLAGS)}")
    parser.add_argument("--log-level", choices=list(VALID_LOG_LEVELS),
                        help=f"Logging level (default: EDI_VALIDATOR_LOG_LEVEL or {ComparisonDefaults.LOG_LEVEL})")
    parser.add_argument("--summary-only", action="store_true",
                        help="Print only the summary, not every difference")
    return parser


def _configure_logging(level: str) -> None:
    # Set up logging without reconfiguring root if already configured
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level))


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI application.

    Args:
        args: Optional command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 success, 1 differences, 2 error)
    """
    if args is None:
        args = sys.argv[1:]
    options = build_parser().parse_args(args)

    try:
        settings = get_settings()
        _configure_logging(options.log_level or settings.log_level)
        logger = logging.getLogger(__name__)

        test_data = _parse_key_values(options.test_data, '--test-data')
        config = _parse_config_flags(options.config)
        file_format = FORMAT_CHOICES[options.format] if options.format else None

        rule_set = RuleLoader().load_from_file(options.rules)
        inbound = parse_message_file(options.inbound) if options.inbound else None
        logger.debug(f"Loaded {rule_set.rule_count} rules from {options.rules}")

        validator = MessageValidator(
            rule_set,
            ComparisonContext(test_data=test_data, inbound_message=inbound, config=config),
            settings=settings,
        )
        result = validator.validate_file(options.message, file_format)

    except EDIValidationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(result.get_summary() if options.summary_only else result.get_detailed_report())
    return EXIT_SUCCESS if result.is_success() else EXIT_DIFFERENCES


if __name__ == "__main__":
    sys.exit(main())
