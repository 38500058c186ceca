"""
Custom exceptions for the EDI message validation system.

Parse-time and load-time failures are raised using the types below. Comparison-time
discrepancies are never raised; they are collected as Difference records instead.
"""

from typing import Optional


PREVIEW_LENGTH = 50


class EDIValidationError(Exception):
    """Base exception for all errors raised by the validation system."""
    pass


class ParseError(EDIValidationError):
    """Exception raised when message content cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None,
                 content: Optional[str] = None, source_file: Optional[str] = None):
        """
        Initialize parse error.

        Args:
            message: Error description
            line_number: Optional line (segment ordinal) where parsing failed
            content: Optional offending content (truncated for the preview)
            source_file: Optional path of the file being parsed
        """
        self.line_number = line_number
        self.content_preview = self._preview(content)
        self.source_file = source_file
        super().__init__(self._format_message(message, line_number, self.content_preview))

    @staticmethod
    def _preview(content: Optional[str]) -> Optional[str]:
        if not content:
            return None
        if len(content) > PREVIEW_LENGTH:
            return content[:PREVIEW_LENGTH] + "..."
        return content

    @staticmethod
    def _format_message(message: str, line_number: Optional[int], preview: Optional[str]) -> str:
        formatted = message
        if line_number is not None and line_number > 0:
            formatted += f" (at line {line_number})"
        if preview:
            formatted += f": {preview}"
        return formatted


class FormatDetectionError(ParseError):
    """Exception raised when no parser recognizes the message content."""
    pass


class RuleDefinitionError(EDIValidationError):
    """Exception raised when a rule definition is missing, unreadable or malformed."""

    def __init__(self, message: str, location: Optional[str] = None):
        """
        Initialize rule definition error.

        Args:
            message: Error description
            location: Optional location inside the rule document (e.g. "rules[2].fields[0]")
        """
        super().__init__(f"{message} [{location}]" if location else message)
        self.location = location


class ConfigurationError(EDIValidationError):
    """Exception raised when configuration is invalid or missing."""
    pass
