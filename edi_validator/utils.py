"""
Utility functions for common string handling across parsers and the comparison engine.
"""

import re
from typing import List, Optional


class StringUtils:
    """Utility methods for delimiter splitting and value normalization."""

    # Cached regex patterns for performance
    _regex_cache = {
        'ascii_digits': re.compile(r'[0-9]+'),
    }

    @staticmethod
    def split_escaped(text: str, delimiter: str, release: Optional[str] = None) -> List[str]:
        """
        Split text on a single-character delimiter, honouring a release (escape) character.

        Escape sequences are kept in the returned pieces so that nested splits
        (segment -> element -> component) see them too; call unescape() on leaf values.

        Examples:
            split_escaped("A+B?+C+D", "+", "?") -> ['A', 'B?+C', 'D']
        """
        if not release or release not in text:
            return text.split(delimiter)

        parts = []
        current = []
        i = 0
        length = len(text)
        while i < length:
            char = text[i]
            if char == release and i + 1 < length:
                current.append(char)
                current.append(text[i + 1])
                i += 2
                continue
            if char == delimiter:
                parts.append(''.join(current))
                current = []
            else:
                current.append(char)
            i += 1
        parts.append(''.join(current))
        return parts

    @staticmethod
    def contains_unescaped(text: str, delimiter: str, release: Optional[str] = None) -> bool:
        """Check whether a delimiter occurs in text outside of release sequences."""
        return len(StringUtils.split_escaped(text, delimiter, release)) > 1

    @staticmethod
    def unescape(value: str, release: Optional[str] = None) -> str:
        """Drop release characters, keeping the character each one escapes."""
        if not release or release not in value:
            return value
        result = []
        i = 0
        while i < len(value):
            if value[i] == release and i + 1 < len(value):
                result.append(value[i + 1])
                i += 2
                continue
            result.append(value[i])
            i += 1
        return ''.join(result)

    @staticmethod
    def normalize_for_comparison(value: Optional[str], case_sensitive: bool = True,
                                 trim_whitespace: bool = False) -> str:
        """
        Normalize a value for equality comparison only (never for reporting).

        Args:
            value: Value to normalize (None becomes empty string)
            case_sensitive: When False the value is lower-cased character by character
            trim_whitespace: When True surrounding whitespace is removed
        """
        normalized = value if value is not None else ''
        if trim_whitespace:
            normalized = normalized.strip()
        if not case_sensitive:
            normalized = normalized.lower()
        return normalized

    @staticmethod
    def is_ascii_digits(value: Optional[str], length: int) -> bool:
        """True when value is exactly `length` ASCII digits (Unicode digits are rejected)."""
        if value is None or len(value) != length:
            return False
        return StringUtils._regex_cache['ascii_digits'].fullmatch(value) is not None
