"""
Abstract interfaces for the EDI message validation system.

This module defines the contracts that parser components must implement so that
format auto-detection and the validation orchestrator can treat every format alike.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Union

from .models import FileFormat, Message


class MessageParserInterface(ABC):
    """Abstract interface for message parsing components."""

    file_format: FileFormat

    @abstractmethod
    def parse(self, content: str) -> Message:
        """
        Parse raw message text into a Message.

        Args:
            content: Raw message content

        Returns:
            Parsed message

        Raises:
            ParseError: If content is empty, malformed, or yields no segment
        """
        pass

    @abstractmethod
    def can_parse(self, content: str) -> bool:
        """
        Cheap heuristic check whether the content looks like this parser's format.

        This is a sniff used for format auto-detection, not a parse guarantee.

        Args:
            content: Raw message content

        Returns:
            True if the content looks parseable by this parser
        """
        pass

    @abstractmethod
    def parse_file(self, file_path: Union[str, Path]) -> Message:
        """
        Parse a message file (UTF-8).

        Args:
            file_path: Path to the message file

        Returns:
            Parsed message with source_file_path set

        Raises:
            ParseError: If the file is missing, unreadable or malformed
        """
        pass

    @abstractmethod
    def parse_stream(self, stream: IO) -> Message:
        """
        Parse a message from an open text or binary stream (UTF-8).

        Args:
            stream: Readable file-like object

        Returns:
            Parsed message
        """
        pass
