"""
Format auto-detection and parser lookup.

Detection asks each parser's can_parse() sniff in a fixed order: XML, EDIFACT,
then ANSI X12 (whose sniff is the loosest). The sniff is a heuristic; the chosen
parser can still raise ParseError.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Type, Union

from ..exceptions import FormatDetectionError, ParseError
from ..models import FileFormat, Message
from .base_parser import BaseMessageParser
from .edifact_parser import EdifactParser
from .x12_parser import AnsiX12Parser
from .xml_parser import XmlMessageParser


logger = logging.getLogger(__name__)

PARSER_CLASSES: Dict[FileFormat, Type[BaseMessageParser]] = {
    FileFormat.XML: XmlMessageParser,
    FileFormat.EDIFACT: EdifactParser,
    FileFormat.ANSI_X12: AnsiX12Parser,
}

DETECTION_ORDER = (FileFormat.XML, FileFormat.EDIFACT, FileFormat.ANSI_X12)


def get_parser(file_format: FileFormat) -> BaseMessageParser:
    """Return a new parser instance for the given format."""
    try:
        return PARSER_CLASSES[file_format]()
    except KeyError:
        raise ValueError(f"No parser registered for format {file_format}") from None


def detect_format(content: str) -> FileFormat:
    """
    Detect the format of raw message content.

    Raises:
        FormatDetectionError: If no parser recognizes the content
    """
    for file_format in DETECTION_ORDER:
        if get_parser(file_format).can_parse(content):
            logger.debug(f"Detected message format: {file_format}")
            return file_format
    raise FormatDetectionError("Unable to detect message format", content=(content or '').strip())


def parse_message(content: str, file_format: Optional[FileFormat] = None) -> Message:
    """Parse content with the given parser, or the auto-detected one."""
    if file_format is None:
        file_format = detect_format(content)
    return get_parser(file_format).parse(content)


def parse_message_file(file_path: Union[str, Path], file_format: Optional[FileFormat] = None) -> Message:
    """
    Parse a message file, choosing the parser by explicit format, file extension,
    or content sniffing, in that order.
    """
    path = Path(file_path)
    if file_format is None:
        file_format = FileFormat.from_filename(path)
    if file_format is None:
        try:
            content = path.read_text(encoding='utf-8-sig')
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError(f"Failed to read file {path}: {e}", source_file=str(path)) from e
        file_format = detect_format(content)
    return get_parser(file_format).parse_file(path)
