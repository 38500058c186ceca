"""Format-specific parsers producing the uniform Message model."""

from .base_parser import BaseMessageParser, DelimitedMessageParser, Delimiters
from .edifact_parser import EdifactParser
from .x12_parser import AnsiX12Parser
from .xml_parser import XmlMessageParser
from .format_detector import detect_format, get_parser, parse_message, parse_message_file

__all__ = [
    'BaseMessageParser',
    'DelimitedMessageParser',
    'Delimiters',
    'EdifactParser',
    'AnsiX12Parser',
    'XmlMessageParser',
    'detect_format',
    'get_parser',
    'parse_message',
    'parse_message_file',
]
