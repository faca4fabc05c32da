"""Frontmatter wire format: request formatting and response parsing."""

from .formatter import (
    FileReader,
    FileSystemReader,
    InputDocument,
    RequestSection,
    SectionRole,
    format_request,
    format_routing_info,
    split_request,
    strip_frontmatter,
)
from .messages import request_to_messages
from .parser import (
    ParsedResponse,
    ResponseSection,
    is_multi_file,
    parse_response,
    validate_syntax,
)

__all__ = [
    "FileReader",
    "FileSystemReader",
    "InputDocument",
    "ParsedResponse",
    "RequestSection",
    "ResponseSection",
    "SectionRole",
    "format_request",
    "format_routing_info",
    "is_multi_file",
    "parse_response",
    "request_to_messages",
    "split_request",
    "strip_frontmatter",
    "validate_syntax",
]
