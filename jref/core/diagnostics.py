"""
Diagnostics — Syntax errors as positioned, human-readable diagnostics

Every parse error becomes exactly one diagnostic, in the order the parser
reported them. Nothing is merged, deduplicated or capped.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List, Optional, Union

from .documents import Range, TextDocument
from .nodes import ParseError, ParseErrorCode

SOURCE = "jref-language-server"
UNKNOWN_ERROR_MESSAGE = "Unknown syntax error"

ERROR_MESSAGES = {
    ParseErrorCode.INVALID_SYMBOL: "Invalid symbol found",
    ParseErrorCode.INVALID_NUMBER_FORMAT: "Invalid number format",
    ParseErrorCode.PROPERTY_NAME_EXPECTED: "Property name expected",
    ParseErrorCode.VALUE_EXPECTED: "Value expected",
    ParseErrorCode.COLON_EXPECTED: "Colon expected",
    ParseErrorCode.COMMA_EXPECTED: "Comma expected",
    ParseErrorCode.CLOSE_BRACE_EXPECTED: 'Closing brace "}" expected',
    ParseErrorCode.CLOSE_BRACKET_EXPECTED: 'Closing bracket "]" expected',
    ParseErrorCode.END_OF_FILE_EXPECTED: "End of file expected",
    ParseErrorCode.INVALID_COMMENT_TOKEN: "Invalid comment token",
    ParseErrorCode.UNEXPECTED_END_OF_COMMENT: "Unexpected end of comment",
    ParseErrorCode.UNEXPECTED_END_OF_STRING: "Unexpected end of string",
    ParseErrorCode.UNEXPECTED_END_OF_NUMBER: "Unexpected end of number",
    ParseErrorCode.INVALID_UNICODE: "Invalid unicode sequence",
    ParseErrorCode.INVALID_ESCAPE_CHARACTER: "Invalid escape character",
    ParseErrorCode.INVALID_CHARACTER: "Invalid character found",
}


class DiagnosticSeverity(IntEnum):
    """Severity levels, numbered as in the Language Server Protocol."""
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


@dataclass(frozen=True)
class Diagnostic:
    range: Range
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR
    source: str = SOURCE
    code: Optional[str] = None


def _as_code(code: Union[ParseErrorCode, int]) -> Optional[ParseErrorCode]:
    try:
        return ParseErrorCode(code)
    except ValueError:
        return None


def get_diagnostics_message(code: Union[ParseErrorCode, int]) -> str:
    """Message for an error code; codes without one get a generic message."""
    known = _as_code(code)
    if known is None:
        return UNKNOWN_ERROR_MESSAGE
    return ERROR_MESSAGES.get(known, UNKNOWN_ERROR_MESSAGE)


def create_parse_error_diagnostic(document: TextDocument, parse_error: ParseError) -> Diagnostic:
    """Position a single parse error within its document."""
    known = _as_code(parse_error.error)
    return Diagnostic(
        range=document.range_at(parse_error.offset, parse_error.length),
        message=get_diagnostics_message(parse_error.error),
        severity=DiagnosticSeverity.ERROR,
        source=SOURCE,
        code=known.name if known is not None else None,
    )


def to_diagnostics(document: TextDocument, errors: Iterable[ParseError]) -> List[Diagnostic]:
    """
    Map syntax errors to diagnostics.

    Args:
        document: Document the errors were reported against
        errors: Parse errors in parser order

    Returns:
        One diagnostic per error, same order
    """
    return [create_parse_error_diagnostic(document, error) for error in errors]
