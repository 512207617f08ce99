"""Exception hierarchy for XML stream filtering.

Configuration errors are raised while a filter is being assembled; parse errors
are raised while a document is being scanned. I/O failures are left as the
builtin ``OSError`` family and predicate/transformer failures propagate
unchanged.
"""

from typing import List, Optional


class StreamFilterError(Exception):
    """Base exception for all XML stream filter errors."""


class ConfigError(StreamFilterError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when a filter configuration is invalid."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


class XMLStreamParseError(StreamFilterError):
    """Exception raised when the input is not well-formed or is truncated.

    Attributes:
        line: 1-based line of the failure, when the tokenizer reports one
        column: 1-based column of the failure, when the tokenizer reports one
    """

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        message = super().__str__()
        if self.line is not None:
            return f"{message} (line {self.line}, column {self.column})"
        return message
