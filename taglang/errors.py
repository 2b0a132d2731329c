"""
Exceptions raised while parsing and resolving tag text.

Every error carries a ``context`` dict with whatever is known about the
failure (function name, params, cause, position).
"""

from typing import Any, Dict, List, Optional


class TagLanguageError(Exception):
    """Base error for the tag language."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = dict(context or {})
        # Set once the message has been written to an error log
        self.reported = False
        # Snapshot of the error log when the error left a resolution
        self.error_log: List[str] = []
        super().__init__(message)


class ParseError(TagLanguageError):
    """Malformed input. Raised before evaluation starts, so never recoverable."""

    def __init__(self, message: str, position: int = 0, line: int = 1, column: int = 1):
        self.reason = message
        self.position = position
        self.line = line
        self.column = column
        super().__init__(
            f"Parse error at position {position} (line {line}, column {column}): {message}",
            {'position': position, 'line': line, 'column': column},
        )


class UnknownFunctionError(TagLanguageError):
    """A tag names a function that is not registered."""

    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"Unknown function: {function_name}", {'function': function_name})


class TagArithmeticError(TagLanguageError):
    """Division by zero or a non-numeric operand."""


class FunctionError(TagLanguageError):
    """A registered function failed."""

    def __init__(
        self,
        function_name: str,
        message: str,
        params: Optional[List[str]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.function_name = function_name
        self.params = list(params or [])
        context = {'function': function_name, 'params': self.params}
        if cause is not None:
            context['cause'] = cause
        super().__init__(message, context)


class NestingDepthError(ParseError):
    """Directives or parentheses nested deeper than the configured limit."""
