"""
Error taxonomies for the PL/0 interpreter.

Two disjoint families are defined:

ParseError:
    Raised by the lexer and parser. Parsing stops at the first one.
    - UnexpectedTokenError (reported as ``SyntaxError``)
    - UnterminatedStringError
    - MalformedFloatError

EvaluationError:
    Raised by the evaluator, scopes and runtime values. Evaluation stops at the
    first one.
    - UndefinedNameError (reported as ``NameError``)
    - RedeclareError
    - ReassignConstantError
    - DivideByZeroError
    - ValueTypeError (reported as ``TypeError``)
    - OperatorError
    - UnsupportedDataTypeError
    - UnrecognizedNodeError
    - StackOverflowError

Every error carries a line, a column and a message, and renders as
``( line, column ) message``.
"""


class ParseError(Exception):
    """Base class for lexing and parsing failures.

    Attributes:
        line (int): 1-based source line of the offending token.
        column (int): 1-based source column of the offending token.
        message (str): Human-readable description.
    """

    kind = "ParseError"

    def __init__(self, line: int, column: int, message: str) -> None:
        super().__init__(message)
        self.line = line
        self.column = column
        self.message = message

    def __str__(self) -> str:
        return f"( {self.line}, {self.column} ) {self.message}"


class UnexpectedTokenError(ParseError):
    """A token that does not fit the grammar at its position."""

    kind = "SyntaxError"


class UnterminatedStringError(ParseError):
    kind = "UnterminatedString"


class MalformedFloatError(ParseError):
    kind = "MalformedFloat"


class EvaluationError(Exception):
    """Base class for runtime failures.

    The position is optional at construction: errors raised below the evaluator
    (scopes, values) start at ``0, 0`` and the evaluator attaches the position of
    the node being executed while the error propagates.

    Attributes:
        line (int): 1-based source line, or 0 if not yet known.
        column (int): 1-based source column, or 0 if not yet known.
        message (str): Human-readable description.
    """

    kind = "RuntimeError"

    def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    @property
    def has_position(self) -> bool:
        return self.line > 0

    def set_position(self, line: int, column: int) -> None:
        """Attach a source position unless one is already set."""
        if not self.has_position:
            self.line = line
            self.column = column

    def __str__(self) -> str:
        return f"( {self.line}, {self.column} ) {self.message}"


class UndefinedNameError(EvaluationError):
    kind = "NameError"


class RedeclareError(EvaluationError):
    kind = "RedeclareError"


class ReassignConstantError(EvaluationError):
    kind = "ReassignConstantError"


class DivideByZeroError(EvaluationError):
    kind = "DivideByZeroError"


class ValueTypeError(EvaluationError):
    """Operand or cast types that the operation does not support."""

    kind = "TypeError"


class OperatorError(EvaluationError):
    """An operator reached an arithmetic routine that has no case for it."""

    kind = "OperatorError"


class UnsupportedDataTypeError(EvaluationError):
    kind = "UnsupportedDataTypeError"


class UnrecognizedNodeError(EvaluationError):
    kind = "UnrecognizedNodeError"


class StackOverflowError(EvaluationError):
    """Procedure calls or expressions nested deeper than the interpreter allows."""

    kind = "StackOverflowError"


def format_error(err: ParseError | EvaluationError) -> str:
    """Render an error the way the console front ends print it.

    Example:
        >>> format_error(UndefinedNameError("Name 'x' not found.", 1, 3))
        "NameError: ( 1, 3 ) Name 'x' not found."
    """
    return f"{err.kind}: {err}"


__all__ = [
    "DivideByZeroError",
    "EvaluationError",
    "MalformedFloatError",
    "OperatorError",
    "ParseError",
    "ReassignConstantError",
    "RedeclareError",
    "StackOverflowError",
    "UndefinedNameError",
    "UnexpectedTokenError",
    "UnrecognizedNodeError",
    "UnsupportedDataTypeError",
    "UnterminatedStringError",
    "ValueTypeError",
    "format_error",
]
