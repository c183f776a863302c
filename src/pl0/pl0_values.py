"""
Runtime values for the PL/0 evaluator.

A runtime value is a `TypedValue`: one of Invalid (an uninitialised variable),
Integer (signed 32-bit, wrapping), Float (IEEE single precision) or String. A
`Variable` wraps a value together with its constant flag.

The module also holds the dynamically-typed operations the evaluator performs:

    - binary_op: `+ - * /` with Integer/Float promotion and String concatenation
    - unary_op: `+` (no-op) and `-` (Integer and Float only)
    - compare: `= # < > <= >=`; Strings support only `=` and `#`
    - is_odd: the `odd` condition
    - cast: `(int)`, `(float)` and `(string)` typecasts
    - render: canonical text used by print statements and `(string)` casts

Operations raise `EvaluationError` subclasses without a source position; the
evaluator attaches the position of the node being evaluated.
"""

from __future__ import annotations

import math
import re
import struct
from typing import Any

from pl0.pl0_ast import BinaryOperator, ComparisonOperator, DataType, UnaryOperator
from pl0.pl0_errors import (
    DivideByZeroError,
    OperatorError,
    ReassignConstantError,
    UnsupportedDataTypeError,
    ValueTypeError,
)

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_INT_TEXT = re.compile(r"\s*[+-]?\d+\s*", re.ASCII)
_FLOAT_TEXT = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*", re.ASCII)


def wrap_int32(value: int) -> int:
    """Reduces `value` to the signed 32-bit range with two's complement wrapping."""
    return (value - INT32_MIN) % 2**32 + INT32_MIN


def to_float32(value: float) -> float:
    """Rounds `value` to the nearest IEEE single-precision number."""
    try:
        return float(struct.unpack("f", struct.pack("f", value))[0])
    except OverflowError:
        return math.copysign(math.inf, value)


def format_float(value: float) -> str:
    """Shortest text that reads back as the same single-precision value.

    Example:
        >>> format_float(to_float32(0.1))
        '0.1'
        >>> format_float(3.0)
        '3'
        >>> format_float(1e10)
        '1E+10'
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    for precision in range(1, 10):
        text = f"{value:.{precision}g}"
        if to_float32(float(text)) == value:
            break
    return text.replace("e", "E")


def parse_int_text(text: str) -> int:
    """Best-effort text to Integer; anything unparsable or out of range is 0."""
    if not _INT_TEXT.fullmatch(text):
        return 0
    value = int(text)
    if value < INT32_MIN or value > INT32_MAX:
        return 0
    return value


def parse_float_text(text: str) -> float:
    """Best-effort text to Float; anything unparsable is 0.0."""
    if not _FLOAT_TEXT.fullmatch(text):
        return 0.0
    return to_float32(float(text))


class TypedValue:
    """An immutable runtime value tagged with its data type.

    Use the factories rather than the constructor:
        TypedValue.of(raw): classify a Python object (None, int, float, str).
        TypedValue.from_literal(data_type, raw_text): evaluate literal source text.

    Attributes:
        data_type (DataType): The tag.
        value (int | float | str | None): The payload; None for Invalid.
    """

    __slots__ = ("data_type", "value")

    def __init__(self, data_type: DataType, value: int | float | str | None) -> None:
        self.data_type = data_type
        self.value = value

    @classmethod
    def invalid(cls) -> TypedValue:
        return cls(DataType.INVALID, None)

    @classmethod
    def integer(cls, value: int) -> TypedValue:
        return cls(DataType.INTEGER, wrap_int32(value))

    @classmethod
    def float_(cls, value: float) -> TypedValue:
        return cls(DataType.FLOAT, to_float32(value))

    @classmethod
    def string(cls, value: str) -> TypedValue:
        return cls(DataType.STRING, value)

    @classmethod
    def of(cls, raw: Any) -> TypedValue:
        """Wraps a plain Python value.

        Raises:
            UnsupportedDataTypeError: For anything but None, int, float, str or a
                TypedValue.
        """
        if isinstance(raw, TypedValue):
            return raw
        if raw is None:
            return cls.invalid()
        if isinstance(raw, bool):
            raise UnsupportedDataTypeError(
                f"Cannot assign an unsupported data type: {type(raw).__name__}"
            )
        if isinstance(raw, int):
            return cls.integer(raw)
        if isinstance(raw, float):
            return cls.float_(raw)
        if isinstance(raw, str):
            return cls.string(raw)
        raise UnsupportedDataTypeError(
            f"Cannot assign an unsupported data type: {type(raw).__name__}"
        )

    @classmethod
    def from_literal(cls, data_type: DataType, raw: str) -> TypedValue:
        if data_type == DataType.INTEGER:
            return cls.integer(int(raw))
        if data_type == DataType.FLOAT:
            return cls.float_(float(raw))
        if data_type == DataType.STRING:
            return cls.string(raw)
        raise ValueTypeError(f"Invalid literal type: {data_type}")

    @property
    def is_numeric(self) -> bool:
        return self.data_type in (DataType.INTEGER, DataType.FLOAT)

    def as_float(self) -> float:
        if not self.is_numeric:
            raise ValueTypeError(f"Expected a number but got {self.data_type}")
        return to_float32(float(self.value))  # type: ignore[arg-type]

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, TypedValue)
            and self.data_type == other.data_type
            and self.value == other.value
        )

    def __hash__(self) -> int:
        return hash((self.data_type, self.value))

    def __repr__(self) -> str:
        return f"TypedValue({self.data_type}, {self.value!r})"


class Variable:
    """A named storage slot: a current value plus a constant flag."""

    __slots__ = ("value", "is_constant")

    def __init__(self, value: TypedValue | None = None, is_constant: bool = False) -> None:
        self.value = value if value is not None else TypedValue.invalid()
        self.is_constant = is_constant

    def assign(self, value: Any) -> None:
        """Replaces the value; the new value may have a different type.

        Raises:
            ReassignConstantError: Always, when the variable is a constant,
                whatever `value` is.
            UnsupportedDataTypeError: If `value` has no runtime representation.
        """
        if self.is_constant:
            raise ReassignConstantError("Cannot reassign a constant.")
        self.value = TypedValue.of(value)

    def __repr__(self) -> str:
        prefix = "const " if self.is_constant else ""
        return f"Variable({prefix}{self.value!r})"


def render(value: TypedValue) -> str:
    """Canonical text of a value; Invalid renders as the empty string."""
    if value.data_type == DataType.INTEGER:
        return str(value.value)
    if value.data_type == DataType.FLOAT:
        return format_float(float(value.value))  # type: ignore[arg-type]
    if value.data_type == DataType.STRING:
        return str(value.value)
    return ""


def _int_arith(left: int, right: int, op: BinaryOperator) -> int:
    if op == BinaryOperator.PLUS:
        return left + right
    if op == BinaryOperator.MINUS:
        return left - right
    if op == BinaryOperator.STAR:
        return left * right
    if op == BinaryOperator.SLASH:
        if right == 0:
            raise DivideByZeroError("Cannot divide by zero.")
        quotient = abs(left) // abs(right)
        return quotient if (left < 0) == (right < 0) else -quotient
    raise OperatorError(f"Unexpected binary operator: {op}")


def _float_arith(left: float, right: float, op: BinaryOperator) -> float:
    if op == BinaryOperator.PLUS:
        return left + right
    if op == BinaryOperator.MINUS:
        return left - right
    if op == BinaryOperator.STAR:
        return left * right
    if op == BinaryOperator.SLASH:
        if right == 0.0:
            raise DivideByZeroError("Cannot divide by zero.")
        return left / right
    raise OperatorError(f"Unexpected binary operator: {op}")


def binary_op(op: BinaryOperator, left: TypedValue, right: TypedValue) -> TypedValue:
    """Applies an arithmetic operator.

    Integer with Integer stays Integer (division truncates toward zero); any
    Float operand promotes both sides to Float; String supports only `+` with
    another String.

    Raises:
        DivideByZeroError: On a zero divisor, Integer or Float.
        ValueTypeError: On any other operand combination.
        OperatorError: If `op` is not an arithmetic operator.
    """
    if left.data_type == DataType.INTEGER and right.data_type == DataType.INTEGER:
        return TypedValue.integer(_int_arith(left.value, right.value, op))  # type: ignore[arg-type]
    if left.is_numeric and right.is_numeric:
        return TypedValue.float_(_float_arith(left.as_float(), right.as_float(), op))
    if left.data_type == DataType.STRING and right.data_type == DataType.STRING:
        if op != BinaryOperator.PLUS:
            raise ValueTypeError(f"Invalid string operator: {op.value}")
        return TypedValue.string(str(left.value) + str(right.value))
    raise ValueTypeError(
        f"Incompatible data types for binary operator '{op.value}': "
        f"{left.data_type} and {right.data_type}"
    )


def unary_op(op: UnaryOperator, operand: TypedValue) -> TypedValue:
    if op == UnaryOperator.PLUS:
        return operand
    if op != UnaryOperator.MINUS:
        raise OperatorError(f"Unexpected unary operator: {op}")
    if operand.data_type == DataType.INTEGER:
        return TypedValue.integer(-operand.value)  # type: ignore[operator]
    if operand.data_type == DataType.FLOAT:
        return TypedValue.float_(-operand.value)  # type: ignore[operator]
    raise ValueTypeError(f"Invalid type with unary operator: {operand.data_type}")


def _compare_ordered(left: Any, right: Any, op: ComparisonOperator) -> bool:
    if op == ComparisonOperator.EQ:
        return bool(left == right)
    if op == ComparisonOperator.NE:
        return bool(left != right)
    if op == ComparisonOperator.LT:
        return bool(left < right)
    if op == ComparisonOperator.GT:
        return bool(left > right)
    if op == ComparisonOperator.LE:
        return bool(left <= right)
    if op == ComparisonOperator.GE:
        return bool(left >= right)
    raise OperatorError(f"Unexpected comparison operator: {op}")


def compare(op: ComparisonOperator, left: TypedValue, right: TypedValue) -> bool:
    """Evaluates a comparison with the same numeric promotion as `binary_op`.

    Raises:
        ValueTypeError: For mixed String/number operands, Invalid operands, or an
            ordering comparison between Strings.
    """
    if left.data_type == DataType.INTEGER and right.data_type == DataType.INTEGER:
        return _compare_ordered(left.value, right.value, op)
    if left.is_numeric and right.is_numeric:
        return _compare_ordered(left.as_float(), right.as_float(), op)
    if left.data_type == DataType.STRING and right.data_type == DataType.STRING:
        if op not in (ComparisonOperator.EQ, ComparisonOperator.NE):
            raise ValueTypeError(f"Strings cannot be compared with '{op.value}'")
        return _compare_ordered(left.value, right.value, op)
    raise ValueTypeError(f"Cannot compare types {left.data_type} and {right.data_type}")


def is_odd(value: TypedValue) -> bool:
    if value.data_type == DataType.INTEGER:
        return value.value % 2 != 0  # type: ignore[operator]
    if value.data_type == DataType.FLOAT:
        return math.fmod(value.value, 2) != 0  # type: ignore[arg-type]
    raise ValueTypeError(
        f"Odd conditions can only work with integers and floats, but got type: {value.data_type}"
    )


def cast(value: TypedValue, target: DataType) -> TypedValue:
    """Converts `value` to `target`.

    Text that does not parse as a number becomes zero. Casting to String always
    succeeds.

    Raises:
        ValueTypeError: When casting Invalid to a number, or a non-finite Float to
            Integer.
    """
    if target == DataType.STRING:
        return TypedValue.string(render(value))

    if target == DataType.INTEGER:
        if value.data_type == DataType.INTEGER:
            return value
        if value.data_type == DataType.FLOAT:
            if not math.isfinite(value.value):  # type: ignore[arg-type]
                raise ValueTypeError(f"Cannot cast {render(value)} to {target}")
            return TypedValue.integer(int(value.value))  # type: ignore[arg-type]
        if value.data_type == DataType.STRING:
            return TypedValue.integer(parse_int_text(str(value.value)))

    if target == DataType.FLOAT:
        if value.data_type == DataType.FLOAT:
            return value
        if value.data_type == DataType.INTEGER:
            return TypedValue.float_(value.as_float())
        if value.data_type == DataType.STRING:
            return TypedValue.float_(parse_float_text(str(value.value)))

    if target == DataType.INVALID:
        raise ValueTypeError(f"Unsupported cast type: {target}")
    raise ValueTypeError(f"Cannot cast {value.data_type} to {target}")


__all__ = [
    "INT32_MAX",
    "INT32_MIN",
    "TypedValue",
    "Variable",
    "binary_op",
    "cast",
    "compare",
    "format_float",
    "is_odd",
    "parse_float_text",
    "parse_int_text",
    "render",
    "to_float32",
    "unary_op",
    "wrap_int32",
]
