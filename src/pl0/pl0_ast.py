"""
Defines the abstract syntax tree (AST) node model for the PL/0 interpreter.

Every node variant is a frozen dataclass deriving from `Node`, which carries the
source position (offset, line, col) of the first token the node consumed. The
parser builds the tree once; nothing downstream mutates it.

Node variants:
    Program, Block
    Declarations: VariableDeclarationGroup (of VariableDeclaration), ProcedureDeclaration
    Statements: Assignment, Call, Input, Print, Begin, If, While, ExitMarker
    Condition
    Expressions: Unary, Binary, Literal, Typecast, Identifier

Each node exposes `kind` (snake_case variant name, used by the evaluator for
dispatch) and `to_dict()` for JSON-friendly serialization, e.g. the debug dump of
a parsed program.

Example:
    Print(0, 1, 1, expr=Literal(2, 1, 3, data_type=DataType.INTEGER, raw="5"))
"""

import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any


class DataType(str, Enum):
    INVALID = "Invalid"
    INTEGER = "Integer"
    FLOAT = "Float"
    STRING = "String"

    def __str__(self) -> str:
        return self.value


class UnaryOperator(str, Enum):
    PLUS = "+"
    MINUS = "-"


class BinaryOperator(str, Enum):
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"


class ComparisonOperator(str, Enum):
    EQ = "="
    NE = "#"
    LT = "<"
    GT = ">"
    LE = "<="
    GE = ">="


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _serialize(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


@dataclass(frozen=True)
class Node:
    """Base of every AST variant.

    Attributes:
        offset (int): 0-based character offset of the node's first token.
        line (int): 1-based line of the node's first token.
        col (int): 1-based column of the node's first token.
    """

    offset: int
    line: int
    col: int

    @property
    def kind(self) -> str:
        return _CAMEL_BOUNDARY.sub("_", type(self).__name__).lower()

    def to_dict(self) -> dict[str, Any]:
        """Converts the node and all its descendants into nested dictionaries."""
        data: dict[str, Any] = {
            "kind": self.kind,
            "line": self.line,
            "col": self.col,
            "offset": self.offset,
        }
        for field in fields(self):
            if field.name in data:
                continue
            data[field.name] = _serialize(getattr(self, field.name))
        return data


# Expressions


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class Literal(Node):
    """A literal as written in the source; `raw` is decimal text for radix integers."""

    data_type: DataType
    raw: str


@dataclass(frozen=True)
class Unary(Node):
    operator: UnaryOperator
    operand: Node


@dataclass(frozen=True)
class Binary(Node):
    operator: BinaryOperator
    left: Node
    right: Node


@dataclass(frozen=True)
class Typecast(Node):
    target_type: DataType
    operand: Node


@dataclass(frozen=True)
class Condition(Node):
    """`odd left` or `left <operator> right`.

    For the odd form, `operator` and `right` are None.
    """

    left: Node
    is_odd: bool = False
    operator: ComparisonOperator | None = None
    right: Node | None = None


# Statements


@dataclass(frozen=True)
class Assignment(Node):
    identifier: Identifier
    expr: Node


@dataclass(frozen=True)
class Call(Node):
    identifier: Identifier


@dataclass(frozen=True)
class Input(Node):
    identifier: Identifier


@dataclass(frozen=True)
class Print(Node):
    expr: Node


@dataclass(frozen=True)
class Begin(Node):
    body: tuple[Node, ...]


@dataclass(frozen=True)
class If(Node):
    condition: Condition
    body: Node | None


@dataclass(frozen=True)
class While(Node):
    condition: Condition
    body: Node | None


@dataclass(frozen=True)
class ExitMarker(Node):
    """Synthetic statement appended where the program's closing '.' was seen."""


# Declarations and structure


@dataclass(frozen=True)
class VariableDeclaration(Node):
    name: str
    is_constant: bool = False
    value: Literal | None = None


@dataclass(frozen=True)
class VariableDeclarationGroup(Node):
    declarations: tuple[VariableDeclaration, ...]


@dataclass(frozen=True)
class Block(Node):
    """Declarations, then procedures, then at most one statement, in source order."""

    body: tuple[Node, ...]


@dataclass(frozen=True)
class ProcedureDeclaration(Node):
    name: str
    body: Block


@dataclass(frozen=True)
class Program(Node):
    body: Block


__all__ = [
    "Assignment",
    "Begin",
    "Binary",
    "BinaryOperator",
    "Block",
    "Call",
    "ComparisonOperator",
    "Condition",
    "DataType",
    "ExitMarker",
    "Identifier",
    "If",
    "Input",
    "Literal",
    "Node",
    "Print",
    "ProcedureDeclaration",
    "Program",
    "Typecast",
    "Unary",
    "UnaryOperator",
    "VariableDeclaration",
    "VariableDeclarationGroup",
    "While",
]
