"""
Tree-walking evaluator for PL/0 programs.

The `Evaluator` walks a `Program` depth-first, keeping its own stack of `Scope`
objects:

    - Every block activation pushes a child of the current scope and pops it on
      exit, normally or through an error. The root scope is never popped.
    - A `call` statement looks the procedure up through the scope chain that is
      live at the moment of the call and runs its body block on top of that chain.
      Free names inside a procedure therefore resolve against the caller's
      chain, not the chain at the procedure's declaration.
    - The `ExitMarker` at the end of a program clears the whole stack, so the next
      `run()` starts from a fresh root scope. Interactive fragments without a
      closing '.' leave the root scope in place for the next fragment.

Print statements write one line to the output stream; input statements read one
line from the input stream. Both default to the process's stdout/stdin, resolved
when used.

Statement handlers are named `exec_<kind>` and expression handlers
`eval_<kind>`, where `<kind>` is the node's `kind`. A node without a handler
raises `UnrecognizedNodeError`.

Example:
    >>> Evaluator().run_source("var a; begin a := 6 * 7; ! a end.")
    42
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

from pl0.pl0_ast import (
    Assignment,
    Begin,
    Binary,
    Block,
    Call,
    Condition,
    ExitMarker,
    Identifier,
    If,
    Input,
    Literal,
    Node,
    Print,
    ProcedureDeclaration,
    Program,
    Typecast,
    Unary,
    VariableDeclarationGroup,
    While,
)
from pl0.pl0_constants import RECURSION_LIMIT
from pl0.pl0_errors import (
    DivideByZeroError,
    EvaluationError,
    OperatorError,
    StackOverflowError,
    UndefinedNameError,
    UnrecognizedNodeError,
)
from pl0.pl0_parser import parse
from pl0.pl0_scope import Scope
from pl0.pl0_values import (
    TypedValue,
    binary_op,
    cast,
    compare,
    is_odd,
    render,
    unary_op,
)

logger = logging.getLogger(__name__)


@contextmanager
def located(node: Node) -> Iterator[None]:
    """Attaches `node`'s position to runtime errors that do not carry one yet."""
    try:
        yield
    except EvaluationError as err:
        err.set_position(node.line, node.col)
        raise


class Evaluator:
    """Executes program trees against a stack of scopes.

    One instance can run many programs in sequence. Running the same instance
    from several threads at once is not supported.

    Attributes:
        scopes (list[Scope]): Active scopes, innermost last.
        debug (bool): When True, each program tree is logged before it runs.
    """

    def __init__(
        self,
        out: TextIO | None = None,
        in_: TextIO | None = None,
        debug: bool = False,
    ) -> None:
        self._out = out
        self._in = in_
        self.debug = debug
        self.scopes: list[Scope] = []

    @property
    def output(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    @property
    def input(self) -> TextIO:
        return self._in if self._in is not None else sys.stdin

    @property
    def scope(self) -> Scope:
        return self.scopes[-1]

    def run(self, program: Program) -> None:
        """Runs a whole program.

        The program's block shares the current top scope when a session is already
        active, and creates the root scope otherwise.
        Scopes pushed while running are unwound even when the run fails.

        Raises:
            EvaluationError: On the first runtime failure. Exhausting the Python
                stack is reported as `StackOverflowError`.
        """
        sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
        if self.debug:
            logger.debug(json.dumps(program.to_dict(), indent=2))
        depth = max(len(self.scopes), 1)
        try:
            self.run_block(program.body, create_scope=not self.scopes)
        except RecursionError as err:
            raise StackOverflowError(
                "Maximum recursion depth exceeded.", program.line, program.col
            ) from err
        finally:
            del self.scopes[depth:]

    def run_source(self, source: str) -> None:
        self.run(parse(source))

    def run_block(self, block: Block, create_scope: bool = True) -> None:
        """Executes a block's declarations and statement in order.

        Args:
            block: The block to run.
            create_scope: Push a child scope for the block. With False the block
                continues in the current top scope, as interactive fragments do.
                A scope is always created when none exists.
        """
        pushed = create_scope or not self.scopes
        if pushed:
            self.push_scope()
        try:
            for node in block.body:
                self.execute(node)
        finally:
            if pushed:
                self.pop_scope()

    def push_scope(self) -> None:
        parent = self.scopes[-1] if self.scopes else None
        self.scopes.append(Scope(parent))
        logger.debug("ENTER scope %d", len(self.scopes) - 1)

    def pop_scope(self) -> None:
        if len(self.scopes) > 1:
            logger.debug("LEAVE %r", self.scopes[-1])
            self.scopes.pop()

    def execute(self, node: Node) -> None:
        handler = getattr(self, f"exec_{node.kind}", None)
        if handler is None:
            raise UnrecognizedNodeError(
                f"Node '{type(node).__name__}' not recognized.", node.line, node.col
            )
        with located(node):
            handler(node)

    def eval_expression(self, node: Node) -> TypedValue:
        handler = getattr(self, f"eval_{node.kind}", None)
        if handler is None:
            raise UnrecognizedNodeError(
                f"Invalid node expression: {type(node).__name__}", node.line, node.col
            )
        with located(node):
            value: TypedValue = handler(node)
        return value

    def eval_condition(self, node: Condition) -> bool:
        with located(node):
            left = self.eval_expression(node.left)
            if node.is_odd:
                return is_odd(left)
            if node.operator is None or node.right is None:
                raise OperatorError(f"Invalid comparison operator: {node.operator}")
            return compare(node.operator, left, self.eval_expression(node.right))

    # Statements

    def exec_block(self, node: Block) -> None:
        self.run_block(node)

    def exec_variable_declaration_group(self, node: VariableDeclarationGroup) -> None:
        for decl in node.declarations:
            with located(decl):
                if decl.is_constant and decl.value is not None:
                    value = self.eval_expression(decl.value)
                    self.scope.create_var(decl.name, value, is_const=True)
                else:
                    self.scope.create_var(decl.name)

    def exec_procedure_declaration(self, node: ProcedureDeclaration) -> None:
        self.scope.create_procedure(node.name, node)

    def exec_assignment(self, node: Assignment) -> None:
        value = self.eval_expression(node.expr)
        self.scope.set_var(node.identifier.name, value)

    def exec_call(self, node: Call) -> None:
        name = node.identifier.name
        procedure = self.scope.get_procedure(name)
        if procedure is None:
            raise UndefinedNameError(f"Procedure '{name}' not found.")
        logger.debug("CALL %s", name)
        try:
            self.run_block(procedure.body)
        except RecursionError:
            raise StackOverflowError(f"Too many nested calls to '{name}'.") from None

    def exec_input(self, node: Input) -> None:
        name = node.identifier.name
        variable = self.scope.get_var(name)
        if variable is None:
            raise UndefinedNameError(f"Variable '{name}' not found.")
        line = self.input.readline()
        variable.assign(line.rstrip("\r\n") if line else None)

    def exec_print(self, node: Print) -> None:
        print(render(self.eval_expression(node.expr)), file=self.output)

    def exec_begin(self, node: Begin) -> None:
        for statement in node.body:
            self.execute(statement)

    def exec_if(self, node: If) -> None:
        if self.eval_condition(node.condition) and node.body is not None:
            self.execute(node.body)

    def exec_while(self, node: While) -> None:
        while self.eval_condition(node.condition):
            if node.body is not None:
                self.execute(node.body)

    def exec_exit_marker(self, node: ExitMarker) -> None:
        logger.debug("EXIT at line %d", node.line)
        self.scopes.clear()

    # Expressions

    def eval_literal(self, node: Literal) -> TypedValue:
        return TypedValue.from_literal(node.data_type, node.raw)

    def eval_identifier(self, node: Identifier) -> TypedValue:
        variable = self.scope.get_var(node.name)
        if variable is None:
            raise UndefinedNameError(f"Name '{node.name}' not found.")
        return variable.value

    def eval_unary(self, node: Unary) -> TypedValue:
        return unary_op(node.operator, self.eval_expression(node.operand))

    def eval_binary(self, node: Binary) -> TypedValue:
        left = self.eval_expression(node.left)
        right = self.eval_expression(node.right)
        try:
            return binary_op(node.operator, left, right)
        except DivideByZeroError as err:
            err.set_position(node.right.line, node.right.col)
            raise

    def eval_typecast(self, node: Typecast) -> TypedValue:
        return cast(self.eval_expression(node.operand), node.target_type)


def evaluate(
    program: Program | str,
    out: TextIO | None = None,
    in_: TextIO | None = None,
) -> Evaluator:
    """Runs a program tree or source text on a new `Evaluator` and returns it."""
    evaluator = Evaluator(out=out, in_=in_)
    if isinstance(program, str):
        evaluator.run_source(program)
    else:
        evaluator.run(program)
    return evaluator


__all__ = ["Evaluator", "evaluate", "located"]
