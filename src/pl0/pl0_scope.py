"""
Lexical scopes for the PL/0 evaluator.

A `Scope` is created for every block activation. It holds two name tables,
variables and procedures, which share one namespace within the scope, and a link
to the enclosing scope. Lookups walk outward through the parent chain and stop at
the first match, so an inner declaration shadows an outer one.
"""

from __future__ import annotations

from typing import Any

from pl0.pl0_ast import ProcedureDeclaration
from pl0.pl0_errors import RedeclareError, UndefinedNameError
from pl0.pl0_values import TypedValue, Variable


class Scope:
    """One block activation's bindings.

    Attributes:
        parent (Scope | None): The enclosing scope, or None for the root scope.
        variables (dict[str, Variable]): Variables and constants declared here.
        procedures (dict[str, ProcedureDeclaration]): Procedures declared here.
    """

    def __init__(self, parent: Scope | None = None) -> None:
        self.parent = parent
        self.variables: dict[str, Variable] = {}
        self.procedures: dict[str, ProcedureDeclaration] = {}

    @property
    def depth(self) -> int:
        return 0 if self.parent is None else self.parent.depth + 1

    def declares(self, name: str) -> bool:
        """True if `name` is bound in this scope itself, ignoring parents."""
        return name in self.variables or name in self.procedures

    def create_var(self, name: str, value: Any = None, is_const: bool = False) -> Variable:
        """Declares a variable (or constant) in this scope.

        Args:
            name: The variable name.
            value: Initial value, a `TypedValue` or a plain Python value. None
                leaves the variable Invalid.
            is_const: Whether later assignments are rejected.

        Raises:
            RedeclareError: If `name` is already a variable or procedure here.
            UnsupportedDataTypeError: If `value` has no runtime representation.
        """
        if self.declares(name):
            raise RedeclareError(f"Cannot redeclare '{name}' in the same scope.")
        variable = Variable(TypedValue.of(value), is_const)
        self.variables[name] = variable
        return variable

    def create_procedure(self, name: str, procedure: ProcedureDeclaration) -> None:
        if self.declares(name):
            raise RedeclareError(f"Cannot redeclare '{name}' in the same scope.")
        self.procedures[name] = procedure

    def get_var(self, name: str) -> Variable | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.variables:
                return scope.variables[name]
            scope = scope.parent
        return None

    def get_procedure(self, name: str) -> ProcedureDeclaration | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.procedures:
                return scope.procedures[name]
            scope = scope.parent
        return None

    def set_var(self, name: str, value: Any) -> None:
        """Assigns to the nearest variable called `name`.

        Raises:
            UndefinedNameError: If no enclosing scope declares `name`.
            ReassignConstantError: If the resolved variable is a constant.
            UnsupportedDataTypeError: If `value` has no runtime representation.
        """
        variable = self.get_var(name)
        if variable is None:
            raise UndefinedNameError(f"Name '{name}' not found.")
        variable.assign(value)

    def __repr__(self) -> str:
        names = sorted(self.variables) + [f"{p}()" for p in sorted(self.procedures)]
        return f"Scope(depth={self.depth}, names=[{', '.join(names)}])"


__all__ = ["Scope"]
