"""
PL/0 Language Parser

Parses PL/0 source tokens into a `Program` abstract syntax tree.

This module implements a recursive-descent parser with a single token of
lookahead. Tokens are pulled from the `Lexer` on demand; there is no separate
tokenization pass. Parsing is fail-fast: the first grammar violation raises and
nothing is recovered.

Grammar
-------
    Program       := Block '.'
    Block         := [ConstGroup] [VarGroup] {ProcedureDecl} [Statement] [';']
    ConstGroup    := 'const' ident '=' Literal {',' ident '=' Literal} ';'
    VarGroup      := 'var' ident {',' ident} ';'
    ProcedureDecl := 'procedure' ident ';' Block
    Statement     := ident ':=' Expr | 'call' ident | '?' ident | '!' Expr
                   | 'begin' Statement {';' Statement} 'end'
                   | 'if' Condition 'then' Statement
                   | 'while' Condition 'do' Statement
                   | <empty>
    Condition     := 'odd' Expr | Expr ('=' | '#' | '<' | '>' | '<=' | '>=') Expr
    Expr          := Term [('+' | '-') Expr]
    Term          := Unary [('*' | '/') Term]
    Unary         := ('+' | '-') Unary | Factor
    Factor        := ident | Literal | '(' ('int' | 'float' | 'string') ')' Factor
                   | '(' Expr ')'

Binary operators are right-associative by construction: `4 - 2 - 1` groups as
`4 - (2 - 1)`. Multiplication and division still bind tighter than addition and
subtraction.

When the outermost block ends at the closing '.', an `ExitMarker` statement is
appended to it. Interactive callers use it to detect the end of a session.

Entry Points
------------
- `Parser.parse()`: Parse a full program ending in '.'.
- `Parser.parse_fragment()`: Parse one block for interactive use; the '.' is optional.
- `parse(source)`: Module-level shortcut for `Parser.parse()`.

Raises
------
UnexpectedTokenError
    On any grammar violation, and for input nested too deeply to parse.
UnterminatedStringError, MalformedFloatError
    Propagated from the lexer.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import NoReturn, TypeVar

from pl0.pl0_ast import (
    Assignment,
    Begin,
    Binary,
    BinaryOperator,
    Block,
    Call,
    ComparisonOperator,
    Condition,
    DataType,
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
    UnaryOperator,
    VariableDeclaration,
    VariableDeclarationGroup,
    While,
)
from pl0.pl0_constants import (
    LITERAL_TOKENS,
    RECURSION_LIMIT,
    TYPECAST_KEYWORDS,
    TokenType,
)
from pl0.pl0_errors import UnexpectedTokenError
from pl0.pl0_lexer import CharacterStream, Lexer, Token

T = TypeVar("T")

LITERAL_TYPES: dict[TokenType, DataType] = {
    TokenType.NUMBER: DataType.INTEGER,
    TokenType.FLOAT: DataType.FLOAT,
    TokenType.STRING: DataType.STRING,
}

CAST_TYPES: dict[TokenType, DataType] = {
    TokenType.INT: DataType.INTEGER,
    TokenType.FLOAT_TYPE: DataType.FLOAT,
    TokenType.STRING_TYPE: DataType.STRING,
}

ADDITIVE_OPS = {TokenType.PLUS, TokenType.SUB}
MULTIPLICATIVE_OPS = {TokenType.MULT, TokenType.DIV}
COMPARISON_OPS = {
    TokenType.EQ,
    TokenType.HASH,
    TokenType.LT,
    TokenType.GT,
    TokenType.LE,
    TokenType.GE,
}


def _pos(tok: Token) -> tuple[int, int, int]:
    return tok.offset, tok.line, tok.col


class Parser:
    """
    PL/0 Parser Class

    Responsible for transforming the lexer's token stream into a `Program` tree.
    Holds exactly one token of lookahead in `current`.

    Attributes
    ----------
    lexer : Lexer
        The token source.
    current : Token
        The next token to be consumed.
    depth : int
        Block nesting depth; 0 while parsing the outermost block.

    Raises
    ------
    UnexpectedTokenError
        When an invalid construct or malformed syntax is encountered during parsing.
    """

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.depth = 0
        self.current: Token = lexer.next_token()

    @classmethod
    def from_source(cls, source: str) -> Parser:
        return cls(Lexer(CharacterStream(source)))

    def check(self, *types: TokenType) -> bool:
        return self.current.type in types

    def advance(self) -> Token:
        """Consumes the current token and returns it."""
        tok = self.current
        self.current = self.lexer.next_token()
        return tok

    def match(self, type_: TokenType, context: str = "") -> Token:
        """Consumes the current token if it has the expected type.

        Raises:
            UnexpectedTokenError: Naming the expected and the actual token type.
        """
        if self.check(type_):
            return self.advance()
        suffix = f" {context}" if context else ""
        self.error(f"Expected {type_}{suffix} but got {self.current.type}")

    def error(self, message: str, tok: Token | None = None) -> NoReturn:
        tok = tok or self.current
        raise UnexpectedTokenError(tok.line, tok.col, message)

    def parse(self) -> Program:
        """Parse a full program and return its tree."""
        tok = self.current
        body = self.parse_nested(self.parse_block)
        self.match(TokenType.DOT, "at end of program")
        self.match(TokenType.EOF, "after the closing '.'")
        return Program(*_pos(tok), body=body)

    def parse_fragment(self) -> Block:
        """Parse a single block typed at an interactive prompt.

        Unlike `parse()`, the closing '.' is optional; it still produces an
        `ExitMarker` when present.
        """
        block = self.parse_nested(self.parse_block)
        if self.check(TokenType.DOT):
            self.advance()
        self.match(TokenType.EOF, "after statement")
        return block

    def parse_nested(self, rule: Callable[[], T]) -> T:
        """Runs a grammar rule, reporting Python stack exhaustion as a syntax error."""
        sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
        try:
            return rule()
        except RecursionError:
            self.error(f"Input nested too deeply at {self.current.type}")

    def parse_block(self) -> Block:
        tok = self.current
        top_level = self.depth == 0
        body: list[Node] = []

        self.depth += 1
        try:
            if self.check(TokenType.CONST):
                body.append(self.parse_constants())
            if self.check(TokenType.VAR):
                body.append(self.parse_variables())
            while self.check(TokenType.PROCEDURE):
                body.append(self.parse_procedure())
        finally:
            self.depth -= 1

        statement = self.parse_statement()
        if statement is not None:
            body.append(statement)
        if self.check(TokenType.SEMICOLON):
            self.advance()
        if top_level and self.check(TokenType.DOT):
            body.append(ExitMarker(*_pos(self.current)))

        return Block(*_pos(tok), body=tuple(body))

    def parse_constants(self) -> VariableDeclarationGroup:
        """Parse `const a = 1, b = 'x';`; every constant needs its own literal."""
        group_tok = self.match(TokenType.CONST)
        declarations: list[VariableDeclaration] = []
        while True:
            name_tok = self.match(TokenType.IDENT, "in constant declaration")
            self.match(TokenType.EQ, f"after constant '{name_tok.value}'")
            value_tok = self.current
            if value_tok.type not in LITERAL_TOKENS:
                self.error(
                    f"Expected an integer, float, or string but got {value_tok.type}"
                )
            self.advance()
            value = Literal(
                *_pos(value_tok),
                data_type=LITERAL_TYPES[value_tok.type],
                raw=value_tok.value,
            )
            declarations.append(
                VariableDeclaration(
                    *_pos(name_tok), name=name_tok.value, is_constant=True, value=value
                )
            )
            if self.check(TokenType.SEMICOLON):
                break
            if not self.check(TokenType.COMMA):
                self.error(f"Expected COMMA or SEMICOLON but got {self.current.type}")
            self.advance()

        self.advance()
        return VariableDeclarationGroup(*_pos(group_tok), declarations=tuple(declarations))

    def parse_variables(self) -> VariableDeclarationGroup:
        group_tok = self.match(TokenType.VAR)
        declarations: list[VariableDeclaration] = []
        while True:
            name_tok = self.match(TokenType.IDENT, "in variable declaration")
            declarations.append(VariableDeclaration(*_pos(name_tok), name=name_tok.value))
            if self.check(TokenType.SEMICOLON):
                break
            if not self.check(TokenType.COMMA):
                self.error(f"Expected COMMA or SEMICOLON but got {self.current.type}")
            self.advance()

        self.advance()
        return VariableDeclarationGroup(*_pos(group_tok), declarations=tuple(declarations))

    def parse_procedure(self) -> ProcedureDeclaration:
        proc_tok = self.match(TokenType.PROCEDURE)
        name_tok = self.match(TokenType.IDENT, "after 'procedure'")
        self.match(TokenType.SEMICOLON, f"after procedure '{name_tok.value}'")
        body = self.parse_block()
        return ProcedureDeclaration(*_pos(proc_tok), name=name_tok.value, body=body)

    def parse_statement(self) -> Node | None:
        """Parse one statement, or return None for the empty statement."""
        tok = self.current

        if self.check(TokenType.IDENT):
            identifier = self.parse_identifier()
            self.match(TokenType.ASSIGN, f"after '{identifier.name}'")
            return Assignment(*_pos(tok), identifier=identifier, expr=self.parse_expression())

        if self.check(TokenType.CALL):
            self.advance()
            return Call(*_pos(tok), identifier=self.parse_identifier("after 'call'"))

        if self.check(TokenType.QUESTION):
            self.advance()
            return Input(*_pos(tok), identifier=self.parse_identifier("after '?'"))

        if self.check(TokenType.BANG):
            self.advance()
            return Print(*_pos(tok), expr=self.parse_expression())

        if self.check(TokenType.BEGIN):
            return self.parse_begin()

        if self.check(TokenType.IF):
            self.advance()
            condition = self.parse_condition()
            self.match(TokenType.THEN, "after condition")
            return If(*_pos(tok), condition=condition, body=self.parse_statement())

        if self.check(TokenType.WHILE):
            self.advance()
            condition = self.parse_condition()
            self.match(TokenType.DO, "after condition")
            return While(*_pos(tok), condition=condition, body=self.parse_statement())

        return None

    def parse_begin(self) -> Begin:
        begin_tok = self.match(TokenType.BEGIN)
        body: list[Node] = []
        while True:
            statement = self.parse_statement()
            if statement is not None:
                body.append(statement)
            if not self.check(TokenType.SEMICOLON):
                break
            self.advance()
        self.match(TokenType.END, "to close 'begin'")
        return Begin(*_pos(begin_tok), body=tuple(body))

    def parse_identifier(self, context: str = "") -> Identifier:
        tok = self.match(TokenType.IDENT, context)
        return Identifier(*_pos(tok), name=tok.value)

    def parse_condition(self) -> Condition:
        tok = self.current
        if self.check(TokenType.ODD):
            self.advance()
            return Condition(*_pos(tok), left=self.parse_expression(), is_odd=True)

        left = self.parse_expression()
        if not self.check(*COMPARISON_OPS):
            self.error(f"Expected a comparison operator but got {self.current.type}")
        operator = ComparisonOperator(self.advance().value)
        right = self.parse_expression()
        return Condition(*_pos(tok), left=left, operator=operator, right=right)

    def parse_expression(self) -> Node:
        tok = self.current
        left = self.parse_term()
        if not self.check(*ADDITIVE_OPS):
            return left
        operator = BinaryOperator(self.advance().value)
        return Binary(*_pos(tok), operator=operator, left=left, right=self.parse_expression())

    def parse_term(self) -> Node:
        tok = self.current
        left = self.parse_unary()
        if not self.check(*MULTIPLICATIVE_OPS):
            return left
        operator = BinaryOperator(self.advance().value)
        return Binary(*_pos(tok), operator=operator, left=left, right=self.parse_term())

    def parse_unary(self) -> Node:
        if not self.check(TokenType.PLUS, TokenType.SUB):
            return self.parse_factor()
        tok = self.advance()
        return Unary(*_pos(tok), operator=UnaryOperator(tok.value), operand=self.parse_unary())

    def parse_factor(self) -> Node:
        tok = self.current

        if self.check(TokenType.IDENT):
            return self.parse_identifier()

        if self.check(*LITERAL_TOKENS):
            self.advance()
            return Literal(*_pos(tok), data_type=LITERAL_TYPES[tok.type], raw=tok.value)

        if self.check(TokenType.LPAREN):
            self.advance()
            if self.current.type in TYPECAST_KEYWORDS:
                target = CAST_TYPES[self.advance().type]
                self.match(TokenType.RPAREN, "to close typecast")
                return Typecast(*_pos(tok), target_type=target, operand=self.parse_factor())
            expr = self.parse_expression()
            self.match(TokenType.RPAREN, "to close expression")
            return expr

        self.error(f"Expected an expression but got {tok.type}")


def parse(source: str) -> Program:
    """Parse PL/0 source text into a `Program` tree."""
    return Parser.from_source(source).parse()


def parse_fragment(source: str) -> Block:
    """Parse one interactively entered block; see `Parser.parse_fragment`."""
    return Parser.from_source(source).parse_fragment()


__all__ = ["Parser", "parse", "parse_fragment"]
