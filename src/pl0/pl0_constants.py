"""
Token vocabulary for the PL/0 interpreter.

Defines the closed set of token types produced by the lexer, the keyword table used
for case-insensitive keyword recognition, and the operator/punctuation hashmap used
for longest-match operator scanning.

Exports:
    - TokenType
    - KEYWORDS
    - TYPECAST_KEYWORDS
    - token_hashmap
    - LITERAL_TOKENS
    - RECURSION_LIMIT
"""

from enum import Enum


class TokenType(str, Enum):
    """Closed enumeration of every token kind the lexer can produce.

    Members are string-valued so they compare equal to their plain names
    (``TokenType.IDENT == "IDENT"``).
    """

    INVALID = "INVALID"
    EOF = "EOF"

    # Punctuation
    DOT = "DOT"
    COMMA = "COMMA"
    SEMICOLON = "SEMICOLON"
    QUESTION = "QUESTION"
    BANG = "BANG"

    # Operators
    EQ = "EQ"
    ASSIGN = "ASSIGN"
    HASH = "HASH"
    LT = "LT"
    GT = "GT"
    LE = "LE"
    GE = "GE"
    PLUS = "PLUS"
    SUB = "SUB"
    MULT = "MULT"
    DIV = "DIV"
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"

    # Literals
    IDENT = "IDENT"
    NUMBER = "NUMBER"
    FLOAT = "FLOAT"
    STRING = "STRING"

    # Keywords
    CONST = "CONST"
    VAR = "VAR"
    PROCEDURE = "PROCEDURE"
    CALL = "CALL"
    BEGIN = "BEGIN"
    END = "END"
    IF = "IF"
    THEN = "THEN"
    ODD = "ODD"
    WHILE = "WHILE"
    DO = "DO"
    INT = "INT"
    FLOAT_TYPE = "FLOAT_TYPE"
    STRING_TYPE = "STRING_TYPE"

    def __str__(self) -> str:
        return self.value


# Lowercased keyword text -> token type
KEYWORDS: dict[str, TokenType] = {
    "const": TokenType.CONST,
    "var": TokenType.VAR,
    "procedure": TokenType.PROCEDURE,
    "call": TokenType.CALL,
    "begin": TokenType.BEGIN,
    "end": TokenType.END,
    "if": TokenType.IF,
    "then": TokenType.THEN,
    "odd": TokenType.ODD,
    "while": TokenType.WHILE,
    "do": TokenType.DO,
    "int": TokenType.INT,
    "float": TokenType.FLOAT_TYPE,
    "string": TokenType.STRING_TYPE,
}

TYPECAST_KEYWORDS: frozenset[TokenType] = frozenset(
    {TokenType.INT, TokenType.FLOAT_TYPE, TokenType.STRING_TYPE}
)

# Symbolic tokens, matched longest-first by the lexer
token_hashmap: dict[str, TokenType] = {
    ".": TokenType.DOT,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
    "?": TokenType.QUESTION,
    "!": TokenType.BANG,
    "=": TokenType.EQ,
    ":=": TokenType.ASSIGN,
    "#": TokenType.HASH,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "+": TokenType.PLUS,
    "-": TokenType.SUB,
    "*": TokenType.MULT,
    "/": TokenType.DIV,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}

LITERAL_TOKENS: frozenset[TokenType] = frozenset(
    {TokenType.NUMBER, TokenType.FLOAT, TokenType.STRING}
)

# Python frame budget for parsing and evaluation. Each nested parenthesis costs
# about four frames and each PL/0 procedure call about ten.
RECURSION_LIMIT = 10_000

__all__ = [
    "KEYWORDS",
    "LITERAL_TOKENS",
    "RECURSION_LIMIT",
    "TYPECAST_KEYWORDS",
    "TokenType",
    "token_hashmap",
]
