"""
Lexical analyzer for the PL/0 interpreter.

This module provides core components for converting raw source code into token streams:

Classes:
    CharacterStream: Stream abstraction for reading characters with offset/line/column tracking.
    Token: Represents a single token with type, value, and source location.
    Lexer: Converts a CharacterStream into a sequence of tokens, one per `next_token()` call.

Features:
    - Skips whitespace (space, tab, carriage return, newline)
    - Recognizes:
        * Identifiers and case-insensitive keywords
        * Decimal, hexadecimal (`0x`), binary (`0b`) and octal (leading `0`) integers
        * Floats (`12.5`)
        * Strings delimited by `'` or `"`, with backslash protecting the next character
        * Operators and punctuation, longest match first (`<=`, `>=`, `:=`)
    - Unrecognized characters become INVALID tokens

Raises:
    UnterminatedStringError: If a string runs into the end of the source.
    MalformedFloatError: If a decimal point is not followed by a digit.

Example:
    >>> lexer = Lexer(CharacterStream("! 0x1f"))
    >>> lexer.next_token()
    Token(BANG, !)
    >>> lexer.next_token()
    Token(NUMBER, 31)

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
"""

import string
from collections.abc import Iterator
from typing import Any

from pl0.pl0_constants import KEYWORDS, TokenType, token_hashmap
from pl0.pl0_errors import MalformedFloatError, UnterminatedStringError

DIGITS = string.digits
HEX_DIGITS = string.hexdigits
OCTAL_DIGITS = string.octdigits
BINARY_DIGITS = "01"
IDENT_START = string.ascii_letters + "_"
IDENT_CHARS = IDENT_START + string.digits
WHITESPACE = " \t\r\n"


def _is_one_of(ch: str, charset: str) -> bool:
    # peek() returns "" past the end, and "" is a substring of everything
    return ch != "" and ch in charset


class CharacterStream:
    """
    A utility for reading characters from a string source with position tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current 0-based offset in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        A newline moves the stream to column 1 of the following line.

        Raises:
            Exception: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise Exception(
                f"CharacterStreamError: Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token.

    Tokens are immutable: assigning to an attribute raises `AttributeError`.

    Attributes:
        type (TokenType): The token kind.
        value (str): The raw text of the token. Radix integers carry their decimal
            conversion and strings carry their contents without the quotes.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
        offset (int): The 0-based character offset where the token starts.
    """

    __slots__ = ("type", "value", "line", "col", "offset")

    type: TokenType
    value: str
    line: int
    col: int
    offset: int

    def __init__(
        self,
        type_: TokenType,
        value: str = "",
        line: int = 0,
        col: int = 0,
        offset: int = 0,
    ):
        object.__setattr__(self, "type", type_)
        object.__setattr__(self, "value", value)
        object.__setattr__(self, "line", line)
        object.__setattr__(self, "col", col)
        object.__setattr__(self, "offset", offset)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Token is immutable; cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Token is immutable; cannot delete '{name}'")

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.offset == other.offset
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.offset, self.line, self.col))


class Lexer:
    """Lexical analyzer for PL/0 source.

    Tokens are produced lazily: every `next_token()` call scans exactly one token.
    Once the input is exhausted, EOF tokens are returned forever.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def skip_whitespace(self) -> None:
        while _is_one_of(self.peek(), WHITESPACE):
            self.advance()

    def read_while(self, charset: str) -> str:
        text = ""
        while _is_one_of(self.peek(), charset):
            text += self.advance()
        return text

    def match_operator(self) -> TokenType | None:
        """Consumes the longest operator or punctuation at the current position.

        Returns:
            TokenType | None: The matched token type, or None if nothing matches.
        """
        max_token = None
        candidate = ""
        for i in range(2):
            ch = self.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in token_hashmap:
                max_token = candidate

        if max_token is None:
            return None
        for _ in max_token:
            self.advance()
        return token_hashmap[max_token]

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Raises:
            UnterminatedStringError: If a string literal is not closed.
            MalformedFloatError: If a decimal point is not followed by digits.
        """
        self.skip_whitespace()

        offset, line, col = self.stream.position, self.stream.line, self.stream.column
        if self.stream.end_of_file():
            return Token(TokenType.EOF, "", line, col, offset)

        ch = self.peek()

        # 1. Identifier or keyword
        if ch in IDENT_START:
            ident = self.read_while(IDENT_CHARS)
            keyword = KEYWORDS.get(ident.lower())
            return Token(keyword or TokenType.IDENT, ident, line, col, offset)

        # 2. Integer or float
        if ch in DIGITS:
            type_, value = self.read_number(line, col)
            return Token(type_, value, line, col, offset)

        # 3. String
        if ch in ("'", '"'):
            return Token(TokenType.STRING, self.read_string(line, col), line, col, offset)

        # 4. Operator or punctuation
        matched = self.match_operator()
        if matched is not None:
            return Token(matched, self.stream.source[offset : self.stream.position], line, col, offset)

        # 5. Unknown character
        return Token(TokenType.INVALID, self.advance(), line, col, offset)

    def read_number(self, line: int, col: int) -> tuple[TokenType, str]:
        """Scans a numeric literal, sniffing the radix after a leading zero.

        A radix prefix that is not followed by a valid digit is left unconsumed, so
        ``0b2`` scans as the integer ``0`` followed by the identifier ``b2``.

        Returns:
            tuple[TokenType, str]: NUMBER with decimal text, or FLOAT with the raw text.
        """
        if self.peek() == "0":
            prefix, first_digit = self.peek(1), self.peek(2)
            if _is_one_of(prefix, OCTAL_DIGITS):
                digits = self.read_while(OCTAL_DIGITS)
                return TokenType.NUMBER, str(int(digits, 8))
            if _is_one_of(prefix, "xX") and _is_one_of(first_digit, HEX_DIGITS):
                self.advance()
                self.advance()
                return TokenType.NUMBER, str(int(self.read_while(HEX_DIGITS), 16))
            if _is_one_of(prefix, "bB") and _is_one_of(first_digit, BINARY_DIGITS):
                self.advance()
                self.advance()
                return TokenType.NUMBER, str(int(self.read_while(BINARY_DIGITS), 2))
            if prefix != ".":
                self.advance()
                return TokenType.NUMBER, "0"

        num = self.read_while(DIGITS)
        if self.peek() != ".":
            return TokenType.NUMBER, num
        if not _is_one_of(self.peek(1), DIGITS):
            raise MalformedFloatError(
                line, col, f"Expected digits after the decimal point in '{num}.'"
            )
        num += self.advance()
        num += self.read_while(DIGITS)
        return TokenType.FLOAT, num

    def read_string(self, line: int, col: int) -> str:
        """Scans a quoted string and returns its contents.

        A backslash keeps itself and the following character verbatim; it only
        prevents that character from closing the string.
        """
        quote = self.advance()
        val = ""
        while not self.stream.end_of_file():
            ch = self.peek()
            if ch == "\\":
                val += self.advance()
                if self.stream.end_of_file():
                    break
                val += self.advance()
            elif ch == quote:
                self.advance()
                return val
            else:
                val += self.advance()
        raise UnterminatedStringError(line, col, "Unterminated string.")


def tokenize(source: str) -> Iterator[Token]:
    """Yields every token of `source`, stopping before the EOF token."""
    lexer = Lexer(CharacterStream(source))
    while True:
        tok = lexer.next_token()
        if tok.type == TokenType.EOF:
            return
        yield tok


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
