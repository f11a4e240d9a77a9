import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import NoReturn, cast

from cppblocks.diag import ExpressionFormatError

PUNCTUATORS: tuple[str, ...] = (
    "||",
    "&&",
    "==",
    "!=",
    "<=",
    ">=",
    "<<",
    ">>",
    "(",
    ")",
    "!",
    "~",
    "+",
    "-",
    "*",
    "/",
    "%",
    "<",
    ">",
    "&",
    "|",
    "^",
    "?",
    ":",
    ",",
)

PUNCTUATORS_SORTED: tuple[str, ...] = cast(
    tuple[str, ...], tuple(sorted(PUNCTUATORS, key=len, reverse=True))
)

INTEGER_SUFFIX_RE = r"(?:"
INTEGER_SUFFIX_RE += r"[uU](?:ll|LL|[lL])?"
INTEGER_SUFFIX_RE += r"|"
INTEGER_SUFFIX_RE += r"(?:ll|LL|[lL])[uU]?"
INTEGER_SUFFIX_RE += r")?"

INTEGER_RE = re.compile(
    rf"^(?:"
    rf"[1-9][0-9]*"
    rf"|"
    rf"0[0-7]*"
    rf"|"
    rf"0[xX][0-9A-Fa-f]+"
    rf")"
    rf"{INTEGER_SUFFIX_RE}$"
)


class TokenKind(Enum):
    IDENT = auto()
    INT_CONST = auto()
    PUNCTUATOR = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str | None
    column: int


def lex(expression: str) -> list[Token]:
    return Lexer(expression).tokenize()


def parse_integer_literal(lexeme: str) -> int:
    """Value of an ``INT_CONST`` lexeme; the lexer has already validated it."""
    digits = lexeme.rstrip("uUlL")
    if digits.startswith(("0x", "0X")):
        return int(digits, 16)
    if digits.startswith("0") and len(digits) > 1:
        return int(digits, 8)
    return int(digits, 10)


class Lexer:
    def __init__(self, expression: str) -> None:
        self._source = expression
        self._length = len(expression)
        self._index = 0

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            self._skip_whitespace()
            if self._eof():
                tokens.append(Token(TokenKind.EOF, None, self._column()))
                return tokens
            start_column = self._column()
            if self._peek().isdigit():
                lexeme = self._read_number()
                if INTEGER_RE.fullmatch(lexeme) is None:
                    self._error("Invalid integer constant", column=start_column)
                tokens.append(Token(TokenKind.INT_CONST, lexeme, start_column))
                continue
            if self._is_identifier_start():
                tokens.append(Token(TokenKind.IDENT, self._read_identifier(), start_column))
                continue
            punct = self._read_punctuator(start_column)
            tokens.append(Token(TokenKind.PUNCTUATOR, punct, start_column))

    def _peek(self, offset: int = 0) -> str:
        index = self._index + offset
        if index >= self._length:
            return ""
        return self._source[index]

    def _column(self) -> int:
        return self._index + 1

    def _eof(self) -> bool:
        return self._index >= self._length

    def _skip_whitespace(self) -> None:
        while not self._eof() and self._peek() in " \t\v\f\r\n":
            self._index += 1

    def _is_identifier_start(self) -> bool:
        ch = self._peek()
        return ch == "_" or ch.isalpha()

    def _read_identifier(self) -> str:
        start = self._index
        while not self._eof() and (self._peek() == "_" or self._peek().isalnum()):
            self._index += 1
        return self._source[start : self._index]

    def _read_number(self) -> str:
        start = self._index
        while not self._eof() and (self._peek().isalnum() or self._peek() in "._"):
            self._index += 1
        return self._source[start : self._index]

    def _read_punctuator(self, column: int) -> str:
        for punct in PUNCTUATORS_SORTED:
            if self._source.startswith(punct, self._index):
                self._index += len(punct)
                return punct
        self._error(f"Unexpected character {self._peek()!r}", column=column)

    def _error(self, message: str, *, column: int | None = None) -> NoReturn:
        raise ExpressionFormatError(f"{message} at column {column or self._column()}")
