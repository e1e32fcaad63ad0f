"""Token types, source positions, and character classification helpers."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    IDENT = auto()  # color, -webkit-box, \31 23
    AT_KEYWORD = auto()  # @media: value excludes the '@'
    HASH = auto()  # #fff, #main: value excludes the '#'
    STRING = auto()  # "..." or '...': value is the decoded content
    NUMBER = auto()  # 12, 1.5em, -.5, 50%
    DELIM = auto()  # single structural character

    COMMENT = auto()  # /* ... */: value is the text between the markers
    WS = auto()  # run of spaces, tabs, newlines

    EOF = auto()


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open source range from start to end position."""

    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token with decoded value and original source text."""

    type: TokenType
    value: str
    raw: str
    span: Span

    def is_delim(self, *chars: str) -> bool:
        return self.type == TokenType.DELIM and self.value in chars


class LineIndex:
    """Translate offsets in *text* to line/column positions.

    Independent of the lexer: the line starts are computed once up front and
    every lookup is a binary search.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    def position(self, offset: int) -> Position:
        if offset < 0 or offset > len(self._text):
            raise ValueError(f"offset {offset} outside text of length {len(self._text)}")
        line_idx = bisect_right(self._line_starts, offset) - 1
        return Position(line_idx + 1, offset - self._line_starts[line_idx] + 1, offset)


# Characters lexed as single DELIM tokens
DELIMITERS = frozenset("{}()[]:;,.>+~*&=|^$!%/#@?<")

WHITESPACE = frozenset(" \t\n\r\f")


def is_ident_start(ch: str) -> bool:
    """Return True if ch can begin an identifier (escapes handled separately)."""
    return ch.isalpha() or ch == "_" or (ch != "" and ord(ch) > 0x7F)


def is_ident_char(ch: str) -> bool:
    """Return True if ch can continue an identifier."""
    return is_ident_start(ch) or ch.isdigit() or ch == "-"


def is_digit(ch: str) -> bool:
    return ch != "" and ch in "0123456789"


def is_hex_digit(ch: str) -> bool:
    """Return True if ch is a hexadecimal digit."""
    return ch != "" and ch in "0123456789abcdefABCDEF"


def is_valid_escape(first: str, second: str) -> bool:
    """Return True if the two characters start a CSS escape sequence."""
    return first == "\\" and second not in ("", "\n", "\r", "\f")
