"""Stylesheet lexer: converts source text into a lazy token stream."""

from __future__ import annotations

from collections.abc import Iterator

from cssnest.errors import ErrorKind, LexError
from cssnest.strings import decode_escapes
from cssnest.tokens import (
    DELIMITERS,
    WHITESPACE,
    Position,
    Span,
    Token,
    TokenType,
    is_digit,
    is_hex_digit,
    is_ident_char,
    is_ident_start,
    is_valid_escape,
)


class Lexer:
    """Tokenize stylesheet source text into a stream of Token objects.

    The lexer is a pure function of its input: iterating a fresh instance (or
    calling :meth:`tokens` again on a new one) always yields the same tokens.
    Comments and whitespace are kept; the parser decides what to discard.
    """

    def __init__(self, source: str, filename: str = "input.css") -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._col = 1

    def __iter__(self) -> Iterator[Token]:
        return self.tokens()

    def tokens(self) -> Iterator[Token]:
        """Yield tokens lazily, ending with a single EOF token."""
        while self._pos < len(self._source):
            yield self._lex_token()
        start = self._current_pos()
        yield Token(TokenType.EOF, "", "", Span(start, start))

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _advance_to(self, offset: int) -> None:
        while self._pos < offset:
            self._advance()

    def _make(self, tt: TokenType, value: str, start: Position) -> Token:
        end = self._current_pos()
        raw = self._source[start.offset : end.offset]
        return Token(tt, value, raw, Span(start, end))

    def _error(self, kind: ErrorKind, message: str, span: Span | None = None) -> LexError:
        if span is None:
            pos = self._current_pos()
            end = Position(pos.line, pos.column + 1, pos.offset + 1)
            span = Span(pos, end)
        return LexError(kind, message, span, self._source)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _lex_token(self) -> Token:
        ch = self._peek()
        nxt = self._peek(1)

        if ch == "/" and nxt == "*":
            return self._lex_comment()

        if ch in "\"'":
            return self._lex_string(ch)

        if ch in WHITESPACE:
            return self._lex_ws()

        if is_digit(ch) or (ch == "." and is_digit(nxt)):
            return self._lex_number()

        if ch in "+-" and self._starts_number(1):
            return self._lex_number()

        if self._starts_ident(0):
            return self._lex_ident()

        if ch == "@" and self._starts_ident(1):
            start = self._current_pos()
            self._advance()  # consume '@'
            raw_name = self._consume_name()
            return self._make(TokenType.AT_KEYWORD, decode_escapes(raw_name), start)

        if ch == "#" and (is_ident_char(nxt) or is_valid_escape(nxt, self._peek(2))):
            start = self._current_pos()
            self._advance()  # consume '#'
            raw_name = self._consume_name()
            return self._make(TokenType.HASH, decode_escapes(raw_name), start)

        if ch in DELIMITERS or ch == "-":
            start = self._current_pos()
            self._advance()
            return self._make(TokenType.DELIM, ch, start)

        if ch == "\\":
            raise self._error(ErrorKind.UNEXPECTED_CHARACTER, "invalid escape: '\\' at end of line")

        if ch == "\0":
            raise self._error(ErrorKind.UNEXPECTED_CHARACTER, "NUL character in source")

        raise self._error(ErrorKind.UNEXPECTED_CHARACTER, f"unexpected character {ch!r}")

    def _starts_ident(self, offset: int) -> bool:
        ch = self._peek(offset)
        nxt = self._peek(offset + 1)
        if ch == "-":
            return is_ident_start(nxt) or nxt == "-" or is_valid_escape(nxt, self._peek(offset + 2))
        return is_ident_start(ch) or is_valid_escape(ch, nxt)

    def _starts_number(self, offset: int) -> bool:
        ch = self._peek(offset)
        return is_digit(ch) or (ch == "." and is_digit(self._peek(offset + 1)))

    # ------------------------------------------------------------------
    # Comments, strings, whitespace
    # ------------------------------------------------------------------

    def _lex_comment(self) -> Token:
        start = self._current_pos()
        close = self._source.find("*/", self._pos + 2)
        if close == -1:
            opening = Span(start, Position(start.line, start.column + 2, start.offset + 2))
            raise self._error(ErrorKind.UNTERMINATED_COMMENT, "unterminated comment", opening)
        self._advance_to(close + 2)
        return self._make(TokenType.COMMENT, self._source[start.offset + 2 : close], start)

    def _lex_string(self, quote: str) -> Token:
        start = self._current_pos()
        i = self._pos + 1
        n = len(self._source)
        while i < n:
            c = self._source[i]
            if c == quote:
                break
            i += 2 if c == "\\" else 1
        else:
            opening = Span(start, Position(start.line, start.column + 1, start.offset + 1))
            raise self._error(ErrorKind.UNTERMINATED_STRING, "unterminated string", opening)

        body = self._source[start.offset + 1 : i]
        self._advance_to(i + 1)
        return self._make(TokenType.STRING, decode_escapes(body), start)

    def _lex_ws(self) -> Token:
        start = self._current_pos()
        while self._pos < len(self._source) and self._peek() in WHITESPACE:
            self._advance()
        return self._make(TokenType.WS, " ", start)

    # ------------------------------------------------------------------
    # Names and numbers
    # ------------------------------------------------------------------

    def _consume_name(self) -> str:
        """Consume identifier characters and escapes; return the raw slice."""
        begin = self._pos
        while self._pos < len(self._source):
            ch = self._peek()
            if is_ident_char(ch):
                self._advance()
            elif is_valid_escape(ch, self._peek(1)):
                self._consume_escape()
            else:
                break
        return self._source[begin : self._pos]

    def _consume_escape(self) -> None:
        self._advance()  # consume backslash
        if not is_hex_digit(self._peek()):
            self._advance()
            return
        count = 0
        while count < 6 and is_hex_digit(self._peek()):
            self._advance()
            count += 1
        if self._peek() == "\r" and self._peek(1) == "\n":
            self._advance()
            self._advance()
        elif self._peek() in WHITESPACE:
            self._advance()

    def _lex_ident(self) -> Token:
        start = self._current_pos()
        raw = self._consume_name()
        return self._make(TokenType.IDENT, decode_escapes(raw), start)

    def _lex_number(self) -> Token:
        start = self._current_pos()
        if self._peek() in "+-":
            self._advance()
        while is_digit(self._peek()):
            self._advance()
        if self._peek() == "." and is_digit(self._peek(1)):
            self._advance()
            while is_digit(self._peek()):
                self._advance()

        if self._peek() == "%":
            self._advance()
        elif self._starts_ident(0):
            self._consume_name()

        return self._make(TokenType.NUMBER, self._source[start.offset : self._pos], start)


def iter_tokens(source: str, filename: str = "input.css") -> Iterator[Token]:
    """Lazily tokenize source text."""
    return Lexer(source, filename).tokens()


def tokenize(source: str, filename: str = "input.css") -> list[Token]:
    """Convenience function: tokenize source text and return the full token list."""
    return list(Lexer(source, filename).tokens())
