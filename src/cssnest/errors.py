"""Error types with formatted source context."""

from __future__ import annotations

from enum import Enum

from cssnest.tokens import Position, Span


class ErrorKind(Enum):
    # Lexical
    UNTERMINATED_COMMENT = "UnterminatedComment"
    UNTERMINATED_STRING = "UnterminatedString"
    UNEXPECTED_CHARACTER = "UnexpectedCharacter"

    # Structural
    UNBALANCED_DELIMITER = "UnbalancedDelimiter"
    UNEXPECTED_END_OF_INPUT = "UnexpectedEndOfInput"
    UNEXPECTED_TOKEN = "UnexpectedToken"

    # Internal source map invariant
    ENCODING_ERROR = "EncodingError"


class CompileError(Exception):
    """Base for every error that aborts a compile, with span and source context."""

    def __init__(self, kind: ErrorKind, message: str, span: Span | None, source: str) -> None:
        self.kind = kind
        self.message = message
        self.span = span
        self.source = source
        super().__init__(self.format())

    @property
    def position(self) -> Position | None:
        return self.span.start if self.span is not None else None

    def format(self, filename: str = "input.css") -> str:
        header = f"error[{self.kind.value}]: {self.message}"
        if self.span is None:
            return header

        lines = self.source.splitlines(keepends=True)
        line_idx = self.span.start.line - 1
        col = self.span.start.column

        if 0 <= line_idx < len(lines):
            source_line = lines[line_idx].rstrip("\n").rstrip("\r")
        else:
            source_line = ""

        # Underline the full span when on one line, otherwise to end of line
        if self.span.end.line == self.span.start.line:
            underline_len = max(1, self.span.end.column - col)
        else:
            underline_len = max(1, len(source_line) - col + 1)

        pad = " " * (col - 1)
        carets = "^" * underline_len

        line_num = str(self.span.start.line)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        return (
            f"{header}\n"
            f"{' ' * gutter_width}--> {filename}:{self.span.start.line}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )


class LexError(CompileError):
    """Raised on the first lexing error."""


class ParseError(CompileError):
    """Raised on the first structural error."""


class EncodingError(CompileError):
    """Raised when mapping entries violate the source map invariants.

    Signals a defect in the code generator rather than bad input.
    """

    def __init__(self, message: str, span: Span | None = None, source: str = "") -> None:
        super().__init__(ErrorKind.ENCODING_ERROR, message, span, source)
