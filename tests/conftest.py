"""Shared test fixtures and helpers."""

from __future__ import annotations

import io

import pytest

from cssnest.ast import Document
from cssnest.debug import dump_ast
from cssnest.lexer import tokenize
from cssnest.parser import parse
from cssnest.render import RenderPolicy, render
from cssnest.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a Document."""

    def _parse(source: str, filename: str = "test.css") -> Document:
        return parse(source, filename)

    return _parse


@pytest.fixture
def pretty():
    """Return a helper that parses and renders source in pretty mode."""

    def _pretty(source: str, **policy) -> str:
        css, _ = render(parse(source), RenderPolicy(**policy))
        return css

    return _pretty


@pytest.fixture
def minified():
    """Return a helper that parses and renders source in minified mode."""

    def _minified(source: str, **policy) -> str:
        css, _ = render(parse(source), RenderPolicy(minify=True, **policy))
        return css

    return _minified


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def outline(doc: Document) -> str:
    """Span-free structural dump of a document, for structural comparisons."""
    buf = io.StringIO()
    dump_ast(doc, file=buf)
    return buf.getvalue()
