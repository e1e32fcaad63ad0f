"""Document model for parsed stylesheets."""

from __future__ import annotations

from dataclasses import dataclass

from cssnest.tokens import Span, Token


@dataclass(frozen=True, slots=True)
class Comment:
    """Top-level comment; text excludes the /* */ markers."""

    text: str
    span: Span


@dataclass(frozen=True, slots=True)
class Selector:
    """One comma-separated segment of a selector list, kept as opaque text."""

    text: str
    tokens: tuple[Token, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class Declaration:
    """property: value [!important]"""

    property: str
    value: str
    important: bool
    value_tokens: tuple[Token, ...]
    property_span: Span
    value_span: Span
    span: Span


@dataclass(frozen=True, slots=True)
class Rule:
    """Selector list plus a body that may hold nested rules."""

    selectors: tuple[Selector, ...]
    body: tuple[Declaration | Rule | AtRule, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class AtRule:
    """@name prelude; or @name prelude { body }"""

    name: str
    prelude: str
    prelude_tokens: tuple[Token, ...]
    prelude_span: Span
    body: tuple[Declaration | Rule | AtRule, ...] | None
    span: Span


@dataclass(frozen=True, slots=True)
class Document:
    """Root document node."""

    children: tuple[Rule | AtRule | Comment, ...]
    span: Span
