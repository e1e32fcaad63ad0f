"""CSS renderer: flattens nested rules and serializes a Document to text."""

from __future__ import annotations

import re
from dataclasses import dataclass

from cssnest.ast import AtRule, Comment, Declaration, Document, Rule, Selector
from cssnest.tokens import Position, Span, Token, TokenType


@dataclass(frozen=True, slots=True)
class RenderPolicy:
    """Emission options for :func:`render`."""

    minify: bool = False
    source_map: bool = False
    indent: str = "    "
    parent_reference: bool = True


@dataclass(frozen=True, slots=True)
class MappingEntry:
    """Output position paired with the input position it was emitted from.

    Lines and columns are 1-based, offsets 0-based, on both sides.
    """

    output_offset: int
    output_line: int
    output_column: int
    input_offset: int
    input_line: int
    input_column: int


def render(
    doc: Document, policy: RenderPolicy | None = None
) -> tuple[str, list[MappingEntry]]:
    """Render a parsed Document to CSS text and its mapping entries.

    Nested rules are flattened here, with selectors composed top-down from
    the enclosing rules. Entries are only recorded when ``policy.source_map``
    is set and come out in emission order.
    """
    if policy is None:
        policy = RenderPolicy()
    blocks = _flatten_top(doc.children, policy)
    emitter = _Emitter(policy)
    emitter.emit_items(blocks, depth=0)
    return emitter.out.getvalue(), emitter.out.mappings


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _FlatSelector:
    """Fully composed selector; origin is the span of the innermost source selector."""

    tokens: tuple[Token, ...]
    origin: Span


@dataclass(frozen=True, slots=True)
class _FlatRule:
    selectors: tuple[_FlatSelector, ...]
    statements: tuple[Declaration | AtRule, ...]


@dataclass(frozen=True, slots=True)
class _FlatAtRule:
    rule: AtRule
    children: tuple[_Item, ...]


_Item = _FlatRule | _FlatAtRule | Declaration | AtRule | Comment


def _is_statement(item: object) -> bool:
    return isinstance(item, Declaration) or (isinstance(item, AtRule) and item.body is None)


def _flatten_top(items: tuple, policy: RenderPolicy) -> list[_Item]:
    """Flatten items that have no enclosing selector."""
    out: list[_Item] = []
    for item in items:
        if isinstance(item, Rule):
            out.extend(_flatten_rule(item, None, policy))
        elif isinstance(item, AtRule) and item.body is not None:
            out.append(_FlatAtRule(item, tuple(_flatten_top(item.body, policy))))
        else:
            out.append(item)
    return out


def _flatten_rule(
    rule: Rule, parents: tuple[_FlatSelector, ...] | None, policy: RenderPolicy
) -> list[_Item]:
    if parents is None:
        selectors = tuple(_FlatSelector(s.tokens, s.span) for s in rule.selectors)
    else:
        selectors = tuple(
            _compose(parent, child, policy) for parent in parents for child in rule.selectors
        )
    return _flatten_body(rule.body, selectors, policy, keep_empty=True)


def _flatten_body(
    items: tuple,
    selectors: tuple[_FlatSelector, ...],
    policy: RenderPolicy,
    keep_empty: bool,
) -> list[_Item]:
    """A rule's own statements first, then its nested rules and at-rules in order."""
    own = tuple(item for item in items if _is_statement(item))
    has_nested = len(own) != len(items)

    out: list[_Item] = []
    if own or (keep_empty and not has_nested):
        out.append(_FlatRule(selectors, own))
    for item in items:
        if isinstance(item, Rule):
            out.extend(_flatten_rule(item, selectors, policy))
        elif isinstance(item, AtRule) and item.body is not None:
            # Block at-rules bubble out of the rule and keep its selector inside
            children = _flatten_body(item.body, selectors, policy, keep_empty=False)
            out.append(_FlatAtRule(item, tuple(children)))
    return out


def _compose(parent: _FlatSelector, child: Selector, policy: RenderPolicy) -> _FlatSelector:
    """Combine a parent selector with a nested child selector.

    With parent references enabled, every '&' in the child is replaced by the
    parent; otherwise the child is joined to the parent as a descendant.
    """
    if policy.parent_reference and any(t.is_delim("&") for t in child.tokens):
        tokens: list[Token] = []
        for tok in child.tokens:
            if tok.is_delim("&"):
                tokens.extend(parent.tokens)
            else:
                tokens.append(tok)
        return _FlatSelector(tuple(tokens), child.span)

    start = child.span.start
    space = Token(TokenType.WS, " ", " ", Span(start, start))
    return _FlatSelector((*parent.tokens, space, *child.tokens), child.span)


# ---------------------------------------------------------------------------
# Output buffer
# ---------------------------------------------------------------------------


class _Output:
    """Text accumulator tracking the output offset, line and column."""

    def __init__(self, record: bool) -> None:
        self._parts: list[str] = []
        self._record = record
        self.offset = 0
        self.line = 1
        self.column = 1
        self.mappings: list[MappingEntry] = []

    def write(self, text: str) -> None:
        if not text:
            return
        self._parts.append(text)
        self.offset += len(text)
        newlines = text.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind("\n")
        else:
            self.column += len(text)

    def mark(self, pos: Position) -> None:
        """Record that the next character written comes from *pos*."""
        if self._record:
            self.mappings.append(
                MappingEntry(self.offset, self.line, self.column, pos.offset, pos.line, pos.column)
            )

    def getvalue(self) -> str:
        return "".join(self._parts)


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


class _Emitter:
    def __init__(self, policy: RenderPolicy) -> None:
        self.policy = policy
        self.out = _Output(policy.source_map)

    def emit_items(self, items: list[_Item] | tuple[_Item, ...], depth: int) -> None:
        minify = self.policy.minify
        for idx, item in enumerate(items):
            last = idx == len(items) - 1
            if not minify:
                if idx > 0:
                    self.out.write("\n\n" if depth == 0 else "\n")
                self.out.write(self.policy.indent * depth)

            if isinstance(item, _FlatRule):
                self.emit_rule(item, depth)
            elif isinstance(item, _FlatAtRule):
                self.emit_at_block(item, depth)
            elif isinstance(item, Comment):
                if not minify:
                    self.out.mark(item.span.start)
                    self.out.write(f"/*{item.text}*/")
            else:
                self.emit_statement(item)
                # At top level the ';' stays even on the last statement
                if not minify or depth == 0 or not last:
                    self.out.write(";")

        if not minify and depth == 0 and items:
            self.out.write("\n")

    def emit_rule(self, rule: _FlatRule, depth: int) -> None:
        minify = self.policy.minify
        for idx, selector in enumerate(rule.selectors):
            if idx > 0:
                self.out.write("," if minify else ", ")
            self.out.mark(selector.origin.start)
            self.out.write(join_tokens(selector.tokens, minify, _SELECTOR_TIGHT))

        if not rule.statements:
            self.out.write("{}" if minify else " {}")
            return

        self.out.write("{" if minify else " {")
        self._emit_statement_block(rule.statements, depth)

    def _emit_statement_block(self, statements: tuple[Declaration | AtRule, ...], depth: int) -> None:
        minify = self.policy.minify
        inner = self.policy.indent * (depth + 1)
        for idx, stmt in enumerate(statements):
            if minify:
                if idx > 0:
                    self.out.write(";")
            else:
                self.out.write("\n" + inner)
            self.emit_statement(stmt)
            if not minify:
                self.out.write(";")
        if not minify:
            self.out.write("\n" + self.policy.indent * depth)
        self.out.write("}")

    def emit_at_block(self, block: _FlatAtRule, depth: int) -> None:
        minify = self.policy.minify
        self._emit_at_head(block.rule)
        if not block.children:
            self.out.write("{}" if minify else " {}")
            return
        if minify:
            self.out.write("{")
            self.emit_items(block.children, depth + 1)
            self.out.write("}")
            return
        self.out.write(" {\n")
        self.emit_items(block.children, depth + 1)
        self.out.write("\n" + self.policy.indent * depth + "}")

    def _emit_at_head(self, rule: AtRule) -> None:
        self.out.mark(rule.span.start)
        self.out.write("@" + rule.name)
        if rule.prelude_tokens:
            self.out.write(" ")
            self.out.mark(rule.prelude_span.start)
            self.out.write(
                join_tokens(
                    rule.prelude_tokens,
                    self.policy.minify,
                    _PRELUDE_TIGHT,
                    tight_after=_PRELUDE_TIGHT_AFTER,
                )
            )

    def emit_statement(self, stmt: Declaration | AtRule) -> None:
        if isinstance(stmt, AtRule):
            self._emit_at_head(stmt)
            return

        minify = self.policy.minify
        self.out.mark(stmt.property_span.start)
        self.out.write(stmt.property)
        self.out.write(":" if minify else ": ")
        self.out.mark(stmt.value_span.start)
        compress = minify and not _verbatim_property(stmt.property)
        self.out.write(join_tokens(stmt.value_tokens, minify, _VALUE_TIGHT, compress=compress))
        if stmt.important:
            self.out.write("!important" if minify else " !important")


# ---------------------------------------------------------------------------
# Token serialization
# ---------------------------------------------------------------------------


def _verbatim_property(prop: str) -> bool:
    """Custom properties and unicode-range values are never compressed."""
    return prop.startswith("--") or prop.lower() == "unicode-range"


# Delimiters that never need surrounding whitespace, per context
_SELECTOR_TIGHT = frozenset(",>+~")
_VALUE_TIGHT = frozenset(",/!")
_PRELUDE_TIGHT = frozenset(",")
# Only the space after these goes; a space before ':' is a descendant combinator
_PRELUDE_TIGHT_AFTER = frozenset(":")
_AFTER_TIGHT = frozenset("([")
_BEFORE_TIGHT = frozenset(")]")


def join_tokens(
    tokens: tuple[Token, ...] | list[Token],
    minify: bool,
    tight: frozenset[str] = frozenset(),
    compress: bool = False,
    tight_after: frozenset[str] = frozenset(),
) -> str:
    """Serialize significant tokens.

    Pretty output writes each whitespace token as one space. Minified output
    drops a space when a neighbouring delimiter makes it redundant, which
    never lets two tokens fuse into a different one. Delimiters in
    *tight_after* only drop the space that follows them.
    """
    verbatim = _verbatim_indexes(tokens) if compress else frozenset()
    parts: list[str] = []
    for i, tok in enumerate(tokens):
        if tok.type == TokenType.WS:
            if minify and _space_redundant(tokens, i, tight, tight_after):
                continue
            parts.append(" ")
        elif compress and i not in verbatim:
            parts.append(compress_token(tok))
        else:
            parts.append(tok.raw)
    return "".join(parts)


def _space_redundant(
    tokens: tuple[Token, ...] | list[Token],
    i: int,
    tight: frozenset[str],
    tight_after: frozenset[str],
) -> bool:
    if i == 0 or i == len(tokens) - 1:
        return True
    prev = tokens[i - 1]
    nxt = tokens[i + 1]
    if prev.type == TokenType.DELIM and (
        prev.value in tight or prev.value in tight_after or prev.value in _AFTER_TIGHT
    ):
        return True
    if nxt.type == TokenType.DELIM and (nxt.value in tight or nxt.value in _BEFORE_TIGHT):
        return True
    return False


def _verbatim_indexes(tokens: tuple[Token, ...] | list[Token]) -> frozenset[int]:
    """Indexes of value tokens that literal compression must leave alone.

    That is everything inside an unquoted ``url(...)``, and numbers glued to
    a neighbouring word or sign, as in ``U+0025-00FF``.
    """
    keep: set[int] = set()
    depth = 0
    for i, tok in enumerate(tokens):
        prev = tokens[i - 1] if i > 0 else None
        if depth:
            keep.add(i)
            if tok.is_delim("("):
                depth += 1
            elif tok.is_delim(")"):
                depth -= 1
        elif (
            tok.is_delim("(")
            and prev is not None
            and prev.type == TokenType.IDENT
            and prev.value.lower() == "url"
        ):
            depth = 1
        elif tok.type == TokenType.NUMBER and (_glued(prev) or _glued_sign(tokens, i + 1)):
            keep.add(i)
    return frozenset(keep)


def _glued(prev: Token | None) -> bool:
    if prev is None:
        return False
    if prev.type in (TokenType.IDENT, TokenType.NUMBER, TokenType.HASH):
        return True
    return prev.is_delim("+", "-")


def _glued_sign(tokens: tuple[Token, ...] | list[Token], i: int) -> bool:
    if i >= len(tokens):
        return False
    nxt = tokens[i]
    if nxt.type == TokenType.NUMBER:
        return nxt.raw[0] in "+-"
    return nxt.is_delim("+", "-")


_NUMBER_RE = re.compile(r"^([+-]?)(\d*)(?:\.(\d+))?([a-zA-Z%]*)$")
_LENGTH_UNITS = frozenset(
    {"px", "em", "rem", "ex", "ch", "vw", "vh", "vmin", "vmax", "cm", "mm", "in", "pt", "pc", "q"}
)
_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def compress_token(tok: Token) -> str:
    """Shorten numeric and color literals. Only ever deletes characters."""
    if tok.type == TokenType.NUMBER:
        return _compress_number(tok.raw)
    if tok.type == TokenType.HASH and tok.raw == "#" + tok.value:
        return "#" + _compress_hex(tok.value)
    return tok.raw


def _compress_number(raw: str) -> str:
    m = _NUMBER_RE.match(raw)
    if m is None:
        return raw
    sign, whole, frac, unit = m.groups()
    whole = whole.lstrip("0")
    frac = (frac or "").rstrip("0")
    if not whole and not frac:
        if unit.lower() in _LENGTH_UNITS:
            return "0"
        # A zero with another unit keeps its sign: -00FF is not 0FF
        return f"{sign}0{unit}"
    if frac:
        return f"{sign}{whole}.{frac}{unit}"
    return f"{sign}{whole}{unit}"


def _compress_hex(value: str) -> str:
    if len(value) not in (6, 8) or not _HEX_RE.match(value):
        return value
    pairs = [value[i : i + 2] for i in range(0, len(value), 2)]
    if all(p[0].lower() == p[1].lower() for p in pairs):
        return "".join(p[0] for p in pairs)
    return value
