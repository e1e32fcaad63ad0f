"""Stylesheet parser: converts a token stream into a Document."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from cssnest.ast import AtRule, Comment, Declaration, Document, Rule, Selector
from cssnest.errors import ErrorKind, ParseError
from cssnest.lexer import iter_tokens
from cssnest.tokens import Span, Token, TokenType

BodyItem = Declaration | Rule | AtRule


class Parser:
    """Recursive descent parser over a lazy token stream.

    Only the current token is ever buffered. Selector text, declaration text
    and at-rule preludes are collected as runs up to the first structural
    delimiter (``;``, ``{`` or ``}`` outside parentheses and brackets); the
    delimiter that ends a run decides what the run was.
    """

    def __init__(self, tokens: Iterable[Token], source: str, filename: str) -> None:
        self._tokens = iter(tokens)
        self._source = source
        self._filename = filename
        self._current = next(self._tokens)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self) -> Token:
        return self._current

    def _at_eof(self) -> bool:
        return self._current.type == TokenType.EOF

    def _advance(self) -> Token:
        tok = self._current
        if tok.type != TokenType.EOF:
            self._current = next(self._tokens)
        return tok

    def _skip_trivia(self) -> list[Token]:
        """Skip whitespace and comments, returning the comments skipped."""
        comments: list[Token] = []
        while self._current.type in _TRIVIA:
            tok = self._advance()
            if tok.type == TokenType.COMMENT:
                comments.append(tok)
        return comments

    # ------------------------------------------------------------------
    # Document level
    # ------------------------------------------------------------------

    def parse(self) -> Document:
        children: list[Rule | AtRule | Comment] = []
        start = self._peek().span.start

        while True:
            for comment in self._skip_trivia():
                children.append(Comment(comment.value, comment.span))
            if self._at_eof():
                break

            tok = self._peek()
            if tok.is_delim(";"):
                self._advance()
            elif tok.is_delim("}"):
                raise self._error(ErrorKind.UNBALANCED_DELIMITER, "unmatched '}'", tok.span)
            elif tok.type == TokenType.AT_KEYWORD:
                children.append(self._parse_at_rule())
            else:
                children.append(self._parse_top_rule())

        end = self._peek().span.end
        return Document(tuple(children), Span(start, end))

    def _parse_top_rule(self) -> Rule:
        run, term = self._scan_run()
        if term.is_delim("{"):
            return self._parse_rule(run)
        if term.is_delim("}"):
            raise self._error(ErrorKind.UNBALANCED_DELIMITER, "unmatched '}'", term.span)

        significant = _significant(run)
        if term.is_delim(";"):
            raise self._error(
                ErrorKind.UNEXPECTED_TOKEN, "expected '{' after selector, found ';'", term.span
            )
        raise self._error(
            ErrorKind.UNEXPECTED_END_OF_INPUT,
            "expected '{' after selector",
            _tokens_span(significant) if significant else term.span,
        )

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def _scan_run(self) -> tuple[list[Token], Token]:
        """Collect tokens up to a top-level ';', '{', '}' or EOF.

        Returns the collected tokens and the terminator, which is left
        unconsumed. Parentheses and brackets must balance within the run.
        """
        run: list[Token] = []
        open_stack: list[Token] = []

        while True:
            tok = self._peek()
            if tok.type == TokenType.EOF:
                if open_stack:
                    opener = open_stack[-1]
                    raise self._error(
                        ErrorKind.UNEXPECTED_END_OF_INPUT, f"unclosed '{opener.value}'", opener.span
                    )
                return run, tok

            if tok.type == TokenType.DELIM:
                if tok.value in "{};":
                    if not open_stack:
                        return run, tok
                    if tok.value != ";":
                        opener = open_stack[-1]
                        raise self._error(
                            ErrorKind.UNBALANCED_DELIMITER,
                            f"unclosed '{opener.value}' before '{tok.value}'",
                            opener.span,
                        )
                elif tok.value in _OPENERS:
                    open_stack.append(tok)
                elif tok.value in _CLOSERS:
                    if not open_stack or _CLOSERS[tok.value] != open_stack[-1].value:
                        raise self._error(
                            ErrorKind.UNBALANCED_DELIMITER, f"unmatched '{tok.value}'", tok.span
                        )
                    open_stack.pop()

            run.append(self._advance())

    # ------------------------------------------------------------------
    # Rules and blocks
    # ------------------------------------------------------------------

    def _parse_rule(self, run: list[Token]) -> Rule:
        open_tok = self._advance()  # consume '{'
        selectors = self._parse_selectors(run, open_tok)
        body, close_tok = self._parse_block(open_tok)
        return Rule(selectors, body, Span(selectors[0].span.start, close_tok.span.end))

    def _parse_block(self, open_tok: Token) -> tuple[tuple[BodyItem, ...], Token]:
        """Parse block items after *open_tok* up to and including the matching '}'."""
        items: list[BodyItem] = []

        while True:
            self._skip_trivia()
            tok = self._peek()

            if tok.type == TokenType.EOF:
                raise self._error(ErrorKind.UNEXPECTED_END_OF_INPUT, "unclosed '{'", open_tok.span)
            if tok.is_delim("}"):
                return tuple(items), self._advance()
            if tok.is_delim(";"):
                self._advance()
                continue
            if tok.type == TokenType.AT_KEYWORD:
                items.append(self._parse_at_rule())
                continue

            run, term = self._scan_run()
            if term.is_delim("{"):
                # Text followed by a block is a nested rule, not a declaration
                items.append(self._parse_rule(run))
                continue

            if term.type == TokenType.EOF:
                raise self._error(ErrorKind.UNEXPECTED_END_OF_INPUT, "unclosed '{'", open_tok.span)
            items.append(self._parse_declaration(run, term))
            if term.is_delim(";"):
                self._advance()

    def _parse_selectors(self, run: list[Token], open_tok: Token) -> tuple[Selector, ...]:
        significant = _significant(run)
        if not significant:
            raise self._error(
                ErrorKind.UNEXPECTED_TOKEN, "expected selector before '{'", open_tok.span
            )

        selectors: list[Selector] = []
        for part, comma in _split_top_level(significant, ","):
            part = _strip_ws(part)
            if not part:
                where = comma.span if comma is not None else open_tok.span
                raise self._error(ErrorKind.UNEXPECTED_TOKEN, "empty selector in list", where)
            selectors.append(Selector(_text(part), tuple(part), _tokens_span(part)))
        return tuple(selectors)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _parse_declaration(self, run: list[Token], term: Token) -> Declaration:
        significant = _significant(run)
        colon_idx = _find_top_level(significant, ":")
        if colon_idx is None:
            raise self._error(
                ErrorKind.UNEXPECTED_TOKEN,
                "expected ':' in declaration",
                _tokens_span(significant) if significant else term.span,
            )

        colon = significant[colon_idx]
        prop = _strip_ws(significant[:colon_idx])
        if not prop:
            raise self._error(
                ErrorKind.UNEXPECTED_TOKEN, "expected property name before ':'", colon.span
            )

        value = _strip_ws(significant[colon_idx + 1 :])
        important = False
        end_span = _tokens_span(value) if value else colon.span
        bang_idx = _important_marker(value)
        if bang_idx is not None:
            important = True
            value = _strip_ws(value[:bang_idx])

        if not value:
            raise self._error(ErrorKind.UNEXPECTED_TOKEN, "expected value after ':'", colon.span)

        prop_span = _tokens_span(prop)
        return Declaration(
            property=_text(prop),
            value=_text(value),
            important=important,
            value_tokens=tuple(value),
            property_span=prop_span,
            value_span=_tokens_span(value),
            span=Span(prop_span.start, end_span.end),
        )

    # ------------------------------------------------------------------
    # At-rules
    # ------------------------------------------------------------------

    def _parse_at_rule(self) -> AtRule:
        at_tok = self._advance()  # consume AT_KEYWORD
        run, term = self._scan_run()
        prelude = _strip_ws(_significant(run))
        if prelude:
            prelude_span = _tokens_span(prelude)
        else:
            prelude_span = Span(at_tok.span.end, at_tok.span.end)

        body: tuple[BodyItem, ...] | None = None
        end = prelude_span.end
        if term.is_delim("{"):
            open_tok = self._advance()
            body, close_tok = self._parse_block(open_tok)
            end = close_tok.span.end
        elif term.is_delim(";"):
            end = self._advance().span.end

        return AtRule(
            name=at_tok.value,
            prelude=_text(prelude),
            prelude_tokens=tuple(prelude),
            prelude_span=prelude_span,
            body=body,
            span=Span(at_tok.span.start, end),
        )

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def _error(self, kind: ErrorKind, message: str, span: Span) -> ParseError:
        return ParseError(kind, message, span, self._source)


# Module-level constants
_TRIVIA: frozenset[TokenType] = frozenset({TokenType.WS, TokenType.COMMENT})
_WORDS: frozenset[TokenType] = frozenset(
    {TokenType.IDENT, TokenType.NUMBER, TokenType.HASH, TokenType.AT_KEYWORD}
)
_OPENERS = "(["
_CLOSERS = {")": "(", "]": "["}


def _significant(tokens: list[Token]) -> list[Token]:
    """Drop comments and collapse whitespace runs, trimming both ends.

    A comment between two word tokens becomes a space so that the words
    do not fuse into one when the text is reassembled.
    """
    out: list[Token] = []
    gap: Token | None = None
    for tok in tokens:
        if tok.type in _TRIVIA:
            if gap is None or gap.type == TokenType.COMMENT:
                gap = tok
            continue
        if gap is not None and out:
            if gap.type == TokenType.WS:
                out.append(gap)
            elif out[-1].type in _WORDS and tok.type in _WORDS:
                out.append(Token(TokenType.WS, " ", " ", gap.span))
        gap = None
        out.append(tok)
    return out


def _strip_ws(tokens: list[Token]) -> list[Token]:
    start = 0
    end = len(tokens)
    while start < end and tokens[start].type == TokenType.WS:
        start += 1
    while end > start and tokens[end - 1].type == TokenType.WS:
        end -= 1
    return tokens[start:end]


def _text(tokens: list[Token]) -> str:
    return "".join(" " if t.type == TokenType.WS else t.raw for t in tokens)


def _tokens_span(tokens: list[Token]) -> Span:
    return Span(tokens[0].span.start, tokens[-1].span.end)


def _depth_walk(tokens: list[Token]) -> Iterator[tuple[int, Token, int]]:
    """Yield (index, token, depth) with depth counting open parens and brackets."""
    depth = 0
    for i, tok in enumerate(tokens):
        if tok.type == TokenType.DELIM and tok.value in _CLOSERS:
            depth -= 1
        yield i, tok, depth
        if tok.type == TokenType.DELIM and tok.value in _OPENERS:
            depth += 1


def _find_top_level(tokens: list[Token], delim: str) -> int | None:
    for i, tok, depth in _depth_walk(tokens):
        if depth == 0 and tok.is_delim(delim):
            return i
    return None


def _split_top_level(
    tokens: list[Token], delim: str
) -> list[tuple[list[Token], Token | None]]:
    """Split on top-level *delim*; each part is paired with the delimiter that ended it."""
    parts: list[tuple[list[Token], Token | None]] = []
    current: list[Token] = []
    for _, tok, depth in _depth_walk(tokens):
        if depth == 0 and tok.is_delim(delim):
            parts.append((current, tok))
            current = []
        else:
            current.append(tok)
    parts.append((current, None))
    return parts


def _important_marker(value: list[Token]) -> int | None:
    """Return the index of the '!' of a trailing '!important', if present."""
    idx = len(value) - 1
    if idx < 0 or value[idx].type != TokenType.IDENT or value[idx].value.lower() != "important":
        return None
    idx -= 1
    while idx >= 0 and value[idx].type == TokenType.WS:
        idx -= 1
    if idx >= 0 and value[idx].is_delim("!"):
        return idx
    return None


def parse(source: str, filename: str = "input.css") -> Document:
    """Convenience function: parse source text and return a Document."""
    return Parser(iter_tokens(source, filename), source, filename).parse()
