"""Tests for declaration parsing and !important extraction."""

from __future__ import annotations

import pytest

from cssnest.ast import Declaration


def _decl(parse_source, body: str) -> Declaration:
    rule = parse_source(f"a {{ {body} }}").children[0]
    assert len(rule.body) == 1
    return rule.body[0]


class TestDeclarations:
    def test_simple(self, parse_source):
        decl = _decl(parse_source, "color: red;")
        assert decl.property == "color"
        assert decl.value == "red"
        assert decl.important is False

    def test_last_semicolon_optional(self, parse_source):
        decl = _decl(parse_source, "color: red")
        assert decl.value == "red"

    def test_no_space_after_colon(self, parse_source):
        assert _decl(parse_source, "color:red;").value == "red"

    def test_multi_token_value(self, parse_source):
        assert _decl(parse_source, "border: 1px  solid\n #000;").value == "1px solid #000"

    def test_function_value(self, parse_source):
        assert _decl(parse_source, "color: rgba(0, 0, 0, 0.5);").value == "rgba(0, 0, 0, 0.5)"

    def test_string_value_keeps_quotes(self, parse_source):
        assert _decl(parse_source, 'content: "a;b";').value == '"a;b"'

    def test_semicolon_inside_parens(self, parse_source):
        decl = _decl(parse_source, "background: url(data:image/png;base64,AAA);")
        assert decl.value == "url(data:image/png;base64,AAA)"

    def test_colon_in_value(self, parse_source):
        decl = _decl(parse_source, "background: url(http://x.org/a.png);")
        assert decl.value == "url(http://x.org/a.png)"

    def test_custom_property(self, parse_source):
        decl = _decl(parse_source, "--gap: 4px 8px;")
        assert decl.property == "--gap"
        assert decl.value == "4px 8px"

    def test_spans(self, parse_source):
        source = "a { color : red ; }"
        decl = parse_source(source).children[0].body[0]
        assert source[decl.property_span.start.offset : decl.property_span.end.offset] == "color"
        assert source[decl.value_span.start.offset : decl.value_span.end.offset] == "red"
        assert source[decl.span.start.offset : decl.span.end.offset] == "color : red"

    def test_multiple(self, parse_source):
        rule = parse_source("a { x: 1; y: 2; ; z: 3 }").children[0]
        assert [d.property for d in rule.body] == ["x", "y", "z"]


class TestImportant:
    def test_important(self, parse_source):
        decl = _decl(parse_source, "color: red !important;")
        assert decl.property == "color"
        assert decl.value == "red"
        assert decl.important is True

    @pytest.mark.parametrize(
        "body",
        [
            "color: red ! IMPORTANT ;",
            "color: red!important",
            "color: red !Important",
            "color: red\n  !\n  important;",
            "color: red ! /* why */ important;",
        ],
    )
    def test_irregular_spacing_and_case(self, parse_source, body):
        decl = _decl(parse_source, body)
        assert decl.value == "red"
        assert decl.important is True

    def test_value_span_excludes_marker(self, parse_source):
        source = "a { color: red !important; }"
        decl = parse_source(source).children[0].body[0]
        assert source[decl.value_span.start.offset : decl.value_span.end.offset] == "red"
        assert source[decl.span.start.offset : decl.span.end.offset] == "color: red !important"

    def test_important_word_alone_is_not_marker(self, parse_source):
        decl = _decl(parse_source, "content: important;")
        assert decl.important is False
        assert decl.value == "important"

    def test_bang_elsewhere_kept(self, parse_source):
        decl = _decl(parse_source, "x: a !b;")
        assert decl.important is False
        assert decl.value == "a !b"
