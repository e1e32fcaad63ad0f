"""Tests for pretty-printed output."""

from __future__ import annotations

import pytest

from cssnest.parser import parse
from cssnest.render import RenderPolicy, render

from .conftest import outline


class TestPrettyRules:
    def test_single_rule(self, pretty):
        assert pretty("a { color: red; }") == "a {\n    color: red;\n}\n"

    def test_missing_final_semicolon(self, pretty):
        assert pretty("a{color:red}") == "a {\n    color: red;\n}\n"

    def test_rules_separated_by_blank_line(self, pretty):
        assert pretty("a{b:c}d{e:f}") == "a {\n    b: c;\n}\n\nd {\n    e: f;\n}\n"

    def test_empty_rule(self, pretty):
        assert pretty("a {}") == "a {}\n"

    def test_selector_list(self, pretty):
        assert pretty("a,b{c:d}") == "a, b {\n    c: d;\n}\n"

    def test_selector_whitespace_collapsed(self, pretty):
        assert pretty("ul   >\n  li {x:y}") == "ul > li {\n    x: y;\n}\n"

    def test_multiple_declarations(self, pretty):
        assert pretty("a { b: c; d: e }") == "a {\n    b: c;\n    d: e;\n}\n"

    def test_important(self, pretty):
        assert pretty("a{b:c!important}") == "a {\n    b: c !important;\n}\n"

    def test_custom_indent(self, pretty):
        assert pretty("a{b:c}", indent="  ") == "a {\n  b: c;\n}\n"

    def test_tab_indent(self, pretty):
        assert pretty("a{b:c}", indent="\t") == "a {\n\tb: c;\n}\n"

    def test_empty_document(self, pretty):
        assert pretty("") == ""
        assert pretty("  \n ") == ""


class TestPrettyValues:
    def test_whitespace_collapsed(self, pretty):
        assert pretty("a { margin: 0 \n  auto }") == "a {\n    margin: 0 auto;\n}\n"

    def test_function_call(self, pretty):
        assert "rgba(0, 0, 0, 0.5)" in pretty("a { color: rgba(0, 0, 0, 0.5) }")

    def test_slash_kept_tight(self, pretty):
        assert "font: 12px/1.5 serif;" in pretty("a { font: 12px/1.5 serif }")

    def test_literals_not_compressed(self, pretty):
        assert "margin: 0px 0.50em;" in pretty("a { margin: 0px 0.50em }")

    def test_string_kept_verbatim(self, pretty):
        assert "content: 'a\\'b';" in pretty("a { content: 'a\\'b' }")

    def test_value_comment_dropped(self, pretty):
        assert "margin: 0 1px;" in pretty("a { margin: 0 /* top */ 1px }")


class TestPrettyAtRules:
    def test_import(self, pretty):
        assert pretty("@import 'x';") == "@import 'x';\n"

    def test_media_block(self, pretty):
        assert pretty("@media print { a { b: c } }") == (
            "@media print {\n    a {\n        b: c;\n    }\n}\n"
        )

    def test_empty_block(self, pretty):
        assert pretty("@font-face {}") == "@font-face {}\n"

    def test_font_face(self, pretty):
        assert pretty("@font-face{font-family:X}") == "@font-face {\n    font-family: X;\n}\n"

    def test_prelude_spacing(self, pretty):
        out = pretty("@media screen  and (max-width:600px){a{b:c}}")
        assert out.startswith("@media screen and (max-width:600px) {")


class TestComments:
    def test_top_level_comment_kept(self, pretty):
        assert pretty("/* hi */ a{b:c}") == "/* hi */\n\na {\n    b: c;\n}\n"

    def test_comment_inside_rule_dropped(self, pretty):
        assert pretty("a { /* x */ b: c }") == "a {\n    b: c;\n}\n"


class TestRoundTrip:
    @pytest.mark.parametrize(
        "source",
        [
            "a { color: red; }",
            "a, b > c { margin: 0 auto; padding: 1px 2px !important }",
            "@media screen and (min-width: 10px) { .x { y: z } }",
            "@import url(a.css); a:hover::before { content: 'x' }",
            "/* c */ @font-face { src: url(x.woff) format('woff') }",
            "@keyframes spin { from { rotate: 0deg } 50% { rotate: 180deg } }",
        ],
    )
    def test_pretty_output_reparses_to_same_structure(self, source):
        doc = parse(source)
        css, _ = render(doc, RenderPolicy())
        assert outline(parse(css)) == outline(doc)

    @pytest.mark.parametrize(
        "source",
        [
            ".a { .b { c: d } e: f }",
            ".a, .b { &:hover { c: d } }",
            ".a { @media print { c: d } }",
        ],
    )
    def test_pretty_output_is_stable(self, source):
        once, _ = render(parse(source), RenderPolicy())
        twice, _ = render(parse(once), RenderPolicy())
        assert twice == once
