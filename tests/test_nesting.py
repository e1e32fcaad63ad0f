"""Tests for flattening nested rules into plain CSS."""

from __future__ import annotations


def _selectors(css: str) -> list[str]:
    """Selector heads of a pretty-printed flat stylesheet, in order."""
    return [line.rsplit(" {", 1)[0] for line in css.splitlines() if line.endswith(("{", "{}"))]


class TestDescendantComposition:
    def test_simple(self, pretty, minified):
        source = ".a { .b { color: red; } }"
        assert pretty(source) == ".a .b {\n    color: red;\n}\n"
        assert minified(source) == ".a .b{color:red}"

    def test_deep(self, minified):
        assert minified(".a { .b { .c { d: e } } }") == ".a .b .c{d:e}"

    def test_parent_statements_first(self, pretty):
        source = ".a { .b { x: 1 } y: 2 }"
        assert pretty(source) == ".a {\n    y: 2;\n}\n\n.a .b {\n    x: 1;\n}\n"

    def test_parent_with_only_nested_rules_omitted(self, minified):
        assert minified(".a { .b { c: d } .e { f: g } }") == ".a .b{c:d}.a .e{f:g}"

    def test_empty_nested_rule_kept(self, pretty):
        assert pretty(".a { .b {} }") == ".a .b {}\n"

    def test_leading_combinator(self, pretty, minified):
        source = ".a { > .b { c: d } }"
        assert pretty(source).startswith(".a > .b {")
        assert minified(source) == ".a>.b{c:d}"

    def test_sibling_combinator(self, minified):
        assert minified(".a { + .b { c: d } }") == ".a+.b{c:d}"


class TestSelectorLists:
    def test_cartesian_product(self, minified):
        source = ".a, .b { .c, .d { e: f } }"
        assert minified(source) == ".a .c,.a .d,.b .c,.b .d{e:f}"

    def test_list_parent_keeps_own_declarations(self, pretty):
        source = "h1, h2 { margin: 0; span { color: red } }"
        assert _selectors(pretty(source)) == ["h1, h2", "h1 span, h2 span"]


class TestParentReference:
    def test_pseudo_class(self, minified):
        assert minified(".a { &:hover { c: d } }") == ".a:hover{c:d}"

    def test_suffix(self, minified):
        assert minified(".btn { &-primary { c: d } }") == ".btn-primary{c:d}"

    def test_compound(self, minified):
        assert minified(".a { &.b { c: d } }") == ".a.b{c:d}"

    def test_trailing_reference(self, minified):
        assert minified(".a { .y & { c: d } }") == ".y .a{c:d}"

    def test_repeated_reference(self, minified):
        assert minified(".a { & + & { c: d } }") == ".a+.a{c:d}"

    def test_reference_expands_full_parent(self, minified):
        assert minified(".a .b { &:hover { c: d } }") == ".a .b:hover{c:d}"

    def test_reference_with_list_parent(self, minified):
        assert minified(".a, .b { &:hover { c: d } }") == ".a:hover,.b:hover{c:d}"

    def test_nested_reference_composes(self, minified):
        assert minified(".a { .b { &.c { x: y } } }") == ".a .b.c{x:y}"

    def test_disabled(self, pretty, minified):
        source = ".a { &:hover { c: d } }"
        assert minified(source, parent_reference=False) == ".a &:hover{c:d}"
        assert pretty(source, parent_reference=False).startswith(".a &:hover {")

    def test_ampersand_at_top_level_untouched(self, minified):
        assert minified("& { c: d }") == "&{c:d}"


class TestAtRuleBubbling:
    def test_media_inside_rule(self, pretty, minified):
        source = ".a { @media print { color: black; } }"
        assert pretty(source) == "@media print {\n    .a {\n        color: black;\n    }\n}\n"
        assert minified(source) == "@media print{.a{color:black}}"

    def test_rule_declarations_stay_outside(self, minified):
        source = ".a { color: red; @media print { color: black } }"
        assert minified(source) == ".a{color:red}@media print{.a{color:black}}"

    def test_nested_rule_inside_bubbled_media(self, minified):
        source = ".a { @media print { .b { c: d } } }"
        assert minified(source) == "@media print{.a .b{c:d}}"

    def test_empty_bubbled_block(self, minified):
        assert minified(".a { @media print {} }") == "@media print{}"

    def test_nested_rule_in_top_level_media(self, minified):
        source = "@media print { .a { .b { c: d } } }"
        assert minified(source) == "@media print{.a .b{c:d}}"

    def test_order_preserved(self, minified):
        source = ".a { .b { x: 1 } @media print { y: 2 } .c { z: 3 } }"
        assert minified(source) == ".a .b{x:1}@media print{.a{y:2}}.a .c{z:3}"
