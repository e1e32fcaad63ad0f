"""--debug document tree dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from cssnest.ast import AtRule, Comment, Declaration, Document, Rule


def dump_ast(doc: Document, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable document tree to *file*."""
    _dump_document(doc, 0, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_document(doc: Document, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}Document\n")
    for child in doc.children:
        if isinstance(child, Comment):
            f.write(f"{_indent(depth + 1)}Comment({child.text!r})\n")
        else:
            _dump_item(child, depth + 1, f)


def _dump_item(item: Declaration | Rule | AtRule, depth: int, f: TextIO) -> None:
    if isinstance(item, Declaration):
        _dump_declaration(item, depth, f)
    elif isinstance(item, Rule):
        _dump_rule(item, depth, f)
    elif isinstance(item, AtRule):
        _dump_at_rule(item, depth, f)


def _dump_rule(rule: Rule, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}Rule\n")
    for selector in rule.selectors:
        f.write(f"{_indent(depth + 1)}Selector({selector.text!r})\n")
    for item in rule.body:
        _dump_item(item, depth + 1, f)


def _dump_declaration(decl: Declaration, depth: int, f: TextIO) -> None:
    bang = " !important" if decl.important else ""
    f.write(f"{_indent(depth)}Declaration {decl.property}: {decl.value!r}{bang}\n")


def _dump_at_rule(rule: AtRule, depth: int, f: TextIO) -> None:
    prelude = f" {rule.prelude!r}" if rule.prelude else ""
    block = "" if rule.body is None else " {}"
    f.write(f"{_indent(depth)}AtRule @{rule.name}{prelude}{block}\n")
    for item in rule.body or ():
        _dump_item(item, depth + 1, f)
