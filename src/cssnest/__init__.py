"""Stylesheet compiler with nested rules, minification and source maps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cssnest.render import MappingEntry

__version__ = "0.1.0"


@dataclass(frozen=True, slots=True)
class CompileOptions:
    """Options for a single compile."""

    minify: bool = False
    source_map: bool = False
    indent: str = "    "
    parent_reference: bool = True
    sources_content: bool = True


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Output CSS plus, when requested, the source map payload and raw entries."""

    css: str
    source_map: dict[str, Any] | None = None
    mappings: tuple[MappingEntry, ...] = field(default_factory=tuple)


def compile(
    source: str,
    options: CompileOptions | None = None,
    filename: str = "input.css",
) -> CompileResult:
    """Parse and render stylesheet source, optionally building a source map.

    Raises a CompileError subclass on the first lexical, structural or
    encoding error; nothing is returned in that case.
    """
    from cssnest.parser import parse
    from cssnest.render import RenderPolicy, render
    from cssnest.sourcemap import build_source_map

    if options is None:
        options = CompileOptions()

    doc = parse(source, filename)
    policy = RenderPolicy(
        minify=options.minify,
        source_map=options.source_map,
        indent=options.indent,
        parent_reference=options.parent_reference,
    )
    css, mappings = render(doc, policy)
    if not options.source_map:
        return CompileResult(css)

    payload = build_source_map(
        mappings,
        filename,
        source,
        include_sources_content=options.sources_content,
        generated_text=css,
    )
    return CompileResult(css, payload, tuple(mappings))
