"""Source map (revision 3) builder, encoding mapping entries as Base64 VLQ."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from cssnest.errors import EncodingError
from cssnest.render import MappingEntry
from cssnest.tokens import LineIndex

BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_VALUES = {ch: i for i, ch in enumerate(BASE64_ALPHABET)}

_VLQ_SHIFT = 5
_VLQ_MASK = (1 << _VLQ_SHIFT) - 1
_VLQ_CONTINUATION = 1 << _VLQ_SHIFT


@dataclass(frozen=True, slots=True)
class Segment:
    """One decoded mapping segment; every field is 0-based, columns in UTF-16 code units."""

    generated_line: int
    generated_column: int
    source: int
    original_line: int
    original_column: int


def encode_vlq(value: int) -> str:
    """Encode a signed integer as a Base64 VLQ string."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    chars: list[str] = []
    while True:
        digit = vlq & _VLQ_MASK
        vlq >>= _VLQ_SHIFT
        if vlq:
            digit |= _VLQ_CONTINUATION
        chars.append(BASE64_ALPHABET[digit])
        if not vlq:
            return "".join(chars)


def decode_vlq(text: str, pos: int = 0) -> tuple[int, int]:
    """Decode one VLQ value starting at *pos*; return (value, next position)."""
    result = 0
    shift = 0
    while True:
        if pos >= len(text):
            raise ValueError("truncated VLQ sequence")
        digit = _BASE64_VALUES.get(text[pos])
        if digit is None:
            raise ValueError(f"invalid Base64 character {text[pos]!r} in VLQ sequence")
        pos += 1
        result += (digit & _VLQ_MASK) << shift
        shift += _VLQ_SHIFT
        if not digit & _VLQ_CONTINUATION:
            break
    value = result >> 1
    return (-value if result & 1 else value), pos


def encode_mappings(
    entries: Sequence[MappingEntry],
    source_text: str | None = None,
    generated_text: str | None = None,
) -> str:
    """Encode entries into the ``mappings`` field.

    Entries must be sorted by output offset. When *source_text* is given,
    each entry's input line and column are checked against its input offset.

    Entry columns count code points. Source map consumers count UTF-16 code
    units, so a column is widened by one for every astral character before
    it on its line, which needs the matching text. Without *source_text* or
    *generated_text* the columns on that side are written as code points.
    """
    index = LineIndex(source_text) if source_text is not None else None
    parts: list[str] = []
    line = 1
    first_on_line = True
    prev_offset = 0
    prev_gen_col = 0
    prev_src_line = 0
    prev_src_col = 0

    for entry in entries:
        _check_entry(entry, prev_offset, line, index)
        prev_offset = entry.output_offset

        while line < entry.output_line:
            parts.append(";")
            line += 1
            prev_gen_col = 0
            first_on_line = True
        if not first_on_line:
            parts.append(",")
        first_on_line = False

        gen_col = _utf16_column(generated_text, entry.output_offset, entry.output_column)
        src_line = entry.input_line - 1
        src_col = _utf16_column(source_text, entry.input_offset, entry.input_column)
        parts.append(encode_vlq(gen_col - prev_gen_col))
        parts.append(encode_vlq(0))  # single source
        parts.append(encode_vlq(src_line - prev_src_line))
        parts.append(encode_vlq(src_col - prev_src_col))
        prev_gen_col = gen_col
        prev_src_line = src_line
        prev_src_col = src_col

    return "".join(parts)


def _utf16_column(text: str | None, offset: int, column: int) -> int:
    """0-based UTF-16 column of the 1-based code point *column* at *offset*."""
    col = column - 1
    if text is None:
        return col
    line_start = max(offset - col, 0)
    return col + sum(1 for ch in text[line_start:offset] if ord(ch) > 0xFFFF)


def _check_entry(entry: MappingEntry, prev_offset: int, line: int, index: LineIndex | None) -> None:
    if entry.output_offset < prev_offset:
        raise EncodingError(
            f"mapping entries out of order: output offset {entry.output_offset} "
            f"follows {prev_offset}"
        )
    if entry.output_line < line:
        raise EncodingError(
            f"mapping entries out of order: output line {entry.output_line} follows {line}"
        )
    if min(entry.output_line, entry.output_column, entry.input_line, entry.input_column) < 1:
        raise EncodingError(f"mapping entry has a non-positive line or column: {entry}")
    if index is None:
        return
    try:
        expected = index.position(entry.input_offset)
    except ValueError as exc:
        raise EncodingError(f"mapping entry outside the source text: {exc}") from exc
    if (expected.line, expected.column) != (entry.input_line, entry.input_column):
        raise EncodingError(
            f"mapping entry input position {entry.input_line}:{entry.input_column} "
            f"does not match offset {entry.input_offset} ({expected.line}:{expected.column})"
        )


def decode_mappings(mappings: str) -> list[Segment]:
    """Decode a ``mappings`` string back into absolute segments."""
    segments: list[Segment] = []
    src = src_line = src_col = 0
    for gen_line, line_text in enumerate(mappings.split(";")):
        gen_col = 0
        if not line_text:
            continue
        for seg_text in line_text.split(","):
            values: list[int] = []
            pos = 0
            while pos < len(seg_text):
                value, pos = decode_vlq(seg_text, pos)
                values.append(value)
            if len(values) not in (1, 4, 5):
                raise ValueError(f"malformed segment {seg_text!r}")
            gen_col += values[0]
            if len(values) == 1:
                continue
            src += values[1]
            src_line += values[2]
            src_col += values[3]
            segments.append(Segment(gen_line, gen_col, src, src_line, src_col))
    return segments


def build_source_map(
    entries: Sequence[MappingEntry],
    source_name: str,
    source_text: str,
    *,
    file: str | None = None,
    include_sources_content: bool = True,
    generated_text: str | None = None,
) -> dict[str, Any]:
    """Build a revision 3 source map payload for a single-source compile.

    Pass the rendered CSS as *generated_text* so generated columns are
    counted in UTF-16 code units.
    """
    payload: dict[str, Any] = {"version": 3}
    if file is not None:
        payload["file"] = file
    payload["sourceRoot"] = ""
    payload["sources"] = [source_name]
    if include_sources_content:
        payload["sourcesContent"] = [source_text]
    payload["names"] = []
    payload["mappings"] = encode_mappings(entries, source_text, generated_text)
    return payload


def dumps(payload: dict[str, Any]) -> str:
    """Serialize a source map payload to JSON text."""
    return json.dumps(payload, ensure_ascii=False)
