"""Escape decoding for identifiers and string literals."""

from __future__ import annotations

from cssnest.tokens import WHITESPACE, is_hex_digit

REPLACEMENT_CHAR = "�"


def decode_escapes(text: str) -> str:
    """Resolve CSS escape sequences in *text*.

    Rules:
    1. ``\\`` followed by 1-6 hex digits is a codepoint; one whitespace
       character directly after the digits is consumed as part of the escape.
    2. Codepoint zero, surrogates and values past U+10FFFF become U+FFFD.
    3. ``\\`` followed by a newline is a line continuation and disappears.
    4. ``\\`` followed by any other character yields that character.

    A trailing lone backslash is kept as-is.
    """
    if "\\" not in text:
        return text

    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != "\\" or i + 1 >= n:
            out.append(ch)
            i += 1
            continue

        nxt = text[i + 1]
        if is_hex_digit(nxt):
            j = i + 1
            while j < n and j - (i + 1) < 6 and is_hex_digit(text[j]):
                j += 1
            codepoint = int(text[i + 1 : j], 16)
            if text[j : j + 2] == "\r\n":
                j += 2
            elif j < n and text[j] in WHITESPACE:
                j += 1
            out.append(_codepoint_char(codepoint))
            i = j
        elif nxt == "\n":
            i += 2
        elif nxt == "\r":
            i += 3 if text[i + 2 : i + 3] == "\n" else 2
        else:
            out.append(nxt)
            i += 2
    return "".join(out)


def _codepoint_char(codepoint: int) -> str:
    if codepoint == 0 or 0xD800 <= codepoint <= 0xDFFF or codepoint > 0x10FFFF:
        return REPLACEMENT_CHAR
    return chr(codepoint)
