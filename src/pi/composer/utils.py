"""Text helpers: character classes, display width, wrapping and offsets.

Word classification and wrapping follow the same rules the renderer uses so
that wrapped-line kills remove exactly the span the user sees on screen.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Character classification
# ---------------------------------------------------------------------------

_PUNCTUATION_REGEX = re.compile(r"[(){}\[\]<>.,;:'\"!?\+\-=*/\\|&%\^$#@~`]")


def is_whitespace_char(char: str) -> bool:
    """Return ``True`` if *char* is a whitespace character."""
    return char in (" ", "\t", "\n", "\r", "\f", "\v")


def is_punctuation_char(char: str) -> bool:
    """Return ``True`` if *char* is a punctuation character."""
    return bool(_PUNCTUATION_REGEX.match(char))


def is_word_char(char: str) -> bool:
    return not is_whitespace_char(char) and not is_punctuation_char(char)


# ---------------------------------------------------------------------------
# Word boundaries
# ---------------------------------------------------------------------------


def find_word_start(text: str, pos: int) -> int:
    """Return the offset of the word boundary to the left of *pos*.

    Skips whitespace first, then either a run of punctuation or a run of
    word characters.
    """
    i = pos
    while i > 0 and is_whitespace_char(text[i - 1]):
        i -= 1
    if i > 0 and is_punctuation_char(text[i - 1]):
        while i > 0 and is_punctuation_char(text[i - 1]):
            i -= 1
    else:
        while i > 0 and is_word_char(text[i - 1]):
            i -= 1
    return i


def find_word_end(text: str, pos: int) -> int:
    """Return the offset of the word boundary to the right of *pos*."""
    i = pos
    n = len(text)
    while i < n and is_whitespace_char(text[i]):
        i += 1
    if i < n and is_punctuation_char(text[i]):
        while i < n and is_punctuation_char(text[i]):
            i += 1
    else:
        while i < n and is_word_char(text[i]):
            i += 1
    return i


# ---------------------------------------------------------------------------
# Logical lines
# ---------------------------------------------------------------------------


def line_start(text: str, pos: int) -> int:
    return text.rfind("\n", 0, pos) + 1


def line_end(text: str, pos: int) -> int:
    end = text.find("\n", pos)
    return len(text) if end == -1 else end


# ---------------------------------------------------------------------------
# Display width
# ---------------------------------------------------------------------------


def _grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tone modifiers and regional indicators render as emoji
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Calculate the terminal width of *text*. Tabs count as 3 columns."""
    if not text:
        return 0
    text = text.replace("\t", "   ")
    if text.isascii() and text.isprintable():
        return len(text)
    return sum(_grapheme_width(g) for g in grapheme.graphemes(text))


# ---------------------------------------------------------------------------
# Word wrapping
# ---------------------------------------------------------------------------


@dataclass
class TextChunk:
    """A visual line of a logical line, as offsets into that line."""

    text: str
    start_index: int
    end_index: int


def word_wrap_line(line: str, max_width: int) -> list[TextChunk]:
    """Split a logical line into visual lines no wider than *max_width*.

    Wraps after whitespace when possible and breaks long words at grapheme
    boundaries otherwise.
    """
    if not line or max_width <= 0:
        return [TextChunk(text=line, start_index=0, end_index=len(line))]

    if visible_width(line) <= max_width:
        return [TextChunk(text=line, start_index=0, end_index=len(line))]

    segments: list[tuple[str, int]] = []
    idx = 0
    for g in grapheme.graphemes(line):
        segments.append((g, idx))
        idx += len(g)

    chunks: list[TextChunk] = []
    current_width = 0
    chunk_start = 0
    wrap_opp_index = -1
    wrap_opp_width = 0

    for i, (g, char_index) in enumerate(segments):
        g_width = visible_width(g)

        if current_width + g_width > max_width:
            if wrap_opp_index >= 0:
                chunks.append(
                    TextChunk(
                        text=line[chunk_start:wrap_opp_index],
                        start_index=chunk_start,
                        end_index=wrap_opp_index,
                    )
                )
                chunk_start = wrap_opp_index
                current_width -= wrap_opp_width
            elif chunk_start < char_index:
                chunks.append(
                    TextChunk(
                        text=line[chunk_start:char_index],
                        start_index=chunk_start,
                        end_index=char_index,
                    )
                )
                chunk_start = char_index
                current_width = 0
            wrap_opp_index = -1

        current_width += g_width

        # Wrap opportunity: whitespace followed by non-whitespace
        if is_whitespace_char(g) and i + 1 < len(segments):
            next_g, next_idx = segments[i + 1]
            if not is_whitespace_char(next_g):
                wrap_opp_index = next_idx
                wrap_opp_width = current_width

    chunks.append(
        TextChunk(text=line[chunk_start:], start_index=chunk_start, end_index=len(line))
    )
    return chunks


def wrapped_line_bounds(text: str, pos: int, width: int) -> tuple[int, int]:
    """Return the ``(start, end)`` offsets of the visual line holding *pos*.

    A cursor sitting exactly on a wrap point belongs to the following visual
    line, except at the end of the logical line.
    """
    start = line_start(text, pos)
    end = line_end(text, pos)
    col = pos - start
    chunks = word_wrap_line(text[start:end], width)
    for chunk in chunks:
        if chunk.start_index <= col < chunk.end_index:
            return start + chunk.start_index, start + chunk.end_index
    last = chunks[-1]
    return start + last.start_index, start + last.end_index


# ---------------------------------------------------------------------------
# UTF-8 byte offsets
# ---------------------------------------------------------------------------


def byte_to_char_offset(text: str, byte_offset: int) -> int:
    """Convert a UTF-8 byte offset into a code-point index.

    Offsets inside a multi-byte character snap to that character's start and
    offsets past the end clamp to ``len(text)``.
    """
    if byte_offset <= 0:
        return 0
    consumed = 0
    for index, ch in enumerate(text):
        consumed += len(ch.encode("utf-8", "surrogatepass"))
        if consumed > byte_offset:
            return index
        if consumed == byte_offset:
            return index + 1
    return len(text)


def char_to_byte_offset(text: str, char_offset: int) -> int:
    """Convert a code-point index into a UTF-8 byte offset."""
    return len(text[: max(char_offset, 0)].encode("utf-8", "surrogatepass"))


def clean_text(text: str) -> str:
    """Replace lone surrogates with ``?`` so the text always encodes as UTF-8."""
    return text.encode("utf-8", "replace").decode("utf-8")
