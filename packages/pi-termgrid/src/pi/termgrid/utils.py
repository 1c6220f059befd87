"""Display-width helpers for text painted into the screen grid.

Widths are measured per grapheme cluster so that combining marks, emoji
sequences and East Asian wide characters occupy the number of cells a real
terminal gives them.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Regex patterns for escape sequences that occupy no cells
# ---------------------------------------------------------------------------

_STRIP_RE = re.compile(
    r"\x1b\[[0-9;?<]*[A-Za-z]"            # CSI
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC
)

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------


def grapheme_width(g: str) -> int:
    """Return the number of terminal cells a single grapheme cluster uses.

    Control characters and lone combining marks are zero-width, emoji
    sequences (VS16, ZWJ, skin tones, regional indicators) are two cells,
    and everything else is delegated to :func:`wcwidth.wcwidth` for the
    first codepoint.
    """
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


# ---------------------------------------------------------------------------
# visible_width / strip_escapes
# ---------------------------------------------------------------------------


def strip_escapes(text: str) -> str:
    """Remove CSI and OSC escape sequences from *text*."""
    return _STRIP_RE.sub("", text)


def visible_width(text: str) -> int:
    """Calculate how many cells *text* occupies once escape codes are removed."""
    if not text:
        return 0

    stripped = strip_escapes(text)
    if not stripped:
        return 0

    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(grapheme_width(g) for g in grapheme.graphemes(stripped))
    return _cache_width(stripped, total)


# ---------------------------------------------------------------------------
# clip_to_width
# ---------------------------------------------------------------------------


def clip_to_width(text: str, max_cols: int) -> tuple[str, int]:
    """Return the longest prefix of plain *text* fitting in *max_cols* cells.

    The cut happens on grapheme boundaries, so a wide character that would
    straddle the limit is dropped rather than split.  Returns the prefix and
    its width.
    """
    if max_cols <= 0 or not text:
        return "", 0

    if text.isascii() and text.isprintable():
        clipped = text[:max_cols]
        return clipped, len(clipped)

    parts: list[str] = []
    cols = 0
    for g in grapheme.graphemes(text):
        w = grapheme_width(g)
        if cols + w > max_cols:
            break
        parts.append(g)
        cols += w
    return "".join(parts), cols
