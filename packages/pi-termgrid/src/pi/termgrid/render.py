"""Render-diff engine: dirty lines of the virtual screen -> terminal bytes.

Only lines the virtual buffer marks dirty are emitted.  Within a line the
engine tracks the last style it sent and emits just the SGR parameters that
differ for the next cell, so runs of identically styled cells cost nothing
beyond their characters.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from pyte.screens import Char

    from pi.termgrid.screen import Screen

logger = logging.getLogger(__name__)

REPLACEMENT_CHAR = "\ufffd"

# ---------------------------------------------------------------------------
# Colour tables
# ---------------------------------------------------------------------------

# pyte reports the eight ANSI colours by name ("brown" is its name for
# yellow); bright variants may carry a "bright" prefix.
_ANSI_COLOURS: dict[str, int] = {
    "black": 0,
    "red": 1,
    "green": 2,
    "brown": 3,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
}

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------


class Style(NamedTuple):
    """The transmitted part of a cell's attributes (reverse already applied)."""

    fg: str = "default"
    bg: str = "default"
    bold: bool = False
    italics: bool = False
    underscore: bool = False
    strikethrough: bool = False
    blink: bool = False


DEFAULT_STYLE = Style()

# (field, on-code, off-code)
_FLAG_CODES: tuple[tuple[str, str, str], ...] = (
    ("bold", "1", "22"),
    ("italics", "3", "23"),
    ("underscore", "4", "24"),
    ("blink", "5", "25"),
    ("strikethrough", "9", "29"),
)


def effective_style(char: Char) -> Style:
    """Return the style a cell is drawn with.

    Reverse video is resolved here by swapping foreground and background;
    the reverse flag itself is never transmitted.
    """
    fg, bg = char.fg, char.bg
    if char.reverse:
        fg, bg = bg, fg
    return Style(
        fg=fg,
        bg=bg,
        bold=char.bold,
        italics=char.italics,
        underscore=char.underscore,
        strikethrough=char.strikethrough,
        blink=getattr(char, "blink", False),
    )


def color_params(color: str, foreground: bool) -> list[str]:
    """SGR parameters selecting *color* as foreground or background."""
    base = 30 if foreground else 40
    name = color.lower()

    if name.startswith("bright"):
        index = _ANSI_COLOURS.get(name[len("bright"):])
        if index is not None:
            return [str(base + 60 + index)]
    else:
        index = _ANSI_COLOURS.get(name)
        if index is not None:
            return [str(base + index)]

    if len(name) == 6 and all(ch in _HEX_DIGITS for ch in name):
        r, g, b = (int(name[i : i + 2], 16) for i in (0, 2, 4))
        return [str(base + 8), "2", str(r), str(g), str(b)]

    # "default" and anything pyte might report that we cannot express
    return [str(base + 9)]


def sgr_delta(prev: Style, cur: Style) -> str:
    """Return the shortest SGR sequence turning *prev* into *cur*.

    Only changed attributes are emitted; the result is empty when the two
    styles are equal.  A full reset (``ESC[0m``) is never used.
    """
    if prev == cur:
        return ""

    params: list[str] = []
    for field, on, off in _FLAG_CODES:
        before = getattr(prev, field)
        after = getattr(cur, field)
        if before != after:
            params.append(on if after else off)
    if prev.fg != cur.fg:
        params.extend(color_params(cur.fg, foreground=True))
    if prev.bg != cur.bg:
        params.extend(color_params(cur.bg, foreground=False))

    return f"\x1b[{';'.join(params)}m"


# ---------------------------------------------------------------------------
# Character encoding
# ---------------------------------------------------------------------------


def encode_char(data: str, encoding: str = "utf-8") -> bytes:
    """Encode one cell's text, substituting U+FFFD if it is unrepresentable."""
    try:
        return data.encode(encoding)
    except UnicodeEncodeError:
        return REPLACEMENT_CHAR.encode(encoding, errors="replace")


# ---------------------------------------------------------------------------
# Line / screen rendering
# ---------------------------------------------------------------------------


def render_line(cells: list[Char], row: int, encoding: str = "utf-8") -> bytes:
    """Encode one line: cursor to column 0, then styled characters.

    Ends with the delta back to the default style so that the next line can
    start from the default again.
    """
    out: list[bytes] = [f"\x1b[{row + 1};1H".encode("ascii")]
    last = DEFAULT_STYLE

    for char in cells:
        # Second half of a wide character: the terminal fills it itself
        if char.data == "":
            continue

        style = effective_style(char)
        delta = sgr_delta(last, style)
        if delta:
            out.append(delta.encode("ascii"))
            last = style
        out.append(encode_char(char.data, encoding))

    tail = sgr_delta(last, DEFAULT_STYLE)
    if tail:
        out.append(tail.encode("ascii"))
    return b"".join(out)


def render_dirty_lines(screen: Screen, encoding: str = "utf-8") -> bytes:
    """Emit every dirty line of *screen* and mark them clean.

    Clean lines are skipped entirely, so the cost is proportional to the
    number of dirty lines rather than the screen height.
    """
    visited = sorted(line for line in screen.dirty if 0 <= line < screen.rows)
    if not visited:
        screen.mark_clean()
        return b""

    out = b"".join(
        render_line(screen.line(row), row, encoding) for row in visited
    )
    screen.mark_clean()
    logger.debug("rendered %d dirty lines (%d bytes)", len(visited), len(out))
    return out
