"""Virtual terminal buffer backed by :mod:`pyte`.

:class:`Screen` is the drawing surface components render into.  ``pyte``
interprets the escape sequences fed through :meth:`Screen.write`, keeps a
grid of styled cells and records which lines changed; the render-diff
engine reads those back out.  Nothing here talks to the real terminal.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import pyte

from pi.termgrid.utils import clip_to_width

if TYPE_CHECKING:
    from pyte.screens import Char

    from pi.termgrid.component import Rect

_RESET = "\x1b[0m"


def _move_to(x: int, y: int) -> str:
    return f"\x1b[{y + 1};{x + 1}H"


class Screen:
    """A ``rows x cols`` grid of styled cells with per-line dirty tracking."""

    def __init__(self, rows: int, cols: int) -> None:
        self._screen = pyte.Screen(cols, rows)
        self._stream = pyte.ByteStream(self._screen)
        self.mark_all_dirty()

    @classmethod
    def open(cls, rows: int, cols: int) -> Screen:
        return cls(rows, cols)

    # -- dimensions ---------------------------------------------------------

    @property
    def rows(self) -> int:
        return self._screen.lines

    @property
    def cols(self) -> int:
        return self._screen.columns

    def resize(self, rows: int, cols: int) -> None:
        """Change the grid size; every line becomes dirty."""
        self._screen.resize(lines=rows, columns=cols)
        # Drop indices of lines that no longer exist
        self._screen.dirty.clear()
        self.mark_all_dirty()

    # -- writing ------------------------------------------------------------

    def write(self, data: str | bytes) -> None:
        """Feed text or UTF-8 bytes through the terminal state machine."""
        if isinstance(data, str):
            data = data.encode("utf-8", errors="replace")
        self._stream.feed(data)

    def draw_text(self, x: int, y: int, text: str, style: str = "") -> int:
        """Paint *text* at ``(x, y)``, clipped to the right edge of the grid.

        *style* is an SGR sequence (e.g. ``"\\x1b[1;31m"``) applied to the
        text only.  Returns the number of cells painted.
        """
        return self.draw_clipped(x, y, text, self.cols - x, style)

    def draw_clipped(
        self,
        x: int,
        y: int,
        text: str,
        max_cols: int,
        style: str = "",
    ) -> int:
        """Paint at most *max_cols* cells of *text* starting at ``(x, y)``."""
        if not 0 <= y < self.rows or not 0 <= x < self.cols:
            return 0
        clipped, width = clip_to_width(text, min(max_cols, self.cols - x))
        if not clipped:
            return 0
        parts = [_move_to(x, y)]
        if style:
            parts.append(style)
        parts.append(clipped)
        if style:
            parts.append(_RESET)
        self.write("".join(parts))
        return width

    def fill(self, rect: Rect, char: str = " ", style: str = "") -> None:
        """Paint every cell of *rect* (clipped to the grid) with *char*."""
        for y in range(rect.y, rect.y + rect.height):
            self.draw_clipped(rect.x, y, char * rect.width, rect.width, style)

    # -- reading ------------------------------------------------------------

    @property
    def dirty(self) -> set[int]:
        """Indices of lines changed since they were last marked clean."""
        return self._screen.dirty

    def is_dirty(self, line: int) -> bool:
        return line in self._screen.dirty

    def mark_all_dirty(self) -> None:
        self._screen.dirty.update(range(self._screen.lines))

    def mark_clean(self, lines: Iterable[int] | None = None) -> None:
        """Clear the dirty flag of *lines* (all lines when ``None``)."""
        if lines is None:
            self._screen.dirty.clear()
        else:
            self._screen.dirty.difference_update(lines)

    def cell(self, x: int, y: int) -> Char:
        return self._screen.buffer[y][x]

    def line(self, y: int) -> list[Char]:
        """Return the cells of row *y*, left to right."""
        row = self._screen.buffer[y]
        return [row[x] for x in range(self._screen.columns)]

    def text(self, y: int) -> str:
        """Return the plain characters of row *y* (for tests and debugging)."""
        return self._screen.display[y]
