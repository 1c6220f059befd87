"""Event types produced by :meth:`Runtime.next_event`.

Every event carries a ``handled`` flag that dispatch sets; resize and end
events are always handled by the runtime itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

MouseAction = Literal["button1", "button2", "button3", "move"]


@dataclass
class ResizeEvent:
    new_width: int
    new_height: int
    handled: bool = False


@dataclass
class MouseEvent:
    """A pointer report in 0-based cell coordinates."""

    x: int
    y: int
    action: MouseAction
    handled: bool = False


@dataclass
class KeyEvent:
    """A keypress.

    ``key`` is the decoded character (a single codepoint) for text input,
    or the raw escape sequence for special keys.  ``name`` is the key
    identifier from :func:`pi.termgrid.keys.parse_key`, e.g. ``"a"``,
    ``"ctrl+c"`` or ``"up"``, or ``None`` when the input is not recognised.
    """

    key: str
    name: str | None = None
    handled: bool = False


@dataclass
class EndEvent:
    """The runtime has shut down; the event loop must stop."""

    handled: bool = True


Event = Union[ResizeEvent, MouseEvent, KeyEvent, EndEvent]
