"""Key identifiers for raw terminal input.

:func:`parse_key` turns one complete input token (a character or a legacy
escape sequence) into a key identifier such as ``"a"``, ``"ctrl+a"``,
``"shift+up"`` or ``"f5"``, the form :attr:`KeyEvent.name` carries.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    clear = "clear"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    f1 = "f1"
    f2 = "f2"
    f3 = "f3"
    f4 = "f4"
    f5 = "f5"
    f6 = "f6"
    f7 = "f7"
    f8 = "f8"
    f9 = "f9"
    f10 = "f10"
    f11 = "f11"
    f12 = "f12"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


# ---------------------------------------------------------------------------
# Sequence tables
# ---------------------------------------------------------------------------

# Unmodified legacy sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1b[E": "clear",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[Z": "shift+tab",
}

# Final byte of ``CSI 1 ; <mod> <final>`` -> key name
_CSI_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
    "E": "clear",
    "P": "f1",
    "Q": "f2",
    "R": "f3",
    "S": "f4",
}

# Number of ``CSI <n> [; <mod>] ~`` -> key name
_CSI_TILDE_KEYS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
    15: "f5",
    17: "f6",
    18: "f7",
    19: "f8",
    20: "f9",
    21: "f10",
    23: "f11",
    24: "f12",
}

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

_CSI_LETTER_RE = re.compile(r"^\x1b\[1;(\d+)([ABCDEFHPQRS])$")
_SS3_MOD_RE = re.compile(r"^\x1bO(\d+)([PQRS])$")
_CSI_TILDE_RE = re.compile(r"^\x1b\[(\d+)(?:;(\d+))?~$")


def _modifier_prefix(param: int) -> str:
    """Translate an xterm modifier parameter (1 + bitmask) into a prefix."""
    mod = max(param - 1, 0)
    prefix = ""
    if mod & MODIFIERS["ctrl"]:
        prefix += "ctrl+"
    if mod & MODIFIERS["shift"]:
        prefix += "shift+"
    if mod & MODIFIERS["alt"]:
        prefix += "alt+"
    return prefix


# ---------------------------------------------------------------------------
# parse_key
# ---------------------------------------------------------------------------


def parse_key(data: str) -> str | None:  # noqa: C901
    """Return the key identifier for one input token, or ``None``."""
    if not data:
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]

    m = _CSI_LETTER_RE.match(data) or _SS3_MOD_RE.match(data)
    if m:
        return _modifier_prefix(int(m.group(1))) + _CSI_LETTER_KEYS[m.group(2)]

    m = _CSI_TILDE_RE.match(data)
    if m:
        name = _CSI_TILDE_KEYS.get(int(m.group(1)))
        if name is None:
            return None
        modifier = int(m.group(2)) if m.group(2) else 1
        return _modifier_prefix(modifier) + name

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return "escape"
    if data in ("\r", "\n"):
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data in ("\x7f", "\x08"):
        return "backspace"
    if data == "\x00":
        return "ctrl+space"

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == "\x1b":
        inner = parse_key(data[1])
        if inner is None:
            return None
        if inner.startswith("ctrl+"):
            return "ctrl+alt+" + inner[len("ctrl+"):]
        if len(data[1]) == 1 and data[1].isupper():
            return "shift+alt+" + data[1].lower()
        return "alt+" + inner

    # --- Plain printable character ---
    if len(data) == 1 and data.isprintable():
        return data

    return None
