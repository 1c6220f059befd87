"""Raw input tokenising and decoding into key and mouse events.

Terminal input arrives in arbitrary chunks, so an escape sequence (a mouse
report, an arrow key) can be split across two reads.  :class:`InputTokenizer`
buffers the incomplete tail and hands out only complete tokens;
:func:`decode_token` turns one token into an event.
"""

from __future__ import annotations

import re

from pi.termgrid.events import KeyEvent, MouseAction, MouseEvent
from pi.termgrid.keys import parse_key

ESC = "\x1b"

_SGR_MOUSE_RE = re.compile(r"^\x1b\[<(\d+);(\d+);(\d+)([Mm])$")
_SGR_MOUSE_PAYLOAD_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")

# Low two bits of the button byte
_BUTTONS: dict[int, MouseAction] = {
    0: "button1",
    1: "button2",
    2: "button3",
}
_MOTION_FLAG = 32
_WHEEL_FLAG = 64


# ---------------------------------------------------------------------------
# Sequence completeness
# ---------------------------------------------------------------------------


def is_complete_sequence(data: str) -> str:
    """Classify *data* as ``"complete"``, ``"incomplete"`` or ``"not-escape"``."""
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI: ESC [
    if after_esc.startswith("["):
        # X10 mouse report: ESC [ M <button> <x> <y>
        if after_esc.startswith("[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return _is_complete_csi_sequence(data)

    # OSC: ESC ] ... (BEL | ST)
    if after_esc.startswith("]"):
        if data.endswith(f"{ESC}\\") or data.endswith("\x07"):
            return "complete"
        return "incomplete"

    # SS3: ESC O <final>
    if after_esc.startswith("O"):
        if len(after_esc) < 2:
            return "incomplete"
        # Modified SS3 keys carry a numeric parameter: ESC O 5 P
        if after_esc[1].isdigit():
            return "complete" if len(after_esc) >= 3 else "incomplete"
        return "complete"

    # Meta key: ESC followed by a single character
    return "complete"


def _is_complete_csi_sequence(data: str) -> str:
    if len(data) < 3:
        return "incomplete"

    payload = data[2:]
    last_char = payload[-1]

    if 0x40 <= ord(last_char) <= 0x7E:
        # SGR mouse reports end in M/m but may contain other letters early
        if payload.startswith("<"):
            if _SGR_MOUSE_PAYLOAD_RE.match(payload):
                return "complete"
            return "incomplete"
        return "complete"

    return "incomplete"


def extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete tokens and an incomplete remainder.

    Plain characters become one token each; escape sequences are kept whole.
    """
    tokens: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if not remaining.startswith(ESC):
            tokens.append(remaining[0])
            pos += 1
            continue

        seq_end = 1
        while seq_end <= len(remaining):
            status = is_complete_sequence(remaining[:seq_end])
            if status == "incomplete":
                seq_end += 1
                continue
            tokens.append(remaining[:seq_end])
            pos += seq_end
            break
        else:
            return tokens, remaining

    return tokens, ""


# ---------------------------------------------------------------------------
# InputTokenizer
# ---------------------------------------------------------------------------


class InputTokenizer:
    """Accumulates decoded input text and emits complete tokens."""

    def __init__(self) -> None:
        self._buffer: str = ""

    @property
    def pending(self) -> bool:
        """``True`` while an incomplete escape sequence is buffered."""
        return bool(self._buffer)

    def feed(self, data: str) -> list[str]:
        """Add *data* and return every token that is now complete."""
        tokens, self._buffer = extract_complete_sequences(self._buffer + data)
        return tokens

    def flush(self) -> list[str]:
        """Give up waiting and return the buffered tail as one token."""
        if not self._buffer:
            return []
        tokens = [self._buffer]
        self._buffer = ""
        return tokens

    def clear(self) -> None:
        self._buffer = ""


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _mouse_action(button: int) -> MouseAction | None:
    """Map an xterm button byte to an action; ``None`` for wheel/release."""
    if button & _WHEEL_FLAG:
        return None
    if button & _MOTION_FLAG:
        return "move"
    return _BUTTONS.get(button & 0b11)


def _x10_byte(ch: str) -> int | None:
    """Recover the raw report byte behind *ch* (see ``surrogateescape``)."""
    cp = ord(ch)
    if cp < 0x80:
        return cp
    if 0xDC80 <= cp <= 0xDCFF:
        return cp - 0xDC00
    return None


def decode_mouse(token: str) -> MouseEvent | None:
    """Decode an SGR or X10 mouse report with 1-based coordinates.

    Button releases and wheel reports yield ``None``.
    """
    m = _SGR_MOUSE_RE.match(token)
    if m:
        if m.group(4) == "m":
            return None
        action = _mouse_action(int(m.group(1)))
        if action is None:
            return None
        return MouseEvent(x=int(m.group(2)) - 1, y=int(m.group(3)) - 1, action=action)

    if token.startswith("\x1b[M") and len(token) == 6:
        raw = [_x10_byte(ch) for ch in token[3:]]
        if any(b is None or b < 32 for b in raw):
            return None
        button, col, row = (b - 32 for b in raw)
        action = _mouse_action(button)
        if action is None:
            return None
        return MouseEvent(x=col - 1, y=row - 1, action=action)

    return None


def is_mouse_report(token: str) -> bool:
    return token.startswith("\x1b[<") or (
        token.startswith("\x1b[M") and len(token) == 6
    )


def decode_token(token: str) -> MouseEvent | KeyEvent | None:
    """Turn one complete input token into an event.

    Returns ``None`` for tokens that carry nothing to dispatch (mouse button
    releases, wheel reports, empty input).
    """
    if not token:
        return None
    if is_mouse_report(token):
        return decode_mouse(token)
    if any(0xDC80 <= ord(ch) <= 0xDCFF for ch in token):
        token = token.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    return KeyEvent(key=token, name=parse_key(token))
