"""Terminal abstraction for the real tty.

Provides a ``Terminal`` protocol and a concrete ``ProcessTerminal`` that
manages cbreak mode, the alternate screen, mouse reporting and a blocking,
signal-aware input read via ANSI escape sequences and :mod:`termios`.
"""

from __future__ import annotations

import codecs
import logging
import os
import select
import signal
import sys
import termios
import tty
from typing import Protocol

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

ALT_SCREEN_ENTER = "\x1b[?1049h"
ALT_SCREEN_EXIT = "\x1b[?1049l"
CLEAR_SCREEN = "\x1b[2J"
CURSOR_HOME = "\x1b[H"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
RESET_ATTRIBUTES = "\x1b[0m"

MOUSE_BUTTONS_ENABLE = "\x1b[?1000h"
MOUSE_BUTTONS_DISABLE = "\x1b[?1000l"
MOUSE_MOTION_ENABLE = "\x1b[?1003h"
MOUSE_MOTION_DISABLE = "\x1b[?1003l"
MOUSE_SGR_ENABLE = "\x1b[?1006h"
MOUSE_SGR_DISABLE = "\x1b[?1006l"

_DEFAULT_COLUMNS = 80
_DEFAULT_ROWS = 24


def startup_sequence(mouse_motion: bool = False) -> str:
    """Control sequences issued once when the runtime takes the terminal."""
    parts = [
        ALT_SCREEN_ENTER,
        CLEAR_SCREEN,
        CURSOR_HOME,
        HIDE_CURSOR,
        MOUSE_BUTTONS_ENABLE,
    ]
    if mouse_motion:
        parts.append(MOUSE_MOTION_ENABLE)
    parts.append(MOUSE_SGR_ENABLE)
    return "".join(parts)


def teardown_sequence(mouse_motion: bool = False) -> str:
    """The mirror image of :func:`startup_sequence`."""
    parts = [MOUSE_SGR_DISABLE]
    if mouse_motion:
        parts.append(MOUSE_MOTION_DISABLE)
    parts += [
        MOUSE_BUTTONS_DISABLE,
        RESET_ATTRIBUTES,
        CLEAR_SCREEN,
        SHOW_CURSOR,
        ALT_SCREEN_EXIT,
    ]
    return "".join(parts)


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface the runtime needs from a terminal device."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: bytes) -> None: ...

    def read_input(self, timeout: float | None = None) -> str | None:
        """Block for input.

        Returns decoded text, ``""`` when woken (by a signal or *timeout*)
        without data, and ``None`` at end of input.
        """
        ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by the process's stdin/stdout file descriptors.

    :meth:`start` saves the termios attributes, switches to cbreak mode (echo
    and line buffering off, signal keys still delivered) and emits the
    startup sequence.  A self-pipe registered with
    :func:`signal.set_wakeup_fd` lets a signal interrupt :meth:`read_input`,
    which the interpreter would otherwise transparently restart.
    """

    def __init__(
        self,
        *,
        mouse_motion: bool = False,
        write_log: str = "",
        stdin_fd: int | None = None,
        stdout_fd: int | None = None,
    ) -> None:
        self._mouse_motion = mouse_motion
        self._write_log_path = write_log
        self._stdin_fd = stdin_fd if stdin_fd is not None else sys.stdin.fileno()
        self._stdout_fd = (
            stdout_fd if stdout_fd is not None else sys.stdout.fileno()
        )
        self._original_termios: list | None = None
        # Undecodable bytes survive as lone surrogates (X10 mouse coordinates)
        self._decoder = codecs.getincrementaldecoder("utf-8")("surrogateescape")
        self._wakeup_r: int | None = None
        self._wakeup_w: int | None = None
        self._prev_wakeup_fd: int = -1
        self._started = False

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._stdout_fd).columns
        except (ValueError, OSError):
            return _DEFAULT_COLUMNS

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._stdout_fd).lines
        except (ValueError, OSError):
            return _DEFAULT_ROWS

    # -- start / stop -------------------------------------------------------

    def start(self) -> None:
        """Enter cbreak mode and the alternate screen, arm the wakeup pipe."""
        if self._started:
            return

        try:
            self._original_termios = termios.tcgetattr(self._stdin_fd)
            tty.setcbreak(self._stdin_fd, termios.TCSANOW)
        except termios.error:
            # Not a tty (piped input); keep going without mode changes
            logger.debug("stdin is not a tty; leaving terminal mode untouched")
            self._original_termios = None

        self._wakeup_r, self._wakeup_w = os.pipe()
        os.set_blocking(self._wakeup_r, False)
        os.set_blocking(self._wakeup_w, False)
        self._prev_wakeup_fd = signal.set_wakeup_fd(
            self._wakeup_w, warn_on_full_buffer=False
        )

        self._started = True
        try:
            self.write(startup_sequence(self._mouse_motion).encode("ascii"))
        except OSError:
            self.stop()
            raise
        logger.debug("terminal started (%dx%d)", self.columns, self.rows)

    def stop(self) -> None:
        """Restore the screen, the wakeup fd and the termios attributes."""
        if not self._started:
            return
        self._started = False

        try:
            self.write(teardown_sequence(self._mouse_motion).encode("ascii"))
        except OSError as exc:
            # Output is gone; the local state below must still be restored
            logger.debug("teardown write failed: %s", exc)

        signal.set_wakeup_fd(self._prev_wakeup_fd)
        self._prev_wakeup_fd = -1
        for fd in (self._wakeup_r, self._wakeup_w):
            if fd is not None:
                os.close(fd)
        self._wakeup_r = self._wakeup_w = None

        if self._original_termios is not None:
            termios.tcsetattr(
                self._stdin_fd, termios.TCSADRAIN, self._original_termios
            )
            self._original_termios = None

        self._decoder.reset()
        logger.debug("terminal stopped")

    # -- input --------------------------------------------------------------

    def read_input(self, timeout: float | None = None) -> str | None:
        """Wait for stdin or the wakeup pipe and return what arrived."""
        watched = [self._stdin_fd]
        if self._wakeup_r is not None:
            watched.append(self._wakeup_r)

        readable, _, _ = select.select(watched, [], [], timeout)

        if self._wakeup_r is not None and self._wakeup_r in readable:
            self._drain_wakeup()

        if self._stdin_fd not in readable:
            return ""

        raw = os.read(self._stdin_fd, 4096)
        if not raw:
            return None
        return self._decoder.decode(raw)

    def _drain_wakeup(self) -> None:
        try:
            while os.read(self._wakeup_r, 512):  # type: ignore[arg-type]
                pass
        except BlockingIOError:
            pass

    # -- output -------------------------------------------------------------

    def write(self, data: bytes) -> None:
        """Write all of *data* to stdout and optionally to the write log."""
        view = memoryview(data)
        while view:
            written = os.write(self._stdout_fd, view)
            view = view[written:]

        if self._write_log_path:
            try:
                with open(self._write_log_path, "ab") as f:
                    f.write(data)
            except OSError:
                logger.debug("could not append to %s", self._write_log_path)
