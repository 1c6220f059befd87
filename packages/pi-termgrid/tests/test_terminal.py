"""Tests for pi.termgrid.terminal -- control sequences and ProcessTerminal.

ProcessTerminal runs against pipes and a pseudo-terminal instead of the
real stdin/stdout.
"""

from __future__ import annotations

import os
import signal
import termios
from typing import Iterator

import pytest

from pi.termgrid.events import MouseEvent
from pi.termgrid.input import decode_mouse
from pi.termgrid.terminal import (
    ALT_SCREEN_ENTER,
    ALT_SCREEN_EXIT,
    MOUSE_BUTTONS_ENABLE,
    MOUSE_MOTION_DISABLE,
    MOUSE_MOTION_ENABLE,
    MOUSE_SGR_ENABLE,
    ProcessTerminal,
    startup_sequence,
    teardown_sequence,
)


def read_all(fd: int) -> bytes:
    os.set_blocking(fd, False)
    chunks = []
    try:
        while True:
            chunk = os.read(fd, 4096)
            if not chunk:
                break
            chunks.append(chunk)
    except BlockingIOError:
        pass
    return b"".join(chunks)


@pytest.fixture
def pipes() -> Iterator[tuple[int, int, int, int]]:
    in_r, in_w = os.pipe()
    out_r, out_w = os.pipe()
    yield in_r, in_w, out_r, out_w
    for fd in (in_r, in_w, out_r, out_w):
        try:
            os.close(fd)
        except OSError:
            pass


# ---------------------------------------------------------------------------
# Control sequences
# ---------------------------------------------------------------------------


class TestSequences:
    def test_startup_order(self) -> None:
        seq = startup_sequence()
        assert seq.startswith(ALT_SCREEN_ENTER)
        assert seq.index(MOUSE_BUTTONS_ENABLE) < seq.index(MOUSE_SGR_ENABLE)
        assert MOUSE_MOTION_ENABLE not in seq

    def test_mouse_buttons_enabled_not_disabled(self) -> None:
        assert "\x1b[?1000h" in startup_sequence()
        assert "\x1b[?1000l" not in startup_sequence()

    def test_motion_opt_in(self) -> None:
        assert MOUSE_MOTION_ENABLE in startup_sequence(mouse_motion=True)
        assert MOUSE_MOTION_DISABLE in teardown_sequence(mouse_motion=True)

    def test_teardown_leaves_alt_screen_last(self) -> None:
        seq = teardown_sequence()
        assert seq.endswith(ALT_SCREEN_EXIT)
        assert "\x1b[?25h" in seq


# ---------------------------------------------------------------------------
# ProcessTerminal
# ---------------------------------------------------------------------------


class TestProcessTerminal:
    def test_start_and_stop_write_sequences(self, pipes) -> None:
        in_r, _, out_r, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        term.start()
        term.start()
        term.stop()
        term.stop()
        assert read_all(out_r) == (
            startup_sequence() + teardown_sequence()
        ).encode("ascii")

    def test_default_size_when_not_a_tty(self, pipes) -> None:
        in_r, _, _, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        assert (term.columns, term.rows) == (80, 24)

    def test_read_input_decodes_utf8(self, pipes) -> None:
        in_r, in_w, _, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        term.start()
        try:
            os.write(in_w, "\u00e9".encode("utf-8")[:1])
            assert term.read_input(0.5) == ""
            os.write(in_w, "\u00e9".encode("utf-8")[1:] + b"x")
            assert term.read_input(0.5) == "\u00e9x"
        finally:
            term.stop()

    def test_read_input_timeout(self, pipes) -> None:
        in_r, _, _, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        term.start()
        try:
            assert term.read_input(0.01) == ""
        finally:
            term.stop()

    def test_read_input_end_of_input(self, pipes) -> None:
        in_r, in_w, _, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        term.start()
        try:
            os.close(in_w)
            assert term.read_input(0.5) is None
        finally:
            term.stop()

    def test_signal_wakes_read(self, pipes) -> None:
        in_r, _, _, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        woken: list[int] = []
        previous = signal.signal(signal.SIGUSR1, lambda signum, frame: woken.append(signum))
        term.start()
        try:
            signal.raise_signal(signal.SIGUSR1)
            assert term.read_input(5.0) == ""
            assert woken == [signal.SIGUSR1]
        finally:
            term.stop()
            signal.signal(signal.SIGUSR1, previous)

    def test_wakeup_fd_restored(self, pipes) -> None:
        in_r, _, _, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        before = signal.set_wakeup_fd(-1)
        signal.set_wakeup_fd(before)
        term.start()
        term.stop()
        assert signal.set_wakeup_fd(before) == before

    def test_write_log(self, pipes, tmp_path) -> None:
        in_r, _, out_r, out_w = pipes
        log = tmp_path / "writes.log"
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w, write_log=str(log))
        term.write(b"abc")
        assert read_all(out_r) == b"abc"
        assert log.read_bytes() == b"abc"

    def test_cbreak_mode_restored_on_pty(self, pipes) -> None:
        _, _, _, out_w = pipes
        master, slave = os.openpty()
        try:
            original = termios.tcgetattr(slave)
            term = ProcessTerminal(stdin_fd=slave, stdout_fd=out_w)
            term.start()
            lflag = termios.tcgetattr(slave)[3]
            assert not lflag & termios.ECHO
            assert not lflag & termios.ICANON
            term.stop()
            assert termios.tcgetattr(slave) == original
        finally:
            os.close(master)
            os.close(slave)

    def test_stop_restores_state_when_output_closed(self, pipes) -> None:
        _, _, out_r, out_w = pipes
        master, slave = os.openpty()
        before = signal.set_wakeup_fd(-1)
        signal.set_wakeup_fd(before)
        try:
            original = termios.tcgetattr(slave)
            term = ProcessTerminal(stdin_fd=slave, stdout_fd=out_w)
            term.start()
            os.close(out_r)
            term.stop()
            assert termios.tcgetattr(slave) == original
            assert signal.set_wakeup_fd(before) == before
            assert term._wakeup_r is None and term._wakeup_w is None
        finally:
            os.close(master)
            os.close(slave)

    def test_failed_start_restores_terminal_mode(self, pipes) -> None:
        _, _, out_r, out_w = pipes
        master, slave = os.openpty()
        before = signal.set_wakeup_fd(-1)
        signal.set_wakeup_fd(before)
        try:
            original = termios.tcgetattr(slave)
            term = ProcessTerminal(stdin_fd=slave, stdout_fd=out_w)
            os.close(out_r)
            with pytest.raises(BrokenPipeError):
                term.start()
            assert termios.tcgetattr(slave) == original
            assert signal.set_wakeup_fd(before) == before
            term.stop()
        finally:
            os.close(master)
            os.close(slave)

    def test_read_input_keeps_high_x10_bytes(self, pipes) -> None:
        in_r, in_w, _, out_w = pipes
        term = ProcessTerminal(stdin_fd=in_r, stdout_fd=out_w)
        term.start()
        try:
            os.write(in_w, b"\x1b[M \xe0!")
            data = term.read_input(0.5)
            assert data == "\x1b[M \udce0!"
            assert decode_mouse(data) == MouseEvent(x=191, y=0, action="button1")
        finally:
            term.stop()
