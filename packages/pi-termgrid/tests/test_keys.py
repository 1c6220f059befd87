"""Tests for pi.termgrid.keys -- key identifiers for input tokens."""

from __future__ import annotations

import pytest

from pi.termgrid.keys import LEGACY_KEY_SEQUENCES, Key, parse_key


class TestKeyConstants:
    def test_named_keys(self) -> None:
        assert Key.up == "up"
        assert Key.page_down == "pageDown"
        assert Key.f12 == "f12"

    def test_modifier_helpers(self) -> None:
        assert Key.ctrl("c") == "ctrl+c"
        assert Key.shift(Key.tab) == "shift+tab"
        assert Key.alt(Key.ctrl("x")) == "alt+ctrl+x"


class TestParseKeyLegacy:
    @pytest.mark.parametrize(("seq", "name"), sorted(LEGACY_KEY_SEQUENCES.items()))
    def test_every_legacy_sequence(self, seq: str, name: str) -> None:
        assert parse_key(seq) == name

    def test_tilde_keys(self) -> None:
        assert parse_key("\x1b[3~") == "delete"
        assert parse_key("\x1b[5~") == "pageUp"
        assert parse_key("\x1b[15~") == "f5"
        assert parse_key("\x1b[24~") == "f12"


class TestParseKeyModified:
    def test_ctrl_arrow(self) -> None:
        assert parse_key("\x1b[1;5A") == "ctrl+up"

    def test_shift_arrow(self) -> None:
        assert parse_key("\x1b[1;2D") == "shift+left"

    def test_ctrl_shift_alt(self) -> None:
        # 8 = 1 + (shift | alt | ctrl)
        assert parse_key("\x1b[1;8H") == "ctrl+shift+alt+home"

    def test_modified_tilde(self) -> None:
        assert parse_key("\x1b[3;5~") == "ctrl+delete"

    def test_modified_ss3_function_key(self) -> None:
        assert parse_key("\x1bO2P") == "shift+f1"


class TestParseKeySimple:
    @pytest.mark.parametrize(
        ("data", "name"),
        [
            ("\x1b", "escape"),
            ("\r", "enter"),
            ("\n", "enter"),
            ("\t", "tab"),
            (" ", "space"),
            ("\x7f", "backspace"),
            ("\x08", "backspace"),
            ("\x00", "ctrl+space"),
            ("\x01", "ctrl+a"),
            ("\x03", "ctrl+c"),
            ("\x1a", "ctrl+z"),
        ],
    )
    def test_control_bytes(self, data: str, name: str) -> None:
        assert parse_key(data) == name

    def test_printable(self) -> None:
        assert parse_key("a") == "a"
        assert parse_key("Z") == "Z"
        assert parse_key("é") == "é"

    def test_alt_prefix(self) -> None:
        assert parse_key("\x1bx") == "alt+x"
        assert parse_key("\x1b\r") == "alt+enter"

    def test_ctrl_alt(self) -> None:
        assert parse_key("\x1b\x01") == "ctrl+alt+a"

    def test_shift_alt_uppercase(self) -> None:
        assert parse_key("\x1bQ") == "shift+alt+q"

    def test_unrecognised(self) -> None:
        assert parse_key("") is None
        assert parse_key("\x1b[99~") is None
        assert parse_key("\x1c") is None
