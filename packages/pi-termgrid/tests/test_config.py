"""Tests for pi.termgrid.config -- environment-driven runtime settings."""

from __future__ import annotations

import pytest

from pi.termgrid.config import (
    DEFAULT_ENCODING,
    DEFAULT_ESCAPE_TIMEOUT,
    DEFAULT_MAX_COMPONENTS,
    RuntimeConfig,
)

_VARS = (
    "PI_TERMGRID_MAX_COMPONENTS",
    "PI_TERMGRID_ENCODING",
    "PI_TERMGRID_MOUSE_MOTION",
    "PI_TERMGRID_WRITE_LOG",
    "PI_TERMGRID_ESCAPE_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


class TestFromEnv:
    def test_defaults(self) -> None:
        config = RuntimeConfig.from_env()
        assert config == RuntimeConfig()
        assert config.max_components == DEFAULT_MAX_COMPONENTS == 64
        assert config.encoding == DEFAULT_ENCODING
        assert config.escape_timeout == DEFAULT_ESCAPE_TIMEOUT
        assert config.mouse_motion is False
        assert config.write_log == ""

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PI_TERMGRID_MAX_COMPONENTS", "8")
        monkeypatch.setenv("PI_TERMGRID_ENCODING", "UTF8")
        monkeypatch.setenv("PI_TERMGRID_MOUSE_MOTION", "1")
        monkeypatch.setenv("PI_TERMGRID_WRITE_LOG", "/tmp/out.log")
        monkeypatch.setenv("PI_TERMGRID_ESCAPE_TIMEOUT", "0.1")
        config = RuntimeConfig.from_env()
        assert config.max_components == 8
        assert config.encoding == "UTF8"
        assert config.mouse_motion is True
        assert config.write_log == "/tmp/out.log"
        assert config.escape_timeout == 0.1

    @pytest.mark.parametrize("raw", ["", "abc", "0", "-3"])
    def test_bad_capacity_falls_back(self, monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
        monkeypatch.setenv("PI_TERMGRID_MAX_COMPONENTS", raw)
        assert RuntimeConfig.from_env().max_components == DEFAULT_MAX_COMPONENTS

    def test_bad_timeout_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PI_TERMGRID_ESCAPE_TIMEOUT", "-1")
        assert RuntimeConfig.from_env().escape_timeout == DEFAULT_ESCAPE_TIMEOUT

    def test_frozen(self) -> None:
        config = RuntimeConfig()
        with pytest.raises(AttributeError):
            config.max_components = 3  # type: ignore[misc]
