"""Runtime configuration, overridable through ``PI_TERMGRID_*`` variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MAX_COMPONENTS = 64
DEFAULT_ENCODING = "utf-8"
DEFAULT_ESCAPE_TIMEOUT = 0.025


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


@dataclass(frozen=True)
class RuntimeConfig:
    """Settings for a :class:`~pi.termgrid.runtime.Runtime`.

    Attributes
    ----------
    max_components:
        Capacity of the z-order registry.  Registering more components is a
        fatal configuration error.
    encoding:
        Output encoding for the real terminal.  Must resolve to UTF-8.
    mouse_motion:
        Request any-motion mouse reports (``ESC[?1003h``) in addition to
        button presses, so ``"move"`` mouse events are delivered.
    write_log:
        Optional path; every byte written to the terminal is appended to it.
    escape_timeout:
        Seconds to wait for the remainder of a split escape sequence before
        treating the buffered bytes as complete.
    """

    max_components: int = DEFAULT_MAX_COMPONENTS
    encoding: str = DEFAULT_ENCODING
    mouse_motion: bool = False
    write_log: str = ""
    escape_timeout: float = DEFAULT_ESCAPE_TIMEOUT

    @classmethod
    def from_env(cls) -> RuntimeConfig:
        """Build a config from the process environment, falling back to defaults."""
        return cls(
            max_components=_env_int(
                "PI_TERMGRID_MAX_COMPONENTS", DEFAULT_MAX_COMPONENTS
            ),
            encoding=os.environ.get("PI_TERMGRID_ENCODING") or DEFAULT_ENCODING,
            mouse_motion=os.environ.get("PI_TERMGRID_MOUSE_MOTION") == "1",
            write_log=os.environ.get("PI_TERMGRID_WRITE_LOG", ""),
            escape_timeout=_env_float(
                "PI_TERMGRID_ESCAPE_TIMEOUT", DEFAULT_ESCAPE_TIMEOUT
            ),
        )
