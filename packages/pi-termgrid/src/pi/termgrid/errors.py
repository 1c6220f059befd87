"""Exception types raised by the tree, registry and screen layers.

The :class:`~pi.termgrid.runtime.Runtime` converts configuration errors into
its fatal path (teardown, report, exit); code that uses the data structures
on their own can catch them normally.
"""

from __future__ import annotations


class TermGridError(Exception):
    """Base class for all pi-termgrid errors."""


class TreeError(TermGridError):
    """A component tree operation would break single ownership."""


class RegistryFullError(TermGridError):
    """The z-order registry has reached its configured capacity."""

    def __init__(self, capacity: int) -> None:
        super().__init__(
            f"Z-order registry is full ({capacity} components); "
            "raise PI_TERMGRID_MAX_COMPONENTS"
        )
        self.capacity = capacity
