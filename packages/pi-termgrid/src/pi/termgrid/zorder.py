"""Z-order registry: event priority among components, independent of the tree.

The registry is a flat list.  The front holds the bottom-most component and
the back holds the topmost one, which is hit-tested and offered keyboard
input first.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator

from pi.termgrid.config import DEFAULT_MAX_COMPONENTS
from pi.termgrid.errors import RegistryFullError

if TYPE_CHECKING:
    from pi.termgrid.component import Component

logger = logging.getLogger(__name__)


class ZOrderRegistry:
    """Bounded, ordered set of components ("back = topmost")."""

    def __init__(self, capacity: int = DEFAULT_MAX_COMPONENTS) -> None:
        self._capacity = capacity
        self._items: list[Component] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Component]:
        """Iterate front (bottom) to back (top)."""
        return iter(list(self._items))

    def __contains__(self, component: object) -> bool:
        return any(item is component for item in self._items)

    def _index(self, component: Component) -> int | None:
        for i, item in enumerate(self._items):
            if item is component:
                return i
        return None

    # -- membership ---------------------------------------------------------

    def add(self, component: Component) -> None:
        """Register *component* on top of everything else.

        Registering a component twice is a no-op.  Raises
        :class:`RegistryFullError` when the registry is at capacity.
        """
        if component in self:
            return
        if len(self._items) >= self._capacity:
            raise RegistryFullError(self._capacity)
        self._items.append(component)

    def remove(self, component: Component) -> None:
        """Unregister *component* (no-op if absent)."""
        idx = self._index(component)
        if idx is not None:
            del self._items[idx]

    def clear(self) -> None:
        self._items.clear()

    # -- ordering -----------------------------------------------------------

    def topmost(self) -> Component | None:
        return self._items[-1] if self._items else None

    def raise_to_top(self, component: Component) -> None:
        """Move *component* to the back of the list.

        Everything after its old slot shifts forward by one, so the relative
        order of the other components is unchanged.
        """
        if len(self._items) <= 1:
            return
        idx = self._index(component)
        if idx is None or idx == len(self._items) - 1:
            return
        self._items.append(self._items.pop(idx))
        logger.debug("raised %r to top", component)

    def top_to_bottom(self) -> Iterator[Component]:
        """Iterate topmost first, the order keyboard input is offered in."""
        return reversed(list(self._items))

    # -- hit testing --------------------------------------------------------

    def hit_test(self, x: int, y: int) -> Component | None:
        """Return the topmost component whose rectangle contains ``(x, y)``."""
        for component in reversed(self._items):
            if component.position.contains(x, y):
                return component
        return None
