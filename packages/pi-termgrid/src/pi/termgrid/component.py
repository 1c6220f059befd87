"""Component tree: geometry, ownership and the render/resize contract.

A :class:`Component` owns its children outright and keeps only weak
references to its parent and to the runtime, so the tree stays a strict
single-owner hierarchy.  Concrete component kinds are subclasses.  Input
capabilities are optional members looked up at dispatch time:

``on_click(event: MouseEvent) -> bool``
    Return ``True`` if the click was handled; ``False`` bubbles it to the
    parent.

``on_keypress(event: KeyEvent) -> bool``
    Same contract for keyboard events.

They are not defined on the base class; a component without them takes no
part in that kind of dispatch.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from pi.termgrid.errors import TreeError

if TYPE_CHECKING:
    from pi.termgrid.runtime import Runtime
    from pi.termgrid.screen import Screen

__all__ = ["Rect", "Component"]


# ---------------------------------------------------------------------------
# Rect
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Rect:
    """A rectangle of terminal cells with its origin at the top-left."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains(self, x: int, y: int) -> bool:
        """Hit-test a cell coordinate.

        Both edges are inclusive: a point at ``x == self.x + self.width``
        (or ``y == self.y + self.height``) is still inside, one cell past
        the painted area.
        """
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def contains_rect(self, other: Rect) -> bool:
        """Return ``True`` if *other* lies entirely within this rectangle."""
        return (
            self.x <= other.x
            and self.y <= other.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )

    def inset(self, dx: int, dy: int | None = None) -> Rect:
        """Shrink by *dx* columns on each side and *dy* rows top and bottom."""
        if dy is None:
            dy = dx
        width = max(0, self.width - 2 * dx)
        height = max(0, self.height - 2 * dy)
        return Rect(self.x + dx, self.y + dy, width, height)

    def split_columns(self, at: int) -> tuple[Rect, Rect]:
        """Split into a left part *at* columns wide and the remainder."""
        at = max(0, min(at, self.width))
        left = Rect(self.x, self.y, at, self.height)
        right = Rect(self.x + at, self.y, self.width - at, self.height)
        return left, right

    def split_rows(self, at: int) -> tuple[Rect, Rect]:
        """Split into a top part *at* rows tall and the remainder."""
        at = max(0, min(at, self.height))
        top = Rect(self.x, self.y, self.width, at)
        bottom = Rect(self.x, self.y + at, self.width, self.height - at)
        return top, bottom


# ---------------------------------------------------------------------------
# Component
# ---------------------------------------------------------------------------


class Component:
    """A node in the UI tree.

    Subclasses customise three hooks:

    * :meth:`draw` paints the component's own content.
    * :meth:`layout_child` computes a child's region from the new bounds.
    * ``on_click`` / ``on_keypress`` (optional, see the module docstring).
    """

    def __init__(self, position: Rect | None = None) -> None:
        self.position: Rect = position if position is not None else Rect()
        self.children: list[Component] = []
        self._parent: weakref.ReferenceType[Component] | None = None
        self._context: weakref.ReferenceType[Runtime] | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.position!r})"

    # -- relations ----------------------------------------------------------

    @property
    def parent(self) -> Component | None:
        return self._parent() if self._parent is not None else None

    @property
    def context(self) -> Runtime | None:
        """The runtime this component belongs to, inherited from ancestors."""
        node: Component | None = self
        while node is not None:
            if node._context is not None:
                return node._context()
            node = node.parent
        return None

    @context.setter
    def context(self, runtime: Runtime | None) -> None:
        self._context = weakref.ref(runtime) if runtime is not None else None

    # -- ownership ----------------------------------------------------------

    def add_child(self, child: Component) -> Component:
        """Take ownership of *child* and append it after existing children."""
        if child.parent is not None:
            raise TreeError(f"{child!r} already has a parent")
        if child is self or child in self.ancestors():
            raise TreeError(f"adding {child!r} to {self!r} would create a cycle")
        self.children.append(child)
        child._parent = weakref.ref(self)
        return child

    def remove_child(self, child: Component) -> None:
        """Release *child* (no-op if it is not a child of this component)."""
        try:
            self.children.remove(child)
        except ValueError:
            return
        self._release(child)

    def clear(self) -> None:
        """Release all children."""
        for child in self.children:
            self._release(child)
        self.children.clear()

    @staticmethod
    def _release(child: Component) -> None:
        # Detached subtrees must not keep receiving events
        runtime = child.context
        if runtime is not None:
            for node in child.walk():
                runtime.unregister(node)
        child._parent = None

    # -- traversal ----------------------------------------------------------

    def ancestors(self) -> Iterator[Component]:
        """Yield the parent chain, nearest first."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def walk(self) -> Iterator[Component]:
        """Yield this component and all descendants in pre-order."""
        stack: list[Component] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def root(self) -> Component:
        node = self
        for node in self.ancestors():
            pass
        return node

    # -- layout -------------------------------------------------------------

    def layout_child(self, child: Component, index: int, bounds: Rect) -> Rect:
        """Return the region for *child* given this component's new *bounds*.

        The default gives every child the parent's full area.
        """
        return bounds

    def resize(self, new_bounds: Rect) -> None:
        """Adopt *new_bounds* and re-layout the subtree top-down."""
        self.position = new_bounds
        for index, child in enumerate(self.children):
            child.resize(self.layout_child(child, index, new_bounds))

    # -- rendering ----------------------------------------------------------

    def draw(self, screen: Screen) -> None:
        """Paint this component's own content.  Default: nothing."""

    def render(self, screen: Screen) -> None:
        """Draw this component, then its children in order (children on top)."""
        self.draw(screen)
        for child in self.children:
            child.render(screen)
