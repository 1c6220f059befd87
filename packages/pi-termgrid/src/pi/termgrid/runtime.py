"""The runtime: terminal ownership, the event loop step and dispatch.

A :class:`Runtime` is the single process-wide context.  It owns the
terminal between :meth:`Runtime.init` and :meth:`Runtime.deinit`, the
virtual :class:`~pi.termgrid.screen.Screen`, the
:class:`~pi.termgrid.zorder.ZOrderRegistry` and the root component.

Signal handlers never touch any of that; they only set one of two latches
(``needs_resize``, ``exiting``).  :meth:`Runtime.next_event` checks the
latches before every read, so a resize or shutdown is never starved by
pending input.

Typical use::

    runtime = Runtime()
    runtime.set_root(build_ui())
    runtime.run(on_event=handle)
"""

from __future__ import annotations

import atexit
import codecs
import logging
import signal
import sys
from collections import deque
from typing import TYPE_CHECKING, Callable, ClassVar, NoReturn

from pi.termgrid.component import Component, Rect
from pi.termgrid.config import RuntimeConfig
from pi.termgrid.errors import RegistryFullError
from pi.termgrid.events import EndEvent, Event, KeyEvent, MouseEvent, ResizeEvent
from pi.termgrid.input import InputTokenizer, decode_token
from pi.termgrid.render import render_dirty_lines
from pi.termgrid.screen import Screen
from pi.termgrid.terminal import ProcessTerminal
from pi.termgrid.zorder import ZOrderRegistry

if TYPE_CHECKING:
    from pi.termgrid.terminal import Terminal

__all__ = ["Latch", "Runtime", "MAX_DIMENSION"]

logger = logging.getLogger(__name__)

# Largest terminal dimension the cell coordinates support
MAX_DIMENSION = 0xFFFF


# ---------------------------------------------------------------------------
# Latch
# ---------------------------------------------------------------------------


class Latch:
    """A boolean flag set by an interrupt source and consumed by the loop.

    Every operation is a single attribute load or store, which is all a
    Python signal handler may safely do to shared state.
    """

    __slots__ = ("_value",)

    def __init__(self) -> None:
        self._value = False

    def set(self) -> None:
        self._value = True

    def clear(self) -> None:
        self._value = False

    def is_set(self) -> bool:
        return self._value

    def consume(self) -> bool:
        """Return whether the latch was set, clearing it."""
        if not self._value:
            return False
        self._value = False
        return True

    def __repr__(self) -> str:
        return f"Latch({self._value})"


# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------


class Runtime:
    """Process-wide terminal UI state with an explicit init/deinit lifecycle."""

    _live: ClassVar[Runtime | None] = None

    def __init__(
        self,
        terminal: Terminal | None = None,
        config: RuntimeConfig | None = None,
    ) -> None:
        self.config: RuntimeConfig = config if config is not None else RuntimeConfig.from_env()
        self.terminal: Terminal = (
            terminal
            if terminal is not None
            else ProcessTerminal(
                mouse_motion=self.config.mouse_motion,
                write_log=self.config.write_log,
            )
        )

        self.screen: Screen | None = None
        self.window_width: int = 0
        self.window_height: int = 0

        self.registry = ZOrderRegistry(self.config.max_components)
        self.root: Component | None = None

        self.needs_resize = Latch()
        self.exiting = Latch()

        self._active: bool = False
        self._previous_handlers: dict[int, object] = {}
        self._tokenizer = InputTokenizer()
        self._tokens: deque[str] = deque()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self._active

    @property
    def viewport(self) -> Rect:
        """The full terminal area, the root component's bounds."""
        return Rect(0, 0, self.window_width, self.window_height)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Take over the terminal.

        Checks the output encoding, enters cbreak mode and the alternate
        screen, installs the signal handlers, measures the window and opens
        the virtual screen.  Any failure goes through :meth:`fatal`.
        """
        if self._active:
            return
        if Runtime._live is not None:
            self.fatal("Another runtime is already active.")

        self._check_encoding()

        self.terminal.start()
        self._active = True
        Runtime._live = self
        atexit.register(self.deinit)

        self.exiting.clear()
        self.needs_resize.clear()
        self._tokenizer.clear()
        self._tokens.clear()
        self._install_signal_handlers()

        self._update_size()
        self.screen = Screen.open(self.window_height, self.window_width)
        if self.root is not None:
            self.root.resize(self.viewport)

        logger.debug(
            "runtime initialised (%dx%d)", self.window_width, self.window_height
        )

    def deinit(self) -> None:
        """Give the terminal back.  Safe to call any number of times."""
        if not self._active:
            return
        self._active = False
        if Runtime._live is self:
            Runtime._live = None

        self._restore_signal_handlers()
        try:
            self.terminal.stop()
        finally:
            atexit.unregister(self.deinit)
        logger.debug("runtime deinitialised")

    def fatal(self, message: str) -> NoReturn:
        """Tear down (best effort), report *message* and exit with status 1."""
        self.deinit()
        logger.critical(message)
        print(message, file=sys.stderr)
        sys.exit(1)

    def __enter__(self) -> Runtime:
        self.init()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.deinit()

    def _check_encoding(self) -> None:
        try:
            name = codecs.lookup(self.config.encoding).name
        except LookupError:
            self.fatal(f"Could not query the output encoding {self.config.encoding!r}.")
        if name != "utf-8":
            self.fatal(f"Could not set output encoding to utf8 (got {name}).")

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def _on_sigwinch(self, signum: int, frame: object) -> None:
        self.needs_resize.set()

    def _on_terminate(self, signum: int, frame: object) -> None:
        self.exiting.set()

    def _install_signal_handlers(self) -> None:
        handlers = {
            signal.SIGINT: self._on_terminate,
            signal.SIGTERM: self._on_terminate,
        }
        if hasattr(signal, "SIGWINCH"):
            handlers[signal.SIGWINCH] = self._on_sigwinch
        for signum, handler in handlers.items():
            self._previous_handlers[signum] = signal.signal(signum, handler)

    def _restore_signal_handlers(self) -> None:
        for signum, previous in self._previous_handlers.items():
            # getsignal() reports None for handlers not installed from Python
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous_handlers.clear()

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    def _update_size(self) -> None:
        columns = self.terminal.columns
        rows = self.terminal.rows
        if columns > MAX_DIMENSION or rows > MAX_DIMENSION:
            self.fatal("Terminal is too large: at most 65535 rows and columns are supported.")
        self.window_width = columns
        self.window_height = rows

    # ------------------------------------------------------------------
    # Tree / registry management
    # ------------------------------------------------------------------

    def set_root(self, component: Component) -> None:
        """Make *component* the root; it is sized to the whole viewport."""
        if component.parent is not None:
            self.fatal("The root component must not have a parent.")
        self.root = component
        component.context = self
        if self._active:
            component.resize(self.viewport)

    def register(self, component: Component) -> None:
        """Add *component* to the z-order registry on top of the others."""
        try:
            self.registry.add(component)
        except RegistryFullError as exc:
            self.fatal(str(exc))
        component.context = self

    def unregister(self, component: Component) -> None:
        self.registry.remove(component)

    def raise_component(self, component: Component) -> None:
        """Give *component* the highest event priority."""
        self.registry.raise_to_top(component)

    def destroy(self, component: Component) -> None:
        """Detach *component* from its parent and unregister its subtree."""
        for node in component.walk():
            self.registry.remove(node)
        parent = component.parent
        if parent is not None:
            parent.remove_child(component)
        if component is self.root:
            self.root = None

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def _require_ready(self) -> None:
        if not self._active:
            self.fatal("Runtime is not active.")
        if self.root is None:
            self.fatal("Root component not initialized.")

    def next_event(self) -> Event:
        """Produce and dispatch the next event.

        Shutdown and resize latches are served before any input.  An
        :class:`EndEvent` means the runtime has already been torn down and
        the loop must stop.
        """
        self._require_ready()

        while True:
            if self.exiting.is_set():
                self.deinit()
                return EndEvent(handled=True)

            if self.needs_resize.consume():
                return self._handle_resize()

            token = self._next_token()
            if token is None:
                logger.debug("input closed; shutting down")
                self.exiting.set()
                continue
            if not token:
                continue

            event = decode_token(token)
            if event is None:
                continue
            self.dispatch(event)
            return event

    def _latched(self) -> bool:
        return self.exiting.is_set() or self.needs_resize.is_set()

    def _next_token(self) -> str | None:
        """Return one complete input token.

        ``""`` means nothing complete arrived (a signal woke the read, or a
        split escape sequence is still pending); ``None`` is end of input.
        """
        if self._tokens:
            return self._tokens.popleft()

        timeout = self.config.escape_timeout if self._tokenizer.pending else None
        data = self.terminal.read_input(timeout)
        if data is None:
            self._tokens.extend(self._tokenizer.flush())
            return self._tokens.popleft() if self._tokens else None

        if data:
            self._tokens.extend(self._tokenizer.feed(data))
        elif timeout is not None and not self._latched():
            # A signal wakeup is not the escape timeout; keep the tail
            self._tokens.extend(self._tokenizer.flush())

        return self._tokens.popleft() if self._tokens else ""

    def _handle_resize(self) -> ResizeEvent:
        self._update_size()
        assert self.screen is not None
        self.screen.resize(self.window_height, self.window_width)
        assert self.root is not None
        self.root.resize(self.viewport)
        logger.debug("resized to %dx%d", self.window_width, self.window_height)
        return ResizeEvent(
            new_width=self.window_width,
            new_height=self.window_height,
            handled=True,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: Event) -> bool:
        """Route a key or mouse event and record whether it was handled."""
        if isinstance(event, KeyEvent):
            event.handled = self._dispatch_key(event)
        elif isinstance(event, MouseEvent):
            event.handled = self._dispatch_mouse(event)
        logger.debug("dispatched %r", event)
        return event.handled

    @staticmethod
    def bubble(
        start: Component,
        capability: str,
        event: Event,
        visited: set[int] | None = None,
    ) -> bool:
        """Offer *event* to *start* and then to each ancestor in turn.

        Components without the *capability* method are passed over.  Stops
        at the first handler that returns a truthy value.  With *visited*,
        the walk also stops at a component an earlier walk already offered
        the event to, since its whole parent chain has declined as well.
        """
        node: Component | None = start
        while node is not None:
            if visited is not None:
                if id(node) in visited:
                    return False
                visited.add(id(node))
            handler: Callable[[Event], bool] | None = getattr(node, capability, None)
            if handler is not None and handler(event):
                return True
            node = node.parent
        return False

    def _dispatch_key(self, event: KeyEvent) -> bool:
        visited: set[int] = set()
        for component in self.registry.top_to_bottom():
            if self.bubble(component, "on_keypress", event, visited):
                return True
        return False

    def _dispatch_mouse(self, event: MouseEvent) -> bool:
        target = self.registry.hit_test(event.x, event.y)
        if target is None:
            return False
        return self.bubble(target, "on_click", event)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> None:
        """Render the tree into the virtual screen and flush the diff."""
        self._require_ready()
        assert self.root is not None and self.screen is not None
        self.root.render(self.screen)
        out = render_dirty_lines(self.screen, self.config.encoding)
        if out:
            self.terminal.write(out)

    def run(self, on_event: Callable[[Event], None] | None = None) -> None:
        """Drive the loop until shutdown: event, callback, render."""
        with self:
            self.render()
            while True:
                event = self.next_event()
                if isinstance(event, EndEvent):
                    break
                if on_event is not None:
                    on_event(event)
                self.render()
