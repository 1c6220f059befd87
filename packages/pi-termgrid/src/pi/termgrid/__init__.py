"""pi-termgrid: a minimal terminal UI runtime with z-ordered dispatch and line-diff rendering."""

# Component tree
from pi.termgrid.component import Component, Rect

# Configuration
from pi.termgrid.config import RuntimeConfig

# Errors
from pi.termgrid.errors import RegistryFullError, TermGridError, TreeError

# Events
from pi.termgrid.events import (
    EndEvent,
    Event,
    KeyEvent,
    MouseAction,
    MouseEvent,
    ResizeEvent,
)

# Input decoding
from pi.termgrid.input import InputTokenizer, decode_token

# Keyboard input handling
from pi.termgrid.keys import Key, parse_key

# Render-diff engine
from pi.termgrid.render import render_dirty_lines, render_line

# Runtime
from pi.termgrid.runtime import Latch, Runtime

# Virtual screen
from pi.termgrid.screen import Screen

# Terminal interface and implementations
from pi.termgrid.terminal import ProcessTerminal, Terminal

# Utilities
from pi.termgrid.utils import clip_to_width, visible_width

# Z-order registry
from pi.termgrid.zorder import ZOrderRegistry

__all__ = [
    # Component tree
    "Component",
    "Rect",
    # Config
    "RuntimeConfig",
    # Errors
    "RegistryFullError",
    "TermGridError",
    "TreeError",
    # Events
    "EndEvent",
    "Event",
    "KeyEvent",
    "MouseAction",
    "MouseEvent",
    "ResizeEvent",
    # Input
    "InputTokenizer",
    "decode_token",
    # Keys
    "Key",
    "parse_key",
    # Render
    "render_dirty_lines",
    "render_line",
    # Runtime
    "Latch",
    "Runtime",
    # Screen
    "Screen",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Utilities
    "clip_to_width",
    "visible_width",
    # Z-order
    "ZOrderRegistry",
]
