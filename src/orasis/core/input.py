"""Input payloads produced by the host's input layer.

These are what the bundled host wraps in :class:`~orasis.core.events.Input`.
Plugins that care about input switch on the payload type; anything they do
not recognise should be left unconsumed.

Cell coordinates are 0-based and in overlay (terminal cell) space.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MouseAction(Enum):
    PRESS = "press"
    RELEASE = "release"
    HOLD = "hold"


class MouseButton(Enum):
    LEFT = "left"
    RIGHT = "right"
    MIDDLE = "middle"
    WHEEL_UP = "wheel_up"
    WHEEL_DOWN = "wheel_down"


@dataclass(frozen=True)
class Key:
    """A key press.

    ``name`` is a single character for printable keys, otherwise one of
    ``"up"``, ``"down"``, ``"left"``, ``"right"``, ``"enter"``, ``"esc"``,
    ``"backspace"``, ``"tab"`` or ``"f1"``..``"f12"``.
    """

    name: str
    ctrl: bool = False
    alt: bool = False


@dataclass(frozen=True)
class MouseEvent:
    """A pointer action at a cell.  ``button`` is only set for presses."""

    action: MouseAction
    x: int
    y: int
    button: MouseButton | None = None


@dataclass(frozen=True)
class Unsupported:
    """Raw input the host could not decode."""

    raw: bytes
