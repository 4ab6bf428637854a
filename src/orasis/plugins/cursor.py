"""Cursor tool: moves a marker over the overlay and picks colours."""

from __future__ import annotations

import logging
from typing import Any

from orasis.core.canvas import VirtualCanvas
from orasis.core.events import Event, EventData, Input, Resize, Special
from orasis.core.input import Key, MouseAction, MouseEvent
from orasis.core.streams import StreamReceiver

from .base import PluginBase, plugin_registry

logger = logging.getLogger(__name__)

_MOVES = {
    "up": (0, -1),
    "down": (0, 1),
    "left": (-1, 0),
    "right": (1, 0),
}


class CursorPlugin(PluginBase):
    """
    Keyboard/mouse cursor drawn on the overlay.

    - Arrow keys move the cursor one cell; mouse presses and drags jump to
      the pointer cell.
    - ``p`` samples the pixel under the cursor and sends it to
      ``color_target`` as a ``color`` event with the ARGB value on the data
      stream.
    - A ``cursor.move`` event addressed to this plugin, with ``x`` and ``y``
      on its data stream, moves the cursor programmatically.

    Cells map to pixels proportionally (``px = x * width // o_width``).

    The plugin loads into the background set so it still gets ``draw`` after
    losing focus; that draw erases the marker.  While unfocused it consumes
    no input.

    Configuration:
        plugin_id: Override the default ``"cursor"`` id (optional)
        marker: Overlay character for the cursor (default ``"+"``)
        color_target: Plugin id that receives picked colours (default ``"palette"``)
    """

    name = "Cursor"
    description = "Move a cursor over the overlay and pick pixel colours"
    version = "0.1.0"
    background = True

    def __init__(self, **config: Any) -> None:
        super().__init__(**config)
        self._id = config.get("plugin_id", "cursor")
        self.marker = config.get("marker", "+")
        self.color_target = config.get("color_target", "palette")
        self.x = 0
        self.y = 0
        self.picked: int | None = None
        self.focused = False
        self._drawn_at: tuple[int, int] | None = None
        self._under = " "

    def id(self) -> str:
        return self._id

    def activate(self, canvas: VirtualCanvas) -> None:
        self._clamp(canvas.o_width, canvas.o_height)
        self.picked = self._sample(canvas)
        self.focused = True

    def act(self, event: Event, canvas: VirtualCanvas) -> bool:
        if isinstance(event, Input):
            if not self.focused:
                return False
            return self._on_input(event.payload, canvas)
        if isinstance(event, Resize):
            # The host reallocated the overlay, so the old marker is gone.
            self._drawn_at = None
            self._clamp(event.width, event.height)
            return False
        if isinstance(event, Special) and event.data.target_id == self.id():
            if event.data.meta == "cursor.move" and event.data.data is not None:
                coords = event.data.data.drain()
                if len(coords) >= 2:
                    self.x, self.y = coords[0], coords[1]
                    self._clamp(canvas.o_width, canvas.o_height)
                return True
        return False

    def draw(self, canvas: VirtualCanvas) -> None:
        if canvas.o_width == 0 or canvas.o_height == 0:
            return
        if not self.focused:
            self._erase(canvas)
            return
        if self._drawn_at == (self.x, self.y):
            if canvas.get_cell(self.x, self.y) != self.marker:
                canvas.set_cell(self.x, self.y, self.marker)
            return
        self._erase(canvas)
        self._under = canvas.get_cell(self.x, self.y)
        canvas.set_cell(self.x, self.y, self.marker)
        self._drawn_at = (self.x, self.y)

    def deactivate(self) -> None:
        self.picked = None
        self.focused = False

    def _erase(self, canvas: VirtualCanvas) -> None:
        if self._drawn_at is None:
            return
        old_x, old_y = self._drawn_at
        if canvas.get_cell(old_x, old_y) == self.marker:
            canvas.set_cell(old_x, old_y, self._under)
        self._drawn_at = None

    def _on_input(self, payload: object, canvas: VirtualCanvas) -> bool:
        if isinstance(payload, Key):
            if payload.name in _MOVES:
                dx, dy = _MOVES[payload.name]
                self.x += dx
                self.y += dy
                self._clamp(canvas.o_width, canvas.o_height)
                return True
            if payload.name == "p" and not payload.ctrl and not payload.alt:
                self.picked = self._sample(canvas)
                if self.picked is not None:
                    self.emit(
                        Special(
                            EventData.targeted(
                                self.color_target, "color", data=StreamReceiver.of(self.picked)
                            )
                        )
                    )
                    logger.info(f"Picked colour {self.picked:#010x} at ({self.x}, {self.y})")
                return True
            return False
        if isinstance(payload, MouseEvent) and payload.action in (
            MouseAction.PRESS,
            MouseAction.HOLD,
        ):
            self.x, self.y = payload.x, payload.y
            self._clamp(canvas.o_width, canvas.o_height)
            return True
        return False

    def _clamp(self, o_width: int, o_height: int) -> None:
        self.x = min(max(self.x, 0), max(o_width - 1, 0))
        self.y = min(max(self.y, 0), max(o_height - 1, 0))

    def _sample(self, canvas: VirtualCanvas) -> int | None:
        if 0 in (canvas.width, canvas.height, canvas.o_width, canvas.o_height):
            return None
        px = self.x * canvas.width // canvas.o_width
        py = self.y * canvas.height // canvas.o_height
        return canvas.get_pixel(px, py)


# Register the plugin
plugin_registry.register(CursorPlugin)
