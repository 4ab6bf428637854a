"""Shared pixel and overlay buffers, and the scoped views plugins draw through.

The host owns one :class:`CanvasStorage` for the whole editing session.  It
holds two independently sized buffers:

- **pixels** -- ARGB ``uint32`` values in image coordinates, addressed as
  ``data[y * width + x]``
- **overlay** -- single characters in screen (terminal cell) coordinates,
  addressed as ``overlay[y * o_width + x]``

No scaling happens between the two spaces.  A plugin that wants to map a cell
to a pixel does its own arithmetic.

Borrowing
---------
Plugins never see the storage.  Right before a plugin call the host borrows a
:class:`VirtualCanvas` from it, and releases the view as soon as the call
returns::

    storage = CanvasStorage(640, 480, 80, 24)
    with storage.borrow() as canvas:
        plugin.draw(canvas)
    # canvas is dead here; any access raises CanvasReleasedError

Only one view can be live at a time.  Every index and coordinate is bounds
checked, so an out-of-range access fails fast with
:class:`~orasis.core.errors.CanvasBoundsError` instead of touching another
part of the buffer.

Image conversion
----------------
:meth:`CanvasStorage.from_image` and :meth:`CanvasStorage.to_image` move
pixels between Pillow images and the ARGB buffer.  They operate in memory
only; reading and writing files is the host's job.
"""

from __future__ import annotations

import logging
from array import array
from contextlib import contextmanager
from typing import Iterator, MutableSequence

from PIL import Image

from .errors import (
    CanvasBorrowError,
    CanvasBoundsError,
    CanvasReadOnlyError,
    CanvasReleasedError,
)

logger = logging.getLogger(__name__)

UINT32_MAX = 2**32 - 1


def argb(a: int, r: int, g: int, b: int) -> int:
    """Pack 8-bit channels into a single ARGB value."""
    for channel in (a, r, g, b):
        if channel < 0 or channel > 255:
            raise ValueError(f"Channel values must be 0-255, got {channel}")
    return (a << 24) | (r << 16) | (g << 8) | b


def unpack_argb(value: int) -> tuple[int, int, int, int]:
    """Split an ARGB value into ``(a, r, g, b)``."""
    return (value >> 24) & 0xFF, (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def _check_pixel(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Pixel must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT32_MAX:
        raise ValueError(f"Pixel must be 0 to {UINT32_MAX:#x}, got {value}")


def _check_cell(value: str) -> None:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"Overlay cell must be a single character, got {value!r}")


class _BufferView:
    """Bounds-checked window onto one buffer of a borrowed canvas."""

    _label = "buffer"

    def __init__(self, canvas: "VirtualCanvas", buffer: MutableSequence) -> None:
        self._canvas = canvas
        self._buffer = buffer

    def _index(self, index: int) -> int:
        self._canvas._ensure_live()
        if isinstance(index, slice):
            raise TypeError(f"{self._label} does not support slicing; use explicit indexes")
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"{self._label} index must be an int, got {type(index).__name__}")
        if index < 0 or index >= len(self._buffer):
            raise CanvasBoundsError(
                f"{self._label} index {index} outside [0, {len(self._buffer)})"
            )
        return index

    def __len__(self) -> int:
        self._canvas._ensure_live()
        return len(self._buffer)

    def __getitem__(self, index: int):
        return self._buffer[self._index(index)]

    def __setitem__(self, index: int, value) -> None:
        position = self._index(index)
        self._canvas._ensure_writable()
        self._check(value)
        self._buffer[position] = value

    def __iter__(self) -> Iterator:
        for index in range(len(self)):
            yield self[index]

    def _check(self, value) -> None:
        raise NotImplementedError


class PixelView(_BufferView):
    _label = "pixel data"

    def _check(self, value: int) -> None:
        _check_pixel(value)


class OverlayView(_BufferView):
    _label = "overlay"

    def _check(self, value: str) -> None:
        _check_cell(value)


class VirtualCanvas:
    """A borrowed view over the session's pixel and overlay buffers.

    Attributes:
        width, height: Image dimensions in pixels
        data: Pixel buffer, ``len(data) == width * height``
        o_width, o_height: Overlay dimensions in cells
        overlay: Overlay buffer, ``len(overlay) == o_width * o_height``

    The view is only valid inside the host call that received it.  Keeping a
    reference past that call is allowed, but using it raises
    :class:`CanvasReleasedError`.
    """

    def __init__(self, storage: "CanvasStorage", writable: bool = True) -> None:
        self._storage = storage
        self._writable = writable
        self._live = True
        self.data = PixelView(self, storage._pixels)
        self.overlay = OverlayView(self, storage._overlay)

    @property
    def width(self) -> int:
        self._ensure_live()
        return self._storage.width

    @property
    def height(self) -> int:
        self._ensure_live()
        return self._storage.height

    @property
    def o_width(self) -> int:
        self._ensure_live()
        return self._storage.o_width

    @property
    def o_height(self) -> int:
        self._ensure_live()
        return self._storage.o_height

    @property
    def writable(self) -> bool:
        return self._writable

    @property
    def live(self) -> bool:
        return self._live

    def _ensure_live(self) -> None:
        if not self._live:
            raise CanvasReleasedError("canvas view used after its call returned")

    def _ensure_writable(self) -> None:
        if not self._writable:
            raise CanvasReadOnlyError("canvas view is read-only during this call")

    def _release(self) -> None:
        self._live = False

    def _pixel_index(self, x: int, y: int) -> int:
        width, height = self.width, self.height
        if not (0 <= x < width and 0 <= y < height):
            raise CanvasBoundsError(f"pixel ({x}, {y}) outside {width}x{height} image")
        return y * width + x

    def _cell_index(self, x: int, y: int) -> int:
        o_width, o_height = self.o_width, self.o_height
        if not (0 <= x < o_width and 0 <= y < o_height):
            raise CanvasBoundsError(f"cell ({x}, {y}) outside {o_width}x{o_height} overlay")
        return y * o_width + x

    def get_pixel(self, x: int, y: int) -> int:
        return self.data[self._pixel_index(x, y)]

    def set_pixel(self, x: int, y: int, value: int) -> None:
        self.data[self._pixel_index(x, y)] = value

    def get_cell(self, x: int, y: int) -> str:
        return self.overlay[self._cell_index(x, y)]

    def set_cell(self, x: int, y: int, ch: str) -> None:
        self.overlay[self._cell_index(x, y)] = ch

    def write_text(self, x: int, y: int, text: str) -> int:
        """Write ``text`` on overlay row ``y`` starting at column ``x``.

        Characters past the right edge are dropped; the starting cell itself
        must be inside the overlay.

        Returns:
            Number of characters written
        """
        self._cell_index(x, y)
        visible = text[: self.o_width - x]
        for offset, ch in enumerate(visible):
            self.set_cell(x + offset, y, ch)
        return len(visible)

    def clear_overlay(self, fill: str | None = None) -> None:
        """Reset every overlay cell to ``fill`` (the storage fill by default)."""
        ch = self._storage.overlay_fill if fill is None else fill
        _check_cell(ch)
        self._ensure_live()
        self._ensure_writable()
        overlay = self._storage._overlay
        for index in range(len(overlay)):
            overlay[index] = ch

    def snapshot_pixels(self) -> list[int]:
        """Return a detached copy of the pixel buffer.

        The copy stays valid after the view is released, so it can be handed
        to a background thread.
        """
        self._ensure_live()
        return list(self._storage._pixels)


class CanvasStorage:
    """Session-long pixel and overlay buffers owned by the host.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        o_width: Overlay width in cells
        o_height: Overlay height in cells
        fill: Initial ARGB value of every pixel
        overlay_fill: Initial character of every overlay cell
    """

    def __init__(
        self,
        width: int,
        height: int,
        o_width: int,
        o_height: int,
        fill: int = 0,
        overlay_fill: str = " ",
    ) -> None:
        for label, value in (
            ("width", width),
            ("height", height),
            ("o_width", o_width),
            ("o_height", o_height),
        ):
            if value < 0:
                raise ValueError(f"{label} must be >= 0, got {value}")
        _check_pixel(fill)
        _check_cell(overlay_fill)

        self.width = width
        self.height = height
        self.o_width = o_width
        self.o_height = o_height
        self.overlay_fill = overlay_fill
        self._pixels = array("L", [fill]) * (width * height)
        self._overlay: list[str] = [overlay_fill] * (o_width * o_height)
        self._borrowed = False

    @property
    def borrowed(self) -> bool:
        return self._borrowed

    @contextmanager
    def borrow(self, writable: bool = True) -> Iterator[VirtualCanvas]:
        """Lend a fresh :class:`VirtualCanvas` for the duration of the block.

        Args:
            writable: ``False`` yields a view that rejects writes

        Raises:
            CanvasBorrowError: If another view is still live
        """
        if self._borrowed:
            raise CanvasBorrowError("session buffers are already borrowed")
        canvas = VirtualCanvas(self, writable=writable)
        self._borrowed = True
        try:
            yield canvas
        finally:
            canvas._release()
            self._borrowed = False

    def resize_overlay(self, o_width: int, o_height: int) -> None:
        """Reallocate the overlay for a new viewport size.

        Overlay contents are reset to ``overlay_fill``; pixel data is kept.

        Raises:
            CanvasBorrowError: If a view is live
        """
        if self._borrowed:
            raise CanvasBorrowError("cannot resize while a canvas view is live")
        if o_width < 0 or o_height < 0:
            raise ValueError(f"Overlay size must be >= 0, got {o_width}x{o_height}")
        self.o_width = o_width
        self.o_height = o_height
        self._overlay = [self.overlay_fill] * (o_width * o_height)
        logger.debug(f"Overlay resized to {o_width}x{o_height}")

    def overlay_text(self) -> str:
        """Return the overlay as newline-separated rows (for hosts and tests)."""
        rows = [
            "".join(self._overlay[row * self.o_width : (row + 1) * self.o_width])
            for row in range(self.o_height)
        ]
        return "\n".join(rows)

    @classmethod
    def from_image(
        cls,
        image: Image.Image,
        overlay_size: tuple[int, int],
        overlay_fill: str = " ",
    ) -> "CanvasStorage":
        """Build storage whose pixels come from a Pillow image.

        Args:
            image: Any Pillow image; it is converted to RGBA first
            overlay_size: ``(o_width, o_height)`` of the overlay
            overlay_fill: Initial overlay character

        Returns:
            New storage sized to the image
        """
        rgba = image.convert("RGBA")
        width, height = rgba.size
        o_width, o_height = overlay_size
        storage = cls(width, height, o_width, o_height, overlay_fill=overlay_fill)
        raw = rgba.tobytes()
        for index in range(width * height):
            r, g, b, a = raw[index * 4 : index * 4 + 4]
            storage._pixels[index] = (a << 24) | (r << 16) | (g << 8) | b
        logger.info(f"Loaded {width}x{height} image into canvas storage")
        return storage

    def to_image(self) -> Image.Image:
        """Render the pixel buffer as an RGBA Pillow image."""
        raw = bytearray()
        for p in self._pixels:
            raw += bytes(((p >> 16) & 0xFF, (p >> 8) & 0xFF, p & 0xFF, (p >> 24) & 0xFF))
        return Image.frombytes("RGBA", (self.width, self.height), bytes(raw))
