"""Background plugin that computes a luminance histogram off the dispatch thread.

Protocol (all events addressed to ``id()``):

==================== ==========================================================
meta                 Meaning
==================== ==========================================================
histogram.request    Snapshot the pixels and start computing on a worker thread
histogram.cancel     Stop a running computation
histogram.result     Emitted by the worker back to this plugin; ``data`` holds
                     the bin counts, ``message`` a one-line summary
==================== ==========================================================

The worker never touches the canvas.  It works on a detached snapshot and
hands its result back through the emitter, so the bins are only stored (and
later drawn) on the dispatch thread.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from orasis.core.canvas import VirtualCanvas, unpack_argb
from orasis.core.events import Event, EventData, Special
from orasis.core.streams import numeric_stream, text_stream

from .base import PluginBase, plugin_registry

logger = logging.getLogger(__name__)

REQUEST_META = "histogram.request"
CANCEL_META = "histogram.cancel"
RESULT_META = "histogram.result"

# Overlay glyphs from empty to full.
_LEVELS = " .:-=+*#%@"

# Pixels processed between cancellation checks.
_CHUNK = 4096


def luminance(pixel: int) -> int:
    """Return the 0-255 Rec. 601 luma of an ARGB pixel."""
    _, r, g, b = unpack_argb(pixel)
    return (299 * r + 587 * g + 114 * b) // 1000


def compute_histogram(
    pixels: list[int], bins: int, cancel: threading.Event | None = None
) -> list[int] | None:
    """Count pixels per luminance bin.

    Returns:
        ``bins`` counts, or ``None`` if ``cancel`` was set mid-way
    """
    counts = [0] * bins
    for start in range(0, len(pixels), _CHUNK):
        if cancel is not None and cancel.is_set():
            return None
        for pixel in pixels[start : start + _CHUNK]:
            counts[luminance(pixel) * bins // 256] += 1
    return counts


class HistogramPlugin(PluginBase):
    """
    Luminance histogram, computed in the background and drawn on the overlay.

    Configuration:
        plugin_id: Override the default ``"histogram"`` id (optional)
        bins: Number of histogram bins, 1-256 (default 16)
    """

    name = "Histogram"
    description = "Compute a luminance histogram in the background"
    version = "0.1.0"
    background = True

    def __init__(self, **config: Any) -> None:
        super().__init__(**config)
        self._id = config.get("plugin_id", "histogram")
        self.bins_count = int(config.get("bins", 16))
        if self.bins_count < 1 or self.bins_count > 256:
            raise ValueError(f"bins must be 1-256, got {self.bins_count}")
        self.bins: list[int] | None = None
        self.summary: str | None = None
        self._worker: threading.Thread | None = None
        self._cancel = threading.Event()

    def id(self) -> str:
        return self._id

    @property
    def busy(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def act(self, event: Event, canvas: VirtualCanvas) -> bool:
        if not isinstance(event, Special) or event.data.target_id != self.id():
            return False

        meta = event.data.meta
        if meta == REQUEST_META:
            self._start(canvas.snapshot_pixels())
            return True
        if meta == CANCEL_META:
            self.cancel()
            return True
        if meta == RESULT_META:
            if event.data.data is not None:
                self.bins = event.data.data.drain()
            if event.data.message is not None:
                self.summary = event.data.message.try_recv()
            logger.info(f"Histogram updated: {self.summary}")
            return True
        return False

    def draw(self, canvas: VirtualCanvas) -> None:
        if not self.bins or canvas.o_width == 0 or canvas.o_height == 0:
            return
        peak = max(self.bins) or 1
        top = len(_LEVELS) - 1
        row = "".join(_LEVELS[count * top // peak] for count in self.bins)
        canvas.write_text(0, canvas.o_height - 1, row)

    def deactivate(self) -> None:
        self.cancel()

    def teardown(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        if self.busy:
            self._cancel.set()
            logger.info("Histogram computation cancelled")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the worker finishes.  Returns False on timeout."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def _start(self, pixels: list[int]) -> None:
        if self.busy:
            logger.warning("Histogram already running, ignoring request")
            return
        self._cancel = threading.Event()
        self._worker = threading.Thread(
            target=self._run,
            args=(pixels, self._cancel),
            name=f"{self.id()}-worker",
            daemon=True,
        )
        self._worker.start()

    def _run(self, pixels: list[int], cancel: threading.Event) -> None:
        counts = compute_histogram(pixels, self.bins_count, cancel)
        if counts is None:
            return

        data_sender, data = numeric_stream()
        message_sender, message = text_stream()
        with data_sender, message_sender:
            data_sender.send_all(counts)
            message_sender.send(f"{len(pixels)} pixels in {self.bins_count} bins")
        self.emit(Special(EventData.targeted(self.id(), RESULT_META, message=message, data=data)))


# Register the plugin
plugin_registry.register(HistogramPlugin)
