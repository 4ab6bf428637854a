"""Outbound event delivery from plugins to the host.

Plugins never call the host directly.  Each plugin gets an :class:`Emitter`
in ``setup()``; emitting is a non-blocking handoff into the host's
:class:`EventQueue`.  Any number of producers (plugins, their worker threads)
may emit; the host's dispatch loop is the only consumer and drains the queue
in arrival order.
"""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass

from .events import Event, describe_event, is_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedEvent:
    """An emitted event together with the id of the plugin that sent it."""

    event: Event
    source_id: str | None


class EventQueue:
    """Multi-producer, single-consumer FIFO of emitted events."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[QueuedEvent] = queue.SimpleQueue()

    def put(self, event: Event, source_id: str | None = None) -> None:
        self._queue.put_nowait(QueuedEvent(event=event, source_id=source_id))

    def get_nowait(self) -> QueuedEvent | None:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def drain(self, limit: int | None = None) -> list[QueuedEvent]:
        """Remove and return up to ``limit`` queued events, oldest first."""
        drained: list[QueuedEvent] = []
        while limit is None or len(drained) < limit:
            item = self.get_nowait()
            if item is None:
                break
            drained.append(item)
        return drained

    def empty(self) -> bool:
        return self._queue.empty()

    def __len__(self) -> int:
        return self._queue.qsize()


class Emitter:
    """Handle a plugin uses to send events to the host.

    Safe to call from any thread.  ``emit`` never blocks and never runs plugin
    code; the event is handled later by the dispatch loop.

    Args:
        events: Host queue that receives emitted events
        source_id: Id of the owning plugin, recorded for logging
    """

    def __init__(self, events: EventQueue, source_id: str | None = None) -> None:
        self._events = events
        self.source_id = source_id

    def emit(self, event: Event) -> None:
        """Queue ``event`` for the host.

        Raises:
            TypeError: If ``event`` is not one of the four event variants
        """
        if not is_event(event):
            raise TypeError(f"Emitter only accepts events, got {type(event).__name__}")
        self._events.put(event, self.source_id)
        logger.debug(f"{self.source_id or 'host'} emitted {describe_event(event)}")

    __call__ = emit
