"""The host's single-threaded dispatch loop.

Each cycle runs, in order:

1. poll the input source and dispatch what it produced through
   :meth:`PluginHost.dispatch` (overlay reallocated on ``Resize``, ``Special``
   events routed by target)
2. deliver events plugins emitted since the last cycle
3. dispatch a ``Tick`` if ``tick_interval`` has elapsed
4. redraw

Because ``Tick`` comes after input, an event polled in a cycle is always
offered to the plugins before that cycle's tick.

Input capture itself is outside this package: anything with a
``poll(timeout)`` method returning events can feed the loop.
:class:`QueueInputSource` is a thread-safe source other threads can push to.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, Protocol

from .config import OrasisConfig
from .events import Event, Input, describe_event, is_event
from .host import PluginHost

logger = logging.getLogger(__name__)


class InputSource(Protocol):
    """Produces host events (``Input`` and ``Resize``) for the loop."""

    def poll(self, timeout: float) -> list[Event]:
        """Return pending events, waiting at most ``timeout`` seconds for one."""
        ...


class QueueInputSource:
    """Input source fed by :meth:`push`, safe to use from any thread."""

    def __init__(self) -> None:
        self._queue: queue.Queue = queue.Queue()

    def push(self, event: Event) -> None:
        if not is_event(event):
            event = Input(event)
        self._queue.put_nowait(event)

    def poll(self, timeout: float) -> list[Event]:
        events: list[Event] = []
        try:
            if timeout > 0:
                events.append(self._queue.get(timeout=timeout))
            else:
                events.append(self._queue.get_nowait())
        except queue.Empty:
            return events
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events


class DispatchLoop:
    """Drives a :class:`PluginHost` from an input source and a tick timer.

    Args:
        host: Host to drive
        input_source: Where input comes from; ``None`` runs on ticks and
            emitted events only
        config: Loop timing settings (defaults to the host's config)
        clock: Monotonic time source, replaceable in tests
    """

    def __init__(
        self,
        host: PluginHost,
        input_source: InputSource | None = None,
        config: OrasisConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.input_source = input_source
        self.config = config or host.config
        self._clock = clock
        self._next_tick = clock() + self.config.tick_interval
        self.cycles = 0
        self.ticks = 0

    def run_once(self) -> None:
        """Run a single dispatch cycle."""
        if self.input_source is not None:
            for event in self.input_source.poll(self.config.poll_timeout):
                self._dispatch_input(event)

        self.host.process_pending()

        now = self._clock()
        if now >= self._next_tick:
            self.host.tick()
            self.ticks += 1
            self._next_tick = now + self.config.tick_interval

        self.host.draw()
        self.cycles += 1

    def run(self, stop: threading.Event | None = None, max_cycles: int | None = None) -> int:
        """Run cycles until ``stop`` is set or ``max_cycles`` is reached.

        Returns:
            Number of cycles run
        """
        logger.info("Dispatch loop started")
        start = self.cycles
        try:
            while not (stop is not None and stop.is_set()):
                if max_cycles is not None and self.cycles - start >= max_cycles:
                    break
                self.run_once()
                if self.input_source is None:
                    # Nothing to block on; sleep until the next tick is due.
                    wait = min(self.config.poll_timeout, self._next_tick - self._clock())
                    time.sleep(max(0.0, wait))
        finally:
            logger.info(f"Dispatch loop stopped after {self.cycles - start} cycles")
        return self.cycles - start

    def _dispatch_input(self, event: Event) -> None:
        if not is_event(event):
            logger.warning(f"Input source produced a non-event {event!r}, ignoring")
            return
        logger.debug(f"Dispatching input {describe_event(event)}")
        self.host.dispatch(event)
