"""Payload streams carried inside :class:`~orasis.core.events.EventData`.

A stream is a one-way, thread-safe FIFO split into a sending half and a
receiving half.  The sender usually lives in the emitting plugin (often on a
background thread); the receiver travels inside an event and is owned by
whoever receives that event.

End-of-stream
-------------
Closing the sender marks the end of the stream.  Once every value sent
before the close has been consumed, the receiver reports end-of-stream:

- ``recv()`` raises :class:`EndOfStream`
- ``try_recv()`` returns ``None`` and ``exhausted`` becomes ``True``
- iteration stops

End-of-stream is a normal termination, not an error.

Usage
-----
::

    from orasis.core.streams import stream

    sender, receiver = stream()
    sender.send("hello")
    sender.close()

    for value in receiver:
        print(value)

Consuming on the dispatch thread
--------------------------------
``recv()`` and iteration block.  Plugins handling events inside ``act`` should
use ``try_recv()`` or ``drain()`` and defer long consumption to their own
worker thread, since a blocked dispatch thread stalls the whole host.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")

UINT64_MAX = 2**64 - 1

_CLOSED = object()


class EndOfStream(Exception):
    """Raised by :meth:`StreamReceiver.recv` once the stream is finished."""


class StreamClosedError(Exception):
    """Raised when sending on a sender that was already closed."""


class StreamSender(Generic[T]):
    """Sending half of a stream.

    Args:
        channel: Queue shared with the receiving half
        validate: Optional callable run on every value before it is queued;
            it should raise ``ValueError`` or ``TypeError`` for bad values
    """

    def __init__(
        self, channel: queue.Queue, validate: Callable[[T], None] | None = None
    ) -> None:
        self._channel = channel
        self._validate = validate
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, value: T) -> None:
        """Queue a value for the receiver.

        Raises:
            StreamClosedError: If the sender was closed
            ValueError: If ``value`` is ``None`` (reserved for "nothing ready")
        """
        if value is None:
            raise ValueError("None cannot be sent on a stream")
        if self._validate is not None:
            self._validate(value)
        with self._lock:
            if self._closed:
                raise StreamClosedError("cannot send on a closed stream")
            self._channel.put_nowait(value)

    def send_all(self, values: Iterable[T]) -> None:
        for value in values:
            self.send(value)

    def close(self) -> None:
        """Mark the end of the stream.  Closing twice is a no-op."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._channel.put_nowait(_CLOSED)

    def __enter__(self) -> "StreamSender[T]":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class StreamReceiver(Generic[T]):
    """Receiving half of a stream."""

    def __init__(self, channel: queue.Queue) -> None:
        self._channel = channel
        self._exhausted = False

    @classmethod
    def of(cls, *values: T) -> "StreamReceiver[T]":
        """Build an already-closed receiver preloaded with ``values``."""
        sender, receiver = stream()
        sender.send_all(values)
        sender.close()
        return receiver

    @property
    def exhausted(self) -> bool:
        """True once the end-of-stream marker has been consumed."""
        return self._exhausted

    def recv(self, timeout: float | None = None) -> T:
        """Block until the next value arrives.

        Args:
            timeout: Seconds to wait; ``None`` waits forever

        Returns:
            The next value

        Raises:
            EndOfStream: If the stream is finished
            TimeoutError: If no value arrived within ``timeout``
        """
        if self._exhausted:
            raise EndOfStream()
        try:
            item = self._channel.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError(f"no stream value within {timeout}s") from None
        if item is _CLOSED:
            self._exhausted = True
            raise EndOfStream()
        return item

    def try_recv(self) -> T | None:
        """Return the next value if one is ready, otherwise ``None``."""
        if self._exhausted:
            return None
        try:
            item = self._channel.get_nowait()
        except queue.Empty:
            return None
        if item is _CLOSED:
            self._exhausted = True
            return None
        return item

    def drain(self) -> list[T]:
        """Return every value that is available right now, without blocking."""
        values: list[T] = []
        while True:
            value = self.try_recv()
            if value is None:
                return values
            values.append(value)

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.recv()
            except EndOfStream:
                return


def stream(
    validate: Callable[[T], None] | None = None,
) -> tuple[StreamSender[T], StreamReceiver[T]]:
    """Create a connected sender/receiver pair."""
    channel: queue.Queue = queue.Queue()
    return StreamSender(channel, validate), StreamReceiver(channel)


def _validate_uint64(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Stream value must be an int, got {type(value).__name__}")
    if value < 0 or value > UINT64_MAX:
        raise ValueError(f"Stream value must be 0 to {UINT64_MAX}, got {value}")


def _validate_text(value: str) -> None:
    if not isinstance(value, str):
        raise TypeError(f"Stream value must be a str, got {type(value).__name__}")


def numeric_stream() -> tuple[StreamSender[int], StreamReceiver[int]]:
    """Create a stream for ``EventData.data`` that only accepts uint64 values."""
    return stream(_validate_uint64)


def text_stream() -> tuple[StreamSender[str], StreamReceiver[str]]:
    """Create a stream for ``EventData.message`` that only accepts strings."""
    return stream(_validate_text)
