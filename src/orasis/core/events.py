"""Event model shared by the host and its plugins.

An :data:`Event` is exactly one of four variants:

- :class:`Input` -- a host-level input occurrence (key press, pointer action).
  The payload type belongs to the host's input layer; see
  :mod:`orasis.core.input` for the payloads the bundled host produces.
- :class:`Special` -- a message between plugins or between a plugin and the
  plugin manager, carrying :class:`EventData`.
- :class:`Resize` -- the viewport changed size.
- :class:`Tick` -- some time has passed.

The set is closed.  Handlers must accept all four kinds and return
"not consumed" for the ones they do not care about.  ``Special`` is the only
extension point: new semantics are expressed through ``EventData.meta``,
which consumers switch on by convention.

Example
-------
::

    from orasis.core.events import EventData, Special
    from orasis.core.streams import StreamReceiver

    ping = Special(EventData.targeted("peer", "ping"))
    note = Special(
        EventData.system("host.activate", message=StreamReceiver.of("cursor"))
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .streams import StreamReceiver

UINT16_MAX = 2**16 - 1


@dataclass
class EventData:
    """Payload of a :class:`Special` event.

    Attributes:
        target_id: Id of the plugin that should receive the event, or ``None``
            to let the plugin manager handle it
        meta: Short string describing the kind of event
        message: Optional stream of string values
        data: Optional stream of uint64 values

    ``message`` and ``data`` are independent.  Which of them are present is a
    convention tied to ``meta``, not something the type enforces.
    """

    target_id: str | None
    meta: str
    message: StreamReceiver[str] | None = None
    data: StreamReceiver[int] | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.meta, str):
            raise TypeError(f"meta must be a str, got {type(self.meta).__name__}")
        if self.target_id is not None and not self.target_id:
            raise ValueError("target_id must be a non-empty string or None")

    @classmethod
    def new(
        cls,
        target_id: str | None,
        meta: str,
        message: StreamReceiver[str] | None = None,
        data: StreamReceiver[int] | None = None,
    ) -> "EventData":
        return cls(target_id=target_id, meta=meta, message=message, data=data)

    @classmethod
    def system(
        cls,
        meta: str,
        message: StreamReceiver[str] | None = None,
        data: StreamReceiver[int] | None = None,
    ) -> "EventData":
        """Build a payload for the plugin manager itself (no target)."""
        return cls(target_id=None, meta=meta, message=message, data=data)

    @classmethod
    def targeted(
        cls,
        target_id: str,
        meta: str,
        message: StreamReceiver[str] | None = None,
        data: StreamReceiver[int] | None = None,
    ) -> "EventData":
        """Build a payload addressed to the plugin whose ``id()`` is ``target_id``.

        Raises:
            ValueError: If ``target_id`` is empty
        """
        if not target_id:
            raise ValueError("targeted events need a non-empty target_id")
        return cls(target_id=target_id, meta=meta, message=message, data=data)

    @property
    def is_targeted(self) -> bool:
        return self.target_id is not None


@dataclass(frozen=True)
class Input:
    """Host input occurrence.  ``payload`` is opaque to this module."""

    payload: Any


@dataclass(frozen=True, eq=False)
class Special:
    """Plugin- or host-originated message."""

    data: EventData


@dataclass(frozen=True)
class Resize:
    """Viewport dimension change, in terminal cells."""

    width: int
    height: int

    def __post_init__(self) -> None:
        for label, value in (("width", self.width), ("height", self.height)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Resize {label} must be an int, got {type(value).__name__}")
            if value < 0 or value > UINT16_MAX:
                raise ValueError(f"Resize {label} must be 0-{UINT16_MAX}, got {value}")


@dataclass(frozen=True)
class Tick:
    """Time has passed."""


Event = Union[Input, Special, Resize, Tick]

EVENT_TYPES = (Input, Special, Resize, Tick)

TICK = Tick()


def is_event(obj: object) -> bool:
    """Return True if ``obj`` is one of the four event variants."""
    return isinstance(obj, EVENT_TYPES)


def describe_event(event: Event) -> str:
    """Return a short, log-friendly label for an event."""
    if isinstance(event, Special):
        target = event.data.target_id or "<manager>"
        return f"Special(meta={event.data.meta!r}, target={target})"
    if isinstance(event, Resize):
        return f"Resize({event.width}x{event.height})"
    if isinstance(event, Input):
        return f"Input({event.payload!r})"
    if isinstance(event, Tick):
        return "Tick"
    raise TypeError(f"Not an event: {event!r}")
