"""Core contract between the Orasis editor host and its plugins.

This module provides the core components of the plugin contract:

- **Events**: the closed ``Input`` / ``Special`` / ``Resize`` / ``Tick`` model
- **Streams**: the string and uint64 payload channels inside ``EventData``
- **Canvas**: host-owned pixel and overlay buffers, lent to plugins per call
- **PluginHost**: loading, lifecycle enforcement, dispatch and routing
- **DispatchLoop**: the single-threaded loop that drives a host
- **OrasisConfig**: configuration management using Pydantic Settings

Architecture Overview
---------------------
The core module follows a layered architecture:

1. **Data Layer** (events.py, streams.py, input.py):
   - Pure event definitions, no side effects
   - Thread-safe payload streams with end-of-stream semantics

2. **Canvas Layer** (canvas.py):
   - Session buffers owned by the host
   - Scoped, bounds-checked views that die when the call returns

3. **Lifecycle Layer** (lifecycle.py):
   - Per-plugin state machine; out-of-order calls raise LifecycleError

4. **Routing Layer** (routing.py, host.py, loop.py):
   - Emitters feed a multi-producer, single-consumer queue
   - The host routes system, targeted and broadcast events
   - Failing plugins are isolated, dead letters dropped and counted

Usage Example
-------------
    from orasis.core import DispatchLoop, PluginHost, QueueInputSource
    from orasis.core.input import Key
    from orasis.plugins import CursorPlugin

    host = PluginHost()
    host.load(CursorPlugin())
    host.activate("cursor")

    source = QueueInputSource()
    loop = DispatchLoop(host, source)
    source.push(Key("right"))
    loop.run(max_cycles=1)

See Also
--------
- PluginBase: the interface plugins implement
- OrasisConfig: configuration options and environment variables
"""

from orasis.core.canvas import CanvasStorage, VirtualCanvas, argb, unpack_argb
from orasis.core.config import OrasisConfig, config
from orasis.core.errors import (
    CanvasBorrowError,
    CanvasBoundsError,
    CanvasReadOnlyError,
    CanvasReleasedError,
    ContractViolation,
    DuplicatePluginError,
    LifecycleError,
    OrasisError,
    UnknownPluginError,
)
from orasis.core.events import (
    TICK,
    Event,
    EventData,
    Input,
    Resize,
    Special,
    Tick,
    describe_event,
    is_event,
)
from orasis.core.host import PluginHost
from orasis.core.lifecycle import PluginSlot, PluginState
from orasis.core.loop import DispatchLoop, InputSource, QueueInputSource
from orasis.core.routing import Emitter, EventQueue
from orasis.core.streams import (
    EndOfStream,
    StreamClosedError,
    StreamReceiver,
    StreamSender,
    numeric_stream,
    stream,
    text_stream,
)

__all__ = [
    "CanvasStorage",
    "VirtualCanvas",
    "argb",
    "unpack_argb",
    "OrasisConfig",
    "config",
    "OrasisError",
    "ContractViolation",
    "CanvasBoundsError",
    "CanvasReleasedError",
    "CanvasReadOnlyError",
    "CanvasBorrowError",
    "LifecycleError",
    "DuplicatePluginError",
    "UnknownPluginError",
    "Event",
    "EventData",
    "Input",
    "Special",
    "Resize",
    "Tick",
    "TICK",
    "describe_event",
    "is_event",
    "PluginHost",
    "PluginSlot",
    "PluginState",
    "DispatchLoop",
    "InputSource",
    "QueueInputSource",
    "Emitter",
    "EventQueue",
    "EndOfStream",
    "StreamClosedError",
    "StreamReceiver",
    "StreamSender",
    "stream",
    "numeric_stream",
    "text_stream",
]
