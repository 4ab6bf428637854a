"""The plugin manager: owns the canvas, sequences plugin calls, routes events.

:class:`PluginHost` is the single serializer of canvas access.  Every call
that touches the session buffers (``activate``, ``draw``, ``act``) happens
inside a fresh canvas borrow, one plugin at a time.  Plugins never see the
host; they only hold an :class:`~orasis.core.routing.Emitter` that feeds the
host's event queue.

Dispatch
--------
``dispatch(event)`` offers an event to the *candidates*: the active plugin
first, then background plugins in load order.  The first plugin whose
``act`` returns ``True`` consumes the event and the remaining candidates do
not see it.

``Special`` events are never broadcast this way, whoever sends them; they
are routed as described below.  A ``Resize`` always reallocates the overlay
before any plugin sees it.

Routing emitted events
----------------------
``process_pending()`` drains the queue in arrival order and routes each event
exactly like ``dispatch``:

- ``Special`` with ``target_id=None`` goes to the system handler registered
  for its ``meta``.  It never reaches a plugin's ``act``.
- ``Special`` with ``target_id=X`` goes only to the plugin whose ``id()`` is
  ``X``.  If none is loaded, the event is a dead letter: logged, counted and
  dropped.
- Any other variant is offered to the candidates like host input.

Failure isolation
-----------------
An exception escaping a plugin call halts that plugin only.  It is logged
with its traceback, the plugin moves to ``FAILED`` and, when
``unload_failed_plugins`` is set, is unloaded.  Dispatch continues with the
remaining plugins.

Usage
-----
::

    from orasis.core.events import TICK
    from orasis.core.host import PluginHost
    from orasis.plugins import CursorPlugin, HistogramPlugin

    host = PluginHost()
    host.load(CursorPlugin())
    host.load(HistogramPlugin(), background=True)
    host.activate("cursor")

    host.dispatch(TICK)
    host.process_pending()
    host.draw()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterator

from .canvas import CanvasStorage
from .config import OrasisConfig
from .config import config as default_config
from .errors import DuplicatePluginError, UnknownPluginError
from .events import Event, EventData, Input, Resize, Special, TICK, describe_event
from .lifecycle import PluginSlot, PluginState
from .routing import Emitter, EventQueue

if TYPE_CHECKING:
    from orasis.plugins.base import PluginBase

logger = logging.getLogger(__name__)

SystemHandler = Callable[[EventData], None]

# Built-in system commands.  The plugin id is read from the message stream.
ACTIVATE_META = "host.activate"
DEACTIVATE_META = "host.deactivate"
UNLOAD_META = "host.unload"


class PluginHost:
    """Loads plugins, owns the session canvas and runs dispatch.

    Args:
        config: Host configuration (defaults to the global ``config``)
        storage: Session buffers; a blank canvas sized from ``config`` is
            created when omitted
    """

    def __init__(
        self,
        config: OrasisConfig | None = None,
        storage: CanvasStorage | None = None,
    ) -> None:
        self.config = config or default_config
        self.storage = storage or CanvasStorage(
            self.config.canvas_width,
            self.config.canvas_height,
            self.config.overlay_width,
            self.config.overlay_height,
            overlay_fill=self.config.overlay_fill,
        )
        self.events = EventQueue()
        self.dead_letters = 0
        self._slots: dict[str, PluginSlot] = {}
        self._active_id: str | None = None
        self._system_handlers: dict[str, SystemHandler] = {
            ACTIVATE_META: self._handle_activate_command,
            DEACTIVATE_META: self._handle_deactivate_command,
            UNLOAD_META: self._handle_unload_command,
        }

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, plugin: "PluginBase", background: bool | None = None) -> PluginSlot:
        """Set up a plugin and add it to the host.

        Args:
            plugin: Plugin instance, not yet set up
            background: Dispatch to this plugin even while it is not active.
                Defaults to the plugin's ``background`` attribute.

        Returns:
            The slot wrapping the plugin

        Raises:
            DuplicatePluginError: If another loaded plugin has the same id
        """
        if background is None:
            background = plugin.background
        slot = PluginSlot(plugin, background=background)
        emitter = Emitter(self.events, source_id=None)
        plugin_id = slot.setup(emitter)
        if plugin_id in self._slots:
            raise DuplicatePluginError(f"plugin id '{plugin_id}' is already loaded")
        emitter.source_id = plugin_id
        self._slots[plugin_id] = slot
        logger.info(
            f"Loaded plugin '{plugin_id}' ({plugin.name})" + (" [background]" if background else "")
        )
        return slot

    def unload(self, plugin_id: str) -> None:
        """Remove a plugin.

        An active plugin is deactivated first.  Every plugin that has not
        failed then gets ``teardown()`` to stop background work.
        """
        slot = self._get_slot(plugin_id)
        if slot.is_active:
            self.deactivate()
        if slot.state is not PluginState.FAILED:
            self._call(slot, "teardown", slot.teardown)
        self._slots.pop(plugin_id, None)
        if self._active_id == plugin_id:
            self._active_id = None
        logger.info(f"Unloaded plugin '{plugin_id}'")

    def get(self, plugin_id: str) -> "PluginBase":
        return self._get_slot(plugin_id).plugin

    def slot(self, plugin_id: str) -> PluginSlot:
        return self._get_slot(plugin_id)

    def plugin_ids(self) -> tuple[str, ...]:
        return tuple(self._slots)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._slots

    def _get_slot(self, plugin_id: str) -> PluginSlot:
        try:
            return self._slots[plugin_id]
        except KeyError:
            raise UnknownPluginError(f"no plugin with id '{plugin_id}' is loaded") from None

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    @property
    def active_id(self) -> str | None:
        return self._active_id

    def activate(self, plugin_id: str) -> bool:
        """Make ``plugin_id`` the active plugin.

        The currently active plugin, if any, is deactivated first.  Activating
        the plugin that is already active is a no-op.

        Returns:
            True if the plugin is active afterwards
        """
        slot = self._get_slot(plugin_id)
        if slot.state is PluginState.FAILED:
            logger.warning(f"Refusing to activate failed plugin '{plugin_id}'")
            return False
        if self._active_id == plugin_id:
            logger.warning(f"Plugin '{plugin_id}' is already active, ignoring activate")
            return True
        if self._active_id is not None:
            self.deactivate()

        with self.storage.borrow(writable=False) as canvas:
            if not self._call(slot, "activate", slot.activate, canvas):
                return False
        self._active_id = plugin_id
        return True

    def deactivate(self) -> bool:
        """Deactivate the active plugin.

        Returns:
            True if a plugin was deactivated
        """
        if self._active_id is None:
            return False
        slot = self._slots[self._active_id]
        self._active_id = None
        self._call(slot, "deactivate", slot.deactivate)
        return True

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def candidates(self) -> Iterator[PluginSlot]:
        """Yield slots that receive dispatched events, active plugin first."""
        if self._active_id is not None:
            active = self._slots.get(self._active_id)
            if active is not None and active.is_active:
                yield active
        for plugin_id, slot in list(self._slots.items()):
            if plugin_id == self._active_id:
                continue
            if slot.background and slot.in_dispatch_set:
                yield slot

    def dispatch(self, event: Event) -> bool:
        """Hand an event to the plugins.

        ``Special`` events are routed by target (see module docs), ``Resize``
        goes through :meth:`resize`, and everything else is offered to the
        candidates until one consumes it.

        Returns:
            True if the event was handled: consumed by a plugin, or accepted
            by a system handler
        """
        if isinstance(event, Special):
            return self._route_special(event)
        if isinstance(event, Resize):
            return self.resize(event.width, event.height)
        return self._broadcast(event)

    def _broadcast(self, event: Event) -> bool:
        label = describe_event(event)
        for slot in list(self.candidates()):
            if not slot.in_dispatch_set:
                continue
            if self._act(slot, event):
                logger.debug(f"{label} consumed by '{slot.plugin_id}'")
                return True
        logger.debug(f"{label} not consumed")
        return False

    def deliver(self, event: Event) -> bool:
        """Route one emitted event.  Same rules as :meth:`dispatch`."""
        return self.dispatch(event)

    def _route_special(self, event: Special) -> bool:
        data = event.data
        if data.target_id is None:
            return self._handle_system(data)

        slot = self._slots.get(data.target_id)
        if slot is None or not slot.in_dispatch_set:
            self.dead_letters += 1
            if self.config.log_dead_letters:
                reason = "not loaded" if slot is None else f"in state {slot.state.value}"
                logger.warning(
                    f"Dead letter: {describe_event(event)} dropped, target '{data.target_id}' {reason}"
                )
            return False
        return self._act(slot, event)

    def process_pending(self, limit: int | None = None) -> int:
        """Deliver queued events in arrival order.

        Args:
            limit: Most events to process; defaults to
                ``config.max_events_per_cycle``.  Events emitted while
                processing wait for the next call once the limit is hit.

        Returns:
            Number of events processed
        """
        if limit is None:
            limit = self.config.max_events_per_cycle
        processed = 0
        while processed < limit:
            queued = self.events.get_nowait()
            if queued is None:
                break
            processed += 1
            logger.debug(
                f"Delivering {describe_event(queued.event)} from {queued.source_id or 'host'}"
            )
            self.deliver(queued.event)
        return processed

    def draw(self) -> None:
        """Let the active plugin (and background plugins if configured) draw."""
        for slot in list(self.candidates()):
            if not slot.in_dispatch_set:
                continue
            if slot.background and not slot.is_active and not self.config.draw_background_plugins:
                continue
            with self.storage.borrow() as canvas:
                self._call(slot, "draw", slot.draw, canvas)

    def feed_input(self, payload: object) -> bool:
        """Wrap a host input payload in :class:`Input` and dispatch it."""
        return self.dispatch(Input(payload))

    def resize(self, width: int, height: int) -> bool:
        """Reallocate the overlay and dispatch a :class:`Resize` event."""
        event = Resize(width, height)
        self.storage.resize_overlay(width, height)
        return self._broadcast(event)

    def tick(self) -> bool:
        return self._broadcast(TICK)

    # ------------------------------------------------------------------
    # System events
    # ------------------------------------------------------------------

    def on_system(self, meta: str, handler: SystemHandler) -> None:
        """Register the handler for system events (no target) with ``meta``."""
        if meta in self._system_handlers:
            logger.warning(f"System handler for '{meta}' is already registered, overwriting")
        self._system_handlers[meta] = handler

    def _handle_system(self, data: EventData) -> bool:
        handler = self._system_handlers.get(data.meta)
        if handler is None:
            logger.info(f"No system handler for '{data.meta}', event dropped")
            return False
        handler(data)
        return True

    def _target_from_message(self, data: EventData) -> str | None:
        plugin_id = data.message.try_recv() if data.message is not None else None
        if plugin_id is None:
            logger.warning(f"System command '{data.meta}' carried no plugin id")
        return plugin_id

    def _handle_activate_command(self, data: EventData) -> None:
        plugin_id = self._target_from_message(data)
        if plugin_id is None:
            return
        if plugin_id not in self._slots:
            logger.warning(f"Cannot activate unknown plugin '{plugin_id}'")
            return
        self.activate(plugin_id)

    def _handle_deactivate_command(self, data: EventData) -> None:
        self.deactivate()

    def _handle_unload_command(self, data: EventData) -> None:
        plugin_id = self._target_from_message(data)
        if plugin_id is None:
            return
        if plugin_id not in self._slots:
            logger.warning(f"Cannot unload unknown plugin '{plugin_id}'")
            return
        self.unload(plugin_id)

    # ------------------------------------------------------------------
    # Guarded plugin calls
    # ------------------------------------------------------------------

    def _act(self, slot: PluginSlot, event: Event) -> bool:
        with self.storage.borrow() as canvas:
            consumed = self._call(slot, "act", slot.act, event, canvas)
        return consumed is True

    def _call(self, slot: PluginSlot, operation: str, func: Callable, *args) -> object:
        try:
            result = func(*args)
        except Exception as exc:
            self._fail(slot, operation, exc)
            return False
        return True if result is None else result

    def _fail(self, slot: PluginSlot, operation: str, exc: Exception) -> None:
        plugin_id = slot.plugin_id
        logger.exception(f"Plugin '{plugin_id}' failed during {operation}()")
        slot.fail(exc)
        if self._active_id == plugin_id:
            self._active_id = None
        if self.config.unload_failed_plugins and plugin_id in self._slots:
            del self._slots[plugin_id]
            logger.info(f"Unloaded failed plugin '{plugin_id}'")
