"""Host-side enforcement of the plugin lifecycle.

Every loaded plugin is wrapped in a :class:`PluginSlot`.  The host only talks
to plugins through their slot, and the slot refuses calls that break the
ordering rules::

    UNINITIALIZED --setup--> SET_UP --activate--> ACTIVATED
                                       ^              |
                                       |          deactivate
                                       |              v
                                       +-------- DEACTIVATED

- ``setup`` happens exactly once, before anything else
- ``activate`` and ``deactivate`` alternate
- ``act`` and ``draw`` are only allowed while the plugin is in the dispatch
  set: activated, or a background plugin that has been set up
- ``teardown`` runs once on unload, after any deactivate

A plugin that raised during any call is moved to ``FAILED`` and refuses all
further calls.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from .errors import ContractViolation, LifecycleError

if TYPE_CHECKING:
    from orasis.plugins.base import PluginBase

    from .canvas import VirtualCanvas
    from .events import Event
    from .routing import Emitter

logger = logging.getLogger(__name__)


class PluginState(Enum):
    """Lifecycle states for plugins."""

    UNINITIALIZED = "uninitialized"
    SET_UP = "set_up"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    FAILED = "failed"


class PluginSlot:
    """A loaded plugin plus its lifecycle bookkeeping.

    Args:
        plugin: The plugin instance
        background: Whether the host dispatches to this plugin even when it
            is not the active one
    """

    def __init__(self, plugin: "PluginBase", background: bool = False) -> None:
        self.plugin = plugin
        self.background = background
        self.state = PluginState.UNINITIALIZED
        self.plugin_id: str | None = None
        self.error: str | None = None
        self.activations = 0

    def __repr__(self) -> str:
        return f"PluginSlot(id={self.plugin_id!r}, state={self.state.value})"

    @property
    def is_active(self) -> bool:
        return self.state is PluginState.ACTIVATED

    @property
    def in_dispatch_set(self) -> bool:
        if self.state is PluginState.ACTIVATED:
            return True
        return self.background and self.state in (PluginState.SET_UP, PluginState.DEACTIVATED)

    def _require(self, operation: str, *allowed: PluginState) -> None:
        if self.state not in allowed:
            raise LifecycleError(
                f"{operation}() not allowed for plugin {self.plugin_id or self.plugin.name!r} "
                f"in state {self.state.value}"
            )

    def setup(self, emitter: "Emitter") -> str:
        """Run the plugin's ``setup`` and capture its id.

        Returns:
            The plugin id

        Raises:
            LifecycleError: If setup already happened, or ``id()`` is not a
                non-empty string
        """
        self._require("setup", PluginState.UNINITIALIZED)
        self.plugin.setup(emitter)
        plugin_id = self.plugin.id()
        if not isinstance(plugin_id, str) or not plugin_id:
            raise LifecycleError(f"plugin {self.plugin.name!r} returned invalid id {plugin_id!r}")
        self.plugin_id = plugin_id
        self.state = PluginState.SET_UP
        logger.info(f"Plugin set up: {plugin_id}")
        return plugin_id

    def activate(self, canvas: "VirtualCanvas") -> None:
        self._require("activate", PluginState.SET_UP, PluginState.DEACTIVATED)
        self.plugin.activate(canvas)
        self.state = PluginState.ACTIVATED
        self.activations += 1
        logger.info(f"Plugin activated: {self.plugin_id}")

    def deactivate(self) -> None:
        self._require("deactivate", PluginState.ACTIVATED)
        # The slot is inactive even if the plugin raises below.
        self.state = PluginState.DEACTIVATED
        self.plugin.deactivate()
        logger.info(f"Plugin deactivated: {self.plugin_id}")

    def teardown(self) -> None:
        self._require("teardown", PluginState.SET_UP, PluginState.DEACTIVATED)
        self.plugin.teardown()
        logger.info(f"Plugin torn down: {self.plugin_id}")

    def draw(self, canvas: "VirtualCanvas") -> None:
        if not self.in_dispatch_set:
            raise LifecycleError(
                f"draw() not allowed for plugin {self.plugin_id!r} in state {self.state.value}"
            )
        self.plugin.draw(canvas)

    def act(self, event: "Event", canvas: "VirtualCanvas") -> bool:
        """Forward an event to the plugin.

        Raises:
            LifecycleError: If the plugin is not in the dispatch set
            ContractViolation: If the plugin returned something other than a bool
        """
        if not self.in_dispatch_set:
            raise LifecycleError(
                f"act() not allowed for plugin {self.plugin_id!r} in state {self.state.value}"
            )
        consumed = self.plugin.act(event, canvas)
        if not isinstance(consumed, bool):
            raise ContractViolation(
                f"plugin {self.plugin_id!r} act() returned {type(consumed).__name__}, expected bool"
            )
        return consumed

    def fail(self, exc: BaseException) -> None:
        """Halt the plugin after ``exc`` escaped one of its calls."""
        self.state = PluginState.FAILED
        self.error = f"{type(exc).__name__}: {exc}"
