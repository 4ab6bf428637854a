"""Base class and registry for Orasis plugins.

A plugin is a tool the host can switch to (the *active* plugin) or keep
running alongside every tool (a *background* plugin).  The host drives it
through a fixed set of operations:

============  ============================================================
Operation     Contract
============  ============================================================
setup         Called once, first.  Store the emitter; no canvas yet.
id            Stable, unique identifier.  Used as ``EventData.target_id``.
activate      Plugin gained focus.  Read-only canvas.  May happen again
              after a later deactivate.
draw          Render overlay content.  Must be idempotent.
act           Handle one event.  Return ``True`` if consumed.
deactivate    Plugin lost focus.  Quiesce transient state, keep identity.
teardown      Plugin is being unloaded.  Stop background work.
============  ============================================================

The host, not the plugin, enforces call order (see
:mod:`orasis.core.lifecycle`).  Canvas views passed to a plugin are only
valid for the duration of the call.

Example
-------
    >>> class Stamp(PluginBase):
    ...     name = "Stamp"
    ...
    ...     def id(self) -> str:
    ...         return "stamp"
    ...
    ...     def act(self, event, canvas) -> bool:
    ...         if isinstance(event, Input) and event.payload == Key("s"):
    ...             canvas.set_pixel(0, 0, 0xFFFF0000)
    ...             return True
    ...         return False
    >>>
    >>> plugin_registry.register(Stamp)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from orasis.core.errors import LifecycleError

if TYPE_CHECKING:
    from orasis.core.canvas import VirtualCanvas
    from orasis.core.events import Event
    from orasis.core.routing import Emitter

logger = logging.getLogger(__name__)


class PluginBase(ABC):
    """Abstract base class for all plugins.

    Subclasses must implement ``id()`` and ``act()``.  ``activate``, ``draw``
    and ``deactivate`` default to doing nothing.

    Attributes
    ----------
    name : str
        Human-readable name, also the key in :data:`plugin_registry`
    description : str
        Brief description of what the plugin does
    version : str
        Plugin version
    background : bool
        Hint for hosts: load this plugin into the background dispatch set
    config : dict
        Keyword configuration passed to the constructor
    """

    name: str = "Base Plugin"
    description: str = "Base class for plugins"
    version: str = "0.1.0"
    background: bool = False

    def __init__(self, **config: Any) -> None:
        self.config = config
        self._emitter: "Emitter | None" = None

    def setup(self, emitter: "Emitter") -> None:
        """Store the emitter used for spontaneous events.

        Overrides must call ``super().setup(emitter)``.
        """
        self._emitter = emitter

    @property
    def emitter(self) -> "Emitter":
        if self._emitter is None:
            raise LifecycleError(f"plugin '{self.name}' has not been set up")
        return self._emitter

    def emit(self, event: "Event") -> None:
        """Send an event to the host through the stored emitter."""
        self.emitter.emit(event)

    @abstractmethod
    def id(self) -> str:
        """Return the plugin's unique, stable identifier."""

    def activate(self, canvas: "VirtualCanvas") -> None:
        """Plugin is starting to be used.  ``canvas`` is read-only."""

    def draw(self, canvas: "VirtualCanvas") -> None:
        """Draw additional overlay content."""

    @abstractmethod
    def act(self, event: "Event", canvas: "VirtualCanvas") -> bool:
        """Handle an event.

        Args:
            event: Any of the four event variants
            canvas: Writable view of the session buffers

        Returns:
            True if the event was consumed and must not reach other plugins
        """

    def deactivate(self) -> None:
        """Plugin is deactivated.  It may be activated again later."""

    def teardown(self) -> None:
        """Plugin is about to be unloaded.  No further calls follow."""

    def get_plugin_info(self) -> dict[str, Any]:
        return {
            "id": self.id(),
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "background": self.background,
        }


class PluginRegistry:
    """Registry of plugin classes, keyed by their ``name`` attribute.

    Notes
    -----
    - Classes are registered once, usually at import time of their module
    - Instances are created with :meth:`instantiate` and handed to a host
    - Registering the same name twice replaces the earlier class
    """

    def __init__(self) -> None:
        self._plugins: dict[str, type[PluginBase]] = {}

    def register(self, plugin_class: type[PluginBase]) -> type[PluginBase]:
        """Register a plugin class.  Returns the class so it can be a decorator."""
        plugin_name = plugin_class.name

        if plugin_name in self._plugins:
            logger.warning(f"Plugin '{plugin_name}' is already registered, overwriting")

        self._plugins[plugin_name] = plugin_class
        logger.info(f"Registered plugin: {plugin_name}")
        return plugin_class

    def instantiate(self, plugin_name: str, **config: Any) -> PluginBase:
        """Create an instance of a registered plugin.

        Raises
        ------
        KeyError
            If ``plugin_name`` is not registered
        """
        if plugin_name not in self._plugins:
            available = ", ".join(self.list_available())
            raise KeyError(f"Plugin '{plugin_name}' not found. Available plugins: {available}")

        instance = self._plugins[plugin_name](**config)
        logger.info(f"Instantiated plugin: {plugin_name}")
        return instance

    def get_plugin_class(self, plugin_name: str) -> type[PluginBase] | None:
        return self._plugins.get(plugin_name)

    def list_available(self) -> list[str]:
        return list(self._plugins.keys())

    def get_plugin_info(self, plugin_name: str) -> dict[str, Any] | None:
        if plugin_name not in self._plugins:
            return None

        plugin_class = self._plugins[plugin_name]
        return {
            "name": plugin_class.name,
            "description": plugin_class.description,
            "version": plugin_class.version,
            "background": plugin_class.background,
        }


# Global plugin registry instance
plugin_registry = PluginRegistry()
