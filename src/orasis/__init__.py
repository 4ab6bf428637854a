"""Orasis - plugin contract for an interactive terminal image editor."""

__version__ = "0.1.0"

from orasis.core.canvas import CanvasStorage, VirtualCanvas
from orasis.core.config import OrasisConfig, config
from orasis.core.events import Event, EventData, Input, Resize, Special, Tick
from orasis.core.host import PluginHost
from orasis.core.loop import DispatchLoop

# Import plugins to ensure they're registered
from orasis.plugins import CursorPlugin, HistogramPlugin, PluginBase, plugin_registry

__all__ = [
    "CanvasStorage",
    "VirtualCanvas",
    "OrasisConfig",
    "config",
    "Event",
    "EventData",
    "Input",
    "Resize",
    "Special",
    "Tick",
    "PluginHost",
    "DispatchLoop",
    "PluginBase",
    "plugin_registry",
    "CursorPlugin",
    "HistogramPlugin",
]
