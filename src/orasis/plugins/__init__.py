"""Plugin system for extending the Orasis image editor.

This package contains the plugin contract and the reference plugins that
ship with the host:

- ``PluginBase`` / ``plugin_registry``: the base class every plugin derives
  from and the registry hosts instantiate plugins from
- ``CursorPlugin``: keyboard/mouse cursor with colour picking
- ``HistogramPlugin``: background luminance histogram
"""

from orasis.plugins.base import PluginBase, PluginRegistry, plugin_registry

# Import plugins to ensure they're registered
from orasis.plugins.cursor import CursorPlugin
from orasis.plugins.histogram import HistogramPlugin

__all__ = [
    "PluginBase",
    "PluginRegistry",
    "plugin_registry",
    "CursorPlugin",
    "HistogramPlugin",
]
