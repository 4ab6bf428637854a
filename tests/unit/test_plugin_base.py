"""Tests for orasis.plugins.base — PluginBase and the plugin registry."""

from __future__ import annotations

import pytest

from orasis.core.errors import LifecycleError
from orasis.core.events import TICK
from orasis.core.routing import Emitter, EventQueue
from orasis.plugins import CursorPlugin, HistogramPlugin, plugin_registry
from orasis.plugins.base import PluginBase, PluginRegistry


class _Minimal(PluginBase):
    name = "Minimal"

    def id(self) -> str:
        return "minimal"

    def act(self, event, canvas) -> bool:
        return False


class TestPluginBase:
    """Defaults and the emitter handle."""

    def test_abstract_methods_required(self):
        with pytest.raises(TypeError):
            PluginBase()

    def test_config_kept(self):
        plugin = _Minimal(colour="red")
        assert plugin.config == {"colour": "red"}

    def test_emit_before_setup_is_lifecycle_error(self):
        with pytest.raises(LifecycleError):
            _Minimal().emit(TICK)

    def test_emit_after_setup(self):
        events = EventQueue()
        plugin = _Minimal()
        plugin.setup(Emitter(events, source_id="minimal"))
        plugin.emit(TICK)
        assert events.get_nowait().event is TICK

    def test_default_hooks_do_nothing(self, storage):
        plugin = _Minimal()
        with storage.borrow() as canvas:
            plugin.activate(canvas)
            plugin.draw(canvas)
        plugin.deactivate()

    def test_plugin_info(self):
        info = _Minimal().get_plugin_info()
        assert info["id"] == "minimal"
        assert info["name"] == "Minimal"
        assert info["background"] is False


class TestPluginRegistry:
    """Registration and instantiation."""

    def test_register_and_instantiate(self):
        registry = PluginRegistry()
        registry.register(_Minimal)
        assert registry.list_available() == ["Minimal"]
        plugin = registry.instantiate("Minimal", colour="blue")
        assert isinstance(plugin, _Minimal)
        assert plugin.config["colour"] == "blue"

    def test_unknown_plugin(self):
        registry = PluginRegistry()
        with pytest.raises(KeyError, match="not found"):
            registry.instantiate("Nope")
        assert registry.get_plugin_info("Nope") is None
        assert registry.get_plugin_class("Nope") is None

    def test_register_overwrites(self):
        registry = PluginRegistry()

        class Other(_Minimal):
            pass

        registry.register(_Minimal)
        registry.register(Other)
        assert registry.get_plugin_class("Minimal") is Other

    def test_register_returns_class(self):
        registry = PluginRegistry()
        assert registry.register(_Minimal) is _Minimal

    def test_bundled_plugins_registered(self):
        assert plugin_registry.get_plugin_class("Cursor") is CursorPlugin
        assert plugin_registry.get_plugin_class("Histogram") is HistogramPlugin
        assert plugin_registry.get_plugin_info("Histogram")["background"] is True
        assert plugin_registry.get_plugin_info("Cursor")["background"] is True
