"""Shared pytest fixtures for Orasis tests."""

from __future__ import annotations

from typing import Callable

import pytest

from orasis.core.canvas import CanvasStorage, VirtualCanvas
from orasis.core.config import OrasisConfig
from orasis.core.events import Event, Special
from orasis.core.host import PluginHost
from orasis.plugins.base import PluginBase


class RecordingPlugin(PluginBase):
    """Plugin double that records every call it receives.

    Args:
        plugin_id: Value returned by ``id()``
        consume: Predicate deciding what ``act`` returns
    """

    name = "Recorder"

    def __init__(
        self,
        plugin_id: str = "recorder",
        consume: Callable[[Event], bool] | None = None,
        **config,
    ) -> None:
        super().__init__(**config)
        self._id = plugin_id
        self._consume = consume or (lambda event: False)
        self.calls: list[str] = []
        self.events: list[Event] = []

    def id(self) -> str:
        return self._id

    def setup(self, emitter) -> None:
        super().setup(emitter)
        self.calls.append("setup")

    def activate(self, canvas: VirtualCanvas) -> None:
        self.calls.append("activate")

    def draw(self, canvas: VirtualCanvas) -> None:
        self.calls.append("draw")

    def act(self, event: Event, canvas: VirtualCanvas) -> bool:
        self.calls.append("act")
        self.events.append(event)
        return self._consume(event)

    def deactivate(self) -> None:
        self.calls.append("deactivate")

    def teardown(self) -> None:
        self.calls.append("teardown")

    def specials(self, meta: str | None = None) -> list[Special]:
        """Return the Special events received, optionally filtered by meta."""
        return [
            event
            for event in self.events
            if isinstance(event, Special) and (meta is None or event.data.meta == meta)
        ]


@pytest.fixture
def test_config() -> OrasisConfig:
    """Create a configuration with small buffers and no .env lookup.

    Returns:
        OrasisConfig instance for testing
    """
    return OrasisConfig(
        _env_file=None,
        canvas_width=10,
        canvas_height=5,
        overlay_width=10,
        overlay_height=5,
        tick_interval=0.1,
        poll_timeout=0.0,
        max_events_per_cycle=64,
    )


@pytest.fixture
def storage() -> CanvasStorage:
    """10x5 image with a 10x5 overlay, as in the overlay persistence scenario."""
    return CanvasStorage(10, 5, 10, 5)


@pytest.fixture
def host(test_config: OrasisConfig, storage: CanvasStorage) -> PluginHost:
    return PluginHost(config=test_config, storage=storage)


@pytest.fixture
def make_recorder() -> Callable[..., RecordingPlugin]:
    """Factory for RecordingPlugin instances.

    Returns:
        Callable accepting the RecordingPlugin constructor arguments
    """
    return RecordingPlugin
