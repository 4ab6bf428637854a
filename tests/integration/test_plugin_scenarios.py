"""End-to-end scenarios: a host, its dispatch loop and several plugins together."""

from __future__ import annotations

import pytest
from PIL import Image

from orasis.core.canvas import CanvasStorage, argb
from orasis.core.events import TICK, EventData, Input, Resize, Special
from orasis.core.host import ACTIVATE_META, PluginHost
from orasis.core.input import Key, MouseAction, MouseEvent
from orasis.core.loop import DispatchLoop, QueueInputSource
from orasis.core.streams import StreamReceiver
from orasis.plugins import CursorPlugin, HistogramPlugin, plugin_registry
from orasis.plugins.histogram import REQUEST_META


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


class TestResizeScenario:
    """A host-emitted Resize reaches the plugins before the next Tick."""

    def test_every_plugin_sees_resize_before_tick(self, host, make_recorder, clock):
        fg, bg = make_recorder("fg"), make_recorder("bg")
        host.load(fg)
        host.load(bg, background=True)
        host.activate("fg")

        source = QueueInputSource()
        loop = DispatchLoop(host, source, clock=clock)
        source.push(Resize(80, 24))
        clock.now = 1.0
        loop.run_once()

        for plugin in (fg, bg):
            assert plugin.events == [Resize(80, 24), TICK]

    def test_consumed_resize_seen_by_one_plugin(self, host, make_recorder, clock):
        fg = make_recorder("fg", consume=lambda e: isinstance(e, Resize))
        bg = make_recorder("bg")
        host.load(fg)
        host.load(bg, background=True)
        host.activate("fg")

        source = QueueInputSource()
        loop = DispatchLoop(host, source, clock=clock)
        source.push(Resize(80, 24))
        clock.now = 1.0
        loop.run_once()

        assert fg.events == [Resize(80, 24), TICK]
        assert bg.events == [TICK]


class TestOverlayPersistence:
    """Overlay writes survive across calls within a session."""

    def test_write_then_draw(self, host, make_recorder):
        observed = []

        class Marker(make_recorder):
            def act(self, event, canvas):
                canvas.overlay[2 * 10 + 3] = "#"
                return True

            def draw(self, canvas):
                observed.append(canvas.overlay[2 * 10 + 3])

        host.load(Marker("marker"))
        host.activate("marker")
        host.feed_input("x")
        host.draw()

        assert observed == ["#"]
        assert host.storage.overlay_text().splitlines()[2] == "   #      "


class TestPeerMessaging:
    """Targeted Special events reach exactly one plugin."""

    def test_ping_received_exactly_once(self, host, make_recorder, clock):
        def ping(event):
            if isinstance(event, Input):
                sender.emit(Special(EventData.new("peer", "ping", None, None)))
                return True
            return False

        sender = make_recorder("sender", consume=ping)
        peer = make_recorder("peer")
        bystander = make_recorder("bystander")
        host.load(sender)
        host.load(peer, background=True)
        host.load(bystander, background=True)
        host.activate("sender")

        source = QueueInputSource()
        loop = DispatchLoop(host, source, clock=clock)
        source.push(Input("go"))
        loop.run(max_cycles=3)

        assert len(peer.specials("ping")) == 1
        assert bystander.specials() == []

    def test_system_event_handled_by_host(self, host, make_recorder):
        switcher = make_recorder("switcher")
        target = make_recorder("target")
        host.load(switcher, background=True)
        host.load(target)

        switcher.emit(Special(EventData.system(ACTIVATE_META, message=StreamReceiver.of("target"))))
        host.process_pending()

        assert host.active_id == "target"
        assert switcher.specials() == []
        assert target.specials() == []


class TestPluginIdentity:
    """ids are stable per instance and unique per session."""

    def test_ids_stable(self):
        plugin = CursorPlugin()
        assert plugin.id() == plugin.id() == "cursor"

    def test_ids_unique_in_session(self, host):
        host.load(plugin_registry.instantiate("Cursor"))
        host.load(plugin_registry.instantiate("Histogram"))
        with pytest.raises(ValueError):
            host.load(plugin_registry.instantiate("Cursor"))
        assert sorted(host.plugin_ids()) == ["cursor", "histogram"]


class TestBoundedWrites:
    """A conforming plugin stays inside the buffers for every event variant."""

    @pytest.mark.parametrize(
        "event",
        [
            Input("k"),
            Special(EventData.targeted("painter", "paint")),
            Resize(4, 2),
            TICK,
        ],
        ids=["input", "special", "resize", "tick"],
    )
    def test_fill_everything(self, host, make_recorder, event):
        class Painter(make_recorder):
            def act(self, event, canvas):
                for index in range(len(canvas.data)):
                    canvas.data[index] = 0xFFFFFFFF
                for index in range(len(canvas.overlay)):
                    canvas.overlay[index] = "*"
                return True

        host.load(Painter("painter"), background=True)
        consumed = host.deliver(event)

        assert consumed is True
        assert "painter" in host
        assert len(host.storage._pixels) == 10 * 5
        assert set(host.storage._pixels) == {0xFFFFFFFF}
        o_width, o_height = host.storage.o_width, host.storage.o_height
        assert host.storage.overlay_text() == "\n".join(["*" * o_width] * o_height)


class TestImageSession:
    """Cursor and histogram working on a loaded image."""

    def test_pick_and_histogram(self, test_config, make_recorder, clock):
        image = Image.new("RGB", (10, 5), (0, 0, 0))
        image.putpixel((3, 2), (255, 255, 255))
        storage = CanvasStorage.from_image(image, (10, 5))
        host = PluginHost(config=test_config, storage=storage)

        cursor = CursorPlugin()
        histogram = HistogramPlugin(bins=2)
        palette = make_recorder("palette")
        host.load(cursor)
        host.load(histogram)
        host.load(palette, background=True)
        host.activate("cursor")

        source = QueueInputSource()
        loop = DispatchLoop(host, source, clock=clock)
        source.push(Input(MouseEvent(MouseAction.PRESS, 3, 2)))
        source.push(Input(Key("p")))
        loop.run_once()

        [colour] = palette.specials("color")
        assert colour.data.data.drain() == [argb(255, 255, 255, 255)]

        host.events.put(Special(EventData.targeted("histogram", REQUEST_META)))
        loop.run_once()
        assert histogram.wait(timeout=5.0)
        loop.run_once()

        assert histogram.bins == [49, 1]
        assert host.storage.overlay_text().splitlines()[4].startswith("@ ")
        assert host.storage.to_image().getpixel((3, 2)) == (255, 255, 255, 255)
