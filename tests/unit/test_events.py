"""Tests for orasis.core.events — the event model.

Tests cover:
- EventData constructors (system, targeted, new) and their target_id rules.
- Resize uint16 validation.
- Variant membership and log labels.
"""

from __future__ import annotations

import pytest

from orasis.core.events import (
    TICK,
    EventData,
    Input,
    Resize,
    Special,
    Tick,
    describe_event,
    is_event,
)
from orasis.core.input import Key
from orasis.core.streams import StreamReceiver


class TestEventDataConstructors:
    """Verify the system and targeted constructors."""

    def test_system_has_no_target(self):
        data = EventData.system("refresh")
        assert data.target_id is None
        assert data.meta == "refresh"
        assert data.is_targeted is False

    @pytest.mark.parametrize("plugin_id", ["peer", "a", "cursor-2", "ünïcode"])
    def test_targeted_keeps_id(self, plugin_id):
        data = EventData.targeted(plugin_id, "ping")
        assert data.target_id == plugin_id
        assert data.is_targeted is True

    def test_targeted_rejects_empty_id(self):
        with pytest.raises(ValueError):
            EventData.targeted("", "ping")

    def test_new_matches_spelled_out_fields(self):
        data = EventData.new("peer", "ping", None, None)
        assert data.target_id == "peer"
        assert data.meta == "ping"
        assert data.message is None
        assert data.data is None

    def test_streams_are_independent(self):
        message = StreamReceiver.of("hello")
        data = EventData.system("note", message=message)
        assert data.message is message
        assert data.data is None

    def test_meta_must_be_string(self):
        with pytest.raises(TypeError):
            EventData.system(42)


class TestResize:
    """Resize carries two uint16 values."""

    def test_valid_dimensions(self):
        event = Resize(80, 24)
        assert (event.width, event.height) == (80, 24)

    @pytest.mark.parametrize("width,height", [(-1, 24), (80, 65536), (70000, 1)])
    def test_out_of_range_rejected(self, width, height):
        with pytest.raises(ValueError):
            Resize(width, height)

    def test_non_integer_rejected(self):
        with pytest.raises(TypeError):
            Resize(80.0, 24)

    def test_extremes_accepted(self):
        Resize(0, 65535)


class TestVariants:
    """The four variants and helpers."""

    def test_all_variants_are_events(self):
        for event in (Input(Key("a")), Special(EventData.system("x")), Resize(1, 1), TICK):
            assert is_event(event)

    def test_other_objects_are_not_events(self):
        assert not is_event("Tick")
        assert not is_event(EventData.system("x"))

    def test_tick_instances_compare_equal(self):
        assert Tick() == TICK

    def test_input_compares_by_payload(self):
        assert Input(Key("up")) == Input(Key("up"))
        assert Input("a") != Input("b")
        assert [Input("a"), Resize(1, 1)] == [Input("a"), Resize(1, 1)]

    def test_special_instances_are_distinct(self):
        data = EventData.system("x")
        assert Special(data) != Special(data)

    def test_describe_special(self):
        assert describe_event(Special(EventData.targeted("peer", "ping"))) == (
            "Special(meta='ping', target=peer)"
        )
        assert "<manager>" in describe_event(Special(EventData.system("x")))

    def test_describe_others(self):
        assert describe_event(Resize(80, 24)) == "Resize(80x24)"
        assert describe_event(TICK) == "Tick"
        assert describe_event(Input("raw")) == "Input('raw')"

    def test_describe_rejects_non_events(self):
        with pytest.raises(TypeError):
            describe_event("nope")
