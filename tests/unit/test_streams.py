"""Tests for orasis.core.streams — EventData payload channels."""

from __future__ import annotations

import threading

import pytest

from orasis.core.streams import (
    EndOfStream,
    StreamClosedError,
    StreamReceiver,
    numeric_stream,
    stream,
    text_stream,
)


class TestStreamBasics:
    """FIFO delivery and end-of-stream."""

    def test_values_arrive_in_order(self):
        sender, receiver = stream()
        sender.send_all(["a", "b", "c"])
        sender.close()
        assert list(receiver) == ["a", "b", "c"]

    def test_recv_after_close_raises_end_of_stream(self):
        sender, receiver = stream()
        sender.send("only")
        sender.close()
        assert receiver.recv() == "only"
        with pytest.raises(EndOfStream):
            receiver.recv()
        assert receiver.exhausted
        with pytest.raises(EndOfStream):
            receiver.recv()

    def test_try_recv_on_empty_open_stream(self):
        _, receiver = stream()
        assert receiver.try_recv() is None
        assert not receiver.exhausted

    def test_try_recv_marks_exhausted(self):
        sender, receiver = stream()
        sender.close()
        assert receiver.try_recv() is None
        assert receiver.exhausted

    def test_recv_timeout(self):
        _, receiver = stream()
        with pytest.raises(TimeoutError):
            receiver.recv(timeout=0.01)

    def test_drain_is_non_blocking(self):
        sender, receiver = stream()
        sender.send(1)
        sender.send(2)
        assert receiver.drain() == [1, 2]
        assert receiver.drain() == []
        assert not receiver.exhausted

    def test_send_after_close_raises(self):
        sender, _ = stream()
        sender.close()
        sender.close()
        with pytest.raises(StreamClosedError):
            sender.send("late")

    def test_none_is_rejected(self):
        sender, _ = stream()
        with pytest.raises(ValueError):
            sender.send(None)

    def test_context_manager_closes(self):
        sender, receiver = stream()
        with sender:
            sender.send("x")
        assert sender.closed
        assert list(receiver) == ["x"]

    def test_of_builds_closed_receiver(self):
        receiver = StreamReceiver.of(1, 2, 3)
        assert receiver.drain() == [1, 2, 3]
        assert receiver.try_recv() is None
        assert receiver.exhausted

    def test_cross_thread_delivery(self):
        sender, receiver = stream()

        def produce():
            with sender:
                for value in range(100):
                    sender.send(value)

        worker = threading.Thread(target=produce)
        worker.start()
        assert list(receiver) == list(range(100))
        worker.join()


class TestTypedStreams:
    """numeric_stream and text_stream validate their values."""

    def test_numeric_accepts_uint64_range(self):
        sender, receiver = numeric_stream()
        sender.send(0)
        sender.send(2**64 - 1)
        assert receiver.drain() == [0, 2**64 - 1]

    @pytest.mark.parametrize("value", [-1, 2**64])
    def test_numeric_rejects_out_of_range(self, value):
        sender, _ = numeric_stream()
        with pytest.raises(ValueError):
            sender.send(value)

    @pytest.mark.parametrize("value", ["1", 1.5, True])
    def test_numeric_rejects_non_int(self, value):
        sender, _ = numeric_stream()
        with pytest.raises(TypeError):
            sender.send(value)

    def test_text_rejects_non_str(self):
        sender, _ = text_stream()
        with pytest.raises(TypeError):
            sender.send(5)
