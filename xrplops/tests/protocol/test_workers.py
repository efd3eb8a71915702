from __future__ import annotations

import logging
import threading
import time

from xrplops.protocol._internal.reader import ReaderWorker
from xrplops.protocol._internal.writer import WriterWorker
from xrplops.protocol.message import ChannelMessage, MessageStream
from xrplops.transport.base import FrameKind
from xrplops.transport.errors import TransportClosed, TransportIOError


class FakeChannel:
    def __init__(self, *, write_delay_s: float = 0.0, fail_writes: bool = False):
        self._log = logging.getLogger("test")
        self.write_delay_s = write_delay_s
        self.fail_writes = fail_writes
        self.write_times: list = []
        self.closed_with: list = []
        self.frames: list = []

    def _write_command(self, cmd):
        self.write_times.append(time.monotonic())
        if self.write_delay_s:
            time.sleep(self.write_delay_s)
        return TransportIOError("nope") if self.fail_writes else None

    def _close_handshake(self, grace_s: float) -> None:
        self.closed_with.append(grace_s)

    def _receive_message(self, name):
        if self.frames:
            item = self.frames.pop(0)
            if isinstance(item, Exception):
                return ChannelMessage.failed(item), isinstance(item, TransportClosed)
            return ChannelMessage(FrameKind.TEXT, item), False
        time.sleep(0.005)
        return ChannelMessage.failed(TransportIOError("idle")), False


def test_writer_ticks_on_interval_then_closes():
    ch = FakeChannel()
    cancel = threading.Event()
    w = WriterWorker(ch, object(), "peers", 0.05, cancel, close_grace_s=0.5)

    w.start()
    time.sleep(0.225)
    cancel.set()
    w.join(timeout=1.0)

    assert not w.is_alive()
    assert w.ticks == 4
    assert ch.closed_with == [0.5]


def test_writer_skips_missed_ticks():
    ch = FakeChannel(write_delay_s=0.12)
    cancel = threading.Event()
    w = WriterWorker(ch, object(), "peers", 0.05, cancel)

    w.start()
    time.sleep(0.4)
    cancel.set()
    w.join(timeout=1.0)

    # every write eats ~2.4 intervals; no burst of catch-up writes follows
    gaps = [b - a for a, b in zip(ch.write_times, ch.write_times[1:])]
    assert gaps and min(gaps) >= 0.12
    assert w.ticks <= 3


def test_writer_strict_stops_after_first_error():
    ch = FakeChannel(fail_writes=True)
    cancel = threading.Event()
    w = WriterWorker(ch, object(), "peers", 0.01, cancel)

    w.start()
    time.sleep(0.1)
    assert w.ticks == 1
    assert isinstance(w.last_error, TransportIOError)
    assert ch.closed_with == []

    cancel.set()
    w.join(timeout=1.0)
    assert ch.closed_with == [0.5]


def test_reader_delivers_in_order_and_closes_stream():
    ch = FakeChannel()
    ch.frames = [b"a", b"b", TransportClosed("gone")]
    stream = MessageStream()
    r = ReaderWorker(ch, stream, threading.Event(), "peers")

    r.start()
    msgs = list(stream)
    r.join(timeout=1.0)

    assert [m.data for m in msgs[:2]] == [b"a", b"b"]
    assert isinstance(msgs[2].error, TransportClosed)
    assert r.received == 3
    assert stream.closed


def test_reader_drops_errors_after_cancel():
    ch = FakeChannel()
    cancel = threading.Event()
    stream = MessageStream()
    r = ReaderWorker(ch, stream, cancel, "peers")

    cancel.set()
    r.start()
    r.join(timeout=1.0)

    assert not r.is_alive()
    assert list(stream) == []
