from __future__ import annotations

import threading

import pytest

import xrplops.transport.reconnect as reconnect_mod
from xrplops.transport.base import FrameKind, Transport
from xrplops.transport.errors import TransportClosed, TransportIOError, TransportOpenError
from xrplops.transport.reconnect import ReconnectingTransport, backoff_delay


class FlakyTransport(Transport):
    """Opens unless told otherwise; fails I/O once `broken` is set."""

    def __init__(self, log: list, *, fail_open: bool = False):
        self.url = "ws://fake:1"
        self.log = log
        self.fail_open = fail_open
        self.broken = False
        self.opened = False
        self.sent: list = []

    def open(self) -> None:
        if self.fail_open:
            raise TransportOpenError("refused")
        self.opened = True
        self.log.append("open")

    def close(self) -> None:
        self.opened = False
        self.log.append("close")

    def is_open(self) -> bool:
        return self.opened

    def send(self, kind, data) -> None:
        if self.broken:
            raise TransportIOError("broken pipe")
        self.sent.append((kind, data))

    def receive(self):
        if self.broken:
            raise TransportClosed("eof")
        return FrameKind.TEXT, b"{}"

    def send_close(self, code=1000, reason="", timeout=None) -> None:
        self.log.append(("send_close", code))


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(reconnect_mod, "backoff_delay", lambda *a, **k: 0.0)


def test_backoff_delay_bounds():
    for attempt in range(8):
        d = backoff_delay(attempt, 2.0, 30.0)
        cap = min(30.0, 2.0 * 2**attempt)
        assert cap / 2 <= d <= cap


def test_initial_open_not_retried():
    log: list = []
    t = ReconnectingTransport(lambda: FlakyTransport(log, fail_open=True))
    with pytest.raises(TransportOpenError):
        t.open()
    assert t.inner is None


def test_send_failure_redials_and_reports_error():
    log: list = []
    made: list = []

    def factory():
        f = FlakyTransport(log)
        made.append(f)
        return f

    t = ReconnectingTransport(factory)
    t.open()
    made[0].broken = True

    with pytest.raises(TransportIOError) as ei:
        t.send(FrameKind.TEXT, b"x")
    assert not isinstance(ei.value, TransportClosed)

    assert t.reconnects == 1
    assert t.inner is made[1]

    t.send(FrameKind.TEXT, b"y")
    assert made[1].sent == [(FrameKind.TEXT, b"y")]


def test_gives_up_after_max_attempts():
    log: list = []
    made: list = []

    def factory():
        f = FlakyTransport(log, fail_open=bool(made))
        made.append(f)
        return f

    t = ReconnectingTransport(factory, max_attempts=2)
    t.open()
    made[0].broken = True

    with pytest.raises(TransportClosed):
        t.receive()

    assert t.inner is None
    assert len(made) == 3

    with pytest.raises(TransportClosed):
        t.send(FrameKind.TEXT, b"x")


def test_no_redial_after_send_close():
    log: list = []
    made: list = []

    def factory():
        f = FlakyTransport(log)
        made.append(f)
        return f

    t = ReconnectingTransport(factory)
    t.open()
    t.send_close()
    made[0].broken = True

    with pytest.raises(TransportClosed):
        t.receive()
    assert len(made) == 1
    assert t.reconnects == 0


def test_stop_ends_backoff_and_releases_waiting_callers(monkeypatch):
    monkeypatch.setattr(reconnect_mod, "backoff_delay", lambda *a, **k: 30.0)
    log: list = []
    made: list = []

    def factory():
        f = FlakyTransport(log, fail_open=bool(made))
        made.append(f)
        return f

    t = ReconnectingTransport(factory)
    t.open()
    made[0].broken = True

    errors: list = []

    def call(fn, *args):
        try:
            fn(*args)
        except TransportIOError as e:
            errors.append(e)

    reader = threading.Thread(target=call, args=(t.receive,), daemon=True)
    writer = threading.Thread(target=call, args=(t.send, FrameKind.TEXT, b"x"), daemon=True)
    reader.start()
    writer.start()

    # the state stays reachable while a redial is waiting
    writer.join(0.2)
    assert t.inner is made[0]
    assert not t.is_open()

    t.stop()
    reader.join(1.0)
    writer.join(1.0)

    assert not reader.is_alive() and not writer.is_alive()
    assert len(errors) == 2
    assert all(isinstance(e, TransportClosed) for e in errors)
    assert t.inner is None
    assert len(made) == 1
