from __future__ import annotations

import socket
import threading

import pytest
from websockets.sync.server import serve

from xrplops.transport.base import FrameKind
from xrplops.transport.errors import TransportClosed, TransportOpenError
from xrplops.transport.websocket import WebSocketTransport


def _echo(ws):
    for message in ws:
        ws.send(message)


@pytest.fixture
def echo_url():
    server = serve(_echo, "127.0.0.1", 0)
    t = threading.Thread(target=server.serve_forever, daemon=True)
    t.start()
    port = server.socket.getsockname()[1]
    try:
        yield f"ws://127.0.0.1:{port}"
    finally:
        server.shutdown()
        t.join(timeout=2.0)


def test_text_and_binary_round_trip(echo_url):
    with WebSocketTransport(echo_url, open_timeout=2.0) as t:
        assert t.is_open()

        t.send(FrameKind.TEXT, b'{"command":"peers"}')
        assert t.receive() == (FrameKind.TEXT, b'{"command":"peers"}')

        t.send(FrameKind.BINARY, b"\x00\x01")
        assert t.receive() == (FrameKind.BINARY, b"\x00\x01")


def test_send_close_then_receive_is_closed(echo_url):
    t = WebSocketTransport(echo_url, open_timeout=2.0)
    t.open()
    t.send_close(timeout=0.5)
    assert not t.is_open()

    with pytest.raises(TransportClosed):
        t.receive()
    t.close()


def test_io_before_open_is_closed():
    t = WebSocketTransport("ws://127.0.0.1:1")
    with pytest.raises(TransportClosed):
        t.send(FrameKind.TEXT, b"x")
    with pytest.raises(TransportClosed):
        t.receive()


def test_dial_refused_raises_open_error():
    # bind and release a port so nothing listens there
    s = socket.socket()
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()

    t = WebSocketTransport(f"ws://127.0.0.1:{port}", open_timeout=1.0)
    with pytest.raises(TransportOpenError):
        t.open()
    assert t.conn is None
