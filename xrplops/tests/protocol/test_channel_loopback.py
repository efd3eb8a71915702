from __future__ import annotations

import json
import threading
import time

import pytest
from websockets.sync.server import serve

from xrplops.model.node import Node
from xrplops.protocol.channel import ChannelState, CommandChannel, do_command
from xrplops.protocol.command import PeerCommand


class PeersServer:
    """Loopback node that answers every `peers` command and counts them."""

    def __init__(self, payload: bytes):
        self.payload = payload.decode("utf-8")
        self.commands: list = []
        self.closed = threading.Event()
        self._server = serve(self._handle, "127.0.0.1", 0)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def port(self) -> int:
        return self._server.socket.getsockname()[1]

    def _handle(self, ws):
        try:
            for message in ws:
                self.commands.append(json.loads(message))
                ws.send(self.payload)
        finally:
            self.closed.set()

    def __enter__(self) -> "PeersServer":
        self._thread.start()
        return self

    def __exit__(self, *exc) -> None:
        self._server.shutdown()
        self._thread.join(timeout=2.0)


@pytest.fixture
def server(peers_payload):
    with PeersServer(peers_payload) as s:
        yield s


def test_do_command_over_websocket(server, peers_payload):
    node = Node("127.0.0.1", server.port)
    msg = do_command(node, PeerCommand(admin_user="ops", admin_password="pw"))

    assert msg.ok
    assert json.loads(msg.data) == json.loads(peers_payload)
    assert server.commands == [{"command": "peers", "admin_user": "ops", "admin_password": "pw"}]
    assert server.closed.wait(1.0)


def test_repeat_cancelled_after_four_and_a_half_intervals(server):
    ch = CommandChannel(Node("127.0.0.1", server.port))
    cancel = threading.Event()
    cancelled_at: list = []

    def _cancel():
        cancelled_at.append(time.monotonic())
        cancel.set()

    timer = threading.Timer(4.5, _cancel)

    stream = ch.repeat_command(PeerCommand(), 1.0, cancel)
    timer.start()
    msgs = list(stream)
    closed_after = time.monotonic() - cancelled_at[0]

    assert ch.join(timeout=2.0)
    assert ch.writer.ticks == 4
    assert len(server.commands) == 4
    assert len([m for m in msgs if m.ok]) == 4
    assert closed_after < 0.5
    assert ch.state is ChannelState.CLOSED
    assert server.closed.wait(1.0)
