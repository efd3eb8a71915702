from __future__ import annotations

import pytest

from xrplops.core.errors import ConfigError
from xrplops.model.node import Node
from xrplops.transport.base import FrameKind, Transport
from xrplops.transport.errors import TransportError
from xrplops.transport.factory import build_transport
from xrplops.transport.reconnect import ReconnectingTransport
from xrplops.transport.registry import TransportDriverRegistry
from xrplops.transport.websocket import WebSocketTransport


class DummyTransport(Transport):
    def __init__(self, *, url: str = "", open_timeout: float = 0.0, x: int = 0):
        self.url = url
        self.open_timeout = open_timeout
        self.x = x

    def open(self) -> None: ...
    def close(self) -> None: ...
    def is_open(self) -> bool: return False
    def send(self, kind, data) -> None: ...
    def receive(self): return FrameKind.TEXT, b""
    def send_close(self, code=1000, reason="", timeout=None) -> None: ...


def test_registry_has_and_get_class_case_insensitive():
    reg = TransportDriverRegistry({"DUMMY": DummyTransport})

    assert reg.has("dummy") is True
    assert reg.has("DUMMY") is True
    assert reg.has("DuMmY") is True

    cls = reg.get_class("dummy")
    assert cls is DummyTransport


def test_registry_get_class_unknown_raises():
    reg = TransportDriverRegistry({})
    with pytest.raises(TransportError):
        reg.get_class("websocket")


def test_registry_create_instantiates_with_params():
    reg = TransportDriverRegistry({"dummy": DummyTransport})

    t = reg.create("DUMMY", x=42)
    assert isinstance(t, DummyTransport)
    assert t.x == 42


def test_default_registry_knows_websocket():
    reg = TransportDriverRegistry.default()
    assert reg.get_class("websocket") is WebSocketTransport


def test_build_transport_passes_url_and_timeout():
    reg = TransportDriverRegistry({"dummy": DummyTransport})
    node = Node("10.0.0.1", 6006, driver="dummy", open_timeout_s=3.0)

    t = build_transport(node, reg)

    assert isinstance(t, DummyTransport)
    assert t.url == "ws://10.0.0.1:6006"
    assert t.open_timeout == 3.0


def test_build_transport_overrides():
    reg = TransportDriverRegistry({"dummy": DummyTransport})
    t = build_transport(Node("h", 1, driver="dummy"), reg, overrides={"x": 7})
    assert t.x == 7


def test_build_transport_unknown_driver_is_config_error():
    with pytest.raises(ConfigError) as ei:
        build_transport(Node("h", 1, driver="carrier-pigeon"), TransportDriverRegistry({}))
    assert ei.value.code == "config_error"


def test_build_transport_bad_param_is_config_error():
    reg = TransportDriverRegistry({"dummy": DummyTransport})
    with pytest.raises(ConfigError):
        build_transport(Node("h", 1, driver="dummy"), reg, overrides={"nope": 1})


def test_build_transport_reconnect_wraps():
    reg = TransportDriverRegistry({"dummy": DummyTransport})
    t = build_transport(Node("h", 1, driver="dummy", reconnect=True), reg)
    assert isinstance(t, ReconnectingTransport)
