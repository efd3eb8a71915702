# xrplops/model/node.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """
    Where to dial an XRPL proxy or validator node.

    Attributes:
        address: Host name or IP of the node's admin websocket.
        port: Admin websocket port (string or int).
        tls: Dial wss:// instead of ws://.
        driver: Transport driver key (see TransportDriverRegistry).
        reconnect: Wrap the transport so a broken link is redialled.
        open_timeout_s: Dial timeout handed to the transport.
    """
    address: str
    port: str | int
    tls: bool = False
    driver: str = "websocket"
    reconnect: bool = False
    open_timeout_s: float = 10.0

    @property
    def scheme(self) -> str:
        return "wss" if self.tls else "ws"

    @property
    def host_port(self) -> str:
        host = self.address
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{host}:{self.port}"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host_port}"
