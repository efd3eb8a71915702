# xrplops/transport/websocket.py
from __future__ import annotations

from typing import Optional, Tuple

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State
from websockets.sync.client import ClientConnection, connect

from .base import CLOSE_NORMAL, FrameKind, Transport
from .errors import TransportClosed, TransportIOError, TransportOpenError


class WebSocketTransport(Transport):
    """
    Websocket transport implemented via the `websockets` sync client.

    Text frames travel as str on the wire and are handed back as UTF-8 bytes.
    Peer reports of busy nodes run to several MiB, hence the large max_size.
    """

    def __init__(
        self,
        url: str,
        open_timeout: float = 10.0,
        close_timeout: float = 0.5,
        max_size: Optional[int] = 2**24,
    ):
        self.url = url
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout
        self.max_size = max_size
        self.conn: Optional[ClientConnection] = None

    def open(self) -> None:
        try:
            self.conn = connect(
                self.url,
                open_timeout=self.open_timeout,
                close_timeout=self.close_timeout,
                max_size=self.max_size,
            )
        except (OSError, WebSocketException) as e:
            self.conn = None
            raise TransportOpenError(f"dial {self.url} failed: {e}") from None

    def close(self) -> None:
        if self.conn is not None:
            try:
                self.conn.close()
            finally:
                self.conn = None

    def is_open(self) -> bool:
        return self.conn is not None and self.conn.protocol.state is State.OPEN

    def send(self, kind: FrameKind, data: bytes) -> None:
        conn = self._require_conn("write")
        try:
            if kind == FrameKind.TEXT:
                conn.send(bytes(data).decode("utf-8"))
            else:
                conn.send(bytes(data))
        except ConnectionClosed as e:
            raise TransportClosed(f"websocket write: {e}") from None
        except (OSError, UnicodeDecodeError, WebSocketException) as e:
            raise TransportIOError(f"websocket write: {e}") from None

    def receive(self) -> Tuple[FrameKind, bytes]:
        conn = self._require_conn("read")
        try:
            msg = conn.recv()
        except ConnectionClosed as e:
            raise TransportClosed(f"websocket read: {e}") from None
        except (OSError, WebSocketException) as e:
            raise TransportIOError(f"websocket read: {e}") from None

        if isinstance(msg, str):
            return FrameKind.TEXT, msg.encode("utf-8")
        return FrameKind.BINARY, bytes(msg)

    def send_close(self, code: int = CLOSE_NORMAL, reason: str = "", timeout: Optional[float] = None) -> None:
        conn = self._require_conn("close")
        if timeout is not None:
            conn.close_timeout = timeout
        try:
            conn.close(code=code, reason=reason)
        except (OSError, WebSocketException) as e:
            raise TransportIOError(f"websocket close: {e}") from None

    def _require_conn(self, op: str) -> ClientConnection:
        if self.conn is None:
            raise TransportClosed(f"{op} while transport not open")
        return self.conn
