from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Optional, Tuple


class FrameKind(IntEnum):
    """Frame tag, numbered after the websocket opcodes."""
    TEXT = 1
    BINARY = 2


CLOSE_NORMAL = 1000


class Transport(ABC):
    """
    Abstract message-oriented duplex transport.

    Contract:
      - open()/close() manage the underlying connection. send_close() performs
        the close handshake; close() only releases whatever is left.
      - receive() blocks until one whole frame arrives.
      - send_close(code, reason, timeout) waits up to timeout for the peer
        to acknowledge the close.
      - one reader and one writer may use a transport concurrently; nothing more.
      - stop() may be called from a third thread to unblock them.
    """

    url: str

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    def send(self, kind: FrameKind, data: bytes) -> None: ...

    @abstractmethod
    def receive(self) -> Tuple[FrameKind, bytes]: ...

    @abstractmethod
    def send_close(self, code: int = CLOSE_NORMAL, reason: str = "", timeout: Optional[float] = None) -> None: ...

    def stop(self) -> None:
        """Abandon any blocking recovery in progress. Safe from any thread."""
        return None

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
