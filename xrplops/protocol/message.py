# xrplops/protocol/message.py
from __future__ import annotations

import json
import queue
from dataclasses import dataclass
from typing import Any, Iterator, Optional

from xrplops.core.errors import DecodeError
from xrplops.transport.base import FrameKind


@dataclass(frozen=True, slots=True)
class ChannelMessage:
    """
    One inbound frame from the node.

    `error` marks a read (or write) failure that belongs to this slot of the
    stream; it does not end the stream by itself.
    """
    kind: FrameKind
    data: bytes = b""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    def json(self) -> Any:
        try:
            return json.loads(self.data)
        except ValueError as e:
            raise DecodeError("Reply frame is not valid JSON.", hint=str(e)) from None

    @classmethod
    def failed(cls, error: Exception, kind: FrameKind = FrameKind.TEXT) -> "ChannelMessage":
        return cls(kind=kind, data=b"", error=error)


_CLOSED = object()


class MessageStream:
    """
    Unbounded FIFO of ChannelMessages from the reader worker to one consumer.

    Iteration blocks for the next message and ends once the stream has been
    closed and everything queued before close() has been handed out.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, msg: ChannelMessage) -> None:
        if self._closed:
            raise RuntimeError("put on closed MessageStream")
        self._queue.put(msg)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put(_CLOSED)

    def get(self, timeout: Optional[float] = None) -> Optional[ChannelMessage]:
        """
        Next message, or None on timeout or end of stream.
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            # leave the marker for other waiters / later calls
            self._queue.put(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[ChannelMessage]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                self._queue.put(_CLOSED)
                return
            yield item  # type: ignore[misc]
