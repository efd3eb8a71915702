# xrplops/protocol/channel.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from xrplops.core.errors import CloseHandshakeFailure, DialFailure
from xrplops.interfaces.command_sink import CommandEvent, CommandSink
from xrplops.model.node import Node
from xrplops.transport.base import CLOSE_NORMAL, FrameKind, Transport
from xrplops.transport.errors import TransportClosed, TransportError
from xrplops.transport.factory import build_transport
from xrplops.transport.registry import TransportDriverRegistry

from .command import RPCCommand
from .errors import ChannelBusyError, ChannelClosedError
from .message import ChannelMessage, MessageStream
from ._internal.reader import ReaderWorker
from ._internal.writer import WriterWorker


ONCE_CLOSE_GRACE_S = 0.2
REPEAT_CLOSE_GRACE_S = 0.5


class ChannelState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    SENDING = "sending"
    IDLE = "idle"
    CLOSING = "closing"
    CLOSED = "closed"


_LIVE = (ChannelState.CONNECTED, ChannelState.SENDING, ChannelState.IDLE)


def _cmd_name(cmd: RPCCommand) -> str:
    return str(getattr(cmd, "name", type(cmd).__name__))


class CommandChannel:
    """
    One admin websocket connection to a node and all traffic over it.

    - do_command(): write, one read, close handshake (200 ms grace)
    - repeat_command(): reader + writer workers on the same connection,
      replies streamed to the caller until the cancel event is set

    A channel is single-use: once closed it cannot be reconnected. Only one
    reader and one writer ever touch the transport.
    """

    def __init__(
        self,
        node: Node,
        *,
        registry: Optional[TransportDriverRegistry] = None,
        transport: Optional[Transport] = None,
        command_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
        stop_on_write_error: bool = True,
        once_close_grace_s: float = ONCE_CLOSE_GRACE_S,
        repeat_close_grace_s: float = REPEAT_CLOSE_GRACE_S,
    ):
        self.node = node
        self._registry = registry
        self._transport = transport
        self._sink = command_sink
        self._log = logger or logging.getLogger(__name__)

        self.stop_on_write_error = bool(stop_on_write_error)
        self.once_close_grace_s = float(once_close_grace_s)
        self.repeat_close_grace_s = float(repeat_close_grace_s)

        self._lock = threading.Lock()
        self._state = ChannelState.DISCONNECTED
        self._reader: Optional[ReaderWorker] = None
        self._writer: Optional[WriterWorker] = None
        self._cancel: Optional[threading.Event] = None
        self.close_error: Optional[CloseHandshakeFailure] = None

    # ---------------- State ----------------
    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def transport(self) -> Optional[Transport]:
        return self._transport

    @property
    def reader(self) -> Optional[ReaderWorker]:
        return self._reader

    @property
    def writer(self) -> Optional[WriterWorker]:
        return self._writer

    def _set_state(self, new: ChannelState) -> None:
        old, self._state = self._state, new
        if old is not new:
            self._log.debug("CHANNEL_STATE url=%s %s->%s", self.node.url, old.value, new.value)

    # ---------------- Connect ----------------
    def connect(self) -> None:
        with self._lock:
            if self._state in _LIVE:
                return
            if self._state is not ChannelState.DISCONNECTED:
                raise ChannelClosedError(f"channel to {self.node.url} is {self._state.value}")

            if self._transport is None:
                self._transport = build_transport(self.node, self._registry, logger=self._log)

            try:
                self._transport.open()
            except TransportError as e:
                self._log.error("DIAL_FAILED url=%s err=%s", self.node.url, e)
                raise DialFailure(
                    f"Could not connect to {self.node.url}.",
                    hint=str(e),
                    details={"url": self.node.url, "driver": self.node.driver},
                ) from None

            self._set_state(ChannelState.CONNECTED)
            self._log.info("CONNECTED url=%s", self.node.url)

    # ---------------- Command API ----------------
    def do_command(self, cmd: RPCCommand) -> ChannelMessage:
        """
        Send one command and return the single reply.

        The write completes before the read starts; a failed write is
        returned as the message error and no read is attempted.
        """
        self.connect()
        self._ensure_idle()
        name = _cmd_name(cmd)

        err = self._write_command(cmd)
        if err is not None:
            msg = ChannelMessage.failed(err)
        else:
            msg, _ = self._receive_message(name)

        self._close_handshake(self.once_close_grace_s)
        return msg

    def repeat_command(
        self,
        cmd: RPCCommand,
        interval_s: float,
        cancel: Optional[threading.Event] = None,
    ) -> MessageStream:
        """
        Write `cmd` every `interval_s` seconds and stream every reply.

        Returns at once. Setting `cancel` stops both workers: the writer runs
        the close handshake (500 ms grace) and the stream closes once the
        reader sees it.
        """
        if interval_s <= 0:
            raise ValueError(f"interval_s must be > 0, got {interval_s}")

        self.connect()
        self._ensure_idle()

        name = _cmd_name(cmd)
        cancel = cancel or threading.Event()
        self._cancel = cancel
        stream = MessageStream()

        self._reader = ReaderWorker(self, stream, cancel, name)
        self._writer = WriterWorker(
            self,
            cmd,
            name,
            interval_s,
            cancel,
            stop_on_write_error=self.stop_on_write_error,
            close_grace_s=self.repeat_close_grace_s,
        )
        self._reader.start()
        self._writer.start()
        threading.Thread(
            target=self._stop_transport_on, args=(cancel,), daemon=True, name=f"xrplops-cancel-{name}"
        ).start()
        self._log.info("REPEAT_STARTED url=%s cmd=%s interval_s=%s", self.node.url, name, interval_s)
        return stream

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the repeat workers; True once both have exited."""
        for worker in (self._writer, self._reader):
            if worker is not None:
                worker.join(timeout)
        return not any(w is not None and w.is_alive() for w in (self._writer, self._reader))

    def close(self) -> None:
        """Stop any repeat workers and close the connection."""
        if self._cancel is not None:
            self._cancel.set()
        if self._transport is not None:
            self._transport.stop()
        self._close_handshake(self.repeat_close_grace_s)

    def __enter__(self) -> "CommandChannel":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- Worker hooks ----------------
    def _stop_transport_on(self, cancel: threading.Event) -> None:
        # a worker stuck in a redial cannot see cancel itself
        cancel.wait()
        if self._transport is not None:
            self._transport.stop()

    def _ensure_idle(self) -> None:
        if self._writer is not None and self._writer.is_alive():
            raise ChannelBusyError(f"channel to {self.node.url} is already repeating a command")
        if self._state not in _LIVE:
            raise ChannelClosedError(f"channel to {self.node.url} is {self._state.value}")

    def _write_command(self, cmd: RPCCommand) -> Optional[TransportError]:
        """Write one command as a text frame; return the failure instead of raising."""
        name = _cmd_name(cmd)
        payload = cmd.to_json()

        with self._lock:
            if self._state not in _LIVE:
                return TransportClosed(f"write on {self._state.value} channel")
            self._set_state(ChannelState.SENDING)

        try:
            self._transport.send(FrameKind.TEXT, payload)  # type: ignore[union-attr]
        except TransportError as e:
            self._log.warning("CMD_WRITE_FAILED url=%s cmd=%s err=%s", self.node.url, name, e)
            self._emit(name, "error", {"op": "write", "error": str(e)})
            return e
        finally:
            with self._lock:
                if self._state is ChannelState.SENDING:
                    self._set_state(ChannelState.IDLE)

        self._log.debug("CMD_SENT url=%s cmd=%s len=%d", self.node.url, name, len(payload))
        self._emit(name, "send", {"len": len(payload)})
        return None

    def _receive_message(self, name: str) -> Tuple[ChannelMessage, bool]:
        """
        Block for one frame. Returns (message, link_gone); read failures are
        carried in message.error.
        """
        try:
            kind, data = self._transport.receive()  # type: ignore[union-attr]
        except TransportClosed as e:
            self._note_read_error(name, e)
            return ChannelMessage.failed(e), True
        except TransportError as e:
            self._note_read_error(name, e)
            return ChannelMessage.failed(e), False

        self._emit(name, "recv", {"kind": kind.name.lower(), "len": len(data)})
        return ChannelMessage(kind=kind, data=data), False

    def _note_read_error(self, name: str, err: TransportError) -> None:
        if self._state in (ChannelState.CLOSING, ChannelState.CLOSED):
            self._log.debug("CMD_READ_AFTER_CLOSE url=%s cmd=%s err=%s", self.node.url, name, err)
            return
        self._log.warning("CMD_READ_FAILED url=%s cmd=%s err=%s", self.node.url, name, err)
        self._emit(name, "error", {"op": "read", "error": str(err)})

    def _close_handshake(self, grace_s: float) -> None:
        """
        Send a normal-closure close frame and wait up to grace_s for the ack,
        then release the transport. Failures are logged, never raised.
        """
        with self._lock:
            if self._state not in _LIVE:
                return
            self._set_state(ChannelState.CLOSING)

        transport = self._transport
        try:
            transport.send_close(CLOSE_NORMAL, "", timeout=grace_s)  # type: ignore[union-attr]
        except TransportError as e:
            self.close_error = CloseHandshakeFailure(
                f"Close handshake with {self.node.url} failed.",
                hint=str(e),
                details={"url": self.node.url},
            )
            self._log.warning("CLOSE_HANDSHAKE_FAILED url=%s err=%s", self.node.url, e)
        finally:
            try:
                transport.close()  # type: ignore[union-attr]
            except TransportError:
                self._log.exception("TRANSPORT_CLOSE_FAILED url=%s", self.node.url)
            with self._lock:
                self._set_state(ChannelState.CLOSED)

        self._emit("close", "close", {"error": str(self.close_error) if self.close_error else None})
        self._log.info("CLOSED url=%s", self.node.url)

    def _emit(self, name: str, kind: str, payload: Optional[Mapping[str, Any]] = None) -> None:
        if self._sink is None:
            return
        try:
            self._sink.on_command(
                CommandEvent(
                    name=name,
                    kind=kind,
                    payload=payload,
                    url=self.node.url,
                    ts_utc=datetime.now(timezone.utc).isoformat(),
                )
            )
        except Exception:
            self._log.exception("COMMAND_SINK_ERROR cmd=%s kind=%s", name, kind)


# ---------------- Convenience ----------------

def do_command(node: Node, cmd: RPCCommand, **channel_kwargs) -> ChannelMessage:
    """Dial `node`, run one command, close."""
    return CommandChannel(node, **channel_kwargs).do_command(cmd)


def repeat_command(
    node: Node,
    cmd: RPCCommand,
    interval_s: float,
    cancel: threading.Event,
    **channel_kwargs,
) -> MessageStream:
    """Dial `node` and repeat `cmd` until `cancel` is set."""
    return CommandChannel(node, **channel_kwargs).repeat_command(cmd, interval_s, cancel)
