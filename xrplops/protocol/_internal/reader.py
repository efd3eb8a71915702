# xrplops/protocol/_internal/reader.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from xrplops.protocol.channel import CommandChannel
    from xrplops.protocol.message import MessageStream


class ReaderWorker(threading.Thread):
    """Thread that reads frames off the channel and publishes them in order."""

    def __init__(self, channel: "CommandChannel", stream: "MessageStream", cancel: threading.Event, cmd_name: str):
        super().__init__(daemon=True, name=f"xrplops-reader-{cmd_name}")
        self.channel = channel
        self.stream = stream
        self.cancel = cancel
        self.cmd_name = cmd_name
        self.received = 0

    def run(self) -> None:
        try:
            while not self.cancel.is_set():
                msg, link_gone = self.channel._receive_message(self.cmd_name)

                # Errors after cancellation come from our own close handshake.
                if msg.error is not None and self.cancel.is_set():
                    break

                self.stream.put(msg)
                self.received += 1

                if link_gone:
                    self.channel._log.warning("READER_LINK_GONE cmd=%s err=%s", self.cmd_name, msg.error)
                    break
        except Exception:
            self.channel._log.exception("READER_WORKER_EXCEPTION cmd=%s", self.cmd_name)
        finally:
            self.stream.close()
            self.channel._log.info("READER_EXIT cmd=%s received=%d", self.cmd_name, self.received)
