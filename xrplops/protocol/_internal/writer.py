# xrplops/protocol/_internal/writer.py
from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from xrplops.protocol.channel import CommandChannel
    from xrplops.protocol.command import RPCCommand


class WriterWorker(threading.Thread):
    """
    Thread that writes one command per interval tick until cancelled, then
    performs the close handshake.

    Ticks are scheduled at start + n*interval; a tick missed because a write
    ran long is skipped, not replayed.
    """

    def __init__(
        self,
        channel: "CommandChannel",
        cmd: "RPCCommand",
        cmd_name: str,
        interval_s: float,
        cancel: threading.Event,
        *,
        stop_on_write_error: bool = True,
        close_grace_s: float = 0.5,
    ):
        super().__init__(daemon=True, name=f"xrplops-writer-{cmd_name}")
        self.channel = channel
        self.cmd = cmd
        self.cmd_name = cmd_name
        self.interval_s = float(interval_s)
        self.cancel = cancel
        self.stop_on_write_error = stop_on_write_error
        self.close_grace_s = float(close_grace_s)

        self.ticks = 0
        self.write_errors = 0
        self.last_error: Optional[Exception] = None

    def run(self) -> None:
        try:
            self._tick_until_cancelled()
        except Exception:
            self.channel._log.exception("WRITER_WORKER_EXCEPTION cmd=%s", self.cmd_name)

        # Close handshake runs on every exit path, whatever happened before.
        self.cancel.wait()
        self.channel._close_handshake(self.close_grace_s)
        self.channel._log.info("WRITER_EXIT cmd=%s ticks=%d errors=%d", self.cmd_name, self.ticks, self.write_errors)

    def _tick_until_cancelled(self) -> None:
        start = time.monotonic()
        n = 1
        while True:
            delay = start + n * self.interval_s - time.monotonic()
            if self.cancel.wait(max(0.0, delay)):
                return

            self.ticks += 1
            err = self.channel._write_command(self.cmd)
            if err is not None:
                self.write_errors += 1
                self.last_error = err
                if self.stop_on_write_error:
                    self.channel._log.warning("WRITER_STOPPED cmd=%s tick=%d err=%s", self.cmd_name, self.ticks, err)
                    return

            n = max(n + 1, int((time.monotonic() - start) / self.interval_s) + 1)
