# xrplops/core/recording/command.py
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from xrplops.interfaces.command_sink import CommandEvent, CommandSink


@dataclass
class CommandTraceLogger(CommandSink):
    """
    Channel traffic trace: one JSON object per line, plus a debug log line.

    Reader and writer workers both emit events, so writes are serialised.
    """
    logger: logging.Logger
    file_path: Optional[Path] = None

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._fh = None
        if self.file_path is not None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.file_path, "a", encoding="utf-8")

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                self._fh.close()
                self._fh = None

    def on_command(self, event: CommandEvent) -> None:
        ts_utc = event.ts_utc or datetime.now(timezone.utc).isoformat()

        out = {
            "name": event.name,
            "kind": event.kind,
            "url": event.url,
            "payload": event.payload,
            "ts_utc": ts_utc,
        }

        out = {k: v for k, v in out.items() if v is not None}
        line = json.dumps(out, ensure_ascii=False, default=str)

        self.logger.debug("TRACE %s", line)

        with self._lock:
            if self._fh is not None:
                self._fh.write(line + "\n")
                self._fh.flush()
