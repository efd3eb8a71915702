from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol


@dataclass(frozen=True, slots=True)
class CommandEvent:
    """
    Channel traffic event (for tracing/recording/debugging).
    Keep this small + stable; put details into payload.
    """
    name: str                   # command name, e.g. "peers"
    kind: str                   # "send" | "recv" | "error" | "close"
    payload: Optional[Mapping[str, Any]] = None
    url: Optional[str] = None
    ts_utc: Optional[str] = None


class CommandSink(Protocol):
    def on_command(self, event: CommandEvent) -> None: ...
    def close(self) -> None: ...
