from __future__ import annotations

import json
import logging

from xrplops.core.recording.command import CommandTraceLogger
from xrplops.interfaces.command_sink import CommandEvent
from xrplops.model.node import Node
from xrplops.protocol.channel import CommandChannel
from xrplops.protocol.command import PeerCommand
from xrplops.transport.base import FrameKind, Transport


class OneShotTransport(Transport):
    url = "ws://fake:1"

    def open(self) -> None: ...
    def close(self) -> None: ...
    def is_open(self) -> bool: return True
    def send(self, kind, data) -> None: ...
    def receive(self): return FrameKind.TEXT, b'{"result": {}}'
    def send_close(self, code=1000, reason="", timeout=None) -> None: ...


def test_trace_writes_json_lines(tmp_path):
    path = tmp_path / "trace" / "commands.jsonl"
    sink = CommandTraceLogger(logger=logging.getLogger("test"), file_path=path)

    sink.on_command(CommandEvent(name="peers", kind="send", payload={"len": 19}, url="ws://h:1", ts_utc="t0"))
    sink.on_command(CommandEvent(name="peers", kind="recv"))
    sink.close()

    lines = [json.loads(ln) for ln in path.read_text(encoding="utf-8").splitlines()]
    assert lines[0] == {"name": "peers", "kind": "send", "url": "ws://h:1", "payload": {"len": 19}, "ts_utc": "t0"}
    assert lines[1]["kind"] == "recv"
    assert "ts_utc" in lines[1]
    assert "url" not in lines[1]


def test_trace_without_file_only_logs(caplog):
    sink = CommandTraceLogger(logger=logging.getLogger("xrplops.trace"))
    with caplog.at_level(logging.DEBUG, logger="xrplops.trace"):
        sink.on_command(CommandEvent(name="peers", kind="close"))
    sink.close()
    assert any("TRACE" in r.getMessage() for r in caplog.records)


def test_trace_records_channel_traffic(tmp_path):
    path = tmp_path / "commands.jsonl"
    sink = CommandTraceLogger(logger=logging.getLogger("test"), file_path=path)

    CommandChannel(Node("fake", 1), transport=OneShotTransport(), command_sink=sink).do_command(PeerCommand())
    sink.close()

    kinds = [json.loads(ln)["kind"] for ln in path.read_text(encoding="utf-8").splitlines()]
    assert kinds == ["send", "recv", "close"]
