# xrplops/app/monitor.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Iterator, Optional

from xrplops.app.config import OpsConfig
from xrplops.app.report import PeerReport
from xrplops.core.errors import DecodeError, NodeCommunicationError
from xrplops.interfaces.command_sink import CommandSink
from xrplops.interfaces.report_sink import ReportSink
from xrplops.model import PeerList, StabilityPolicy
from xrplops.protocol import CommandChannel


class PeerMonitor:
    """
    Runs the `peers` command against one node and classifies the answer.

    Every report is also pushed to the registered sinks; a failing sink is
    logged and skipped.
    """

    def __init__(
        self,
        config: OpsConfig,
        *,
        channel_factory: Optional[Callable[[], CommandChannel]] = None,
        command_sink: Optional[CommandSink] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._log = logger or logging.getLogger(__name__)
        self._cmd_sink = command_sink
        self._channel_factory = channel_factory or self._default_channel
        self._policy: StabilityPolicy = config.stability.policy()
        self._sinks: list[ReportSink] = []

    @property
    def config(self) -> OpsConfig:
        return self._config

    @property
    def policy(self) -> StabilityPolicy:
        return self._policy

    def _default_channel(self) -> CommandChannel:
        return CommandChannel(
            self._config.node,
            command_sink=self._cmd_sink,
            logger=self._log,
            stop_on_write_error=self._config.stop_on_write_error,
        )

    # ---------------- Sinks ----------------
    def add_sink(self, sink: ReportSink) -> None:
        if sink not in self._sinks:
            self._sinks.append(sink)

    def remove_sink(self, sink: ReportSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def close(self) -> None:
        for s in list(self._sinks):
            try:
                s.close()
            except Exception:
                self._log.exception("SINK_CLOSE_ERROR")
        self._sinks.clear()

    def _publish(self, report: PeerReport) -> None:
        for s in list(self._sinks):
            try:
                s.on_report(report)
            except Exception:
                self._log.exception("SINK_ON_REPORT_ERROR")

    # ---------------- Operations ----------------
    def snapshot(self) -> PeerReport:
        """
        One `peers` round trip.

        Raises DialFailure, NodeCommunicationError or DecodeError; nothing is
        classified unless the reply decoded cleanly.
        """
        channel = self._channel_factory()
        msg = channel.do_command(self._config.peer_command())
        if msg.error is not None:
            raise NodeCommunicationError(
                f"No reply to 'peers' from {self._config.node.url}.",
                hint=str(msg.error),
                details={"url": self._config.node.url},
            )

        report = PeerReport.build(PeerList.decode(msg.data, self._policy))
        self._log.info("PEER_REPORT url=%s %s", self._config.node.url, report.summary())
        self._publish(report)
        return report

    def watch(
        self,
        cancel: threading.Event,
        interval_s: Optional[float] = None,
    ) -> Iterator[PeerReport]:
        """
        Repeat `peers` every interval until `cancel` is set, yielding a report
        per decodable reply. Failed frames are logged and skipped.
        """
        interval = interval_s or self._config.repeat_interval_s
        channel = self._channel_factory()
        stream = channel.repeat_command(self._config.peer_command(), interval, cancel)

        try:
            for msg in stream:
                if msg.error is not None:
                    self._log.warning("WATCH_FRAME_ERROR url=%s err=%s", self._config.node.url, msg.error)
                    continue

                try:
                    peer_list = PeerList.decode(msg.data, self._policy)
                except DecodeError as e:
                    self._log.warning("WATCH_DECODE_FAILED url=%s err=%s hint=%s", self._config.node.url, e, e.hint)
                    continue

                report = PeerReport.build(peer_list)
                self._log.info("PEER_REPORT url=%s %s", self._config.node.url, report.summary())
                self._publish(report)
                yield report
        finally:
            cancel.set()
            if not channel.join(timeout=2.0):
                self._log.warning("WATCH_WORKERS_STILL_RUNNING url=%s", self._config.node.url)
            channel.close()
