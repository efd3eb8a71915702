from typing import Protocol
from xrplops.app.report import PeerReport


class ReportSink(Protocol):
    def on_report(self, report: PeerReport) -> None: ...
    def close(self) -> None: ...
