# xrplops/cli/commands.py
from __future__ import annotations

import logging
import random
import sys
import threading
from pathlib import Path
from typing import Optional

from xrplops.app.config import OpsConfig
from xrplops.app.monitor import PeerMonitor
from xrplops.app.report import PeerReport
from xrplops.core.errors import ConfigError
from xrplops.core.recording.command import CommandTraceLogger
from xrplops.interfaces.report_sink import ReportSink
from xrplops.model import Peer, PeerList


log = logging.getLogger("xrplops.cli")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------- Report sink ----------------

class PrintReportSink(ReportSink):
    """Print a one-line summary per report to stdout."""
    def on_report(self, report: PeerReport) -> None:
        s = report.summary()
        labels = " ".join(f"{k}={v}" for k, v in sorted(s["labels"].items()))
        print(
            f"{report.received_at:%H:%M:%S} status={s['status'] or '-'} "
            f"peers={s['peers']} accepted={s['accepted']} rejected={s['rejected']} {labels}".rstrip()
        )

    def close(self) -> None:
        return None


# ---------------- Logging ----------------

def configure_logging(verbosity: int = 0, log_file: Optional[Path] = None) -> None:
    """
    Console handler on stderr plus an optional file handler (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    level = logging.WARNING if verbosity <= 0 else logging.INFO if verbosity == 1 else logging.DEBUG
    root.setLevel(level)

    if not any(getattr(h, "_xrplops_console", False) for h in root.handlers):
        ch = logging.StreamHandler(sys.stderr)
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        ch._xrplops_console = True  # type: ignore[attr-defined]
        root.addHandler(ch)

    for h in root.handlers:
        if getattr(h, "_xrplops_console", False):
            h.setLevel(level)

    if log_file is None:
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    target = str(log_file.resolve())
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(log_file, encoding="utf-8", delay=True)
    fh.setLevel(logging.DEBUG if verbosity >= 2 else logging.INFO)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

    if root.level > logging.INFO:
        root.setLevel(logging.INFO)


# ---------------- Printing ----------------

def format_peer(peer: Peer) -> str:
    return (
        f"{peer.address:<28} {peer.version or '-':<16} up={peer.uptime:<7} "
        f"lat={peer.latency:<5} sanity={peer.sanity or 'sane'}"
    )


def print_report(report: PeerReport, *, show: str = "all", sort: str = "uptime") -> None:
    pl = report.peer_list
    by_peer = {id(v.peer): v for v in report.verdicts}

    if show == "rejected":
        for v in report.rejected():
            line = f"{format_peer(v.peer)} label={v.label.value}"
            if v.error is not None:
                line += f" err={v.error}"
            print(line)
    else:
        if show == "stable":
            peers = pl.stable()
        elif show == "unstable":
            peers = pl.unstable()
        else:
            peers = pl.report_order() if sort == "report" else pl.peers()

        for p in peers:
            v = by_peer.get(id(p))
            label = v.label.value if v is not None else "-"
            print(f"{format_peer(p)} label={label}")

    s = report.summary()
    print(f"Total: {s['peers']} accepted={s['accepted']} rejected={s['rejected']} status={s['status'] or '-'}")


# ---------------- Commands ----------------

def _trace_sink(trace: Optional[str]) -> Optional[CommandTraceLogger]:
    if not trace:
        return None
    return CommandTraceLogger(logger=logging.getLogger("xrplops.trace"), file_path=Path(trace))


def _close(monitor: PeerMonitor, trace: Optional[CommandTraceLogger]) -> None:
    monitor.close()
    if trace is not None:
        trace.close()


def cmd_peers(args, cfg: OpsConfig) -> int:
    trace = _trace_sink(args.trace)
    monitor = PeerMonitor(cfg, command_sink=trace)
    try:
        report = monitor.snapshot()
        if args.json:
            print(report.peer_list.to_json())
        else:
            print_report(report, show=args.show, sort=args.sort)
        return 0
    finally:
        _close(monitor, trace)


def cmd_watch(args, cfg: OpsConfig) -> int:
    trace = _trace_sink(args.trace)
    monitor = PeerMonitor(cfg, command_sink=trace)
    monitor.add_sink(PrintReportSink())

    cancel = threading.Event()
    timer: Optional[threading.Timer] = None
    if args.secs is not None:
        timer = threading.Timer(args.secs, cancel.set)
        timer.daemon = True
        timer.start()

    interval = cfg.repeat_interval_s
    print(f"Watching {cfg.node.url} every {interval:g}s (Ctrl+C to stop)")

    n = 0
    reports = monitor.watch(cancel, interval_s=interval)
    try:
        for _ in reports:
            n += 1
    except KeyboardInterrupt:
        cancel.set()
    finally:
        reports.close()
        if timer is not None:
            timer.cancel()
        _close(monitor, trace)

    print(f"Reports: {n}")
    return 0


def cmd_anonymise(args) -> int:
    path = Path(args.file)
    if not path.exists():
        raise ConfigError(f"Missing file: {path}", details={"path": str(path)})

    peer_list = PeerList.decode(path.read_bytes())
    rng = random.Random(args.seed) if args.seed is not None else None
    print(peer_list.anonymise(rng).to_json())
    log.info("ANONYMISED file=%s peers=%d", path, len(peer_list))
    return 0
