# xrplops/cli/args.py
from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Optional

from xrplops.app.config import OpsConfig, load_config
from xrplops.core.errors import ConfigError
from xrplops.model.node import Node


DEFAULT_ADMIN_PORT = "6006"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xrplops", description="Admin client for XRPL nodes.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    node = argparse.ArgumentParser(add_help=False)
    node.add_argument("--config", default=None, help="YAML config file (flags override it).")
    node.add_argument("--address", default=None, help="Node host or IP.")
    node.add_argument("--port", default=None, help=f"Admin websocket port (default {DEFAULT_ADMIN_PORT}).")
    node.add_argument("--tls", action="store_true", default=None, help="Dial wss:// instead of ws://.")
    node.add_argument("--reconnect", action="store_true", default=None, help="Redial a dropped connection.")
    node.add_argument("--user", default=None, help="admin_user credential.")
    node.add_argument("--password", default=None, help="admin_password credential.")
    node.add_argument("--current-version", default=None, help="Version peers are measured against, e.g. 1.2.4.")
    node.add_argument("--trace", default=None, help="Append channel traffic as JSON lines to this file.")

    p_peers = sub.add_parser("peers", parents=[node], help="One peers snapshot.")
    p_peers.add_argument(
        "--show",
        choices=("all", "stable", "unstable", "rejected"),
        default="all",
        help="Which peers to list.",
    )
    p_peers.add_argument("--sort", choices=("uptime", "report"), default="uptime")
    p_peers.add_argument("--json", action="store_true", help="Print the raw peer list as JSON.")

    p_watch = sub.add_parser("watch", parents=[node], help="Repeat peers on an interval.")
    p_watch.add_argument("--interval", type=float, default=None, help="Seconds between commands.")
    p_watch.add_argument("--secs", type=float, default=None, help="Stop after N seconds.")
    p_watch.add_argument(
        "--keep-writing",
        action="store_true",
        help="Keep ticking after a failed write instead of stopping the writer.",
    )

    p_anon = sub.add_parser("anonymise", help="Randomise peer IPs of a captured report.")
    p_anon.add_argument("file", help="Captured peers reply (JSON).")
    p_anon.add_argument("--seed", type=int, default=None)

    return parser


def resolve_config(args: argparse.Namespace) -> OpsConfig:
    """
    Config file first (if any), then command line flags on top.
    """
    cfg: Optional[OpsConfig] = load_config(args.config) if args.config else None

    if cfg is None:
        if not args.address:
            raise ConfigError(
                "No node given.",
                hint="Pass --address (and --port) or --config FILE.",
            )
        cfg = OpsConfig(node=Node(address=args.address, port=args.port or DEFAULT_ADMIN_PORT))

    node = cfg.node
    node = replace(
        node,
        address=args.address or node.address,
        port=args.port or node.port,
        tls=node.tls if args.tls is None else bool(args.tls),
        reconnect=node.reconnect if args.reconnect is None else bool(args.reconnect),
    )

    stability = cfg.stability
    if args.current_version:
        stability = replace(stability, current_version=args.current_version)

    cfg = replace(
        cfg,
        node=node,
        admin_user=args.user or cfg.admin_user,
        admin_password=args.password or cfg.admin_password,
        stability=stability,
    )

    interval = getattr(args, "interval", None)
    if interval is not None:
        if interval <= 0:
            raise ConfigError("--interval must be > 0.", details={"interval": interval})
        cfg = replace(cfg, repeat_interval_s=interval)

    if getattr(args, "keep_writing", False):
        cfg = replace(cfg, stop_on_write_error=False)

    cfg.stability.policy()  # validate --current-version early
    return cfg


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


__all__ = ["build_parser", "parse_args", "resolve_config"]
