# xrplops/app/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from xrplops.core.errors import ConfigError
from xrplops.model.node import Node
from xrplops.model.stability import DEFAULT_CURRENT_VERSION, MIN_CHECK_UPTIME_S, StabilityPolicy
from xrplops.model.peer import VERSION_PREFIX
from xrplops.protocol.command import Command, PeerCommand


@dataclass(frozen=True)
class StabilityConfig:
    current_version: str = DEFAULT_CURRENT_VERSION
    min_check_uptime_s: int = MIN_CHECK_UPTIME_S
    version_prefix: str = VERSION_PREFIX

    def policy(self) -> StabilityPolicy:
        try:
            return StabilityPolicy.for_version(
                self.current_version,
                min_check_uptime_s=int(self.min_check_uptime_s),
                version_prefix=self.version_prefix,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid current_version '{self.current_version}'.",
                hint=str(e),
                details={"current_version": self.current_version},
            ) from None


@dataclass(frozen=True)
class OpsConfig:
    node: Node
    admin_user: Optional[str] = None
    admin_password: Optional[str] = None
    stability: StabilityConfig = field(default_factory=StabilityConfig)
    repeat_interval_s: float = 5.0
    stop_on_write_error: bool = True

    def peer_command(self) -> Command:
        return PeerCommand(admin_user=self.admin_user, admin_password=self.admin_password)


# ---------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------

def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"Config section '{name}' must be a mapping.",
            details={"section": name, "type": type(value).__name__},
        )
    return value


def config_from_dict(data: Mapping[str, Any]) -> OpsConfig:
    node_d = _section(data, "node")
    admin_d = _section(data, "admin")
    stab_d = _section(data, "stability")
    watch_d = _section(data, "watch")

    if not node_d.get("address") or not node_d.get("port"):
        raise ConfigError(
            "Config 'node' needs both 'address' and 'port'.",
            hint="e.g. node: {address: 127.0.0.1, port: 6006}",
            details={"node": dict(node_d)},
        )

    try:
        node = Node(
            address=str(node_d["address"]),
            port=str(node_d["port"]),
            tls=bool(node_d.get("tls", False)),
            driver=str(node_d.get("driver", "websocket")),
            reconnect=bool(node_d.get("reconnect", False)),
            open_timeout_s=float(node_d.get("open_timeout_s", 10.0)),
        )
        stability = StabilityConfig(
            current_version=str(stab_d.get("current_version", DEFAULT_CURRENT_VERSION)),
            min_check_uptime_s=int(stab_d.get("min_check_uptime_s", MIN_CHECK_UPTIME_S)),
            version_prefix=str(stab_d.get("version_prefix", VERSION_PREFIX)),
        )
        interval = float(watch_d.get("interval_s", 5.0))
    except (TypeError, ValueError) as e:
        raise ConfigError("Invalid config value.", hint=str(e)) from None

    if interval <= 0:
        raise ConfigError("watch.interval_s must be > 0.", details={"interval_s": interval})

    cfg = OpsConfig(
        node=node,
        admin_user=admin_d.get("user") or None,
        admin_password=admin_d.get("password") or None,
        stability=stability,
        repeat_interval_s=interval,
        stop_on_write_error=bool(watch_d.get("stop_on_write_error", True)),
    )
    cfg.stability.policy()  # fail early on a bad version
    return cfg


def load_config(path: str | Path) -> OpsConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}", details={"path": str(path)})

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError("Config file is not valid YAML.", hint=str(e), details={"path": str(path)}) from None

    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping.", details={"path": str(path)})

    return config_from_dict(data)
