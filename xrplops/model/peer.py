# xrplops/model/peer.py
from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

import semver

from xrplops.core.errors import VersionParseError

if TYPE_CHECKING:
    from .stability import StabilityChecker

# Sanity values reported by the node itself; absent means sane.
UNKNOWN = "unknown"
INSANE = "insane"

VERSION_PREFIX = "rippled-"


@dataclass(frozen=True, slots=True)
class Peer:
    """
    One entry of the node's `peers` admin report.

    Attributes:
        address: Remote "host:port" (IPv6 hosts bracketed).
        complete_ledgers: Ledger range the peer holds, e.g. "32570-6595042".
        inbound: True if the peer dialled us.
        latency: Round trip in ms.
        ledger: Hash of the peer's current closed ledger.
        load: Load metric reported for the peer.
        public_key: Node public key.
        uptime: Seconds connected.
        version: Software version string, e.g. "rippled-1.2.4".
        sanity: "unknown" / "insane" as flagged by the node, None when sane.
        cluster: Member of our cluster.
    """
    address: str
    public_key: str = ""
    uptime: int = 0
    version: str = ""
    latency: int = 0
    load: int = 0
    complete_ledgers: Optional[str] = None
    inbound: bool = False
    ledger: Optional[str] = None
    sanity: Optional[str] = None
    cluster: bool = False

    # ---------------------------------------------------------------------
    # Address
    # ---------------------------------------------------------------------
    def host_port(self) -> Tuple[str, int]:
        """Split the address; raises ValueError unless it is host:port."""
        host, sep, port = self.address.rpartition(":")
        if not sep or not host or not port.isdigit():
            raise ValueError(f"address {self.address!r}: missing port")

        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        elif ":" in host:
            raise ValueError(f"address {self.address!r}: too many colons")

        return host, int(port)

    def ip(self) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
        """Network IP of the peer; raises ValueError if the host is not an IP."""
        host, _ = self.host_port()
        return ipaddress.ip_address(host)

    # ---------------------------------------------------------------------
    # Health
    # ---------------------------------------------------------------------
    @property
    def flagged(self) -> bool:
        """The node reported this peer as unknown or insane."""
        return self.sanity in (UNKNOWN, INSANE)

    def semver(self, prefix: str = VERSION_PREFIX) -> semver.Version:
        """
        Semantic version of the peer's software.

        Raises VersionParseError when the string is not `<prefix>x.y.z`.
        """
        raw = self.version.removeprefix(prefix)
        try:
            return semver.Version.parse(raw)
        except (TypeError, ValueError) as e:
            raise VersionParseError(
                f"Peer {self.address} reports unparseable version {self.version!r}.",
                hint=str(e),
                details={"address": self.address, "version": self.version},
            ) from None

    def stable_with(self, checker: "StabilityChecker") -> bool:
        return checker.check(self)

    # ---------------------------------------------------------------------
    # (De)serialisation
    # ---------------------------------------------------------------------
    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Peer":
        address = d.get("address")
        if not isinstance(address, str) or not address:
            raise ValueError(f"peer entry missing 'address': {dict(d)!r}")

        return cls(
            address=address,
            public_key=str(d.get("public_key", "")),
            uptime=int(d.get("uptime", 0)),
            version=str(d.get("version", "")),
            latency=int(d.get("latency", 0)),
            load=int(d.get("load", 0)),
            complete_ledgers=d.get("complete_ledgers") or None,
            inbound=bool(d.get("inbound", False)),
            ledger=d.get("ledger") or None,
            sanity=d.get("sanity") or None,
            cluster=bool(d.get("cluster", False)),
        )

    def as_dict(self) -> dict:
        out: dict = {
            "address": self.address,
            "complete_ledgers": self.complete_ledgers,
            "inbound": self.inbound,
            "latency": self.latency,
            "ledger": self.ledger,
            "load": self.load,
            "public_key": self.public_key,
            "uptime": self.uptime,
            "version": self.version,
            "sanity": self.sanity,
            "cluster": self.cluster,
        }
        optional = ("complete_ledgers", "inbound", "ledger", "sanity", "cluster")
        return {k: v for k, v in out.items() if k not in optional or v}
