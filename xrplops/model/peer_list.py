# xrplops/model/peer_list.py
from __future__ import annotations

import json
import random
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Tuple

from xrplops.core.errors import DecodeError
from .peer import INSANE, UNKNOWN, Peer
from .stability import StabilityPolicy, Verdict


@dataclass(frozen=True)
class PeerList:
    """
    Decoded result of the `peers` admin command.

    Read-only once built; each response gets its own PeerList, nothing is
    merged with earlier snapshots. Also serves as the default stability
    checker for Peer.stable_with() through its policy.
    """
    entries: Tuple[Peer, ...] = ()
    status: str = ""
    policy: StabilityPolicy = field(default_factory=StabilityPolicy, compare=False)

    # ---------------------------------------------------------------------
    # Decoding
    # ---------------------------------------------------------------------
    @classmethod
    def decode(cls, payload: str | bytes, policy: Optional[StabilityPolicy] = None) -> "PeerList":
        """
        Parse {"result": {"peers": [...], "status": ...}}.

        Raises DecodeError on malformed JSON, a wrong shape, a node error reply
        or a bad peer entry. Nothing is returned partially filled.
        """
        try:
            obj = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise DecodeError("Peer report is not valid JSON.", hint=str(e)) from None

        return cls.from_response(obj, policy)

    @classmethod
    def from_response(cls, obj: Any, policy: Optional[StabilityPolicy] = None) -> "PeerList":
        if not isinstance(obj, dict) or not isinstance(obj.get("result"), dict):
            raise DecodeError(
                "Peer report has no 'result' object.",
                details={"keys": sorted(obj) if isinstance(obj, dict) else type(obj).__name__},
            )

        result = obj["result"]
        if "error" in result:
            raise DecodeError(
                f"Node answered with an error: {result.get('error')}.",
                hint=result.get("error_message"),
                details={"error": result.get("error"), "status": result.get("status")},
            )

        raw_peers = result.get("peers") or []
        if not isinstance(raw_peers, list):
            raise DecodeError(
                "Peer report 'peers' is not a list.",
                details={"type": type(raw_peers).__name__},
            )

        peers: List[Peer] = []
        for i, entry in enumerate(raw_peers):
            if not isinstance(entry, dict):
                raise DecodeError(f"Peer entry {i} is not an object.", details={"index": i})
            try:
                peers.append(Peer.from_dict(entry))
            except (TypeError, ValueError) as e:
                raise DecodeError(f"Peer entry {i} is malformed.", hint=str(e), details={"index": i}) from None

        # The websocket API puts status next to result, not inside it.
        status = result.get("status", obj.get("status", ""))

        return cls(entries=tuple(peers), status=str(status or ""), policy=policy or StabilityPolicy())

    # ---------------------------------------------------------------------
    # Views
    # ---------------------------------------------------------------------
    def report_order(self) -> List[Peer]:
        """Peers in the order the node reported them."""
        return list(self.entries)

    def peers(self) -> List[Peer]:
        """Peers by ascending uptime; equal uptimes keep report order."""
        return sorted(self.entries, key=lambda p: p.uptime)

    def stable(self) -> List[Peer]:
        """
        Peers the node has not flagged. Use Peer.stable_with() to apply
        further rules (uptime, version) before acting on them.
        """
        return [p for p in self.peers() if not p.sanity]

    def unstable(self) -> List[Peer]:
        """
        Peers flagged unknown or insane by the node. Typically you would
        check uptime and version with Peer.stable_with() before acting.
        """
        return [p for p in self.peers() if p.sanity in (UNKNOWN, INSANE)]

    def __len__(self) -> int:
        return len(self.entries)

    # ---------------------------------------------------------------------
    # Classification
    # ---------------------------------------------------------------------
    def check(self, peer: Peer) -> bool:
        return self.policy.check(peer)

    def classify_all(self) -> List[Verdict]:
        """One verdict per peer (uptime order); a bad peer never stops the rest."""
        return [self.policy.classify(p) for p in self.peers()]

    # ---------------------------------------------------------------------
    # Fixtures
    # ---------------------------------------------------------------------
    def anonymise(self, rng: Optional[random.Random] = None) -> "PeerList":
        """
        Copy of the list with every address replaced by a random IP:port.

        Public keys are public anyway; this only keeps IPs out of shared
        captures. Not meant as a privacy guarantee.
        """
        rng = rng or random.Random()
        anon = []
        for peer in self.entries:
            ip = ".".join(str(rng.randrange(255)) for _ in range(4))
            anon.append(replace(peer, address=f"{ip}:{rng.randrange(60000)}"))
        return replace(self, entries=tuple(anon))

    def as_dict(self) -> dict:
        return {"result": {"peers": [p.as_dict() for p in self.entries], "status": self.status}}

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.as_dict(), indent=indent)
