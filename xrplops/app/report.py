# xrplops/app/report.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

from xrplops.model import Peer, PeerList, Verdict


@dataclass(frozen=True)
class PeerReport:
    """A decoded peer list plus one verdict per peer."""
    peer_list: PeerList
    verdicts: List[Verdict]
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def build(cls, peer_list: PeerList) -> "PeerReport":
        return cls(peer_list=peer_list, verdicts=peer_list.classify_all())

    def accepted(self) -> List[Peer]:
        return [v.peer for v in self.verdicts if v.accepted]

    def rejected(self) -> List[Verdict]:
        return [v for v in self.verdicts if not v.accepted]

    def errors(self) -> List[Verdict]:
        """Peers that could not be judged (unparseable version)."""
        return [v for v in self.verdicts if v.error is not None]

    def summary(self) -> dict:
        counts: dict = {}
        for v in self.verdicts:
            counts[v.label.value] = counts.get(v.label.value, 0) + 1
        return {
            "status": self.peer_list.status,
            "peers": len(self.peer_list),
            "accepted": len(self.accepted()),
            "rejected": len(self.rejected()),
            "labels": counts,
        }
