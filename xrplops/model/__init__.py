from .node import Node
from .peer import INSANE, UNKNOWN, Peer
from .peer_list import PeerList
from .stability import Label, StabilityChecker, StabilityPolicy, Verdict, too_old

__all__ = ["Node",
           "Peer",
           "PeerList",
           "UNKNOWN", "INSANE",
           "Label",
           "StabilityChecker",
           "StabilityPolicy",
           "Verdict",
           "too_old"]
