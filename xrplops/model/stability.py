# xrplops/model/stability.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol

import semver

from xrplops.core.errors import VersionParseError
from .peer import INSANE, UNKNOWN, VERSION_PREFIX, Peer

DEFAULT_CURRENT_VERSION = "1.2.3"
MIN_CHECK_UPTIME_S = 30 * 60


class Label(str, Enum):
    GOOD = "good"
    YOUNG = "young"
    OLD = "old"
    UNSTABLE = "unknown"
    INSANE = "insane"
    UNPARSEABLE = "unparseable"


class StabilityChecker(Protocol):
    """Custom stability rules for Peer.stable_with()."""
    def check(self, peer: Peer) -> bool: ...


@dataclass(frozen=True, slots=True)
class Verdict:
    peer: Peer
    accepted: bool
    label: Label
    error: Optional[VersionParseError] = None


def too_old(version: semver.Version, current: semver.Version) -> bool:
    """
    True if `version` is more than one patch level behind `current`.

    A version exactly one patch behind is tolerated.
    """
    if version >= current:
        return False
    return version.bump_patch() < current


@dataclass(frozen=True)
class StabilityPolicy:
    """
    The default, opinionated stability check.

    Peers connected for min_check_uptime_s or less are accepted without
    looking at them: there is not enough history to judge. Older connections
    must run a parseable, recent version and must not be flagged by the node.
    """
    current_version: semver.Version = field(
        default_factory=lambda: semver.Version.parse(DEFAULT_CURRENT_VERSION)
    )
    min_check_uptime_s: int = MIN_CHECK_UPTIME_S
    version_prefix: str = VERSION_PREFIX

    @classmethod
    def for_version(cls, current_version: str, **kwargs) -> "StabilityPolicy":
        """Build a policy from a version string; raises ValueError if malformed."""
        return cls(current_version=semver.Version.parse(current_version), **kwargs)

    def too_old(self, version: semver.Version) -> bool:
        return too_old(version, self.current_version)

    def classify(self, peer: Peer) -> Verdict:
        if peer.uptime <= self.min_check_uptime_s:
            return Verdict(peer, True, Label.YOUNG)

        try:
            version = peer.semver(self.version_prefix)
        except VersionParseError as e:
            return Verdict(peer, False, Label.UNPARSEABLE, e)

        if self.too_old(version):
            return Verdict(peer, False, Label.OLD)
        if peer.sanity == INSANE:
            return Verdict(peer, False, Label.INSANE)
        if peer.sanity == UNKNOWN:
            return Verdict(peer, False, Label.UNSTABLE)

        return Verdict(peer, True, Label.GOOD)

    def check(self, peer: Peer) -> bool:
        return self.classify(peer).accepted
