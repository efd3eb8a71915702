# xrplops/core/errors.py
from __future__ import annotations


class XrplOpsError(Exception):
    """
    Base class for all expected operational errors in xrplops.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, alerting, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no network access yet)
# ---------------------------------------------------------------------------

class ConfigError(XrplOpsError):
    """
    Configuration is invalid or incomplete.

    Examples:
      - config file missing or not valid YAML
      - unknown transport driver
      - malformed minimum version
    """
    code = "config_error"


# ---------------------------------------------------------------------------
# Connection lifecycle errors
# ---------------------------------------------------------------------------

class DialFailure(XrplOpsError):
    """
    The initial connection to the node could not be established.

    Never retried by the command channel.
    """
    code = "dial_failure"


class NodeCommunicationError(XrplOpsError):
    """
    A command reached no usable reply.

    Examples:
      - write failed on an open connection
      - read failed or the node dropped the connection
    """
    code = "node_communication_error"


class CloseHandshakeFailure(XrplOpsError):
    """
    The websocket close handshake failed. Logged; the call still returns.
    """
    code = "close_handshake_failure"


# ---------------------------------------------------------------------------
# Payload / classification errors
# ---------------------------------------------------------------------------

class DecodeError(XrplOpsError):
    """
    A reply payload could not be decoded.

    Examples:
      - malformed JSON
      - 'result' / 'peers' missing or of the wrong type
    """
    code = "decode_error"


class VersionParseError(XrplOpsError):
    """
    A peer reported a software version that is not a semantic version.
    """
    code = "version_parse_error"
