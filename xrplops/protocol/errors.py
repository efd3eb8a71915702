# xrplops/protocol/errors.py

class ProtocolError(Exception):
    """Base for channel-level failures (encoding/lifecycle misuse)."""

class CommandEncodeError(ProtocolError):
    def __init__(self, cmd: str, reason: str):
        super().__init__(f"{cmd} could not be encoded: {reason}")
        self.cmd = cmd
        self.reason = reason

class ChannelClosedError(ProtocolError):
    pass

class ChannelBusyError(ProtocolError):
    pass
