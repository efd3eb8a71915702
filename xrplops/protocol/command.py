# xrplops/protocol/command.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional, Protocol as TypingProtocol

from xrplops.core.errors import DecodeError
from .errors import CommandEncodeError

PEERS = "peers"


class RPCCommand(TypingProtocol):
    """Anything that can be sent to a node as a websocket text payload."""
    def to_json(self) -> bytes: ...


@dataclass(frozen=True, slots=True)
class Command:
    """
    A rippled admin command.

    Wire form: {"command": ..., "admin_user"?: ..., "admin_password"?: ...}
    Empty credentials are left out of the payload.
    """
    command: str
    admin_user: Optional[str] = None
    admin_password: Optional[str] = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.command

    def as_dict(self) -> dict:
        out = {
            "command": self.command,
            "admin_user": self.admin_user,
            "admin_password": self.admin_password,
        }
        return {k: v for k, v in out.items() if k == "command" or v}

    def to_json(self) -> bytes:
        try:
            return json.dumps(self.as_dict(), separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise CommandEncodeError(str(self.command), str(e)) from None

    @classmethod
    def from_json(cls, data: bytes | str) -> "Command":
        try:
            obj = json.loads(data)
        except (TypeError, ValueError) as e:
            raise DecodeError("Command payload is not valid JSON.", hint=str(e)) from None

        if not isinstance(obj, dict) or not isinstance(obj.get("command"), str):
            raise DecodeError(
                "Command payload has no 'command' string.",
                details={"payload": repr(obj)},
            )

        return cls(
            command=obj["command"],
            admin_user=obj.get("admin_user") or None,
            admin_password=obj.get("admin_password") or None,
        )


def PeerCommand(admin_user: Optional[str] = None, admin_password: Optional[str] = None) -> Command:
    """The "peers" admin command, optionally with admin credentials."""
    return Command(PEERS, admin_user, admin_password)
