# protocol/__init__.py

from .command import PEERS, Command, PeerCommand, RPCCommand
from .message import ChannelMessage, MessageStream
from .channel import ChannelState, CommandChannel, do_command, repeat_command

__all__ = [
    "PEERS", "Command", "PeerCommand", "RPCCommand",
    "ChannelMessage", "MessageStream",
    "ChannelState", "CommandChannel", "do_command", "repeat_command",
]
