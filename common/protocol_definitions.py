"""
Protocol definitions for the Relay group messaging server.

This module defines the outbound message structures and the builders used to
serialize them before they are written to connections.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, List

from common.constants import MessageTypes


@dataclass(frozen=True)
class ChatMessage:
    """Chat message structure. Immutable once stamped by the server."""
    channel: str
    alias: str
    rank: str
    body: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RosterEntry:
    """One identity in the system roster."""
    alias: str
    rank: str
    online: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TypingEntry:
    """Typing state of a single connection."""
    name: str
    channel: str


def create_error_message(message: str) -> Dict[str, Any]:
    """Create an error message."""
    return {
        "type": MessageTypes.ERROR,
        "message": message
    }


def create_register_error_message(message: str) -> Dict[str, Any]:
    """Create a registration failure message."""
    return {
        "type": MessageTypes.REGISTER_ERROR,
        "message": message
    }


def create_register_success_message(alias: str, rank: str) -> Dict[str, Any]:
    """Create a registration success message."""
    return {
        "type": MessageTypes.REGISTER_SUCCESS,
        "alias": alias,
        "rank": rank
    }


def create_login_error_message(message: str) -> Dict[str, Any]:
    """Create a login failure message."""
    return {
        "type": MessageTypes.LOGIN_ERROR,
        "message": message
    }


def create_login_success_message(alias: str, rank: str) -> Dict[str, Any]:
    """Create a login success message."""
    return {
        "type": MessageTypes.LOGIN_SUCCESS,
        "alias": alias,
        "rank": rank
    }


def create_channel_history_message(channel: str, history: List[ChatMessage]) -> Dict[str, Any]:
    """Create a channel history message."""
    return {
        "type": MessageTypes.CHANNEL_HISTORY,
        "channel": channel,
        "history": [message.to_dict() for message in history]
    }


def create_chat_message(message: ChatMessage) -> Dict[str, Any]:
    """Create an outbound chat message."""
    payload = {"type": MessageTypes.CHAT_MESSAGE}
    payload.update(message.to_dict())
    return payload


def create_typing_broadcast_message(typing: Dict[int, TypingEntry]) -> Dict[str, Any]:
    """Create a typing broadcast message.

    The payload is the raw per-connection map; receivers filter by channel.
    JSON object keys are strings, so connection ids are stringified here.
    """
    return {
        "type": MessageTypes.TYPING_BROADCAST,
        "typing": {
            str(uid): {"name": entry.name, "channel": entry.channel}
            for uid, entry in typing.items()
        }
    }


def create_system_update_message(roster: List[RosterEntry]) -> Dict[str, Any]:
    """Create a system update (roster) message."""
    return {
        "type": MessageTypes.SYSTEM_UPDATE,
        "totalIdentities": len(roster),
        "roster": [entry.to_dict() for entry in roster],
        "onlineNames": [entry.alias for entry in roster if entry.online]
    }
