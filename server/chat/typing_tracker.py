"""
Typing indicator module.

Tracks which connections are currently composing a message, and where.
"""

from typing import Dict

from common.protocol_definitions import TypingEntry


class TypingIndicatorTracker:
    """Transient per-connection typing state."""

    def __init__(self):
        self._typing: Dict[int, TypingEntry] = {}  # uid -> entry

    def set_typing(self, uid: int, name: str, channel: str):
        """Upsert the typing entry for a connection."""
        self._typing[uid] = TypingEntry(name=name, channel=channel)

    def clear_typing(self, uid: int) -> bool:
        """Remove the connection's entry. Returns True if one existed."""
        return self._typing.pop(uid, None) is not None

    def snapshot(self) -> Dict[int, TypingEntry]:
        return dict(self._typing)

    def __len__(self):
        return len(self._typing)
