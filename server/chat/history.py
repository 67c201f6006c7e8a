"""
Channel history module.

Keeps a bounded, in-memory message log per channel.
"""

from collections import deque
from typing import Deque, Dict, Iterable, Tuple

from common.constants import MAX_HISTORY
from common.protocol_definitions import ChatMessage


class ChannelHistoryStore:
    """Bounded per-channel message history (oldest evicted first)."""

    def __init__(self, max_history: int = MAX_HISTORY, channels: Iterable[str] = ()):
        self.max_history = max_history
        self._channels: Dict[str, Deque[ChatMessage]] = {}
        for channel in channels:
            self._channel(channel)

    def _channel(self, channel: str) -> Deque[ChatMessage]:
        history = self._channels.get(channel)
        if history is None:
            history = deque(maxlen=self.max_history)
            self._channels[channel] = history
        return history

    def append(self, channel: str, message: ChatMessage):
        """Append a message; the deque drops the oldest entry past capacity."""
        self._channel(channel).append(message)

    def get(self, channel: str) -> Tuple[ChatMessage, ...]:
        """Return a snapshot of the channel's history, oldest first.

        Unknown channels yield an empty tuple and are created lazily.
        """
        return tuple(self._channel(channel))

    def channels(self) -> Tuple[str, ...]:
        return tuple(self._channels)
