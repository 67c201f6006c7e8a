"""
Presence tracking module.

Tracks which identities are currently bound to at least one live connection.
"""

from typing import Dict, List, Optional, TYPE_CHECKING

from common.constants import ADMIN_IDENTITY
from common.protocol_definitions import RosterEntry

if TYPE_CHECKING:
    from server.auth.directory import UserDirectory


class PresenceTracker:
    """Reference-counted set of online identities.

    Each bound connection counts once, so an identity with two open sessions
    stays online until both have disconnected.
    """

    def __init__(self, admin_identity: str = ADMIN_IDENTITY):
        self.admin_identity = admin_identity
        self._ranks: Dict[str, str] = {}  # name -> rank
        self._sessions: Dict[str, int] = {}  # name -> live session count

    def mark_online(self, name: str, rank: str):
        """Count one more session for name and record its current rank."""
        self._ranks[name] = rank
        self._sessions[name] = self._sessions.get(name, 0) + 1

    def mark_offline(self, name: str) -> bool:
        """Release one session for name.

        Returns True when the identity went fully offline.
        """
        count = self._sessions.get(name)
        if count is None:
            return False
        if count > 1:
            self._sessions[name] = count - 1
            return False
        del self._sessions[name]
        del self._ranks[name]
        return True

    def is_online(self, name: str) -> bool:
        return name in self._sessions

    def session_count(self, name: str) -> int:
        return self._sessions.get(name, 0)

    def online(self) -> Dict[str, str]:
        """Return a copy of the online name -> rank mapping."""
        return dict(self._ranks)

    def sort_key(self, name: str):
        # Administrator first, everyone else by case-sensitive name
        return (name != self.admin_identity, name)

    def snapshot(self, directory: Optional["UserDirectory"] = None) -> List[RosterEntry]:
        """Build the full roster annotated with online flags.

        With a directory, every known identity is listed; without one, only
        the online identities are.
        """
        if directory is None:
            ranks = dict(self._ranks)
        else:
            ranks = {name: identity.rank for name, identity in directory.items()}
            for name, rank in self._ranks.items():
                ranks.setdefault(name, rank)

        return [
            RosterEntry(alias=name, rank=ranks[name], online=self.is_online(name))
            for name in sorted(ranks, key=self.sort_key)
        ]

    def __len__(self):
        return len(self._sessions)
