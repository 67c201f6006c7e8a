"""
Session registry module.

Binds each live connection to its writer and, once authenticated, to an
identity.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Identity:
    """A registered account as stored in the user directory."""
    name: str
    rank: str
    password_hash: Optional[str] = None

    @property
    def can_authenticate(self) -> bool:
        return self.password_hash is not None


@dataclass
class Session:
    """Runtime state of one live connection."""
    uid: int
    writer: asyncio.StreamWriter
    identity: Optional[Identity] = None
    joined: bool = False
    closed: bool = False

    @property
    def authenticated(self) -> bool:
        return self.identity is not None

    @property
    def name(self) -> Optional[str]:
        return self.identity.name if self.identity else None


class SessionRegistry:
    """All live sessions, keyed by connection id."""

    def __init__(self):
        self._sessions: Dict[int, Session] = {}
        self.next_uid = 1

    def get_next_uid(self) -> int:
        """Get the next available connection id."""
        uid = self.next_uid
        self.next_uid += 1
        return uid

    def open(self, writer: asyncio.StreamWriter) -> Session:
        """Create an anonymous session for a new connection."""
        session = Session(uid=self.get_next_uid(), writer=writer)
        self._sessions[session.uid] = session
        return session

    def get(self, uid: int) -> Optional[Session]:
        return self._sessions.get(uid)

    def is_open(self, uid: int) -> bool:
        session = self._sessions.get(uid)
        return session is not None and not session.closed

    def bind(self, uid: int, identity: Identity) -> Session:
        """Attach an identity to an open, anonymous session.

        A session's identity is immutable once set.
        """
        session = self._sessions.get(uid)
        if session is None or session.closed:
            raise KeyError(f"No open session for uid={uid}")
        if session.identity is not None:
            raise ValueError(f"Session uid={uid} is already bound to {session.identity.name!r}")
        session.identity = Identity(name=identity.name, rank=identity.rank)
        return session

    def close(self, uid: int) -> Optional[Session]:
        """Remove a session and mark it closed. Idempotent."""
        session = self._sessions.pop(uid, None)
        if session is not None:
            session.closed = True
        return session

    def targets(self, exclude_uid: Optional[int] = None) -> List[Session]:
        """Open sessions to deliver to, optionally excluding one connection."""
        return [
            session for uid, session in self._sessions.items()
            if uid != exclude_uid and not session.closed
        ]
