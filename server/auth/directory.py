"""
User directory module.

A flat, JSON-file backed store of identities: name -> {hash, rank}.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Optional, Set, Tuple

from passlib.context import CryptContext

from common.constants import ADMIN_IDENTITY, Ranks, USERS_FILE
from common.errors import DirectoryIOError, NameTaken
from server.chat.sessions import Identity
from server.utils.logger import logger

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class UserDirectory:
    """Keyed identity store with hashing helpers and file persistence."""

    def __init__(self, path: str = USERS_FILE, crypt_context: CryptContext = None,
                 admin_identity: str = ADMIN_IDENTITY):
        self.path = Path(path)
        self.crypt_context = crypt_context or pwd_context
        self.admin_identity = admin_identity
        self._identities: Dict[str, Identity] = {}
        self._reserved: Set[str] = set()  # names with a registration in flight

    # Loading / persistence

    def load(self):
        """Load identities from disk, seeding the administrator if empty."""
        try:
            self._identities = self._read()
        except FileNotFoundError:
            logger.info(f"No user directory at {self.path}, starting empty")
            self._identities = {}
        except DirectoryIOError as e:
            logger.log_error("user directory load", e)
            self._identities = {}

        if not self._identities:
            self.seed()
        logger.info(f"Loaded {len(self._identities)} identities from {self.path}")
        return self

    def _read(self) -> Dict[str, Identity]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except FileNotFoundError:
            raise
        except (OSError, json.JSONDecodeError) as e:
            raise DirectoryIOError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(document, dict):
            raise DirectoryIOError(f"Malformed user directory {self.path}: expected an object")

        identities = {}
        for name, record in document.items():
            if not isinstance(record, dict):
                logger.warning(f"Skipping malformed directory record for '{name}'")
                continue
            rank = record.get('rank', Ranks.DEFAULT)
            if rank not in Ranks.ALL:
                logger.warning(f"Unknown rank '{rank}' for '{name}', using {Ranks.DEFAULT}")
                rank = Ranks.DEFAULT
            identities[name] = Identity(name=name, rank=rank, password_hash=record.get('hash'))
        return identities

    def seed(self):
        """Insert the administrator identity (no password) and persist."""
        self._identities[self.admin_identity] = Identity(name=self.admin_identity, rank=Ranks.ARCHITECT)
        logger.info(f"Seeded administrator identity '{self.admin_identity}'")
        self.persist()

    def to_document(self) -> Dict[str, dict]:
        return {
            name: {'hash': identity.password_hash, 'rank': identity.rank}
            for name, identity in self._identities.items()
        }

    def persist(self) -> bool:
        """Flush the directory to disk.

        I/O failures are logged and reported as False; the in-memory state
        stays authoritative for the running process.
        """
        try:
            directory = self.path.parent
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix='.users-', suffix='.json', dir=str(directory))
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(self.to_document(), f, indent=4)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            logger.log_error("user directory persist", DirectoryIOError(f"Cannot write {self.path}: {e}"))
            return False
        return True

    # Lookup / mutation

    def exists(self, name: str) -> bool:
        return name in self._identities

    def get(self, name: str) -> Optional[Identity]:
        return self._identities.get(name)

    def items(self) -> Iterator[Tuple[str, Identity]]:
        return iter(list(self._identities.items()))

    def reserve(self, name: str):
        """Claim a name for an in-flight registration.

        Raises NameTaken if the name exists or is already claimed.
        """
        if name in self._identities or name in self._reserved:
            raise NameTaken()
        self._reserved.add(name)

    def release(self, name: str):
        self._reserved.discard(name)

    def is_reserved(self, name: str) -> bool:
        return name in self._reserved

    def insert(self, name: str, password_hash: Optional[str], rank: str = Ranks.DEFAULT) -> Identity:
        """Add a new identity. Existing identities are never overwritten."""
        if name in self._identities:
            raise NameTaken()
        if rank not in Ranks.ALL:
            raise ValueError(f"Unknown rank: {rank}")
        identity = Identity(name=name, rank=rank, password_hash=password_hash)
        self._identities[name] = identity
        return identity

    # Credentials

    async def hash_secret(self, plain: str) -> str:
        """Derive a salted hash in a worker thread."""
        return await asyncio.to_thread(self.crypt_context.hash, plain)

    async def compare_secret(self, plain: str, password_hash: Optional[str]) -> bool:
        """Check a password against a stored hash in a worker thread."""
        if not password_hash:
            return False
        try:
            return await asyncio.to_thread(self.crypt_context.verify, plain, password_hash)
        except (ValueError, TypeError) as e:
            logger.warning(f"Unverifiable credential hash: {e}")
            return False

    def __len__(self):
        return len(self._identities)
