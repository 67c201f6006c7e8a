"""
Chat server module.

This module handles server-side chat coordination: authentication, channel
history, presence and typing indicators, and what gets sent to whom.
"""

import asyncio
import json
import secrets
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from common.constants import (
    DEFAULT_CHANNEL, DEFAULT_INVITE_CODE, MAX_HISTORY, SEEDED_CHANNELS, TIMESTAMP_FORMAT, Ranks
)
from common.errors import AlreadyAuthenticated, InvalidCredentials, InvalidInvite, RelayError
from common.events import (
    ChatMessageEvent, LoginEvent, RegisterEvent, SwitchChannelEvent, TypingStartEvent
)
from common.protocol_definitions import (
    ChatMessage, create_channel_history_message, create_chat_message,
    create_login_error_message, create_login_success_message,
    create_register_error_message, create_register_success_message,
    create_system_update_message, create_typing_broadcast_message
)
from server.auth.directory import UserDirectory
from server.chat.history import ChannelHistoryStore
from server.chat.presence import PresenceTracker
from server.chat.sessions import Identity, Session, SessionRegistry
from server.chat.typing_tracker import TypingIndicatorTracker
from server.utils.logger import logger


class ChatServer:
    """Server-side chat coordination.

    Handlers run on a single event loop. The only awaits that happen before
    shared state is mutated are the credential hash/compare calls; every
    outbound message for an event is written to the target streams
    synchronously and only drained afterwards, so all connections see
    broadcasts in the order events were processed.
    """

    def __init__(self, directory: UserDirectory, invite_code: str = DEFAULT_INVITE_CODE,
                 max_history: int = MAX_HISTORY, default_channel: str = DEFAULT_CHANNEL,
                 channels: Iterable[str] = SEEDED_CHANNELS):
        self.directory = directory
        self.invite_code = invite_code
        self.default_channel = default_channel
        self.sessions = SessionRegistry()
        self.history = ChannelHistoryStore(max_history, channels)
        self.presence = PresenceTracker(directory.admin_identity)
        self.typing = TypingIndicatorTracker()

    # Delivery

    def _write(self, message: dict, sessions: Iterable[Session]) -> List[Session]:
        """Queue a JSON line on each session's stream without yielding."""
        msg_data = json.dumps(message).encode('utf-8') + b'\n'
        written = []
        for session in sessions:
            if session.closed:
                continue
            try:
                session.writer.write(msg_data)
                written.append(session)
            except Exception as e:
                logger.error(f"Failed to write to uid={session.uid}: {e}")
                self._abort(session)
        return written

    async def _drain(self, sessions: Iterable[Session]):
        seen = set()
        for session in sessions:
            if session.uid in seen or session.closed:
                continue
            seen.add(session.uid)
            try:
                await session.writer.drain()
            except Exception as e:
                logger.error(f"Failed to deliver to uid={session.uid}: {e}")
                self._abort(session)

    def _abort(self, session: Session):
        # The connection's own read loop sees EOF and runs the disconnect
        session.closed = True
        try:
            session.writer.close()
        except Exception as e:
            logger.debug(f"Error closing writer for uid={session.uid}: {e}")

    async def broadcast(self, message: dict, exclude_uid: Optional[int] = None):
        """Send a JSON message to all open connections except exclude_uid."""
        written = self._write(message, self.sessions.targets(exclude_uid))
        await self._drain(written)
        return [session.uid for session in written]

    async def send_message(self, uid: int, message: dict) -> bool:
        """Send a JSON message to a specific connection."""
        session = self.sessions.get(uid)
        if session is None:
            return False
        written = self._write(message, [session])
        await self._drain(written)
        return bool(written) and not session.closed

    def system_update(self) -> dict:
        return create_system_update_message(self.presence.snapshot(self.directory))

    def typing_update(self) -> dict:
        return create_typing_broadcast_message(self.typing.snapshot())

    @staticmethod
    def timestamp() -> str:
        return datetime.now().strftime(TIMESTAMP_FORMAT)

    # Connections

    def connect(self, writer: asyncio.StreamWriter) -> Session:
        """Register a new anonymous connection."""
        return self.sessions.open(writer)

    def _authenticated_session(self, uid: int, action: str) -> Optional[Session]:
        session = self.sessions.get(uid)
        if session is None or session.closed:
            return None
        if not session.authenticated:
            logger.debug(f"Dropping {action} from unauthenticated uid={uid}")
            return None
        return session

    # Authentication

    async def _fail(self, uid: int, action: str, alias: str, error: RelayError,
                    builder: Callable[[str], dict]):
        logger.log_auth_failure(action, alias, uid, error.message)
        await self.send_message(uid, builder(error.message))

    async def _bind(self, uid: int, identity: Identity, builder: Callable[[str, str], dict]):
        """Bind identity to the connection, mark it online and announce it."""
        session = self.sessions.bind(uid, identity)
        self.presence.mark_online(identity.name, identity.rank)
        written = self._write(builder(identity.name, identity.rank), [session])
        written += self._write(self.system_update(), self.sessions.targets())
        await self._drain(written)

    async def handle_register(self, uid: int, event: RegisterEvent):
        """Process a registration request."""
        session = self.sessions.get(uid)
        if session is None or session.closed:
            return
        alias = event.alias

        try:
            if session.authenticated:
                raise AlreadyAuthenticated()
            if not secrets.compare_digest(event.invite_code.encode('utf-8'), self.invite_code.encode('utf-8')):
                raise InvalidInvite()
            # Name is held from here until the insert, across the hashing await
            self.directory.reserve(alias)
        except RelayError as e:
            await self._fail(uid, "Registration", alias, e, create_register_error_message)
            return

        try:
            password_hash = await self.directory.hash_secret(event.password)
            identity = self.directory.insert(alias, password_hash, Ranks.DEFAULT)
        finally:
            self.directory.release(alias)

        self.directory.persist()
        logger.log_register(identity.name, identity.rank, uid)

        if not self.sessions.is_open(uid):
            logger.info(f"uid={uid} closed before registration of '{alias}' completed")
            return
        if self.sessions.get(uid).authenticated:
            await self._fail(uid, "Registration", alias, AlreadyAuthenticated(), create_register_error_message)
            return
        await self._bind(uid, identity, create_register_success_message)

    async def handle_login(self, uid: int, event: LoginEvent):
        """Process a login request."""
        session = self.sessions.get(uid)
        if session is None or session.closed:
            return
        alias = event.alias

        if session.authenticated:
            await self._fail(uid, "Login", alias, AlreadyAuthenticated(), create_login_error_message)
            return

        identity = self.directory.get(alias)
        if identity is None or not identity.can_authenticate:
            await self._fail(uid, "Login", alias, InvalidCredentials(), create_login_error_message)
            return

        if not await self.directory.compare_secret(event.password, identity.password_hash):
            await self._fail(uid, "Login", alias, InvalidCredentials(), create_login_error_message)
            return

        if not self.sessions.is_open(uid):
            logger.info(f"uid={uid} closed before login of '{alias}' completed")
            return
        if self.sessions.get(uid).authenticated:
            await self._fail(uid, "Login", alias, AlreadyAuthenticated(), create_login_error_message)
            return

        logger.log_login(identity.name, identity.rank, uid)
        await self._bind(uid, identity, create_login_success_message)

    # Channels

    async def handle_joined(self, uid: int):
        """Send the roster and default channel history to a new session."""
        session = self._authenticated_session(uid, "joined")
        if session is None:
            return
        if session.joined:
            logger.debug(f"Ignoring repeated joined from uid={uid}")
            return
        session.joined = True

        history = self.history.get(self.default_channel)
        written = self._write(self.system_update(), [session])
        written += self._write(create_channel_history_message(self.default_channel, history), [session])
        await self._drain(written)

    async def handle_switch_channel(self, uid: int, event: SwitchChannelEvent):
        """Send the requested channel's history to the requester only."""
        session = self._authenticated_session(uid, "switchChannel")
        if session is None:
            return
        logger.debug(f"uid={uid} switched to #{event.channel}")
        history = self.history.get(event.channel)
        await self.send_message(uid, create_channel_history_message(event.channel, history))

    async def handle_chat(self, uid: int, event: ChatMessageEvent):
        """Stamp, store and relay a chat message to everyone but the sender."""
        session = self._authenticated_session(uid, "chatMessage")
        if session is None:
            return
        identity = session.identity

        chat_message = ChatMessage(
            channel=event.channel,
            alias=identity.name,
            rank=identity.rank,
            body=event.body,
            timestamp=self.timestamp()
        )
        self.history.append(event.channel, chat_message)
        logger.log_chat(identity.name, uid, event.channel, event.body)

        await self.broadcast(create_chat_message(chat_message), exclude_uid=uid)

    # Typing indicators

    async def handle_typing_start(self, uid: int, event: TypingStartEvent):
        session = self._authenticated_session(uid, "typingStart")
        if session is None:
            return
        self.typing.set_typing(uid, session.identity.name, event.channel)
        await self.broadcast(self.typing_update(), exclude_uid=uid)

    async def handle_typing_stop(self, uid: int):
        session = self._authenticated_session(uid, "typingStop")
        if session is None:
            return
        if self.typing.clear_typing(uid):
            await self.broadcast(self.typing_update(), exclude_uid=uid)

    # Disconnect

    async def disconnect_client(self, uid: int):
        """Remove a connection and notify the others."""
        session = self.sessions.close(uid)
        if session is None:
            return

        had_typing = self.typing.clear_typing(uid)
        written = []

        if session.authenticated:
            name = session.identity.name
            if self.presence.mark_offline(name):
                logger.info(f"'{name}' is now offline")
            logger.log_disconnect(name, uid)
            written += self._write(self.system_update(), self.sessions.targets())
        else:
            logger.info(f"Anonymous connection uid={uid} disconnected")

        if had_typing:
            written += self._write(self.typing_update(), self.sessions.targets())

        await self._drain(written)

        try:
            session.writer.close()
            await session.writer.wait_closed()
        except Exception as e:
            logger.debug(f"Error closing connection uid={uid}: {e}")

    def online_names(self) -> Dict[str, str]:
        return self.presence.online()
