#!/usr/bin/env python3
"""
Relay Group Messaging Server - Server Core

Accepts TCP connections, frames line-delimited JSON, validates each line into
an event and hands it to the chat server.
"""

import asyncio
import json

from common.constants import MessageTypes
from common.errors import InvalidEvent
from common.events import parse_event
from common.protocol_definitions import create_error_message
from server.auth.directory import UserDirectory
from server.chat.chat_server import ChatServer
from server.utils.config import ServerConfig
from server.utils.logger import logger


class RelayServer:
    """Main server class that owns the listener and the chat server."""

    def __init__(self, config: ServerConfig = None, directory: UserDirectory = None):
        self.config = config or ServerConfig()
        logger.set_logs_dir(self.config.logs_dir)

        self.directory = directory or UserDirectory(self.config.users_file).load()
        self.chat_server = ChatServer(
            self.directory,
            invite_code=self.config.invite_code,
            max_history=self.config.max_history,
            default_channel=self.config.default_channel,
            channels=self.config.seeded_channels
        )
        self.server = None

    async def dispatch(self, uid: int, event):
        """Route a validated event to its handler."""
        msg_type = event.type
        logger.debug(f"Received from uid={uid}: {msg_type}")

        if msg_type == MessageTypes.REGISTER:
            await self.chat_server.handle_register(uid, event)
        elif msg_type == MessageTypes.LOGIN:
            await self.chat_server.handle_login(uid, event)
        elif msg_type == MessageTypes.JOINED:
            await self.chat_server.handle_joined(uid)
        elif msg_type == MessageTypes.SWITCH_CHANNEL:
            await self.chat_server.handle_switch_channel(uid, event)
        elif msg_type == MessageTypes.CHAT_MESSAGE:
            await self.chat_server.handle_chat(uid, event)
        elif msg_type == MessageTypes.TYPING_START:
            await self.chat_server.handle_typing_start(uid, event)
        elif msg_type == MessageTypes.TYPING_STOP:
            await self.chat_server.handle_typing_stop(uid)
        else:
            logger.warning(f"Unhandled event type '{msg_type}' from uid={uid}")

    async def handle_line(self, uid: int, data: bytes):
        """Decode, validate and dispatch a single line from a connection."""
        line = data.rstrip(b'\n')
        if len(line) > self.config.max_line_size:
            logger.warning(f"Message too large from uid={uid}: {len(line)} bytes")
            await self.chat_server.send_message(uid, create_error_message("Message too large"))
            return

        text = line.decode('utf-8', errors='replace').strip()
        if not text:
            return

        try:
            event = parse_event(json.loads(text))
        except json.JSONDecodeError as e:
            logger.error(f"Malformed JSON from uid={uid}: {e}")
            await self.chat_server.send_message(uid, create_error_message("Malformed JSON"))
            return
        except InvalidEvent as e:
            logger.warning(f"Rejected event from uid={uid}: {e.message}")
            await self.chat_server.send_message(uid, create_error_message(e.message))
            return

        await self.dispatch(uid, event)

    async def skip_line(self, reader: asyncio.StreamReader) -> bool:
        """Discard input up to and including the next newline.

        Returns False if the stream ended first.
        """
        while True:
            try:
                await reader.readuntil(b'\n')
                return True
            except asyncio.LimitOverrunError as e:
                await reader.readexactly(e.consumed)
            except asyncio.IncompleteReadError:
                return False

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle individual client connection."""
        addr = writer.get_extra_info('peername')
        session = self.chat_server.connect(writer)
        uid = session.uid

        logger.log_connection(addr, uid)

        try:
            while not session.closed:
                try:
                    data = await reader.readuntil(b'\n')
                except asyncio.IncompleteReadError as e:
                    # EOF; a final unterminated line is still handled
                    data = e.partial
                except asyncio.LimitOverrunError:
                    logger.warning(f"Message too large from uid={uid}")
                    await self.chat_server.send_message(uid, create_error_message("Message too large"))
                    if not await self.skip_line(reader):
                        break
                    continue
                if not data:
                    break

                try:
                    await self.handle_line(uid, data)
                except Exception as e:
                    logger.error(f"Error processing message from uid={uid}: {e}")

        except asyncio.CancelledError:
            logger.info(f"Connection cancelled for uid={uid}")
            raise
        except Exception as e:
            logger.error(f"Socket error for uid={uid}: {e}")
        finally:
            await self.chat_server.disconnect_client(uid)

    async def start(self):
        """Start the server."""
        self.server = await asyncio.start_server(
            self.handle_client,
            self.config.host,
            self.config.port,
            limit=self.config.max_line_size
        )

        addr = ', '.join(str(sock.getsockname()) for sock in self.server.sockets)
        logger.info(f"Server listening on {addr}")

        async with self.server:
            await self.server.serve_forever()

    def stop(self):
        if self.server is not None:
            self.server.close()
