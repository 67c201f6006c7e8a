"""
Server configuration module.

This module handles server-side configuration settings.
"""

import os

from common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, DEFAULT_INVITE_CODE, INVITE_CODE_ENV,
    USERS_FILE, LOG_DIR, MAX_HISTORY, DEFAULT_CHANNEL, SEEDED_CHANNELS, MAX_LINE_SIZE
)


def default_invite_code() -> str:
    """Invite code from the environment, falling back to the built-in one."""
    return os.environ.get(INVITE_CODE_ENV) or DEFAULT_INVITE_CODE


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 users_file: str = USERS_FILE, invite_code: str = None, logs_dir: str = LOG_DIR):
        self.host = host
        self.port = port
        self.users_file = users_file
        self.invite_code = invite_code if invite_code is not None else default_invite_code()

        # Logging configuration
        self.logs_dir = logs_dir

        # Chat settings
        self.max_history = MAX_HISTORY
        self.default_channel = DEFAULT_CHANNEL
        self.seeded_channels = SEEDED_CHANNELS

        # Connection settings
        self.max_line_size = MAX_LINE_SIZE
