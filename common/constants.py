"""
Shared constants for the Relay group messaging server.

This module contains all constants used across the server components.
"""

# Network Configuration
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 9000

# Framing
MAX_LINE_SIZE = 1024 * 1024  # 1MB per JSON line

# Channels
MAX_HISTORY = 100
DEFAULT_CHANNEL = 'general'
SEEDED_CHANNELS = ('general', 'operations', 'intel-drops', 'proof-of-work')
MAX_CHANNEL_NAME = 64

# Identities
MAX_ALIAS_LENGTH = 32
ADMIN_IDENTITY = 'Architect'

# Invite code required for registration (overridable via RELAY_INVITE_CODE)
DEFAULT_INVITE_CODE = 'syndicate'
INVITE_CODE_ENV = 'RELAY_INVITE_CODE'

# Server-side message stamp, e.g. "03:45 PM"
TIMESTAMP_FORMAT = '%I:%M %p'

# Storage
USERS_FILE = 'users.json'

# Logging
LOG_DIR = 'logs'
CHAT_LOG_FILE = 'chat_history.log'


class Ranks:
    ARCHITECT = 'architect'
    ENFORCER = 'enforcer'
    SOLDIER = 'soldier'

    ALL = (ARCHITECT, ENFORCER, SOLDIER)
    DEFAULT = SOLDIER


# Message Types
class MessageTypes:
    # Client to Server
    REGISTER = 'register'
    LOGIN = 'login'
    JOINED = 'joined'
    SWITCH_CHANNEL = 'switchChannel'
    CHAT_MESSAGE = 'chatMessage'
    TYPING_START = 'typingStart'
    TYPING_STOP = 'typingStop'

    # Server to Client
    REGISTER_ERROR = 'registerError'
    REGISTER_SUCCESS = 'registerSuccess'
    LOGIN_ERROR = 'loginError'
    LOGIN_SUCCESS = 'loginSuccess'
    CHANNEL_HISTORY = 'channelHistory'
    TYPING_BROADCAST = 'typingBroadcast'
    SYSTEM_UPDATE = 'systemUpdate'
    ERROR = 'error'
