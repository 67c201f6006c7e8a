"""
Chat module for server-side messaging functionality.

Handles:
- Session tracking and identity binding
- Per-channel message history
- User presence and typing indicators
- Chat relay and broadcasting
"""
