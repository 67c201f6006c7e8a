"""
Server package for the Relay group messaging system.

This package contains all server-side functionality including:
- Connection handling and event dispatch
- Authentication and the user directory
- Channel history, presence and typing indicators
- Configuration and utilities
"""
