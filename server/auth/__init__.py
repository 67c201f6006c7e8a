"""
Authentication module for server-side identity handling.

Handles:
- User directory storage and persistence
- Credential hashing and verification
- Invite-gated registration
"""
