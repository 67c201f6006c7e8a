"""
Error taxonomy for the Relay group messaging server.

Authentication failures carry the user-facing text that is sent back to the
originating connection, so they never reveal more than the message says.
"""


class RelayError(Exception):
    """Base class for all server errors."""

    message = "Request failed."

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidInvite(RelayError):
    message = "Invalid invite code."


class NameTaken(RelayError):
    message = "Alias already taken."


class InvalidCredentials(RelayError):
    message = "Invalid alias or password."


class AlreadyAuthenticated(RelayError):
    message = "Session already authenticated."


class UnauthenticatedAction(RelayError):
    message = "Action requires an authenticated session."


class DirectoryIOError(RelayError):
    message = "User directory could not be read or written."


class InvalidEvent(RelayError):
    message = "Invalid event."
