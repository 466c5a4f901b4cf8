"""Player control exceptions for error handling."""

from typing import Optional


class PlayerError(Exception):
    """Base exception for player control operations."""

    pass


class ChannelUnavailable(PlayerError):
    """Raised when no player is listening on the control socket."""

    pass


class ProtocolError(PlayerError):
    """Raised when a response cannot be understood (bad JSON, timeout)."""

    pass


class CommandError(PlayerError):
    """Raised when the player reports a failure for a command."""

    def __init__(self, message: str, property_name: Optional[str] = None):
        self.message = message
        self.property_name = property_name
        if property_name:
            super().__init__(f"{property_name}: {message}")
        else:
            super().__init__(message)


class MissingDataError(PlayerError):
    """Raised when a successful get_property response carries no data."""

    pass


class ProcessSpawnError(PlayerError):
    """Raised when the operating system refuses to start the player."""

    pass
