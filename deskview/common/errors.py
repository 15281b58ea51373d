"""
Exceptions raised by the streaming server.

Each class also derives from the builtin exception that describes the same
failure, so callers that only know about `OSError` or `ConnectionError` still
catch them.
"""


class DeskviewError(Exception):
    """Base exception for all deskview errors."""


class BindError(DeskviewError, OSError):
    """Raised when the listening socket cannot be bound."""

    def __init__(self, port: int, reason: str) -> None:
        """
        Initialize BindError.

        Args:
            port: Port the server tried to bind
            reason: Underlying socket error text
        """
        self.port = port
        super().__init__(f"Unable to bind port {port}: {reason}")


class AlreadyRunningError(DeskviewError, RuntimeError):
    """Raised when starting a server that is not stopped."""


class AcceptError(DeskviewError, OSError):
    """Raised when the listener fails for any reason other than shutdown."""


class EncodeError(DeskviewError, ValueError):
    """Raised when a frame cannot be encoded; the tick is skipped."""


class ClientIOError(DeskviewError, ConnectionError):
    """Raised when writing to one client fails; only that session ends."""

    def __init__(self, address: tuple[str, int], reason: str) -> None:
        """
        Initialize ClientIOError.

        Args:
            address: Remote address of the failed client
            reason: Underlying socket error text
        """
        self.address = address
        super().__init__(f"Client {address[0]}:{address[1]} dropped: {reason}")
