"""Error types for the relay core."""


class RelayError(Exception):
    """Base exception for relay errors."""


class WriteError(RelayError):
    """Raised when a message cannot be written to a client.

    The client transport is closed or the session was cancelled. The
    session is torn down; the write is never retried or buffered.
    """

    def __init__(self, message: str, session_id: str | None = None) -> None:
        """Initialize the write error.

        Args:
            message: Human-readable error message.
            session_id: Session whose sink rejected the write.
        """
        super().__init__(message)
        self.message = message
        self.session_id = session_id
