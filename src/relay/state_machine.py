"""State machine for the lifecycle of a streaming session."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class SessionState(str, Enum):
    """State of a client session.

    - SESSION_PENDING: Connection accepted, nothing sent yet
    - SESSION_INITIALIZING: Sending the connected event and initial batch
    - SESSION_STREAMING: Periodic delta loop running
    - SESSION_CLOSED: Cancelled, disconnected or shut down
    """

    SESSION_PENDING = "SESSION_PENDING"
    SESSION_INITIALIZING = "SESSION_INITIALIZING"
    SESSION_STREAMING = "SESSION_STREAMING"
    SESSION_CLOSED = "SESSION_CLOSED"


_VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.SESSION_PENDING: {
        SessionState.SESSION_INITIALIZING,
        SessionState.SESSION_CLOSED,
    },
    SessionState.SESSION_INITIALIZING: {
        SessionState.SESSION_STREAMING,
        SessionState.SESSION_CLOSED,
    },
    SessionState.SESSION_STREAMING: {SessionState.SESSION_CLOSED},
    SessionState.SESSION_CLOSED: set(),  # Terminal state
}


class SessionStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        session_id: str,
        from_state: SessionState,
        to_state: SessionState,
    ) -> None:
        """Initialize the transition error.

        Args:
            session_id: Identifier of the session.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.session_id = session_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for session '{session_id}': "
            f"{from_state.value} -> {to_state.value}"
        )


class SessionStateMachine:
    """Manages state transitions for a session.

    Enforces valid transitions and logs all state changes.
    """

    def __init__(
        self,
        session_id: str,
        initial_state: SessionState = SessionState.SESSION_PENDING,
    ) -> None:
        """Initialize the state machine.

        Args:
            session_id: Identifier for the session.
            initial_state: Starting state.
        """
        self._session_id = session_id
        self._state = initial_state
        self._log = logger.bind(component="session", session_id=session_id)

    @property
    def state(self) -> SessionState:
        """Get the current state."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state == SessionState.SESSION_CLOSED

    def can_transition_to(self, target: SessionState) -> bool:
        """Check if a transition to the target state is valid.

        Args:
            target: The target state.

        Returns:
            True if the transition is valid.
        """
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: SessionState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            SessionStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "illegal_state_transition",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise SessionStateTransitionError(
                session_id=self._session_id,
                from_state=self._state,
                to_state=target,
            )

        old_state = self._state
        self._state = target

        self._log.info(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )

    def to_initializing(self) -> None:
        """Transition to SESSION_INITIALIZING state."""
        self.transition_to(SessionState.SESSION_INITIALIZING)

    def to_streaming(self) -> None:
        """Transition to SESSION_STREAMING state."""
        self.transition_to(SessionState.SESSION_STREAMING)

    def to_closed(self) -> None:
        """Transition to SESSION_CLOSED state."""
        self.transition_to(SessionState.SESSION_CLOSED)
