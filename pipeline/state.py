"""Subscriber pipeline state management.

This module provides the PipelineState enum and PipelineStateMachine for
tracking the subscriber lifecycle with valid transitions.
"""

import threading
from enum import Enum, auto
from typing import List, Optional, Set


class PipelineState(Enum):
    """Subscriber lifecycle states.

    State diagram:
        INIT -> CONNECTED -> SUBSCRIBED -> DRAINING -> CLOSED
             -> FAILED    -> FAILED
    """

    INIT = auto()        # Process started, not connected
    CONNECTED = auto()   # Connect acknowledged
    SUBSCRIBED = auto()  # Subscription acknowledged, messages flowing
    DRAINING = auto()    # Shutdown signal received, pipeline quiescing
    CLOSED = auto()      # Workers joined (terminal state)
    FAILED = auto()      # Fatal error before SUBSCRIBED (terminal state)

    def __str__(self) -> str:
        """Return lowercase state name."""
        return self.name.lower()


class PipelineStateMachine:
    """Thread-safe pipeline state machine with valid transition enforcement.

    Valid transitions:
        INIT -> CONNECTED, FAILED
        CONNECTED -> SUBSCRIBED, FAILED
        SUBSCRIBED -> DRAINING
        DRAINING -> CLOSED
        CLOSED, FAILED -> (none, terminal states)

    Example:
        >>> sm = PipelineStateMachine()
        >>> sm.transition(PipelineState.CONNECTED)
        True
        >>> sm.transition(PipelineState.DRAINING)
        False
        >>> sm.state
        <PipelineState.CONNECTED: 2>
    """

    VALID_TRANSITIONS: dict[PipelineState, Set[PipelineState]] = {
        PipelineState.INIT: {PipelineState.CONNECTED, PipelineState.FAILED},
        PipelineState.CONNECTED: {PipelineState.SUBSCRIBED, PipelineState.FAILED},
        PipelineState.SUBSCRIBED: {PipelineState.DRAINING},
        PipelineState.DRAINING: {PipelineState.CLOSED},
        PipelineState.CLOSED: set(),
        PipelineState.FAILED: set(),
    }

    TERMINAL_STATES = frozenset({PipelineState.CLOSED, PipelineState.FAILED})

    def __init__(self, initial_state: PipelineState = PipelineState.INIT):
        """Initialize state machine.

        Args:
            initial_state: Initial state (default INIT).
        """
        self._state = initial_state
        self._lock = threading.Lock()
        self._error_message: Optional[str] = None
        self._history: List[PipelineState] = [initial_state]

    @property
    def state(self) -> PipelineState:
        """Get current state."""
        with self._lock:
            return self._state

    @property
    def error_message(self) -> Optional[str]:
        """Get error message if in FAILED state."""
        with self._lock:
            return self._error_message

    @property
    def history(self) -> List[PipelineState]:
        """States entered so far, in order."""
        with self._lock:
            return list(self._history)

    def can_transition(self, new_state: PipelineState) -> bool:
        """Check if transition to new state is valid.

        Args:
            new_state: Target state.

        Returns:
            True if transition is valid.
        """
        with self._lock:
            return new_state in self.VALID_TRANSITIONS.get(self._state, set())

    def transition(
        self,
        new_state: PipelineState,
        error_message: Optional[str] = None
    ) -> bool:
        """Attempt to transition to a new state.

        Args:
            new_state: Target state.
            error_message: Optional error message (used when transitioning to FAILED).

        Returns:
            True if transition was successful, False otherwise.
        """
        with self._lock:
            if new_state not in self.VALID_TRANSITIONS.get(self._state, set()):
                return False

            self._state = new_state
            self._history.append(new_state)
            if new_state == PipelineState.FAILED:
                self._error_message = error_message

            return True

    def is_subscribed(self) -> bool:
        """Check if messages are flowing."""
        with self._lock:
            return self._state == PipelineState.SUBSCRIBED

    def is_failed(self) -> bool:
        """Check if the pipeline failed during startup."""
        with self._lock:
            return self._state == PipelineState.FAILED

    def is_terminal(self) -> bool:
        """Check if the pipeline is in CLOSED or FAILED."""
        with self._lock:
            return self._state in self.TERMINAL_STATES

    def __repr__(self) -> str:
        """String representation."""
        return f"PipelineStateMachine(state={self._state})"
