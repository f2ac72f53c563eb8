"""Live class state machine for managing state transitions."""

from liveclass.schemas import LiveClassStatus


class LiveClassStateMachine:
    """State machine for managing live class state transitions.

    State flow with triggers:
    - SCHEDULED (live class created) -> LIVE (instructor started it) | CANCELLED
    - LIVE -> ENDED (instructor ended it)
    - ENDED/CANCELLED are terminal states

    Detailed triggers:
    1. SCHEDULED: Set when the live class is created via create_live_class()
    2. LIVE: Set by start_live_class(); records started_at
    3. ENDED: Set by end_live_class(); records ended_at and closes the roster
    4. CANCELLED: Set by cancel_live_class() before the class ever went live
    """

    # State transition map defining valid state flows
    TRANSITIONS: dict[LiveClassStatus, set[LiveClassStatus]] = {
        LiveClassStatus.SCHEDULED: {
            LiveClassStatus.LIVE,
            LiveClassStatus.CANCELLED,
        },
        LiveClassStatus.LIVE: {LiveClassStatus.ENDED},
        LiveClassStatus.ENDED: set(),
        LiveClassStatus.CANCELLED: set(),
    }

    # Terminal states that cannot transition further
    TERMINAL_STATES: set[LiveClassStatus] = {LiveClassStatus.ENDED, LiveClassStatus.CANCELLED}

    @classmethod
    def can_transition(cls, current: LiveClassStatus, new: LiveClassStatus) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current live class state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, state: LiveClassStatus) -> bool:
        """Check if a state is terminal (no further transitions allowed)."""
        return state in cls.TERMINAL_STATES

    @classmethod
    def get_valid_transitions(cls, state: LiveClassStatus) -> set[LiveClassStatus]:
        """Get all valid transitions from a given state."""
        return cls.TRANSITIONS.get(state, set())

    @classmethod
    def get_valid_sources(cls, target: LiveClassStatus) -> set[LiveClassStatus]:
        """Get all states that can transition to the target state."""
        return {state for state, targets in cls.TRANSITIONS.items() if target in targets}
