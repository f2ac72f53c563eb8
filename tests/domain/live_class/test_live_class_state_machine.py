"""Tests for LiveClassStateMachine state transitions."""

import pytest

from liveclass.domain.live_class.live_class_state_machine import LiveClassStateMachine
from liveclass.schemas import LiveClassStatus

ALLOWED = {
    (LiveClassStatus.SCHEDULED, LiveClassStatus.LIVE),
    (LiveClassStatus.SCHEDULED, LiveClassStatus.CANCELLED),
    (LiveClassStatus.LIVE, LiveClassStatus.ENDED),
}


class TestCanTransition:
    """Tests for LiveClassStateMachine.can_transition method."""

    @pytest.mark.parametrize("current", list(LiveClassStatus))
    @pytest.mark.parametrize("new", list(LiveClassStatus))
    def test_only_forward_paths_are_allowed(self, current: LiveClassStatus, new: LiveClassStatus):
        """Only scheduled->live->ended and scheduled->cancelled are valid."""
        assert LiveClassStateMachine.can_transition(current, new) is ((current, new) in ALLOWED)

    def test_live_to_cancelled_invalid(self):
        """A live class must be ended, not cancelled."""
        assert (
            LiveClassStateMachine.can_transition(LiveClassStatus.LIVE, LiveClassStatus.CANCELLED)
            is False
        )

    def test_scheduled_to_ended_invalid(self):
        """A class cannot end without going live first."""
        assert (
            LiveClassStateMachine.can_transition(LiveClassStatus.SCHEDULED, LiveClassStatus.ENDED)
            is False
        )


class TestIsTerminal:
    def test_ended_and_cancelled_are_terminal(self):
        assert LiveClassStateMachine.is_terminal(LiveClassStatus.ENDED) is True
        assert LiveClassStateMachine.is_terminal(LiveClassStatus.CANCELLED) is True

    def test_scheduled_and_live_are_not_terminal(self):
        assert LiveClassStateMachine.is_terminal(LiveClassStatus.SCHEDULED) is False
        assert LiveClassStateMachine.is_terminal(LiveClassStatus.LIVE) is False


class TestValidTransitionsAndSources:
    def test_get_valid_transitions_from_scheduled(self):
        assert LiveClassStateMachine.get_valid_transitions(LiveClassStatus.SCHEDULED) == {
            LiveClassStatus.LIVE,
            LiveClassStatus.CANCELLED,
        }

    def test_terminal_states_have_no_transitions(self):
        for state in LiveClassStateMachine.TERMINAL_STATES:
            assert LiveClassStateMachine.get_valid_transitions(state) == set()

    def test_get_valid_sources_for_ended(self):
        assert LiveClassStateMachine.get_valid_sources(LiveClassStatus.ENDED) == {
            LiveClassStatus.LIVE
        }

    def test_scheduled_has_no_sources(self):
        """Nothing transitions back into scheduled."""
        assert LiveClassStateMachine.get_valid_sources(LiveClassStatus.SCHEDULED) == set()
