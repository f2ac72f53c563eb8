"""Tests for CapacityGuard."""

from datetime import datetime, timedelta, timezone

import pytest

from liveclass.domain.live_class._capacity import CapacityGuard
from liveclass.schemas import LiveClass, RosterEntry
from liveclass.utils.app_errors import CapacityExceededError, ValidationError

NOW = datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)


def _live_class(max_participants: int, active: list[str], left: list[str] | None = None) -> LiveClass:
    roster = [RosterEntry(user_id=u, joined_at=NOW) for u in active]
    roster += [RosterEntry(user_id=u, joined_at=NOW, left_at=NOW) for u in left or []]
    return LiveClass(
        live_class_id="lc_capacity",
        course_id="course_1",
        instructor_id="instructor_a",
        title="Capacity",
        scheduled_at=NOW + timedelta(hours=1),
        duration_minutes=60,
        max_participants=max_participants,
        roster=roster,
        created_at=NOW,
        updated_at=NOW,
    )


class TestValidateLimit:
    @pytest.mark.parametrize("value", [0, -1, 201])
    def test_out_of_bounds(self, value: int):
        with pytest.raises(ValidationError):
            CapacityGuard(upper_bound=200).validate_limit(value)

    @pytest.mark.parametrize("value", [1, 50, 200])
    def test_within_bounds(self, value: int):
        CapacityGuard(upper_bound=200).validate_limit(value)

    def test_below_current_roster(self):
        """Shrinking below the number of people already in is rejected."""
        with pytest.raises(ValidationError):
            CapacityGuard().validate_limit(2, active_count=3)


class TestHeadroom:
    def test_full_class_rejects_newcomer(self):
        guard = CapacityGuard()
        lc = _live_class(2, active=["u1", "u2"])

        assert guard.has_headroom(lc, "u3") is False
        with pytest.raises(CapacityExceededError):
            guard.ensure_headroom(lc, "u3")

    def test_active_participant_keeps_seat(self):
        """Re-joining does not consume a new slot."""
        lc = _live_class(2, active=["u1", "u2"])
        assert CapacityGuard().has_headroom(lc, "u1") is True

    def test_left_entries_do_not_count(self):
        lc = _live_class(2, active=["u1"], left=["u2", "u3"])
        assert CapacityGuard().has_headroom(lc, "u4") is True
