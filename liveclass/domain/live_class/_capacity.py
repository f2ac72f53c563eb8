"""Roster headroom checks."""

from liveclass.schemas import LiveClass
from liveclass.utils.app_errors import CapacityExceededError, ValidationError


class CapacityGuard:
    """Bounds on max_participants and on the active roster size."""

    def __init__(self, upper_bound: int = 200):
        self.upper_bound = upper_bound

    def validate_limit(self, max_participants: int, active_count: int = 0) -> None:
        """Check a requested max_participants against the bounds and the current roster."""
        if not 1 <= max_participants <= self.upper_bound:
            raise ValidationError(
                f"max_participants must be between 1 and {self.upper_bound}, got {max_participants}"
            )
        if max_participants < active_count:
            raise ValidationError(
                f"max_participants ({max_participants}) is below the "
                f"{active_count} participants currently in the class"
            )

    def has_headroom(self, live_class: LiveClass, user_id: str) -> bool:
        # A participant who is already in does not take a second seat
        if live_class.is_active_participant(user_id):
            return True
        return live_class.active_count() < live_class.max_participants

    def ensure_headroom(self, live_class: LiveClass, user_id: str) -> None:
        if not self.has_headroom(live_class, user_id):
            raise CapacityExceededError(
                f"Live class {live_class.live_class_id} is full "
                f"({live_class.max_participants} participants)"
            )
