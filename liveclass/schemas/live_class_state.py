"""Common enums used across schemas."""

from enum import Enum


class LiveClassStatus(str, Enum):
    """Live class lifecycle states.

    State Transition Flow:

    SCHEDULED → LIVE → ENDED
        ↓
    CANCELLED

    State Descriptions:
    - SCHEDULED: Created by the instructor, waiting for its start. Set by create_live_class().
    - LIVE: Instructor started the class. Set by start_live_class().
    - ENDED: Instructor ended the class; every participant is marked as left. Set by end_live_class().
    - CANCELLED: Called off before it started. Set by cancel_live_class().

    Terminal states (no further transitions): ENDED, CANCELLED
    """

    SCHEDULED = "scheduled"
    LIVE = "live"
    ENDED = "ended"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def joinable_states(cls) -> list["LiveClassStatus"]:
        """States in which participants may join."""
        return [LiveClassStatus.SCHEDULED, LiveClassStatus.LIVE]


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"

    def __str__(self) -> str:
        return self.value


class Provider(str, Enum):
    """Streaming backend a live class rendezvous with."""

    NATIVE_ROOM = "native-room"
    YOUTUBE = "youtube"
    MEET = "meet"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value

    @property
    def is_link(self) -> bool:
        """Link providers hand out the stored URL instead of minting a token."""
        return self is not Provider.NATIVE_ROOM


__all__ = ["LiveClassStatus", "Provider", "Visibility"]
