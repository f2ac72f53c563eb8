"""Live class aggregate schema."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from liveclass.utils.clock import ensure_utc

from .live_class_state import LiveClassStatus, Provider, Visibility


class LiveClassSettings(BaseModel):
    """Classroom toggles passed through to the provider and the client UI."""

    allow_chat: bool = True
    allow_recording: bool = False
    allow_screen_share: bool = True
    allow_hand_raise: bool = True


class ProviderConfig(BaseModel):
    """Provider-specific rendezvous data.

    `room_id` is used by native rooms, `url` by link providers.
    """

    room_id: str | None = None
    url: str | None = Field(default=None, description="Stream or meeting URL for link providers")


class RosterEntry(BaseModel):
    user_id: str
    joined_at: datetime
    left_at: datetime | None = None

    @field_validator("joined_at", "left_at", mode="after")
    @classmethod
    def _to_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else v

    @property
    def is_active(self) -> bool:
        return self.left_at is None


class LiveClass(BaseModel):
    """Live class aggregate root."""

    live_class_id: str
    course_id: str
    instructor_id: str

    title: str
    description: str | None = None

    # Scheduling
    scheduled_at: datetime
    duration_minutes: int
    max_participants: int
    visibility: Visibility = Visibility.PUBLIC

    settings: LiveClassSettings = Field(default_factory=LiveClassSettings)

    # Provider configuration
    provider: Provider = Provider.NATIVE_ROOM
    provider_config: ProviderConfig = Field(default_factory=ProviderConfig)

    status: LiveClassStatus = LiveClassStatus.SCHEDULED
    roster: list[RosterEntry] = Field(default_factory=list)

    # Timestamps
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    cancelled_at: datetime | None = None

    version: int = 1

    @field_validator(
        "scheduled_at",
        "created_at",
        "updated_at",
        "started_at",
        "ended_at",
        "cancelled_at",
        mode="after",
    )
    @classmethod
    def _to_utc(cls, v: datetime | None) -> datetime | None:
        # Mongo hands back naive UTC datetimes
        return ensure_utc(v) if v is not None else v

    def active_entries(self) -> list[RosterEntry]:
        return [entry for entry in self.roster if entry.is_active]

    def active_count(self) -> int:
        return len(self.active_entries())

    def find_entry(self, user_id: str) -> RosterEntry | None:
        return next((entry for entry in self.roster if entry.user_id == user_id), None)

    def is_active_participant(self, user_id: str) -> bool:
        entry = self.find_entry(user_id)
        return entry is not None and entry.is_active


__all__ = ["LiveClass", "LiveClassSettings", "ProviderConfig", "RosterEntry"]
