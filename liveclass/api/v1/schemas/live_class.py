from datetime import datetime

from pydantic import BaseModel, Field, field_serializer

from liveclass.schemas import (
    LiveClassSettings,
    LiveClassStatus,
    Provider,
    ProviderConfig,
    Visibility,
)
from liveclass.utils.clock import ensure_utc


def serialize_utc_datetime(dt: datetime | None) -> str | None:
    """ISO 8601 with an explicit UTC offset, e.g. 2025-12-03T10:30:00+00:00."""
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


class CreateLiveClassIn(BaseModel):
    course_id: str = Field(description="Course the live class belongs to")
    title: str = Field(description="Title of the live class")
    description: str | None = Field(default=None, description="Description of the live class")
    scheduled_at: datetime = Field(description="Start time, at least 30 minutes from now")
    duration_minutes: int = Field(description="One of 30, 60, 90, 120, 180")
    max_participants: int = Field(description="Between 1 and 200")
    visibility: Visibility = Field(default=Visibility.PUBLIC)
    settings: LiveClassSettings = Field(default_factory=LiveClassSettings)
    provider: Provider = Field(default=Provider.NATIVE_ROOM)
    provider_config: ProviderConfig = Field(
        default_factory=ProviderConfig,
        description="room_id for native-room (generated when omitted), url for link providers",
    )


class UpdateLiveClassIn(BaseModel):
    title: str | None = None
    description: str | None = None
    scheduled_at: datetime | None = None
    duration_minutes: int | None = None
    max_participants: int | None = None
    visibility: Visibility | None = None
    settings: LiveClassSettings | None = None


class StartLiveClassIn(BaseModel):
    stream_url: str | None = Field(
        default=None, description="Stream URL for youtube live classes created without one"
    )


class LiveClassOut(BaseModel):
    live_class_id: str
    course_id: str
    instructor_id: str
    title: str
    description: str | None = None
    scheduled_at: datetime
    duration_minutes: int
    max_participants: int
    active_participants: int
    visibility: Visibility
    settings: LiveClassSettings
    provider: Provider
    provider_config: ProviderConfig
    status: LiveClassStatus
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    cancelled_at: datetime | None = None

    @field_serializer(
        "scheduled_at", "created_at", "updated_at", "started_at", "ended_at", "cancelled_at"
    )
    def serialize_datetime(self, v: datetime | None) -> str | None:
        return serialize_utc_datetime(v)


class JoinCredentialOut(BaseModel):
    live_class_id: str
    provider: Provider
    role: str
    room_id: str | None = None
    token: str | None = None
    server_url: str | None = None
    url: str | None = None
    expires_at: datetime | None = None

    @field_serializer("expires_at")
    def serialize_datetime(self, v: datetime | None) -> str | None:
        return serialize_utc_datetime(v)


class LeaveOut(BaseModel):
    live_class_id: str
    left: bool
    left_at: datetime | None = None

    @field_serializer("left_at")
    def serialize_datetime(self, v: datetime | None) -> str | None:
        return serialize_utc_datetime(v)


class ParticipantOut(BaseModel):
    user_id: str
    joined_at: datetime
    left_at: datetime | None = None
    active: bool

    @field_serializer("joined_at", "left_at")
    def serialize_datetime(self, v: datetime | None) -> str | None:
        return serialize_utc_datetime(v)


class RosterOut(BaseModel):
    live_class_id: str
    max_participants: int
    active_participants: int
    participants: list[ParticipantOut]
