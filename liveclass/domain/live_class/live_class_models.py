"""Live class domain models."""

from datetime import datetime

from pydantic import BaseModel, Field

from liveclass.schemas import (
    LiveClassSettings,
    LiveClassStatus,
    Provider,
    ProviderConfig,
    RosterEntry,
    Visibility,
)


class LiveClassResponse(BaseModel):
    """Live class snapshot returned by every operation."""

    live_class_id: str
    course_id: str
    instructor_id: str

    title: str
    description: str | None = None

    scheduled_at: datetime
    duration_minutes: int
    max_participants: int
    visibility: Visibility

    settings: LiveClassSettings
    provider: Provider
    provider_config: ProviderConfig

    status: LiveClassStatus
    active_participants: int = 0

    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    cancelled_at: datetime | None = None


class LiveClassCreateParams(BaseModel):
    """Parameters for creating a live class."""

    course_id: str
    title: str
    description: str | None = None
    scheduled_at: datetime
    duration_minutes: int
    max_participants: int
    visibility: Visibility = Visibility.PUBLIC
    settings: LiveClassSettings = Field(default_factory=LiveClassSettings)
    provider: Provider = Provider.NATIVE_ROOM
    provider_config: ProviderConfig = Field(default_factory=ProviderConfig)


class LiveClassUpdateParams(BaseModel):
    """Parameters for editing a scheduled live class. Unset fields stay unchanged."""

    title: str | None = None
    description: str | None = None
    scheduled_at: datetime | None = None
    duration_minutes: int | None = None
    max_participants: int | None = None
    visibility: Visibility | None = None
    settings: LiveClassSettings | None = None


class LiveClassListFilters(BaseModel):
    status: list[LiveClassStatus] | None = None
    course_id: str | None = None
    instructor_id: str | None = None
    upcoming: bool = False


class JoinCredential(BaseModel):
    """What a client needs to rendezvous with the provider.

    Native rooms get `room_id`, `token` and `expires_at`; link providers get `url`.
    """

    live_class_id: str
    provider: Provider
    role: str
    room_id: str | None = None
    token: str | None = None
    server_url: str | None = None
    url: str | None = None
    expires_at: datetime | None = None


class RosterResponse(BaseModel):
    live_class_id: str
    max_participants: int
    active_participants: int
    participants: list[RosterEntry]


class LeaveResponse(BaseModel):
    live_class_id: str
    user_id: str
    left: bool = Field(description="False when the user had no active entry")
    left_at: datetime | None = None
