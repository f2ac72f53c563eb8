"""Live class ODM schema."""

from datetime import datetime

from beanie import Document, Indexed
from pydantic import Field
from pymongo import IndexModel

from .live_class import LiveClass, LiveClassSettings, ProviderConfig, RosterEntry
from .live_class_state import LiveClassStatus, Provider, Visibility


class LiveClassRecord(Document):
    """Persistent form of a `LiveClass`."""

    live_class_id: Indexed(str, unique=True)  # type: ignore[valid-type]
    course_id: str
    instructor_id: str

    title: str
    description: str | None = None

    scheduled_at: datetime
    duration_minutes: int
    max_participants: int
    visibility: Visibility = Visibility.PUBLIC
    settings: LiveClassSettings = Field(default_factory=LiveClassSettings)

    provider: Provider = Provider.NATIVE_ROOM
    provider_config: ProviderConfig = Field(default_factory=ProviderConfig)

    status: LiveClassStatus = LiveClassStatus.SCHEDULED
    roster: list[RosterEntry] = Field(default_factory=list)

    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    cancelled_at: datetime | None = None

    # Version control for optimistic locking
    version: int = Field(default=1)

    @classmethod
    def from_live_class(cls, live_class: LiveClass) -> "LiveClassRecord":
        return cls(**live_class.model_dump())

    def to_live_class(self) -> LiveClass:
        return LiveClass(**self.model_dump(exclude={"id", "revision_id"}))

    class Settings:
        name = "live_class"
        indexes = [
            [("live_class_id", 1)],  # unique handled by Indexed
            IndexModel([("course_id", 1), ("scheduled_at", 1)], name="course_scheduled_at"),
            IndexModel(
                [("instructor_id", 1), ("scheduled_at", -1)], name="instructor_scheduled_at"
            ),
            IndexModel([("status", 1), ("scheduled_at", 1)], name="status_scheduled_at"),
        ]
