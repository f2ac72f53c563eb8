"""Lifecycle events for the notification collaborator.

The live class core only emits events; delivery (email, push) happens
downstream. Events are published after the mutation has committed, so a
failed publish never undoes a state change.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Protocol

import orjson
from loguru import logger
from pydantic import BaseModel, Field
from redis.asyncio import Redis

from liveclass.utils.clock import utc_now
from liveclass.utils.idgen import new_event_id


class LiveClassEventType(str, Enum):
    SESSION_SCHEDULED = "SessionScheduled"
    SESSION_STARTED = "SessionStarted"
    SESSION_ENDED = "SessionEnded"
    SESSION_CANCELLED = "SessionCancelled"
    SESSION_RESCHEDULED = "SessionRescheduled"
    PARTICIPANT_JOINED = "ParticipantJoined"
    PARTICIPANT_LEFT = "ParticipantLeft"

    def __str__(self) -> str:
        return self.value


class LiveClassEvent(BaseModel):
    event_id: str = Field(default_factory=new_event_id)
    event_type: LiveClassEventType
    live_class_id: str
    course_id: str
    actor_id: str | None = None
    occurred_at: datetime = Field(default_factory=utc_now)
    payload: dict[str, Any] = Field(default_factory=dict)


class EventPublisher(Protocol):
    async def publish(self, event: LiveClassEvent) -> None: ...


class MemoryEventPublisher:
    """Keeps published events in a list; used by default and in tests."""

    def __init__(self) -> None:
        self.events: list[LiveClassEvent] = []

    async def publish(self, event: LiveClassEvent) -> None:
        self.events.append(event)
        logger.debug(f"Event {event.event_type} for live class {event.live_class_id}")

    def of_type(self, event_type: LiveClassEventType) -> list[LiveClassEvent]:
        return [event for event in self.events if event.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()


class RedisEventPublisher:
    """Appends events to a Redis stream consumed by the notification service."""

    def __init__(self, redis_client: Redis, stream: str, maxlen: int | None = 100_000):
        self.redis_client = redis_client
        self.stream = stream
        self.maxlen = maxlen

    async def publish(self, event: LiveClassEvent) -> None:
        fields = {
            "event_id": event.event_id,
            "event_type": str(event.event_type),
            "live_class_id": event.live_class_id,
            "data": orjson.dumps(event.model_dump(mode="json")),
        }
        message_id = await self.redis_client.xadd(
            self.stream,
            fields,  # type: ignore[arg-type]
            maxlen=self.maxlen,
            approximate=True,
        )
        logger.debug(
            f"Published {event.event_type} for live class {event.live_class_id} "
            f"to {self.stream} ({message_id})"
        )


async def publish_events(publisher: EventPublisher, events: list[LiveClassEvent]) -> None:
    """Publish each event; failures are logged and never raised."""
    for event in events:
        try:
            await publisher.publish(event)
        except Exception as e:
            logger.error(
                f"Failed to publish {event.event_type} for live class {event.live_class_id}: {e!s}",
                exc_info=True,
            )
