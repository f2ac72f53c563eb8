"""Live class store interface."""

from datetime import datetime
from typing import Protocol

from pydantic import BaseModel

from liveclass.schemas import LiveClass, LiveClassStatus


class LiveClassFilters(BaseModel):
    """Query filters understood by every store backend."""

    statuses: list[LiveClassStatus] | None = None
    course_id: str | None = None
    instructor_id: str | None = None
    scheduled_from: datetime | None = None

    def matches(self, live_class: LiveClass) -> bool:
        if self.statuses is not None and live_class.status not in self.statuses:
            return False
        if self.course_id is not None and live_class.course_id != self.course_id:
            return False
        if self.instructor_id is not None and live_class.instructor_id != self.instructor_id:
            return False
        if self.scheduled_from is not None and live_class.scheduled_at < self.scheduled_from:
            return False
        return True


class LiveClassStore(Protocol):
    """Durable record of live classes.

    Implementations hand out detached snapshots: mutating a returned object
    never changes the stored state until `save` is called.
    """

    async def insert(self, live_class: LiveClass) -> None:
        """Persist a new live class.

        Raises:
            AppError: If a live class with the same id already exists.
        """
        ...

    async def get(self, live_class_id: str) -> LiveClass | None:
        """Return the last committed snapshot, or None if unknown."""
        ...

    async def save(self, live_class: LiveClass) -> None:
        """Commit a modified snapshot and bump its version.

        Raises:
            AppError: E_VERSION_CONFLICT if the stored version moved on since
                the snapshot was read.
        """
        ...

    async def list(self, filters: LiveClassFilters) -> list[LiveClass]:
        """Return matching snapshots ordered by scheduled_at ascending."""
        ...
