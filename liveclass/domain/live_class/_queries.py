"""Read-only live class queries.

Queries read the last committed snapshot without taking the per-class lock.
"""

from liveclass.schemas import LiveClass, LiveClassStatus, Visibility
from liveclass.storage import LiveClassFilters
from liveclass.utils.app_errors import NotFoundError

from ._base import BaseService
from ._policy import LiveClassAction, is_permitted
from .live_class_models import LiveClassListFilters, LiveClassResponse


class QueryOperations(BaseService):
    async def get_live_class(
        self,
        user_id: str | None,
        live_class_id: str,
    ) -> LiveClassResponse:
        """
        Get a single live class.

        Private classes the caller may not discover are reported as not found.
        """
        live_class = await self._get_live_class(live_class_id)
        if not await self._is_discoverable(user_id, live_class, {}):
            raise NotFoundError(f"Live class not found: {live_class_id}")
        return self._to_response(live_class)

    async def list_live_classes(
        self,
        user_id: str | None,
        filters: LiveClassListFilters,
    ) -> list[LiveClassResponse]:
        """Return discoverable live classes ordered by scheduled_at."""
        statuses = filters.status
        scheduled_from = None
        if filters.upcoming:
            joinable = LiveClassStatus.joinable_states()
            statuses = [s for s in statuses if s in joinable] if statuses else joinable
            scheduled_from = self.clock.now()

        live_classes = await self.store.list(
            LiveClassFilters(
                statuses=statuses,
                course_id=filters.course_id,
                instructor_id=filters.instructor_id,
                scheduled_from=scheduled_from,
            )
        )

        # One catalog lookup per course for the whole listing
        enrollment_cache: dict[str, bool] = {}
        return [
            self._to_response(live_class)
            for live_class in live_classes
            if await self._is_discoverable(user_id, live_class, enrollment_cache)
        ]

    async def _is_discoverable(
        self,
        user_id: str | None,
        live_class: LiveClass,
        enrollment_cache: dict[str, bool],
    ) -> bool:
        if live_class.visibility == Visibility.PUBLIC or user_id == live_class.instructor_id:
            return True

        is_enrolled = False
        if user_id:
            is_enrolled = enrollment_cache.get(live_class.course_id)
            if is_enrolled is None:
                is_enrolled = await self._is_enrolled(user_id, live_class)
                enrollment_cache[live_class.course_id] = is_enrolled

        role = self._resolve_role(user_id, live_class, is_enrolled)
        return is_permitted(role, LiveClassAction.VIEW, live_class)
