"""Live class lifecycle operations: create, update, start, end, cancel."""

from loguru import logger

from liveclass.schemas import LiveClass, LiveClassStatus, Provider, ProviderConfig
from liveclass.services.events import LiveClassEventType
from liveclass.utils.app_errors import AuthorizationError, InvalidStateError, ProviderConfigError
from liveclass.utils.clock import ensure_utc
from liveclass.utils.idgen import new_live_class_id, new_room_id

from ._base import BaseService
from ._credentials import validate_provider_config
from ._policy import LiveClassAction
from .live_class_models import LiveClassCreateParams, LiveClassResponse, LiveClassUpdateParams
from .live_class_state_machine import LiveClassStateMachine


class LifecycleOperations(BaseService):
    """Instructor-driven state changes."""

    async def create_live_class(
        self,
        instructor_id: str,
        params: LiveClassCreateParams,
    ) -> LiveClassResponse:
        """
        Create a new live class in the scheduled state.

        Raises:
            ValidationError: On lead time, duration, capacity or title problems
            ProviderConfigError: If the provider configuration is missing or malformed
            AuthorizationError: If the catalog says the caller does not teach the course
        """
        now = self.clock.now()
        title = self._validate_title(params.title)
        scheduled_at = ensure_utc(params.scheduled_at)
        self._validate_schedule(scheduled_at, now)
        self._validate_duration(params.duration_minutes)
        self.capacity.validate_limit(params.max_participants)
        validate_provider_config(params.provider, params.provider_config)

        if not await self.catalog.is_instructor_of(instructor_id, params.course_id):
            raise AuthorizationError(
                f"User {instructor_id} does not teach course {params.course_id}"
            )

        if params.provider == Provider.NATIVE_ROOM:
            provider_config = ProviderConfig(room_id=params.provider_config.room_id or new_room_id())
        else:
            url = (params.provider_config.url or "").strip() or None
            provider_config = ProviderConfig(url=url)

        live_class = LiveClass(
            live_class_id=new_live_class_id(),
            course_id=params.course_id,
            instructor_id=instructor_id,
            title=title,
            description=params.description,
            scheduled_at=scheduled_at,
            duration_minutes=params.duration_minutes,
            max_participants=params.max_participants,
            visibility=params.visibility,
            settings=params.settings,
            provider=params.provider,
            provider_config=provider_config,
            status=LiveClassStatus.SCHEDULED,
            created_at=now,
            updated_at=now,
        )

        logger.debug(
            f"Creating live class {live_class.live_class_id} for course {params.course_id} "
            f"(provider={params.provider}, scheduled_at={scheduled_at.isoformat()})"
        )
        await self.store.insert(live_class)

        await self._publish(
            self._event(
                LiveClassEventType.SESSION_SCHEDULED,
                live_class,
                instructor_id,
                scheduled_at=scheduled_at.isoformat(),
                title=title,
            )
        )
        return self._to_response(live_class)

    async def update_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
        params: LiveClassUpdateParams,
    ) -> LiveClassResponse:
        """
        Edit a live class that has not started yet.

        The provider and its configuration cannot be changed.

        Raises:
            NotFoundError, AuthorizationError, InvalidStateError, ValidationError
        """
        event = None
        async with self._hold(live_class_id):
            live_class = await self._get_live_class(live_class_id)
            self._ensure_instructor(instructor_id, live_class, LiveClassAction.UPDATE)
            if live_class.status != LiveClassStatus.SCHEDULED:
                raise InvalidStateError(
                    f"Live class {live_class_id} can only be edited while scheduled "
                    f"(current state: {live_class.status})"
                )

            now = self.clock.now()
            previous_scheduled_at = live_class.scheduled_at

            if params.title is not None:
                live_class.title = self._validate_title(params.title)
            if params.description is not None:
                live_class.description = params.description
            if params.scheduled_at is not None:
                scheduled_at = ensure_utc(params.scheduled_at)
                self._validate_schedule(scheduled_at, now)
                live_class.scheduled_at = scheduled_at
            if params.duration_minutes is not None:
                self._validate_duration(params.duration_minutes)
                live_class.duration_minutes = params.duration_minutes
            if params.max_participants is not None:
                self.capacity.validate_limit(params.max_participants, live_class.active_count())
                live_class.max_participants = params.max_participants
            if params.visibility is not None:
                live_class.visibility = params.visibility
            if params.settings is not None:
                live_class.settings = params.settings

            live_class.updated_at = now
            await self.store.save(live_class)
            logger.info(f"Live class {live_class_id} updated")

            if live_class.scheduled_at != previous_scheduled_at:
                event = self._event(
                    LiveClassEventType.SESSION_RESCHEDULED,
                    live_class,
                    instructor_id,
                    previous_scheduled_at=previous_scheduled_at.isoformat(),
                    scheduled_at=live_class.scheduled_at.isoformat(),
                )

        if event:
            await self._publish(event)
        return self._to_response(live_class)

    async def start_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
        stream_url: str | None = None,
    ) -> LiveClassResponse:
        """
        Move a scheduled live class to live.

        A repeated start by the instructor on a class that is already live
        returns it unchanged, so client retries are safe.

        Args:
            instructor_id: Caller, must be the live class instructor
            live_class_id: Live class identifier
            stream_url: Stream URL for youtube classes created without one

        Raises:
            NotFoundError, AuthorizationError, InvalidStateError, ProviderConfigError
        """
        async with self._hold(live_class_id):
            live_class = await self._get_live_class(live_class_id)
            self._ensure_instructor(instructor_id, live_class, LiveClassAction.START)

            if live_class.status == LiveClassStatus.LIVE:
                logger.info(f"Live class {live_class_id} already live, skipping")
                return self._to_response(live_class)
            if not self._can_go_live(live_class):
                raise InvalidStateError(
                    f"Live class {live_class_id} cannot start from state {live_class.status}"
                )

            self._apply_stream_url(live_class, stream_url)
            validate_provider_config(live_class.provider, live_class.provider_config, going_live=True)

            self._transition(live_class, LiveClassStatus.LIVE, self.clock.now())
            await self.store.save(live_class)

        await self._publish(
            self._event(
                LiveClassEventType.SESSION_STARTED,
                live_class,
                instructor_id,
                started_at=live_class.started_at.isoformat() if live_class.started_at else None,
            )
        )
        return self._to_response(live_class)

    async def end_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
    ) -> LiveClassResponse:
        """
        Move a live class to ended and close every active roster entry.

        Ending an already ended class returns it unchanged.

        Raises:
            NotFoundError, AuthorizationError, InvalidStateError
        """
        async with self._hold(live_class_id):
            live_class = await self._get_live_class(live_class_id)
            self._ensure_instructor(instructor_id, live_class, LiveClassAction.END)

            if live_class.status == LiveClassStatus.ENDED:
                logger.info(f"Live class {live_class_id} already ended, skipping")
                return self._to_response(live_class)

            now = self.clock.now()
            self._transition(live_class, LiveClassStatus.ENDED, now)

            closed = 0
            for entry in live_class.active_entries():
                entry.left_at = now
                closed += 1

            await self.store.save(live_class)
            logger.info(f"Live class {live_class_id} ended, closed {closed} roster entries")

        await self._publish(
            self._event(
                LiveClassEventType.SESSION_ENDED,
                live_class,
                instructor_id,
                ended_at=now.isoformat(),
                participants_closed=closed,
            )
        )
        return self._to_response(live_class)

    async def cancel_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
    ) -> LiveClassResponse:
        """
        Call off a live class that has not started.

        Raises:
            NotFoundError, AuthorizationError, InvalidStateError
        """
        async with self._hold(live_class_id):
            live_class = await self._get_live_class(live_class_id)
            self._ensure_instructor(instructor_id, live_class, LiveClassAction.CANCEL)

            self._transition(live_class, LiveClassStatus.CANCELLED, self.clock.now())
            await self.store.save(live_class)

        await self._publish(
            self._event(LiveClassEventType.SESSION_CANCELLED, live_class, instructor_id)
        )
        return self._to_response(live_class)

    def _can_go_live(self, live_class: LiveClass) -> bool:
        return LiveClassStateMachine.can_transition(live_class.status, LiveClassStatus.LIVE)

    def _apply_stream_url(self, live_class: LiveClass, stream_url: str | None) -> None:
        """Attach a youtube stream URL supplied at start time."""
        stream_url = (stream_url or "").strip()
        if not stream_url:
            return
        if live_class.provider != Provider.YOUTUBE:
            raise ProviderConfigError(
                f"stream_url can only be supplied at start for youtube, not '{live_class.provider}'"
            )
        current = live_class.provider_config.url
        if current and current != stream_url:
            raise ProviderConfigError(
                f"Live class {live_class.live_class_id} already has a stream url"
            )
        live_class.provider_config = ProviderConfig(url=stream_url)
