"""Base service for live class operations."""

from datetime import datetime, timedelta

from loguru import logger

from liveclass.app_config import AppEnvironConfig
from liveclass.schemas import LiveClass, LiveClassStatus
from liveclass.services.events import EventPublisher, LiveClassEvent, LiveClassEventType, publish_events
from liveclass.services.integrations.course_catalog_client import CourseCatalogClient
from liveclass.shared.lock import LockManagerProtocol
from liveclass.storage import LiveClassStore
from liveclass.utils.app_errors import InvalidStateError, NotFoundError, ValidationError
from liveclass.utils.clock import Clock

from ._capacity import CapacityGuard
from ._credentials import CredentialIssuer
from ._policy import ActorRole, LiveClassAction, ensure_permitted, resolve_role
from .live_class_models import LiveClassResponse
from .live_class_state_machine import LiveClassStateMachine

LOCK_NAMESPACE = "live_class"


class BaseService:
    """Base service with shared live class operation methods."""

    def __init__(
        self,
        cfg: AppEnvironConfig,
        store: LiveClassStore,
        locks: LockManagerProtocol,
        catalog: CourseCatalogClient,
        publisher: EventPublisher,
        issuer: CredentialIssuer,
        clock: Clock,
    ):
        self.cfg = cfg
        self.store = store
        self.locks = locks
        self.catalog = catalog
        self.publisher = publisher
        self.issuer = issuer
        self.clock = clock
        self.capacity = CapacityGuard(upper_bound=cfg.LIVE_CLASS_MAX_PARTICIPANTS)

    def _hold(self, live_class_id: str):
        """Exclusive section for one live class's read-check-write."""
        return self.locks.hold(LOCK_NAMESPACE, live_class_id)

    async def _get_live_class(self, live_class_id: str) -> LiveClass:
        """
        Retrieve a live class by id.

        Raises:
            NotFoundError: If no such live class exists
        """
        live_class = await self.store.get(live_class_id)
        if not live_class:
            raise NotFoundError(f"Live class not found: {live_class_id}")
        return live_class

    async def _is_enrolled(self, user_id: str | None, live_class: LiveClass) -> bool:
        """Ask the catalog about enrollment; the instructor and anonymous callers skip the call."""
        if not user_id or user_id == live_class.instructor_id:
            return False
        return await self.catalog.is_enrolled(user_id, live_class.course_id)

    def _ensure_instructor(self, user_id: str, live_class: LiveClass, action: LiveClassAction) -> None:
        role = ActorRole.INSTRUCTOR if user_id == live_class.instructor_id else ActorRole.UNENROLLED
        ensure_permitted(role, action, live_class)

    def _resolve_role(self, user_id: str | None, live_class: LiveClass, is_enrolled: bool) -> ActorRole:
        return resolve_role(user_id, live_class, is_enrolled)

    def _validate_schedule(self, scheduled_at: datetime, now: datetime) -> None:
        lead = timedelta(minutes=self.cfg.LIVE_CLASS_MIN_LEAD_MINUTES)
        if scheduled_at < now + lead:
            raise ValidationError(
                f"scheduled_at must be at least {self.cfg.LIVE_CLASS_MIN_LEAD_MINUTES} minutes "
                f"in the future, got {scheduled_at.isoformat()}"
            )

    def _validate_duration(self, duration_minutes: int) -> None:
        allowed = self.cfg.LIVE_CLASS_DURATIONS
        if duration_minutes not in allowed:
            raise ValidationError(
                f"duration_minutes must be one of {allowed}, got {duration_minutes}"
            )

    def _validate_title(self, title: str) -> str:
        title = title.strip()
        if not title:
            raise ValidationError("title must not be empty")
        return title

    def _transition(self, live_class: LiveClass, new_status: LiveClassStatus, now: datetime) -> None:
        """
        Move a live class to `new_status` and stamp the matching timestamp.

        Raises:
            InvalidStateError: If the state machine does not allow the transition
        """
        if not LiveClassStateMachine.can_transition(live_class.status, new_status):
            raise InvalidStateError(
                f"Invalid state transition for live class {live_class.live_class_id}: "
                f"{live_class.status} -> {new_status}"
            )

        live_class.status = new_status
        live_class.updated_at = now
        if new_status == LiveClassStatus.LIVE:
            live_class.started_at = now
        elif new_status == LiveClassStatus.ENDED:
            live_class.ended_at = now
        elif new_status == LiveClassStatus.CANCELLED:
            live_class.cancelled_at = now

        logger.info(f"Live class {live_class.live_class_id} state updated to {new_status}")

    def _event(
        self,
        event_type: LiveClassEventType,
        live_class: LiveClass,
        actor_id: str | None,
        **payload,
    ) -> LiveClassEvent:
        return LiveClassEvent(
            event_type=event_type,
            live_class_id=live_class.live_class_id,
            course_id=live_class.course_id,
            actor_id=actor_id,
            occurred_at=self.clock.now(),
            payload=payload,
        )

    async def _publish(self, *events: LiveClassEvent) -> None:
        await publish_events(self.publisher, list(events))

    def _to_response(self, live_class: LiveClass) -> LiveClassResponse:
        return LiveClassResponse(
            **live_class.model_dump(exclude={"roster", "version"}),
            active_participants=live_class.active_count(),
        )
