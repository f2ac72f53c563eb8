"""Tests for live class lifecycle operations: create, update, start, end, cancel."""

from datetime import timedelta

import pytest

from liveclass.domain.live_class.live_class_domain import LiveClassService
from liveclass.domain.live_class.live_class_models import LiveClassUpdateParams
from liveclass.schemas import LiveClassStatus, Provider, ProviderConfig
from liveclass.services.events import LiveClassEventType, MemoryEventPublisher
from liveclass.storage import InMemoryLiveClassStore, LiveClassFilters
from liveclass.utils.app_errors import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ProviderConfigError,
    ValidationError,
)
from tests.fixtures.live_class_fixtures import (
    COURSE_ID,
    ENROLLED_ID,
    INSTRUCTOR_ID,
    FrozenClock,
    make_create_params,
)


async def _create(service: LiveClassService, clock: FrozenClock, **overrides):
    return await service.create_live_class(INSTRUCTOR_ID, make_create_params(clock, **overrides))


async def _in_state(service: LiveClassService, clock: FrozenClock, status: LiveClassStatus):
    lc = await _create(service, clock)
    if status == LiveClassStatus.LIVE:
        await service.start_live_class(INSTRUCTOR_ID, lc.live_class_id)
    elif status == LiveClassStatus.ENDED:
        await service.start_live_class(INSTRUCTOR_ID, lc.live_class_id)
        await service.end_live_class(INSTRUCTOR_ID, lc.live_class_id)
    elif status == LiveClassStatus.CANCELLED:
        await service.cancel_live_class(INSTRUCTOR_ID, lc.live_class_id)
    return lc.live_class_id


class TestCreateLiveClass:
    async def test_lead_time_too_short(self, live_class_service: LiveClassService, frozen_clock: FrozenClock):
        """Scheduling 10 minutes ahead is below the 30 minute lead time."""
        with pytest.raises(ValidationError):
            await _create(
                live_class_service,
                frozen_clock,
                scheduled_at=frozen_clock.now() + timedelta(minutes=10),
            )

    async def test_lead_time_satisfied(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        event_publisher: MemoryEventPublisher,
    ):
        """Scheduling 45 minutes ahead is accepted in the scheduled state."""
        # Act
        result = await _create(live_class_service, frozen_clock)

        # Assert
        assert result.status == LiveClassStatus.SCHEDULED
        assert result.live_class_id.startswith("lc_")
        assert result.instructor_id == INSTRUCTOR_ID
        assert result.started_at is None
        assert result.ended_at is None
        assert result.provider_config.room_id is not None
        assert result.provider_config.room_id.startswith("ro_")
        scheduled = event_publisher.of_type(LiveClassEventType.SESSION_SCHEDULED)
        assert [e.live_class_id for e in scheduled] == [result.live_class_id]

    async def test_exactly_at_lead_time_boundary(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        result = await _create(
            live_class_service, frozen_clock, scheduled_at=frozen_clock.now() + timedelta(minutes=30)
        )
        assert result.status == LiveClassStatus.SCHEDULED

    @pytest.mark.parametrize("duration", [0, 45, 240])
    async def test_duration_outside_allowed_set(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock, duration: int
    ):
        with pytest.raises(ValidationError):
            await _create(live_class_service, frozen_clock, duration_minutes=duration)

    @pytest.mark.parametrize("max_participants", [0, 201])
    async def test_capacity_out_of_bounds(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock, max_participants: int
    ):
        with pytest.raises(ValidationError):
            await _create(live_class_service, frozen_clock, max_participants=max_participants)

    async def test_blank_title(self, live_class_service: LiveClassService, frozen_clock: FrozenClock):
        with pytest.raises(ValidationError):
            await _create(live_class_service, frozen_clock, title="   ")

    async def test_meet_without_url(self, live_class_service: LiveClassService, frozen_clock: FrozenClock):
        with pytest.raises(ProviderConfigError):
            await _create(live_class_service, frozen_clock, provider=Provider.MEET)

    async def test_link_provider_keeps_url(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        result = await _create(
            live_class_service,
            frozen_clock,
            provider=Provider.CUSTOM,
            provider_config=ProviderConfig(url=" https://zoom.example.com/j/123 "),
        )
        assert result.provider_config.url == "https://zoom.example.com/j/123"
        assert result.provider_config.room_id is None

    async def test_not_course_instructor(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        memory_store: InMemoryLiveClassStore,
    ):
        """The catalog decides course ownership; nothing is stored on denial."""
        with pytest.raises(AuthorizationError):
            await live_class_service.create_live_class(ENROLLED_ID, make_create_params(frozen_clock))

        assert await memory_store.list(LiveClassFilters()) == []


class TestStartLiveClass:
    async def test_start_sets_started_at(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        event_publisher: MemoryEventPublisher,
    ):
        lc = await _create(live_class_service, frozen_clock)
        frozen_clock.advance(minutes=40)

        result = await live_class_service.start_live_class(INSTRUCTOR_ID, lc.live_class_id)

        assert result.status == LiveClassStatus.LIVE
        assert result.started_at == frozen_clock.now()
        assert result.ended_at is None
        assert len(event_publisher.of_type(LiveClassEventType.SESSION_STARTED)) == 1

    async def test_start_twice_returns_same_started_at(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        event_publisher: MemoryEventPublisher,
    ):
        """A retried start is idempotent and does not re-stamp started_at."""
        lc = await _create(live_class_service, frozen_clock)
        first = await live_class_service.start_live_class(INSTRUCTOR_ID, lc.live_class_id)
        frozen_clock.advance(minutes=2)

        second = await live_class_service.start_live_class(INSTRUCTOR_ID, lc.live_class_id)

        assert second.status == LiveClassStatus.LIVE
        assert second.started_at == first.started_at
        assert len(event_publisher.of_type(LiveClassEventType.SESSION_STARTED)) == 1

    async def test_start_by_non_instructor(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        lc = await _create(live_class_service, frozen_clock)
        with pytest.raises(AuthorizationError):
            await live_class_service.start_live_class(ENROLLED_ID, lc.live_class_id)

    async def test_authorization_checked_before_state(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        """A non-instructor gets 403 even when the state would also be wrong."""
        live_class_id = await _in_state(live_class_service, frozen_clock, LiveClassStatus.ENDED)
        with pytest.raises(AuthorizationError):
            await live_class_service.start_live_class(ENROLLED_ID, live_class_id)

    async def test_start_unknown(self, live_class_service: LiveClassService):
        with pytest.raises(NotFoundError):
            await live_class_service.start_live_class(INSTRUCTOR_ID, "lc_missing")

    async def test_youtube_needs_stream_url_to_go_live(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        lc = await _create(live_class_service, frozen_clock, provider=Provider.YOUTUBE)
        with pytest.raises(ProviderConfigError):
            await live_class_service.start_live_class(INSTRUCTOR_ID, lc.live_class_id)

        result = await live_class_service.start_live_class(
            INSTRUCTOR_ID, lc.live_class_id, stream_url="https://youtube.com/live/abc"
        )
        assert result.status == LiveClassStatus.LIVE
        assert result.provider_config.url == "https://youtube.com/live/abc"

    async def test_stream_url_rejected_for_native_room(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        lc = await _create(live_class_service, frozen_clock)
        with pytest.raises(ProviderConfigError):
            await live_class_service.start_live_class(
                INSTRUCTOR_ID, lc.live_class_id, stream_url="https://youtube.com/live/abc"
            )


class TestEndLiveClass:
    async def test_end_closes_every_active_entry(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        memory_store: InMemoryLiveClassStore,
    ):
        """Scenario: start, enrolled student joins, end marks the student as left."""
        lc = await _create(live_class_service, frozen_clock)
        await live_class_service.start_live_class(INSTRUCTOR_ID, lc.live_class_id)
        await live_class_service.join_live_class(ENROLLED_ID, lc.live_class_id)
        frozen_clock.advance(minutes=50)

        result = await live_class_service.end_live_class(INSTRUCTOR_ID, lc.live_class_id)

        assert result.status == LiveClassStatus.ENDED
        assert result.ended_at == frozen_clock.now()
        assert result.started_at is not None
        assert result.active_participants == 0
        stored = await memory_store.get(lc.live_class_id)
        assert stored is not None
        entry = stored.find_entry(ENROLLED_ID)
        assert entry is not None
        assert entry.left_at == frozen_clock.now()

    async def test_end_twice_is_idempotent(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        live_class_id = await _in_state(live_class_service, frozen_clock, LiveClassStatus.LIVE)
        first = await live_class_service.end_live_class(INSTRUCTOR_ID, live_class_id)
        frozen_clock.advance(minutes=1)

        second = await live_class_service.end_live_class(INSTRUCTOR_ID, live_class_id)

        assert second.ended_at == first.ended_at

    async def test_end_scheduled_rejected(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        lc = await _create(live_class_service, frozen_clock)
        with pytest.raises(InvalidStateError):
            await live_class_service.end_live_class(INSTRUCTOR_ID, lc.live_class_id)


class TestCancelLiveClass:
    async def test_cancel_scheduled(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        event_publisher: MemoryEventPublisher,
    ):
        lc = await _create(live_class_service, frozen_clock)

        result = await live_class_service.cancel_live_class(INSTRUCTOR_ID, lc.live_class_id)

        assert result.status == LiveClassStatus.CANCELLED
        assert result.started_at is None
        assert result.ended_at is None
        assert result.cancelled_at == frozen_clock.now()
        assert len(event_publisher.of_type(LiveClassEventType.SESSION_CANCELLED)) == 1

    async def test_cancel_live_rejected(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        """A live class must be ended instead."""
        live_class_id = await _in_state(live_class_service, frozen_clock, LiveClassStatus.LIVE)
        with pytest.raises(InvalidStateError):
            await live_class_service.cancel_live_class(INSTRUCTOR_ID, live_class_id)

    async def test_cancel_twice_rejected(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        live_class_id = await _in_state(live_class_service, frozen_clock, LiveClassStatus.CANCELLED)
        with pytest.raises(InvalidStateError):
            await live_class_service.cancel_live_class(INSTRUCTOR_ID, live_class_id)


class TestUpdateLiveClass:
    async def test_reschedule_emits_event(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        event_publisher: MemoryEventPublisher,
    ):
        lc = await _create(live_class_service, frozen_clock)
        new_time = frozen_clock.now() + timedelta(hours=3)

        result = await live_class_service.update_live_class(
            INSTRUCTOR_ID,
            lc.live_class_id,
            LiveClassUpdateParams(scheduled_at=new_time, title="Renamed"),
        )

        assert result.scheduled_at == new_time
        assert result.title == "Renamed"
        rescheduled = event_publisher.of_type(LiveClassEventType.SESSION_RESCHEDULED)
        assert len(rescheduled) == 1
        assert rescheduled[0].payload["scheduled_at"] == new_time.isoformat()

    async def test_update_without_reschedule_emits_nothing(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        event_publisher: MemoryEventPublisher,
    ):
        lc = await _create(live_class_service, frozen_clock)
        await live_class_service.update_live_class(
            INSTRUCTOR_ID, lc.live_class_id, LiveClassUpdateParams(max_participants=50)
        )
        assert event_publisher.of_type(LiveClassEventType.SESSION_RESCHEDULED) == []

    async def test_reschedule_inside_lead_time(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        lc = await _create(live_class_service, frozen_clock)
        with pytest.raises(ValidationError):
            await live_class_service.update_live_class(
                INSTRUCTOR_ID,
                lc.live_class_id,
                LiveClassUpdateParams(scheduled_at=frozen_clock.now() + timedelta(minutes=5)),
            )

    async def test_scheduled_at_immutable_once_live(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        live_class_id = await _in_state(live_class_service, frozen_clock, LiveClassStatus.LIVE)
        with pytest.raises(InvalidStateError):
            await live_class_service.update_live_class(
                INSTRUCTOR_ID,
                live_class_id,
                LiveClassUpdateParams(scheduled_at=frozen_clock.now() + timedelta(hours=2)),
            )

    async def test_capacity_cannot_drop_below_roster(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        lc = await _create(live_class_service, frozen_clock)
        await live_class_service.join_live_class(INSTRUCTOR_ID, lc.live_class_id)
        await live_class_service.join_live_class(ENROLLED_ID, lc.live_class_id)

        with pytest.raises(ValidationError):
            await live_class_service.update_live_class(
                INSTRUCTOR_ID, lc.live_class_id, LiveClassUpdateParams(max_participants=1)
            )

    async def test_update_by_non_instructor(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        lc = await _create(live_class_service, frozen_clock)
        with pytest.raises(AuthorizationError):
            await live_class_service.update_live_class(
                ENROLLED_ID, lc.live_class_id, LiveClassUpdateParams(title="Hijacked")
            )


# Expected outcome of each instructor operation from each state
_OUTCOMES = {
    ("start", LiveClassStatus.SCHEDULED): LiveClassStatus.LIVE,
    ("start", LiveClassStatus.LIVE): LiveClassStatus.LIVE,
    ("start", LiveClassStatus.ENDED): InvalidStateError,
    ("start", LiveClassStatus.CANCELLED): InvalidStateError,
    ("end", LiveClassStatus.SCHEDULED): InvalidStateError,
    ("end", LiveClassStatus.LIVE): LiveClassStatus.ENDED,
    ("end", LiveClassStatus.ENDED): LiveClassStatus.ENDED,
    ("end", LiveClassStatus.CANCELLED): InvalidStateError,
    ("cancel", LiveClassStatus.SCHEDULED): LiveClassStatus.CANCELLED,
    ("cancel", LiveClassStatus.LIVE): InvalidStateError,
    ("cancel", LiveClassStatus.ENDED): InvalidStateError,
    ("cancel", LiveClassStatus.CANCELLED): InvalidStateError,
}


class TestTransitionTable:
    @pytest.mark.parametrize(("operation", "status"), list(_OUTCOMES))
    async def test_operation_from_state(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        memory_store: InMemoryLiveClassStore,
        operation: str,
        status: LiveClassStatus,
    ):
        """Every (state, operation) pair either follows the state machine or is rejected."""
        live_class_id = await _in_state(live_class_service, frozen_clock, status)
        method = getattr(live_class_service, f"{operation}_live_class")
        expected = _OUTCOMES[(operation, status)]

        if isinstance(expected, LiveClassStatus):
            result = await method(INSTRUCTOR_ID, live_class_id)
            assert result.status == expected
        else:
            with pytest.raises(expected):
                await method(INSTRUCTOR_ID, live_class_id)
            stored = await memory_store.get(live_class_id)
            assert stored is not None
            assert stored.status == status

    @pytest.mark.parametrize("status", list(LiveClassStatus))
    async def test_join_from_state(
        self,
        live_class_service: LiveClassService,
        frozen_clock: FrozenClock,
        status: LiveClassStatus,
    ):
        live_class_id = await _in_state(live_class_service, frozen_clock, status)
        if status in LiveClassStatus.joinable_states():
            credential = await live_class_service.join_live_class(ENROLLED_ID, live_class_id)
            assert credential.live_class_id == live_class_id
        else:
            with pytest.raises(InvalidStateError):
                await live_class_service.join_live_class(ENROLLED_ID, live_class_id)

    async def test_course_is_immutable_through_lifecycle(
        self, live_class_service: LiveClassService, frozen_clock: FrozenClock
    ):
        live_class_id = await _in_state(live_class_service, frozen_clock, LiveClassStatus.ENDED)
        result = await live_class_service.get_live_class(INSTRUCTOR_ID, live_class_id)
        assert result.course_id == COURSE_ID
        assert result.instructor_id == INSTRUCTOR_ID
