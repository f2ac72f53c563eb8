from fastapi import APIRouter, Body, Depends, Query

from liveclass.api.v1.dependency import CurrentUser, OptionalUser
from liveclass.api.v1.schemas.base import ApiOut
from liveclass.api.v1.schemas.live_class import (
    CreateLiveClassIn,
    JoinCredentialOut,
    LeaveOut,
    LiveClassOut,
    ParticipantOut,
    RosterOut,
    StartLiveClassIn,
    UpdateLiveClassIn,
)
from liveclass.domain.live_class.live_class_domain import LiveClassService
from liveclass.domain.live_class.live_class_models import (
    LiveClassCreateParams,
    LiveClassListFilters,
    LiveClassResponse,
    LiveClassUpdateParams,
)
from liveclass.schemas import LiveClassStatus

router = APIRouter(prefix="/live-classes", tags=["Live Classes"])

# Singleton instance
_live_class_service = LiveClassService()


def get_live_class_service() -> LiveClassService:
    """Get the singleton LiveClassService instance."""
    return _live_class_service


def _to_out(result: LiveClassResponse) -> LiveClassOut:
    return LiveClassOut(**result.model_dump())


@router.post("", status_code=201)
async def create_live_class(
    payload: CreateLiveClassIn,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LiveClassOut]:
    """Schedule a live class for a course the caller teaches."""
    params = LiveClassCreateParams(**payload.model_dump())
    result = await service.create_live_class(instructor_id=user.user_id, params=params)
    return ApiOut[LiveClassOut](results=_to_out(result))


@router.get("")
async def list_live_classes(
    user: OptionalUser,
    service: LiveClassService = Depends(get_live_class_service),
    status: list[LiveClassStatus] | None = Query(None, description="Filter by one or more states"),
    course_id: str | None = Query(None),
    instructor_id: str | None = Query(None),
    upcoming: bool = Query(False, description="Only scheduled or live classes starting from now"),
) -> ApiOut[list[LiveClassOut]]:
    """List live classes the caller may discover, ordered by scheduled_at."""
    filters = LiveClassListFilters(
        status=status,
        course_id=course_id,
        instructor_id=instructor_id,
        upcoming=upcoming,
    )
    results = await service.list_live_classes(
        user_id=user.user_id if user else None,
        filters=filters,
    )
    return ApiOut[list[LiveClassOut]](results=[_to_out(r) for r in results])


@router.get("/{live_class_id}")
async def get_live_class(
    live_class_id: str,
    user: OptionalUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LiveClassOut]:
    result = await service.get_live_class(
        user_id=user.user_id if user else None,
        live_class_id=live_class_id,
    )
    return ApiOut[LiveClassOut](results=_to_out(result))


@router.patch("/{live_class_id}")
async def update_live_class(
    live_class_id: str,
    payload: UpdateLiveClassIn,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LiveClassOut]:
    """Edit a live class that is still scheduled.

    Note: provider and provider_config are not editable after creation.
    """
    # Only include fields that were explicitly provided in the request
    params = LiveClassUpdateParams(**payload.model_dump(exclude_unset=True))
    result = await service.update_live_class(
        instructor_id=user.user_id,
        live_class_id=live_class_id,
        params=params,
    )
    return ApiOut[LiveClassOut](results=_to_out(result))


@router.post("/{live_class_id}/join")
async def join_live_class(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[JoinCredentialOut]:
    """Join a live class and receive the provider credential."""
    credential = await service.join_live_class(user_id=user.user_id, live_class_id=live_class_id)
    return ApiOut[JoinCredentialOut](results=JoinCredentialOut(**credential.model_dump()))


@router.post("/{live_class_id}/leave")
async def leave_live_class(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LeaveOut]:
    result = await service.leave_live_class(user_id=user.user_id, live_class_id=live_class_id)
    return ApiOut[LeaveOut](
        results=LeaveOut(live_class_id=result.live_class_id, left=result.left, left_at=result.left_at)
    )


@router.post("/{live_class_id}/start")
async def start_live_class(
    live_class_id: str,
    user: CurrentUser,
    payload: StartLiveClassIn | None = Body(None),
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LiveClassOut]:
    """Start a scheduled live class. Repeating the call is harmless."""
    result = await service.start_live_class(
        instructor_id=user.user_id,
        live_class_id=live_class_id,
        stream_url=payload.stream_url if payload else None,
    )
    return ApiOut[LiveClassOut](results=_to_out(result))


@router.post("/{live_class_id}/end")
async def end_live_class(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LiveClassOut]:
    """End a live class; every participant still in is marked as left."""
    result = await service.end_live_class(instructor_id=user.user_id, live_class_id=live_class_id)
    return ApiOut[LiveClassOut](results=_to_out(result))


@router.post("/{live_class_id}/cancel")
async def cancel_live_class(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[LiveClassOut]:
    result = await service.cancel_live_class(instructor_id=user.user_id, live_class_id=live_class_id)
    return ApiOut[LiveClassOut](results=_to_out(result))


@router.get("/{live_class_id}/participants")
async def get_participants(
    live_class_id: str,
    user: CurrentUser,
    service: LiveClassService = Depends(get_live_class_service),
) -> ApiOut[RosterOut]:
    """Full roster of a live class. Instructor only."""
    roster = await service.get_roster(user_id=user.user_id, live_class_id=live_class_id)
    return ApiOut[RosterOut](
        results=RosterOut(
            live_class_id=roster.live_class_id,
            max_participants=roster.max_participants,
            active_participants=roster.active_participants,
            participants=[
                ParticipantOut(
                    user_id=entry.user_id,
                    joined_at=entry.joined_at,
                    left_at=entry.left_at,
                    active=entry.is_active,
                )
                for entry in roster.participants
            ],
        )
    )
