"""Roster operations: join, leave and participant listing."""

from loguru import logger

from liveclass.schemas import LiveClassStatus, RosterEntry
from liveclass.services.events import LiveClassEventType
from liveclass.utils.app_errors import InvalidStateError

from ._base import BaseService
from ._policy import LiveClassAction, ensure_permitted
from .live_class_models import JoinCredential, LeaveResponse, RosterResponse


class RosterOperations(BaseService):
    """Participant-driven roster changes."""

    async def join_live_class(
        self,
        user_id: str | None,
        live_class_id: str,
    ) -> JoinCredential:
        """
        Seat a participant and hand out the provider credential.

        Checks run in order and the first failure wins: existence, state,
        authorization, capacity. A participant who is already in keeps their
        seat and gets a fresh credential.

        Raises:
            NotFoundError, InvalidStateError, AuthorizationError,
            CapacityExceededError, ProviderConfigError
        """
        # Enrollment is resolved before taking the lock; course_id never changes
        snapshot = await self._get_live_class(live_class_id)
        is_enrolled = await self._is_enrolled(user_id, snapshot)

        async with self._hold(live_class_id):
            live_class = await self._get_live_class(live_class_id)
            if live_class.status not in LiveClassStatus.joinable_states():
                raise InvalidStateError(
                    f"Cannot join live class {live_class_id} in state {live_class.status}"
                )

            role = self._resolve_role(user_id, live_class, is_enrolled)
            ensure_permitted(role, LiveClassAction.JOIN, live_class)
            assert user_id is not None

            self.capacity.ensure_headroom(live_class, user_id)

            # Issue before seating so a credential failure leaves the roster untouched
            credential = self.issuer.issue(live_class, user_id)

            now = self.clock.now()
            entry = live_class.find_entry(user_id)
            rejoin = entry is not None
            if entry is None:
                live_class.roster.append(RosterEntry(user_id=user_id, joined_at=now))
            else:
                entry.joined_at = now
                entry.left_at = None
            live_class.updated_at = now

            await self.store.save(live_class)
            logger.info(
                f"User {user_id} joined live class {live_class_id} as {credential.role} "
                f"({live_class.active_count()}/{live_class.max_participants})"
            )

        await self._publish(
            self._event(
                LiveClassEventType.PARTICIPANT_JOINED,
                live_class,
                user_id,
                role=credential.role,
                rejoin=rejoin,
            )
        )
        return credential

    async def leave_live_class(
        self,
        user_id: str,
        live_class_id: str,
    ) -> LeaveResponse:
        """
        Close the caller's active roster entry.

        Leaving without an active entry is a no-op.

        Raises:
            NotFoundError: Only if the live class does not exist
        """
        async with self._hold(live_class_id):
            live_class = await self._get_live_class(live_class_id)
            entry = live_class.find_entry(user_id)
            if entry is None or not entry.is_active:
                logger.debug(f"User {user_id} has no active entry in live class {live_class_id}")
                return LeaveResponse(live_class_id=live_class_id, user_id=user_id, left=False)

            now = self.clock.now()
            entry.left_at = now
            live_class.updated_at = now
            await self.store.save(live_class)
            logger.info(f"User {user_id} left live class {live_class_id}")

        await self._publish(
            self._event(LiveClassEventType.PARTICIPANT_LEFT, live_class, user_id)
        )
        return LeaveResponse(live_class_id=live_class_id, user_id=user_id, left=True, left_at=now)

    async def get_roster(
        self,
        user_id: str,
        live_class_id: str,
    ) -> RosterResponse:
        """
        Return every roster entry, active or not. Instructor only.

        Raises:
            NotFoundError, AuthorizationError
        """
        live_class = await self._get_live_class(live_class_id)
        self._ensure_instructor(user_id, live_class, LiveClassAction.VIEW_ROSTER)
        return RosterResponse(
            live_class_id=live_class.live_class_id,
            max_participants=live_class.max_participants,
            active_participants=live_class.active_count(),
            participants=live_class.roster,
        )
