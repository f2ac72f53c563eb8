"""Live class domain service."""

from loguru import logger

from liveclass.app_config import AppEnvironConfig, get_app_environ_config
from liveclass.services.events import EventPublisher, MemoryEventPublisher, RedisEventPublisher
from liveclass.services.integrations.course_catalog_client import (
    CourseCatalogClient,
    get_course_catalog_client,
)
from liveclass.services.integrations.livekit_service import LivekitService
from liveclass.shared.lock import LocalLockManager, LockManagerProtocol, RedisLockManager
from liveclass.storage import InMemoryLiveClassStore, LiveClassStore
from liveclass.utils.clock import Clock, system_clock

from ._credentials import CredentialIssuer
from ._lifecycle import LifecycleOperations
from ._queries import QueryOperations
from ._roster import RosterOperations
from .live_class_models import (
    JoinCredential,
    LeaveResponse,
    LiveClassCreateParams,
    LiveClassListFilters,
    LiveClassResponse,
    LiveClassUpdateParams,
    RosterResponse,
)


def _default_store(cfg: AppEnvironConfig) -> LiveClassStore:
    if cfg.STORE_BACKEND == "mongo":
        from liveclass.storage.mongo import MongoLiveClassStore

        return MongoLiveClassStore()
    return InMemoryLiveClassStore()


def _default_locks(cfg: AppEnvironConfig) -> LockManagerProtocol:
    if cfg.LOCK_BACKEND == "redis":
        from liveclass.storage.redis import get_redis_client

        return RedisLockManager(
            get_redis_client("lock"),
            lock_prefix="liveclass:lock",
            default_ttl=cfg.LOCK_TTL_SECONDS,
            blocking_timeout=cfg.LOCK_BLOCKING_TIMEOUT,
        )
    return LocalLockManager(lock_prefix="liveclass:lock", blocking_timeout=cfg.LOCK_BLOCKING_TIMEOUT)


def _default_publisher(cfg: AppEnvironConfig) -> EventPublisher:
    if cfg.EVENTS_BACKEND == "redis":
        from liveclass.storage.redis import get_redis_client

        return RedisEventPublisher(get_redis_client("events"), stream=cfg.EVENTS_STREAM)
    return MemoryEventPublisher()


class LiveClassService:
    """Live class lifecycle service.

    Collaborators default to what the configuration selects; tests pass their own.
    """

    def __init__(
        self,
        cfg: AppEnvironConfig | None = None,
        store: LiveClassStore | None = None,
        locks: LockManagerProtocol | None = None,
        catalog: CourseCatalogClient | None = None,
        publisher: EventPublisher | None = None,
        livekit: LivekitService | None = None,
        clock: Clock | None = None,
    ):
        cfg = cfg or get_app_environ_config()
        clock = clock or system_clock
        deps = dict(
            cfg=cfg,
            store=store or _default_store(cfg),
            locks=locks or _default_locks(cfg),
            catalog=catalog or get_course_catalog_client(cfg),
            publisher=publisher or _default_publisher(cfg),
            issuer=CredentialIssuer(
                livekit or LivekitService(cfg),
                clock=clock,
                grace_minutes=cfg.LIVE_CLASS_TOKEN_GRACE_MINUTES,
            ),
            clock=clock,
        )
        self.store = deps["store"]
        self.publisher = deps["publisher"]

        self._lifecycle = LifecycleOperations(**deps)
        self._roster = RosterOperations(**deps)
        self._queries = QueryOperations(**deps)
        logger.info(
            f"LiveClassService initialized (store={cfg.STORE_BACKEND}, "
            f"locks={cfg.LOCK_BACKEND}, events={cfg.EVENTS_BACKEND})"
        )

    # ==================== LIFECYCLE ====================

    async def create_live_class(
        self,
        instructor_id: str,
        params: LiveClassCreateParams,
    ) -> LiveClassResponse:
        """Create a new live class in the scheduled state.

        Raises ValidationError, ProviderConfigError or AuthorizationError.
        """
        return await self._lifecycle.create_live_class(instructor_id=instructor_id, params=params)

    async def update_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
        params: LiveClassUpdateParams,
    ) -> LiveClassResponse:
        """Edit a scheduled live class."""
        return await self._lifecycle.update_live_class(
            instructor_id=instructor_id,
            live_class_id=live_class_id,
            params=params,
        )

    async def start_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
        stream_url: str | None = None,
    ) -> LiveClassResponse:
        """Start a scheduled live class. Idempotent for the instructor."""
        return await self._lifecycle.start_live_class(
            instructor_id=instructor_id,
            live_class_id=live_class_id,
            stream_url=stream_url,
        )

    async def end_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
    ) -> LiveClassResponse:
        """End a live class and close its roster. Idempotent for the instructor."""
        return await self._lifecycle.end_live_class(
            instructor_id=instructor_id,
            live_class_id=live_class_id,
        )

    async def cancel_live_class(
        self,
        instructor_id: str,
        live_class_id: str,
    ) -> LiveClassResponse:
        """Cancel a live class that has not started."""
        return await self._lifecycle.cancel_live_class(
            instructor_id=instructor_id,
            live_class_id=live_class_id,
        )

    # ==================== ROSTER ====================

    async def join_live_class(
        self,
        user_id: str | None,
        live_class_id: str,
    ) -> JoinCredential:
        """Seat the caller and return the provider credential."""
        return await self._roster.join_live_class(user_id=user_id, live_class_id=live_class_id)

    async def leave_live_class(
        self,
        user_id: str,
        live_class_id: str,
    ) -> LeaveResponse:
        """Close the caller's active roster entry; a no-op without one."""
        return await self._roster.leave_live_class(user_id=user_id, live_class_id=live_class_id)

    async def get_roster(
        self,
        user_id: str,
        live_class_id: str,
    ) -> RosterResponse:
        return await self._roster.get_roster(user_id=user_id, live_class_id=live_class_id)

    # ==================== QUERIES ====================

    async def get_live_class(
        self,
        user_id: str | None,
        live_class_id: str,
    ) -> LiveClassResponse:
        return await self._queries.get_live_class(user_id=user_id, live_class_id=live_class_id)

    async def list_live_classes(
        self,
        user_id: str | None,
        filters: LiveClassListFilters | None = None,
    ) -> list[LiveClassResponse]:
        return await self._queries.list_live_classes(
            user_id=user_id,
            filters=filters or LiveClassListFilters(),
        )
