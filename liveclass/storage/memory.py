"""In-memory live class store for single-process deployments and tests."""

from loguru import logger

from liveclass.schemas import LiveClass
from liveclass.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .base import LiveClassFilters


class InMemoryLiveClassStore:
    """Keeps committed snapshots in a dictionary keyed by live_class_id."""

    def __init__(self) -> None:
        self._items: dict[str, LiveClass] = {}

    async def insert(self, live_class: LiveClass) -> None:
        if live_class.live_class_id in self._items:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"Live class already exists: {live_class.live_class_id}",
                status_code=HttpStatusCode.CONFLICT,
            )
        self._items[live_class.live_class_id] = live_class.model_copy(deep=True)

    async def get(self, live_class_id: str) -> LiveClass | None:
        stored = self._items.get(live_class_id)
        return stored.model_copy(deep=True) if stored else None

    async def save(self, live_class: LiveClass) -> None:
        stored = self._items.get(live_class.live_class_id)
        if stored is None or stored.version != live_class.version:
            error_msg = (
                f"Version conflict on live class {live_class.live_class_id}: "
                f"expected version {live_class.version}, "
                f"current version {stored.version if stored else 'N/A'}"
            )
            logger.warning(error_msg)
            raise AppError(
                errcode=AppErrorCode.E_VERSION_CONFLICT,
                errmesg=error_msg,
                status_code=HttpStatusCode.CONFLICT,
            )

        live_class.version += 1
        self._items[live_class.live_class_id] = live_class.model_copy(deep=True)
        logger.debug(
            f"Live class {live_class.live_class_id} saved (version {live_class.version})"
        )

    async def list(self, filters: LiveClassFilters) -> list[LiveClass]:
        matched = [item for item in self._items.values() if filters.matches(item)]
        matched.sort(key=lambda item: (item.scheduled_at, item.live_class_id))
        return [item.model_copy(deep=True) for item in matched]

    def clear(self) -> None:
        self._items.clear()
