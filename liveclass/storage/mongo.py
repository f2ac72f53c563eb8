"""
MongoDB client management and the Beanie-backed live class store.
"""

import threading

from beanie import init_beanie
from beanie.odm.operators.update.general import Set
from beanie.operators import In
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from liveclass.config import config
from liveclass.schemas import LiveClass, LiveClassRecord
from liveclass.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

from .base import LiveClassFilters

_clients: dict[str, AsyncIOMotorClient] = {}
_clients_lock = threading.Lock()


def get_mongo_client(label: str = "default") -> AsyncIOMotorClient:
    """Return the cached Motor client for a connection label."""
    with _clients_lock:
        client = _clients.get(label)
        if client is None:
            url = config.get_mongo_url(label)
            if not url:
                raise AppError(
                    errcode=AppErrorCode.E_INVALID_REQUEST,
                    errmesg=f"MongoDB connection string not configured for label '{label}'",
                    status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
                )
            client = AsyncIOMotorClient(url, tz_aware=True)
            _clients[label] = client
            logger.info("Created MongoDB client for label '{}'", label)
        return client


def close_mongo_clients() -> None:
    with _clients_lock:
        for label, client in _clients.items():
            client.close()
            logger.info("Closed MongoDB client for label '{}'", label)
        _clients.clear()


async def init_beanie_odm(database: AsyncIOMotorDatabase) -> None:
    """Initialize Beanie ODM with all document models."""
    await init_beanie(
        database=database,  # type: ignore[arg-type]
        document_models=[LiveClassRecord],
    )


class MongoLiveClassStore:
    """Live class store backed by the `live_class` collection.

    Requires `init_beanie_odm` to have run.
    """

    async def insert(self, live_class: LiveClass) -> None:
        record = LiveClassRecord.from_live_class(live_class)
        try:
            await record.insert()
        except DuplicateKeyError as e:
            raise AppError(
                errcode=AppErrorCode.E_INVALID_REQUEST,
                errmesg=f"Live class already exists: {live_class.live_class_id}",
                status_code=HttpStatusCode.CONFLICT,
            ) from e

    async def get(self, live_class_id: str) -> LiveClass | None:
        record = await LiveClassRecord.find_one(LiveClassRecord.live_class_id == live_class_id)
        return record.to_live_class() if record else None

    async def save(self, live_class: LiveClass) -> None:
        """Save with optimistic locking on the version field."""
        current_version = live_class.version
        update_fields = live_class.model_dump(exclude={"live_class_id"})
        update_fields["version"] = current_version + 1

        result = await LiveClassRecord.find(
            LiveClassRecord.live_class_id == live_class.live_class_id,
            LiveClassRecord.version == current_version,
        ).update(Set(update_fields))  # type: ignore[arg-type]

        if result and result.modified_count > 0:
            live_class.version = current_version + 1
            logger.debug(
                f"Live class {live_class.live_class_id} saved successfully "
                f"(version {current_version} -> {live_class.version})"
            )
            return

        fresh = await LiveClassRecord.find_one(
            LiveClassRecord.live_class_id == live_class.live_class_id
        )
        error_msg = (
            f"Version conflict on live class {live_class.live_class_id}: "
            f"expected version {current_version}, "
            f"current version {fresh.version if fresh else 'N/A'}"
        )
        logger.warning(error_msg)
        raise AppError(
            errcode=AppErrorCode.E_VERSION_CONFLICT,
            errmesg=error_msg,
            status_code=HttpStatusCode.CONFLICT,
        )

    async def list(self, filters: LiveClassFilters) -> list[LiveClass]:
        conditions = []
        if filters.statuses is not None:
            conditions.append(In(LiveClassRecord.status, filters.statuses))
        if filters.course_id is not None:
            conditions.append(LiveClassRecord.course_id == filters.course_id)
        if filters.instructor_id is not None:
            conditions.append(LiveClassRecord.instructor_id == filters.instructor_id)
        if filters.scheduled_from is not None:
            conditions.append(LiveClassRecord.scheduled_at >= filters.scheduled_from)

        records = (
            await LiveClassRecord.find(*conditions)
            .sort([("scheduled_at", ASCENDING), ("live_class_id", ASCENDING)])
            .to_list()
        )
        return [record.to_live_class() for record in records]
