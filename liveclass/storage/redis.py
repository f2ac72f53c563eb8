"""Shared async Redis clients keyed by connection label."""

from loguru import logger
from redis.asyncio import Redis

from liveclass.config import config

_clients: dict[str, Redis] = {}


def get_redis_client(label: str = "default") -> Redis:
    """Return the cached Redis client for a label; connections are opened lazily."""
    client = _clients.get(label)
    if client is None:
        client = Redis.from_url(config.get_redis_url(label), decode_responses=True)
        _clients[label] = client
        logger.info("Created Redis client for label '{}'", label)
    return client


async def close_redis_clients() -> None:
    for label, client in list(_clients.items()):
        await client.aclose()
        logger.info("Closed Redis client for label '{}'", label)
    _clients.clear()
