"""Per-resource exclusive sections.

`LocalLockManager` serializes holders inside one process with asyncio locks.
`RedisLockManager` does the same across processes with a Redis lock.
Both expose `hold(*key_parts)`, an async context manager.
"""

import asyncio
import os
import random
import socket
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

from loguru import logger

from liveclass.utils.app_errors import LockUnavailableError


def default_owner_id() -> str:
    """Generate a default owner id (host:pid:uuid8)."""
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


def make_lock_key(prefix: str, *parts) -> str:
    return f"{prefix}:{':'.join(str(part) for part in parts)}"


class LockManagerProtocol(Protocol):
    def hold(self, *key_parts) -> AbstractAsyncContextManager:
        """Async context manager guarding the resource named by key_parts."""
        ...


class LocalLockManager:
    """In-process lock manager: one asyncio.Lock per key, dropped when idle."""

    def __init__(self, lock_prefix: str = "lock", blocking_timeout: float | None = None):
        self.lock_prefix = lock_prefix
        self.blocking_timeout = blocking_timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, *key_parts) -> AsyncIterator[None]:
        key = make_lock_key(self.lock_prefix, *key_parts)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.blocking_timeout)
            except TimeoutError as e:
                logger.warning("Failed to acquire lock: key={}", key)
                raise LockUnavailableError(f"Resource is busy, try again: {key}") from e

            try:
                yield
            finally:
                lock.release()
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def active_keys(self) -> list[str]:
        return list(self._locks)


# Atomically release: only delete if value==owner
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class RedisLock:
    """A single distributed lock acquisition (async)."""

    def __init__(
        self,
        redis_client,
        lock_key: str,
        ttl: int,
        owner: str | None = None,
        fence_prefix: str = "fence",
    ):
        """
        Args:
            redis_client: Async Redis client instance
            lock_key: Fully qualified lock key
            ttl: Lock TTL in seconds
            owner: Identifier of the lock owner (defaults to host:pid:uuid8)
            fence_prefix: Prefix for the per-resource fencing counter
        """
        self.redis_client = redis_client
        self.lock_key = lock_key
        self.ttl = int(ttl)
        self.owner = owner or default_owner_id()
        self.fence_key = f"{fence_prefix}:{lock_key}"
        self.acquired = False

        # fencing token (monotonic increasing number generated when lock is acquired)
        self.fencing_token: int | None = None

    async def acquire(
        self,
        blocking_timeout: float | None = None,
        retry_interval: float = 0.05,
        jitter: float = 0.05,
    ) -> bool:
        """
        Try to acquire the lock, polling until acquired or timed out.

        Args:
            blocking_timeout: Max seconds to wait. None waits forever; 0 tries once.
            retry_interval: Base sleep seconds between retries
            jitter: Add random(0, jitter) to each sleep to reduce thundering herd

        Returns:
            True if acquired, else False
        """
        deadline = None if blocking_timeout is None else time.monotonic() + blocking_timeout
        while True:
            if await self.redis_client.set(self.lock_key, self.owner, nx=True, ex=self.ttl):
                self.acquired = True
                break

            if deadline is not None and time.monotonic() >= deadline:
                logger.warning("Failed to acquire lock: key={} owner={}", self.lock_key, self.owner)
                return False

            sleep_for = retry_interval + random.uniform(0, max(jitter, 0))
            if deadline is not None:
                sleep_for = min(sleep_for, max(0.0, deadline - time.monotonic()))
            await asyncio.sleep(sleep_for)

        try:
            self.fencing_token = int(await self.redis_client.incr(self.fence_key))
        except Exception as e:
            # Never hold the lock without a token
            logger.error(
                "Failed to generate fencing token: key={} owner={} err={}",
                self.lock_key,
                self.owner,
                str(e),
            )
            await self.release()
            raise

        logger.debug(
            "Acquired lock: key={} owner={} ttl={} token={}",
            self.lock_key,
            self.owner,
            self.ttl,
            self.fencing_token,
        )
        return True

    async def release(self) -> bool:
        """Release the lock if we own it (atomic check-and-del)."""
        if not self.acquired:
            return False

        self.acquired = False
        self.fencing_token = None
        res = await self.redis_client.eval(_RELEASE_LUA, 1, self.lock_key, self.owner)
        if res == 1:
            logger.debug("Released lock: key={} owner={}", self.lock_key, self.owner)
            return True

        # TTL expired and someone else may hold it now
        logger.warning("Cannot release lock - not owned: key={} owner={}", self.lock_key, self.owner)
        return False


class RedisLockManager:
    """Distributed lock manager using Redis (async)."""

    def __init__(
        self,
        redis_client,
        lock_prefix: str = "lock",
        default_ttl: int = 30,
        blocking_timeout: float | None = 10,
    ):
        self.redis_client = redis_client
        self.lock_prefix = lock_prefix
        self.default_ttl = int(default_ttl)
        self.blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, *key_parts) -> AsyncIterator[RedisLock]:
        lock = RedisLock(
            self.redis_client,
            make_lock_key(self.lock_prefix, *key_parts),
            ttl=self.default_ttl,
        )
        if not await lock.acquire(blocking_timeout=self.blocking_timeout):
            raise LockUnavailableError(f"Resource is busy, try again: {lock.lock_key}")
        try:
            yield lock
        finally:
            await lock.release()
