"""Tests for the local and Redis lock managers."""

import asyncio

import pytest

from liveclass.shared.lock import LocalLockManager, RedisLock, RedisLockManager, make_lock_key
from liveclass.utils.app_errors import LockUnavailableError


class TestMakeLockKey:
    def test_joins_parts(self):
        assert make_lock_key("liveclass:lock", "live_class", "lc_1") == "liveclass:lock:live_class:lc_1"


class TestLocalLockManager:
    async def test_same_key_is_serialized(self):
        # Arrange
        locks = LocalLockManager()
        order: list[str] = []

        async def worker(name: str):
            async with locks.hold("live_class", "lc_1"):
                order.append(f"{name}:in")
                await asyncio.sleep(0.01)
                order.append(f"{name}:out")

        # Act
        await asyncio.gather(worker("a"), worker("b"))

        # Assert
        assert order in (
            ["a:in", "a:out", "b:in", "b:out"],
            ["b:in", "b:out", "a:in", "a:out"],
        )

    async def test_different_keys_do_not_block(self):
        locks = LocalLockManager()
        entered = asyncio.Event()

        async def holder():
            async with locks.hold("live_class", "lc_1"):
                await asyncio.wait_for(entered.wait(), timeout=1)

        async def other():
            async with locks.hold("live_class", "lc_2"):
                entered.set()

        await asyncio.gather(holder(), other())
        assert entered.is_set()

    async def test_timeout_raises_lock_unavailable(self):
        locks = LocalLockManager(blocking_timeout=0.05)
        held = asyncio.Event()
        release = asyncio.Event()

        async def holder():
            async with locks.hold("live_class", "lc_busy"):
                held.set()
                await release.wait()

        task = asyncio.create_task(holder())
        await held.wait()

        with pytest.raises(LockUnavailableError) as exc_info:
            async with locks.hold("live_class", "lc_busy"):
                pass

        assert exc_info.value.status_code == 503
        release.set()
        await task

    async def test_idle_keys_are_dropped(self):
        locks = LocalLockManager()
        async with locks.hold("live_class", "lc_1"):
            assert locks.active_keys() == ["lock:live_class:lc_1"]
        assert locks.active_keys() == []

    async def test_released_after_exception(self):
        locks = LocalLockManager(blocking_timeout=0.05)
        with pytest.raises(RuntimeError):
            async with locks.hold("live_class", "lc_1"):
                raise RuntimeError("boom")

        async with locks.hold("live_class", "lc_1"):
            pass


class TestRedisLock:
    """Skipped unless REDIS_URL_TEST is set."""

    async def test_acquire_and_release(self, redis_client):
        lock = RedisLock(redis_client, "liveclass:test:lock:a", ttl=5)

        assert await lock.acquire(blocking_timeout=0) is True
        assert lock.fencing_token is not None
        assert await redis_client.get("liveclass:test:lock:a") == lock.owner

        assert await lock.release() is True
        assert await redis_client.get("liveclass:test:lock:a") is None

    async def test_second_owner_cannot_acquire(self, redis_client):
        first = RedisLock(redis_client, "liveclass:test:lock:b", ttl=5)
        second = RedisLock(redis_client, "liveclass:test:lock:b", ttl=5)
        await first.acquire(blocking_timeout=0)
        try:
            assert await second.acquire(blocking_timeout=0.1) is False
            assert await second.release() is False
        finally:
            await first.release()

    async def test_fencing_token_increases(self, redis_client):
        tokens = []
        for _ in range(2):
            lock = RedisLock(redis_client, "liveclass:test:lock:c", ttl=5)
            await lock.acquire(blocking_timeout=0)
            tokens.append(lock.fencing_token)
            await lock.release()
        assert tokens[1] > tokens[0]

    async def test_manager_raises_when_busy(self, redis_client):
        manager = RedisLockManager(redis_client, lock_prefix="liveclass:test", blocking_timeout=0.1)
        async with manager.hold("live_class", "lc_busy"):
            with pytest.raises(LockUnavailableError):
                async with manager.hold("live_class", "lc_busy"):
                    pass
