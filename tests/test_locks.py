"""Tests for per-course structure locks."""

import asyncio
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockError

from learnpath.core.exceptions import StructureLockTimeoutError
from learnpath.core.locks import CourseLockManager
from learnpath.core.redis import structure_lock_key


class TestInProcessLocks:
    """Fallback locks without Redis."""

    def test_not_distributed(self) -> None:
        assert CourseLockManager().distributed is False

    @pytest.mark.asyncio
    async def test_serialises_same_course(self) -> None:
        manager = CourseLockManager()
        course_id = uuid4()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with manager.course_lock(course_id):
                events.append(f"{name}:in")
                await asyncio.sleep(0.01)
                events.append(f"{name}:out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a:in", "a:out", "b:in", "b:out"]

    @pytest.mark.asyncio
    async def test_courses_do_not_block_each_other(self) -> None:
        manager = CourseLockManager(wait=0.05)

        async with manager.course_lock(uuid4()):
            async with manager.course_lock(uuid4()):
                pass

    @pytest.mark.asyncio
    async def test_wait_timeout(self) -> None:
        manager = CourseLockManager(wait=0.05)
        course_id = uuid4()

        async with manager.course_lock(course_id):
            with pytest.raises(StructureLockTimeoutError):
                async with manager.course_lock(course_id):
                    pass

    @pytest.mark.asyncio
    async def test_released_after_error(self) -> None:
        manager = CourseLockManager(wait=0.05)
        course_id = uuid4()

        with pytest.raises(RuntimeError):
            async with manager.course_lock(course_id):
                raise RuntimeError("boom")

        async with manager.course_lock(course_id):
            pass

    @pytest.mark.asyncio
    async def test_idle_locks_are_dropped(self) -> None:
        manager = CourseLockManager(wait=0.05)
        busy = uuid4()

        async with manager.course_lock(busy):
            for _ in range(3):
                async with manager.course_lock(uuid4()):
                    pass
            with pytest.raises(StructureLockTimeoutError):
                async with manager.course_lock(busy):
                    pass
            assert list(manager._local_locks) == [structure_lock_key(str(busy))]

        assert manager._local_locks == {}


def _redis_with_lock(lock: MagicMock) -> MagicMock:
    redis = MagicMock()
    redis.lock = MagicMock(return_value=lock)
    return redis


class TestRedisLocks:
    """Distributed locks through redis-py."""

    @pytest.mark.asyncio
    async def test_acquire_and_release(self) -> None:
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=True)
        lock.release = AsyncMock()
        redis = _redis_with_lock(lock)
        manager = CourseLockManager(redis=redis, timeout=7, wait=3)
        course_id = uuid4()

        async with manager.course_lock(course_id):
            lock.release.assert_not_awaited()

        assert manager.distributed is True
        redis.lock.assert_called_once_with(
            structure_lock_key(str(course_id)), timeout=7, blocking_timeout=3
        )
        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_acquired(self) -> None:
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=False)
        manager = CourseLockManager(redis=_redis_with_lock(lock))

        with pytest.raises(StructureLockTimeoutError):
            async with manager.course_lock(uuid4()):
                pass

    @pytest.mark.asyncio
    async def test_redis_down(self) -> None:
        lock = MagicMock()
        lock.acquire = AsyncMock(side_effect=RedisConnectionError("down"))
        manager = CourseLockManager(redis=_redis_with_lock(lock))

        with pytest.raises(StructureLockTimeoutError):
            async with manager.course_lock(uuid4()):
                pass

    @pytest.mark.asyncio
    async def test_expired_lease_on_release_is_logged(self) -> None:
        lock = MagicMock()
        lock.acquire = AsyncMock(return_value=True)
        lock.release = AsyncMock(side_effect=LockError("expired"))
        manager = CourseLockManager(redis=_redis_with_lock(lock))

        async with manager.course_lock(uuid4()):
            pass

        lock.release.assert_awaited_once()
