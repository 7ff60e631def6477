"""Per-course locks serialising structural mutations.

All writes that renumber ``order_index`` values of a course run under the
course lock, so two concurrent reorders can never interleave their reads
and writes. With Redis available the lock is shared by every API worker;
otherwise an in-process ``asyncio.Lock`` per course is used.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError

from learnpath.core.exceptions import StructureLockTimeoutError
from learnpath.core.logging import get_logger
from learnpath.core.redis import structure_lock_key


logger = get_logger(__name__)


class CourseLockManager:
    """Hands out one mutual-exclusion lock per course."""

    def __init__(
        self,
        redis: Redis | None = None,
        timeout: float = 10.0,
        wait: float = 5.0,
    ):
        self.redis = redis
        self.timeout = timeout
        self.wait = wait
        # key -> (lock, holders and waiters); dropped when nobody uses it
        self._local_locks: dict[str, tuple[asyncio.Lock, int]] = {}

    @property
    def distributed(self) -> bool:
        return self.redis is not None

    def _checkout(self, key: str) -> asyncio.Lock:
        lock, users = self._local_locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._local_locks[key] = (lock, users + 1)
        return lock

    def _checkin(self, key: str) -> None:
        lock, users = self._local_locks[key]
        if users == 1:
            del self._local_locks[key]
        else:
            self._local_locks[key] = (lock, users - 1)

    @asynccontextmanager
    async def course_lock(self, course_id: UUID) -> AsyncIterator[None]:
        """Hold the structure lock of ``course_id`` for the duration of the block.

        Raises:
            StructureLockTimeoutError: If the lock is not obtained within
                the configured wait time.
        """
        key = structure_lock_key(str(course_id))

        if self.redis is None:
            lock = self._checkout(key)
            try:
                try:
                    await asyncio.wait_for(lock.acquire(), timeout=self.wait)
                except TimeoutError as e:
                    logger.warning("structure_lock_timeout", course_id=str(course_id))
                    raise StructureLockTimeoutError() from e
                try:
                    yield
                finally:
                    lock.release()
            finally:
                self._checkin(key)
            return

        redis_lock = self.redis.lock(
            key,
            timeout=self.timeout,
            blocking_timeout=self.wait,
        )
        try:
            acquired = await redis_lock.acquire()
        except RedisError as e:
            logger.error(
                "structure_lock_unavailable",
                course_id=str(course_id),
                error=str(e),
            )
            raise StructureLockTimeoutError() from e

        if not acquired:
            logger.warning("structure_lock_timeout", course_id=str(course_id))
            raise StructureLockTimeoutError()

        try:
            yield
        finally:
            try:
                await redis_lock.release()
            except LockError as e:
                # Lease expired while the mutation was still running
                logger.warning(
                    "structure_lock_release_failed",
                    course_id=str(course_id),
                    error=str(e),
                )
