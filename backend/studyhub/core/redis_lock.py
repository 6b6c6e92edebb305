"""Keyed exclusive locks for session and schedule mutations.

Redis-backed when Redis is configured so that several workers serialize on the
same key; otherwise an in-process lock per key, which is enough for a single
worker and for tests.
"""

import threading
import weakref
from contextlib import contextmanager
from typing import Generator

from redis.exceptions import LockError, RedisError

from studyhub.core.config import settings
from studyhub.core.logging import get_logger
from studyhub.core.redis_client import get_redis_client
from studyhub.learning_engine.errors import ConcurrentModificationError

logger = get_logger(__name__)

LOCK_PREFIX = "studyhub:lock:"


class _KeyedLock:
    __slots__ = ("lock", "__weakref__")

    def __init__(self):
        self.lock = threading.Lock()


_local_locks: "weakref.WeakValueDictionary[str, _KeyedLock]" = weakref.WeakValueDictionary()
_registry_guard = threading.Lock()


def _local_lock_for(key: str) -> _KeyedLock:
    with _registry_guard:
        entry = _local_locks.get(key)
        if entry is None:
            entry = _KeyedLock()
            _local_locks[key] = entry
        return entry


@contextmanager
def _local_lock(key: str, wait_seconds: float) -> Generator[None, None, None]:
    # Holding the entry keeps it alive in the weak registry for the duration
    entry = _local_lock_for(key)
    if not entry.lock.acquire(timeout=wait_seconds):
        logger.warning("Lock wait timed out", extra={"lock_key": key, "backend": "local"})
        raise ConcurrentModificationError(key)
    try:
        yield
    finally:
        entry.lock.release()


@contextmanager
def keyed_lock(
    key: str,
    ttl_seconds: int | None = None,
    wait_seconds: float | None = None,
) -> Generator[None, None, None]:
    """
    Hold an exclusive lock on ``key`` for the duration of the block.

    Usage:
        with keyed_lock(f"exam_session:{session_id}"):
            # load, mutate, commit
            ...

    Raises:
        ConcurrentModificationError: the lock could not be acquired in time
    """
    ttl = ttl_seconds if ttl_seconds is not None else settings.LOCK_TTL_SECONDS
    wait = wait_seconds if wait_seconds is not None else settings.LOCK_WAIT_SECONDS

    redis_client = get_redis_client()
    if redis_client is None:
        with _local_lock(key, wait):
            yield
        return

    lock = redis_client.lock(LOCK_PREFIX + key, timeout=ttl, blocking_timeout=wait)
    try:
        acquired = lock.acquire()
    except RedisError as e:
        # Redis dropped out after startup; serialize within this worker instead
        logger.warning(
            "Redis lock unavailable, using in-process lock",
            extra={"lock_key": key, "error": str(e)},
        )
        with _local_lock(key, wait):
            yield
        return

    if not acquired:
        logger.warning("Lock wait timed out", extra={"lock_key": key, "backend": "redis"})
        raise ConcurrentModificationError(key)

    logger.debug(f"Acquired lock: {key}")
    try:
        yield
    finally:
        try:
            lock.release()
        except (LockError, RedisError) as e:
            # TTL elapsed or connection lost; the optimistic version check still guards the write
            logger.error(f"Error releasing lock {key}: {e}")
