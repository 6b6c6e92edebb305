"""Redis connection used as the distributed lock backend.

Redis holds no application data here: it only coordinates the per-session and
per-card locks across workers. When it is disabled or unreachable (and not
required), callers get ``None`` and fall back to in-process locks.
"""

import redis
from redis.exceptions import ConnectionError, RedisError

from studyhub.core.config import settings
from studyhub.core.logging import get_logger

logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


def _connect(url: str) -> redis.Redis:
    client = redis.from_url(
        url,
        socket_connect_timeout=1,
        socket_timeout=settings.LOCK_WAIT_SECONDS + 1,
        retry_on_timeout=True,
        health_check_interval=30,
    )
    client.ping()
    return client


def get_redis_client() -> redis.Redis | None:
    """Lock backend client, or None when locks should stay in-process."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None
    if _redis_client is not None:
        return _redis_client

    if not settings.REDIS_URL:
        if settings.REDIS_REQUIRED:
            raise ValueError("REDIS_URL must be set when REDIS_REQUIRED=true")
        logger.warning("REDIS_URL not set, session locks are per-process only")
        return None

    try:
        _redis_client = _connect(settings.REDIS_URL)
    except RedisError as e:
        if settings.REDIS_REQUIRED:
            raise ConnectionError(f"Lock backend unreachable and REDIS_REQUIRED=true: {e}") from e
        logger.warning(f"Lock backend unreachable, using in-process locks: {e}")
        return None

    logger.info("Redis lock backend connected")
    return _redis_client


def reset_redis_client() -> None:
    """Drop the cached client so the next call reconnects."""
    global _redis_client
    if _redis_client is not None:
        _redis_client.close()
    _redis_client = None


def is_redis_available() -> bool:
    client = get_redis_client()
    if client is None:
        return False
    try:
        return bool(client.ping())
    except RedisError:
        return False


def init_redis() -> None:
    """Connect at startup so a required backend fails fast."""
    if not settings.REDIS_ENABLED:
        logger.info("Redis disabled, session locks are per-process only")
        return
    try:
        get_redis_client()
    except (RedisError, ValueError) as e:
        if settings.REDIS_REQUIRED:
            raise
        logger.warning(f"Redis initialization failed (non-fatal): {e}")
