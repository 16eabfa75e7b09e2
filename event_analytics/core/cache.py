# core/cache.py

import logging
from typing import Optional

import redis
from redis.exceptions import RedisError

from event_analytics.core.config import REDIS_SOCKET_TIMEOUT, REDIS_URL

logger = logging.getLogger(__name__)


class AggregateCache:
    """
    Best-effort key/value cache in front of the aggregate queries.

    Every operation swallows RedisError: a failing or missing redis behaves
    like an empty cache and never fails the request.
    """

    def __init__(self, client: Optional["redis.Redis"] = None):
        self._client = client

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def get(self, key: str) -> Optional[str]:
        if self._client is None:
            return None
        try:
            value = self._client.get(key)
        except RedisError as e:
            logger.warning("Redis error when getting %s, continuing without cache: %s", key, e)
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        if self._client is None:
            return False
        try:
            self._client.set(key, value, ex=ttl_seconds)
            return True
        except RedisError as e:
            logger.warning("Redis error when setting %s: %s", key, e)
            return False

    def incr_window(self, key: str, window_seconds: int) -> Optional[int]:
        """Fixed-window counter. Returns None when the cache is unavailable."""
        if self._client is None:
            return None
        try:
            count = self._client.incr(key)
            if count == 1:
                self._client.expire(key, window_seconds)
            return int(count)
        except RedisError as e:
            logger.warning("Redis error when counting %s: %s", key, e)
            return None

    def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(self._client.ping())
        except RedisError:
            return False


_cache: Optional[AggregateCache] = None


def build_cache(url: str = REDIS_URL) -> AggregateCache:
    if not url:
        logger.info("REDIS_URL is not set, aggregate cache disabled")
        return AggregateCache(None)
    client = redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
    )
    return AggregateCache(client)


def get_cache() -> AggregateCache:
    global _cache
    if _cache is None:
        _cache = build_cache()
    return _cache
