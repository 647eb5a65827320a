"""
Redis cache gateway for the Users Service.
"""

from typing import Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import CacheConnectionError


class CacheGateway:
    """Key/value access to Redis with an explicit miss signal.

    A missing key is a normal outcome, reported as ``("", False)``. Any Redis
    failure raises :class:`CacheConnectionError`. Values are written without
    an expiration.
    """

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.logger = get_logger("users.cache")
        self._redis = client
        self._owns_client = client is None

    def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def get(self, key: str) -> Tuple[str, bool]:
        """Read ``key``, returning the value and whether it was present."""
        try:
            value = await self._get_redis().get(key)
        except RedisError as exc:
            self.logger.error("Error fetching from cache", key=key, error=str(exc))
            raise CacheConnectionError(
                "Error fetching users from cache",
                details={"key": key, "error": str(exc)},
            ) from exc

        if value is None:
            self.logger.debug("Cache miss", key=key)
            return "", False

        if isinstance(value, bytes):
            value = value.decode("utf-8")
        self.logger.debug("Cache hit", key=key)
        return value, True

    async def set(self, key: str, value: str) -> None:
        """Write ``value`` under ``key`` with no expiration."""
        try:
            await self._get_redis().set(key, value)
        except RedisError as exc:
            self.logger.error("Error storing in cache", key=key, error=str(exc))
            raise CacheConnectionError(
                "Error storing users in cache",
                details={"key": key, "error": str(exc)},
            ) from exc

        self.logger.debug("Cached value", key=key, size=len(value))

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            await self._get_redis().ping()
            return True
        except RedisError as exc:
            self.logger.warning("Cache health check failed", error=str(exc))
            return False

    async def close(self) -> None:
        """Close the Redis connection if this gateway opened it."""
        if self._redis is not None and self._owns_client:
            await self._redis.aclose()
            self._redis = None
