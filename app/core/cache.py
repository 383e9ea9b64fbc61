import json
import logging
from typing import Any, Dict, Optional

from redis.asyncio import Redis

from app.core.constants import ACTIVE_RUBRIC_CACHE_KEY

logger = logging.getLogger(__name__)


class CacheService:
    """Best-effort cache over an async Redis client.

    If *redis_client* is ``None`` (Redis unavailable), every operation
    degrades to a no-op, so callers never need to check for ``None``.
    Cache misses and Redis failures look the same to callers: the
    database stays the source of truth.
    """

    def __init__(self, redis_client: Optional[Redis] = None, ttl: int | None = None) -> None:
        self._redis: Optional[Redis] = redis_client
        self._ttl = ttl

    async def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the decoded JSON value stored under *key*, or ``None``."""
        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(key)
        except Exception:
            logger.warning("Redis GET failed for key %s", key)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Invalid JSON in cache key %s", key)
            return None

    async def set_json(self, key: str, data: Dict[str, Any]) -> None:
        """Serialise *data* to JSON and store it with the configured TTL."""
        if self._redis is None:
            return
        try:
            payload = json.dumps(data, default=str)
        except (TypeError, ValueError):
            logger.warning("Failed to serialise data for cache key %s", key)
            return
        try:
            if self._ttl:
                await self._redis.setex(key, self._ttl, payload)
            else:
                await self._redis.set(key, payload)
        except Exception:
            logger.warning("Redis SET failed for key %s", key)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (best-effort)."""
        if self._redis is None:
            return
        try:
            await self._redis.delete(key)
        except Exception:
            logger.warning("Redis DELETE failed for key %s", key)

    # ------------------------------------------------------------------
    # Active rubric snapshot
    # ------------------------------------------------------------------

    async def get_active_rubric(self) -> Optional[Dict[str, Any]]:
        return await self.get_json(ACTIVE_RUBRIC_CACHE_KEY)

    async def set_active_rubric(self, snapshot: Dict[str, Any]) -> None:
        await self.set_json(ACTIVE_RUBRIC_CACHE_KEY, snapshot)

    async def invalidate_active_rubric(self) -> None:
        """Drop the cached snapshot; called after every activation."""
        await self.delete(ACTIVE_RUBRIC_CACHE_KEY)

    @property
    def is_available(self) -> bool:
        """Return ``True`` if a Redis client is configured."""
        return self._redis is not None
