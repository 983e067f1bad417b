"""Entitlement snapshot cache (Redis, cache-aside).

  - Cache key: f"entitlement:{user_id}"
  - Short TTL; PostgreSQL stays the source of truth
  - Write path: DB commit first, then invalidate (reconciler side effect)
  - Read path: cache → DB on miss → populate
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "entitlement:"


def cache_key(user_id: str) -> str:
    return f"{_KEY_PREFIX}{user_id}"


class EntitlementCache:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]],
        ttl_seconds: int = 5,
    ) -> None:
        self._redis_factory = redis_factory
        self._ttl = ttl_seconds

    async def get(self, user_id: str) -> dict[str, Any] | None:
        try:
            client = await self._redis_factory()
            raw = await client.get(cache_key(user_id))
        except RedisError as exc:
            logger.warning("Entitlement cache read failed for %s: %s", user_id, exc)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, user_id: str, snapshot: dict[str, Any]) -> None:
        try:
            client = await self._redis_factory()
            await client.set(cache_key(user_id), json.dumps(snapshot), ex=self._ttl)
        except RedisError as exc:
            logger.warning("Entitlement cache write failed for %s: %s", user_id, exc)

    async def invalidate(self, user_id: str) -> None:
        """Drop the cached snapshot. Errors propagate; callers run this as a side effect."""
        client = await self._redis_factory()
        await client.delete(cache_key(user_id))
