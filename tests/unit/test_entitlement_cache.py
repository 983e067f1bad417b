"""Unit tests for EntitlementCache (Redis cache-aside)."""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.ent_account.infrastructure.cache import EntitlementCache, cache_key


def _cache(redis: AsyncMock, ttl: int = 5) -> EntitlementCache:
    return EntitlementCache(AsyncMock(return_value=redis), ttl_seconds=ttl)


class TestEntitlementCache:
    def test_key(self) -> None:
        assert cache_key("user-1") == "entitlement:user-1"

    async def test_get_hit(self) -> None:
        redis = AsyncMock()
        redis.get.return_value = json.dumps({"credits": 10})
        assert await _cache(redis).get("user-1") == {"credits": 10}
        redis.get.assert_awaited_once_with("entitlement:user-1")

    async def test_get_miss(self) -> None:
        redis = AsyncMock()
        redis.get.return_value = None
        assert await _cache(redis).get("user-1") is None

    async def test_get_redis_error_is_a_miss(self) -> None:
        redis = AsyncMock()
        redis.get.side_effect = RedisConnectionError("down")
        assert await _cache(redis).get("user-1") is None

    async def test_set_uses_ttl(self) -> None:
        redis = AsyncMock()
        await _cache(redis, ttl=7).set("user-1", {"credits": 10})
        redis.set.assert_awaited_once_with("entitlement:user-1", json.dumps({"credits": 10}), ex=7)

    async def test_set_redis_error_is_logged(self, caplog) -> None:
        redis = AsyncMock()
        redis.set.side_effect = RedisConnectionError("down")
        await _cache(redis).set("user-1", {"credits": 10})
        assert "cache write failed" in caplog.text

    async def test_invalidate_propagates_errors(self) -> None:
        redis = AsyncMock()
        redis.delete.side_effect = RedisConnectionError("down")
        with pytest.raises(RedisConnectionError):
            await _cache(redis).invalidate("user-1")

    async def test_invalidate(self) -> None:
        redis = AsyncMock()
        await _cache(redis).invalidate("user-1")
        redis.delete.assert_awaited_once_with("entitlement:user-1")
