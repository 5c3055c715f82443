"""Redis-backed MetricsCache, shared by every API worker.

Payloads are stored as JSON under "wm:metrics:{key}" with SETEX. Prefix
invalidation walks SCAN (never KEYS) and deletes in batches. Any Redis
error is logged and swallowed: the caller just recomputes.
"""

import json
import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.wm_cache.domain.protocol import Payload
from src.wm_common.redis_client import get_redis

logger = logging.getLogger(__name__)

_NAMESPACE = "wm:metrics:"
_DELETE_BATCH = 500


class RedisMetricsCache:
    def __init__(
        self, redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis
    ) -> None:
        self._redis_factory = redis_factory

    async def get(self, key: str) -> Payload | None:
        try:
            redis = await self._redis_factory()
            raw = await redis.get(_NAMESPACE + key)
        except (RedisError, OSError) as exc:
            logger.warning("metrics cache get failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("metrics cache entry %s is not valid JSON, ignoring", key)
            return None

    async def set(self, key: str, payload: Payload, ttl: int) -> None:
        try:
            redis = await self._redis_factory()
            await redis.set(_NAMESPACE + key, json.dumps(payload, default=str), ex=ttl)
        except (RedisError, OSError) as exc:
            logger.warning("metrics cache set failed for %s: %s", key, exc)

    async def invalidate(self, key: str, *, prefix: bool = False) -> None:
        try:
            redis = await self._redis_factory()
            if not prefix:
                await redis.delete(_NAMESPACE + key)
                return
            batch: list[str] = []
            async for found in redis.scan_iter(match=f"{_NAMESPACE}{_escape(key)}*"):
                batch.append(found)
                if len(batch) >= _DELETE_BATCH:
                    await redis.delete(*batch)
                    batch = []
            if batch:
                await redis.delete(*batch)
        except (RedisError, OSError) as exc:
            logger.warning("metrics cache invalidate failed for %s: %s", key, exc)


def _escape(pattern: str) -> str:
    """Escape glob metacharacters so ids are matched literally by SCAN."""
    for ch in ("\\", "*", "?", "[", "]"):
        pattern = pattern.replace(ch, "\\" + ch)
    return pattern
