import logging
from typing import Awaitable, Callable, Optional, Type, TypeVar

import redis.asyncio as aioredis
from pydantic import BaseModel
from redis.exceptions import RedisError

from storefront.core.config import settings
from storefront.core.exceptions import CacheFailure

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class RedisCache:
    def __init__(self) -> None:
        self.client: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        self.client = aioredis.from_url(settings.redis_url, decode_responses=True)
        logger.info("Connected to Redis")

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None
        logger.info("Disconnected from Redis")

    def _require_client(self, operation: str) -> aioredis.Redis:
        if not self.client:
            raise CacheFailure(operation, "Cache client is not connected")
        return self.client

    async def ping(self) -> bool:
        client = self._require_client("cache.ping")
        try:
            return bool(await client.ping())
        except RedisError as e:
            raise CacheFailure("cache.ping", str(e), cause=e) from e

    async def get(self, key: str) -> Optional[str]:
        client = self._require_client("cache.get")
        try:
            return await client.get(key)
        except RedisError as e:
            raise CacheFailure("cache.get", str(e), cause=e) from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        client = self._require_client("cache.set")
        try:
            await client.set(key, value, ex=ttl)
        except RedisError as e:
            raise CacheFailure("cache.set", str(e), cause=e) from e


cache = RedisCache()


async def compute_or_fetch(
    cache: RedisCache,
    key: str,
    ttl: int,
    compute: Callable[[], Awaitable[ModelT]],
    model: Type[ModelT],
) -> ModelT:
    """Cache-aside read: return the cached value for ``key`` or compute and store it.

    Cache errors never reach the caller. A failed read is treated as a miss and
    a failed write only costs the next caller a recomputation.
    """
    try:
        cached = await cache.get(key)
    except CacheFailure as e:
        logger.warning(f"Cache read failed for {key}, computing directly: {e}")
        cached = None

    if cached is not None:
        logger.debug(f"Cache hit: {key}")
        return model.model_validate_json(cached)

    logger.debug(f"Cache miss: {key}")
    result = await compute()

    try:
        await cache.set(key, result.model_dump_json(), ttl)
    except CacheFailure as e:
        logger.error(f"Cache write failed for {key}: {e}")

    return result
