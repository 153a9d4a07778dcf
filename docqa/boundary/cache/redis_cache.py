"""
Redis persistent cache tier.

JSON-serialized values stored under fully qualified cache keys with a TTL.
Every backend failure is reported as ``CacheUnavailableError``.

Dependencies: redis (redis.asyncio)
System role: Persistent cache tier adapter
"""

import json
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from docqa.core.exceptions import CacheUnavailableError

logger = logging.getLogger(__name__)


class RedisPersistentCache:
    """Persistent cache tier over ``redis.asyncio``."""

    def __init__(
        self,
        client: aioredis.Redis,
        default_ttl: int = 3600,
    ) -> None:
        """
        Initialize Redis cache.

        Args:
            client: Async Redis client created with ``decode_responses=True``
            default_ttl: TTL applied when a write does not specify one
        """
        self._client = client
        self._default_ttl = default_ttl

    @classmethod
    def from_url(
        cls,
        url: str,
        password: str | None = None,
        timeout: float = 2.0,
        default_ttl: int = 3600,
    ) -> "RedisPersistentCache":
        """
        Create cache from a Redis URL.

        Args:
            url: Redis URL (redis://host:port/db)
            password: Optional password
            timeout: Socket and connect timeout in seconds
            default_ttl: Default TTL in seconds

        Returns:
            RedisPersistentCache: Configured cache
        """
        client = aioredis.from_url(
            url,
            password=password,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        logger.info(f"{__name__}:from_url - Redis client initialized url={url}")
        return cls(client, default_ttl=default_ttl)

    async def get(self, key: str) -> tuple[Any, bool]:
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis get failed: {e}", {"key": key}) from e
        if raw is None:
            return None, False
        try:
            return json.loads(raw), True
        except json.JSONDecodeError:
            logger.warning(f"{__name__}:get - undecodable value dropped key={key}")
            return None, False

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            raise CacheUnavailableError(f"Value not serializable: {e}", {"key": key}) from e
        try:
            await self._client.set(key, payload, ex=ttl or self._default_ttl)
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis set failed: {e}", {"key": key}) from e

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._client.delete(*keys))
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis delete failed: {e}") from e

    async def keys(self, pattern: str) -> list[str]:
        try:
            return [key async for key in self._client.scan_iter(match=pattern, count=500)]
        except (RedisError, OSError) as e:
            raise CacheUnavailableError(f"Redis scan failed: {e}", {"pattern": pattern}) from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        await self._client.aclose()
