"""Short-TTL key/value cache.

The cache is never a system of record: every failure degrades to a miss or a
no-op so that a broken cache only costs freshness.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from time import monotonic
from typing import Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.config import get_settings

logger = structlog.get_logger(__name__)


class TTLCache(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, *keys: str) -> None: ...


class RedisTTLCache:
    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisTTLCache:
        return cls(Redis.from_url(redis_url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            logger.warning("cache_unavailable", op="get", key=key, error_type=type(exc).__name__)
            return None
        if value is None:
            return None
        return value if isinstance(value, str) else value.decode("utf-8")

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=max(1, int(ttl_seconds)))
        except RedisError as exc:
            logger.warning("cache_unavailable", op="set", key=key, error_type=type(exc).__name__)

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._client.delete(*keys)
        except RedisError as exc:
            logger.warning(
                "cache_unavailable",
                op="delete",
                keys=list(keys),
                error_type=type(exc).__name__,
            )

    async def aclose(self) -> None:
        await self._client.aclose()


@dataclass(slots=True)
class _CacheEntry:
    value: str
    expires_at_mono: float


class InMemoryTTLCache:
    """Process-local TTL store; ``clock`` returns monotonic seconds."""

    def __init__(self, *, clock: Callable[[], float] = monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at_mono:
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = _CacheEntry(
            value=value,
            expires_at_mono=self._clock() + max(1, int(ttl_seconds)),
        )

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        now_mono = self._clock()
        expired = [key for key, entry in self._entries.items() if now_mono >= entry.expires_at_mono]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


@lru_cache(maxsize=1)
def get_cache() -> TTLCache:
    return RedisTTLCache.from_url(get_settings().redis_url)


async def close_cache() -> None:
    if get_cache.cache_info().currsize == 0:
        return
    cache = get_cache()
    get_cache.cache_clear()
    if isinstance(cache, RedisTTLCache):
        await cache.aclose()
