"""
Key-value stores backing the key cache.

Any object with async get(key) and put(key, value, ttl_seconds) will do. The
store may be eventually consistent: a put is not guaranteed to be visible to
the next get.
"""

import time
from typing import Callable, Dict, Optional, Protocol, Tuple

import redis.asyncio as redis


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        ...


class MemoryKeyValueStore:
    """
    In-process store with per-entry expiry.
    Expired entries read as absent. They are dropped on read, and writes
    sweep out every expired entry at most once per sweep_interval seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0):
        self.clock = clock
        self.sweep_interval = sweep_interval
        # Cache: {key: (value, expires_at)}
        self._data: Dict[str, Tuple[str, float]] = {}
        self._next_sweep = clock() + sweep_interval

    async def get(self, key: str) -> Optional[str]:
        if key not in self._data:
            return None
        value, expires_at = self._data[key]
        if self.clock() >= expires_at:
            del self._data[key]  # Expired, remove it
            return None
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self.clock()
        if now >= self._next_sweep:
            self._purge_expired(now)
        self._data[key] = (value, now + ttl_seconds)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._data.items() if now >= expires_at]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self.sweep_interval

    def clear(self) -> None:
        self._data.clear()


class RedisKeyValueStore:
    """Store backed by Redis, entries expire via SET ... EX"""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisKeyValueStore":
        return cls(redis.from_url(redis_url, encoding="utf-8", decode_responses=True))

    async def get(self, key: str) -> Optional[str]:
        value = await self.client.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        await self.client.set(key, value, ex=ttl_seconds)

    async def close(self) -> None:
        await self.client.aclose()
