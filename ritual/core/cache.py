"""Key/value cache with per-entry expiry.

Entries are stored as JSON envelopes ``{"v": value, "exp": ..., "at": ...}`` in a
:class:`CachePersistence` backend. Expiry is enforced on read, so a backend that
still physically holds a stale value never leaks it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import weakref
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Protocol

from redis.asyncio import Redis

from ritual.core.config import settings

logger = logging.getLogger("ritual.cache")

_redis: Optional[Redis] = None


def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


class _Miss:
    _instance: Optional["_Miss"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISS"


MISS = _Miss()


def cache_key(entity: str, user_id: str, *parts: str) -> str:
    """Namespace a key by entity type and user so users never share entries."""
    suffix = ":".join(p for p in parts if p)
    return f"{entity}:{user_id}:{suffix}" if suffix else f"{entity}:{user_id}"


class CachePersistence(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def put(self, key: str, value: str, ttl: int) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...


class InMemoryCachePersistence:
    """Process-local backend. Does not expire anything on its own."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def put(self, key: str, value: str, ttl: int) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def raw(self, key: str) -> Optional[str]:
        return self._data.get(key)


class RedisCachePersistence:
    def __init__(self, redis: Optional[Redis] = None) -> None:
        self._redis = redis

    @property
    def redis(self) -> Redis:
        return self._redis or get_redis()

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def put(self, key: str, value: str, ttl: int) -> None:
        await self.redis.set(key, value, ex=max(int(ttl), 1))

    async def remove(self, key: str) -> None:
        await self.redis.delete(key)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: datetime
    stored_at: datetime

    def age(self, now: datetime) -> timedelta:
        return now - self.stored_at


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TTLCache:
    def __init__(self, persistence: CachePersistence, clock: Callable[[], datetime] = _utcnow) -> None:
        self.persistence = persistence
        self.clock = clock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def get(self, key: str) -> Any:
        """Return the cached value, or ``MISS`` when absent, expired or unreadable."""
        entry = await self.get_entry(key)
        return MISS if entry is None else entry.value

    async def get_entry(self, key: str) -> Optional[CacheEntry]:
        lock = self._lock(key)
        async with lock:
            try:
                raw = await self.persistence.get(key)
            except Exception as e:
                logger.warning("cache: read failed key=%s reason=%r", key, e)
                return None
            if raw is None:
                return None
            try:
                blob = json.loads(raw)
                entry = CacheEntry(
                    key=key,
                    value=blob["v"],
                    expires_at=datetime.fromisoformat(blob["exp"]),
                    stored_at=datetime.fromisoformat(blob["at"]),
                )
            except (ValueError, KeyError, TypeError) as e:
                logger.warning("cache: corrupt entry evicted key=%s reason=%r", key, e)
                await self._remove_quietly(key)
                return None
            if entry.expires_at <= self.clock():
                await self._remove_quietly(key)
                return None
            return entry

    async def put(self, key: str, value: Any, ttl: int | float | timedelta) -> None:
        seconds = ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)
        now = self.clock()
        lock = self._lock(key)
        async with lock:
            try:
                raw = json.dumps(
                    {"v": value, "exp": (now + timedelta(seconds=seconds)).isoformat(), "at": now.isoformat()}
                )
            except (TypeError, ValueError) as e:
                logger.warning("cache: value not serializable key=%s reason=%r", key, e)
                return
            try:
                await self.persistence.put(key, raw, int(seconds))
            except Exception as e:
                logger.warning("cache: write failed key=%s reason=%r", key, e)

    async def invalidate(self, key: str) -> None:
        lock = self._lock(key)
        async with lock:
            await self._remove_quietly(key)

    async def _remove_quietly(self, key: str) -> None:
        try:
            await self.persistence.remove(key)
        except Exception as e:
            logger.warning("cache: remove failed key=%s reason=%r", key, e)


def build_cache(backend: str | None = None, redis: Optional[Redis] = None) -> TTLCache:
    name = (backend or settings.CACHE_BACKEND or "memory").lower()
    if name == "redis":
        return TTLCache(RedisCachePersistence(redis))
    return TTLCache(InMemoryCachePersistence())
