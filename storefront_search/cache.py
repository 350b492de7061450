"""Caching helpers with Redis primary and in-memory fallback."""
from __future__ import annotations

import asyncio
import fnmatch
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import redis

from .config import settings

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 500


class CacheBackend(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl: int) -> None: ...

    async def delete_pattern(self, pattern: str) -> int: ...


@dataclass
class RedisCache:
    """Redis store; every key and pattern is namespaced with ``prefix``."""

    client: redis.Redis
    prefix: str = ""

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self.client.get, self._key(key))
        if data is None:
            return None
        return data.decode("utf-8") if isinstance(data, bytes) else data

    async def set(self, key: str, value: str, ttl: int) -> None:
        await asyncio.to_thread(self.client.setex, self._key(key), ttl, value)

    async def delete_pattern(self, pattern: str) -> int:
        return await asyncio.to_thread(self._delete_matching, self._key(pattern))

    def _delete_matching(self, pattern: str) -> int:
        deleted = 0
        batch: list = []
        for key in self.client.scan_iter(match=pattern, count=SCAN_BATCH_SIZE):
            batch.append(key)
            if len(batch) >= SCAN_BATCH_SIZE:
                deleted += self.client.delete(*batch)
                batch = []
        if batch:
            deleted += self.client.delete(*batch)
        return deleted


class InMemoryCache:
    def __init__(self) -> None:
        self._store: Dict[str, tuple[float, str]] = {}
        self._lock = threading.Lock()

    async def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._store.get(key)
            if not value:
                return None
            expires_at, payload = value
            if expires_at < time.time():
                self._store.pop(key, None)
                return None
            return payload

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._store.items() if expires_at < now]
        for key in expired:
            del self._store[key]

    async def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            now = time.time()
            self._purge_expired(now)
            self._store[key] = (now + ttl, value)

    async def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            self._purge_expired(time.time())
            matched = [key for key in self._store if fnmatch.fnmatchcase(key, pattern)]
            for key in matched:
                del self._store[key]
            return len(matched)

    def __len__(self) -> int:
        return len(self._store)


class CacheAside:
    """Fail-open JSON accessor over a :class:`CacheBackend`.

    A broken or unreachable cache only costs latency: reads degrade to a miss
    and writes are dropped, both with a warning.
    """

    def __init__(self, backend: CacheBackend) -> None:
        self.backend = backend

    async def get(self, key: str) -> Optional[Any]:
        try:
            data = await self.backend.get(key)
            if data is None:
                return None
            return json.loads(data)
        except Exception as exc:
            logger.warning("cache get failed key=%r: %s", key, exc)
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self.backend.set(key, json.dumps(value), ttl)
        except Exception as exc:
            logger.warning("cache set failed key=%r: %s", key, exc)

    async def invalidate(self, pattern: str) -> int:
        try:
            deleted = await self.backend.delete_pattern(pattern)
        except Exception as exc:
            logger.warning("cache invalidation failed pattern=%r: %s", pattern, exc)
            return 0
        logger.info("cache invalidated pattern=%r deleted=%s", pattern, deleted)
        return deleted


_cache: CacheBackend | None = None


def get_cache() -> CacheBackend:
    global _cache
    if _cache is not None:
        return _cache
    try:
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=False,
        )
        client.ping()
        logger.info(
            "Using Redis cache at %s:%s db=%s prefix=%r",
            settings.redis_host,
            settings.redis_port,
            settings.redis_db,
            settings.cache_prefix,
        )
        _cache = RedisCache(client, prefix=settings.cache_prefix)
    except redis.RedisError:
        logger.warning("Redis not available, using in-memory cache")
        _cache = InMemoryCache()
    return _cache
