"""Response cache for search pages.

Whole search payloads are stored under :func:`search_cache_key`. Redis is
used when it answers a ping at startup; otherwise a bounded in-process LRU
with per-entry expiry takes over. Cache failures are logged and treated as
misses, never as search errors.
"""
from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from functools import lru_cache
from typing import Any, Dict, Optional, Protocol, Tuple

import redis

from .config import settings
from .vocabulary import VOCABULARY_VERSION

logger = logging.getLogger(__name__)

KEY_PREFIX = "search:"
MAX_MEMORY_ENTRIES = 1024

Payload = Dict[str, Any]


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[Payload]: ...

    def set(self, key: str, value: Payload, ttl: int) -> None: ...

    def clear(self) -> int: ...


def search_cache_key(query: str, *, page: int, limit: int, category: Optional[str], debug: bool) -> str:
    """Key for one response page; bumps automatically with the vocabulary."""
    payload = json.dumps(
        {
            "q": query.strip().lower(),
            "page": page,
            "limit": limit,
            "category": category,
            "debug": debug,
            "vocab": VOCABULARY_VERSION,
        },
        sort_keys=True,
    )
    return KEY_PREFIX + hashlib.sha1(payload.encode("utf-8")).hexdigest()


class RedisCache:
    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    def get(self, key: str) -> Optional[Payload]:
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("cache get failed key=%s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("dropping undecodable cache entry key=%s", key)
            return None

    def set(self, key: str, value: Payload, ttl: int) -> None:
        try:
            self.client.set(key, json.dumps(value, separators=(",", ":")), ex=max(1, ttl))
        except redis.RedisError as exc:
            logger.warning("cache set failed key=%s: %s", key, exc)

    def clear(self) -> int:
        """Delete every cached search page; other keys are left alone."""
        removed = 0
        try:
            for key in self.client.scan_iter(match=KEY_PREFIX + "*", count=500):
                removed += self.client.delete(key)
        except redis.RedisError as exc:
            logger.warning("cache clear failed after %s keys: %s", removed, exc)
        return removed


class InMemoryCache:
    """Thread-safe LRU; expired entries are dropped lazily on read."""

    def __init__(self, max_entries: int = MAX_MEMORY_ENTRIES) -> None:
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Tuple[float, Payload]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Payload]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if expires_at <= time.monotonic():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return payload

    def set(self, key: str, value: Payload, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + ttl, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed


@lru_cache(maxsize=1)
def get_cache() -> CacheBackend:
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        socket_connect_timeout=1,
    )
    try:
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis unavailable at %s:%s (%s), using in-memory cache", settings.redis_host, settings.redis_port, exc)
        return InMemoryCache()
    logger.info("Using Redis cache at %s:%s", settings.redis_host, settings.redis_port)
    return RedisCache(client)
