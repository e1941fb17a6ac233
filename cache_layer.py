"""In-process TTL cache for read-mostly listings. Per worker; writers invalidate by prefix."""
from __future__ import annotations

import hashlib
import json
import threading
from typing import Any, Callable

from cachetools import TTLCache


DEFAULT_TTL_SECONDS = 5
DEFAULT_MAX_ITEMS = 1000


def make_cache_key(namespace: str, *, params: dict[str, Any] | None = None) -> str:
    ns = str(namespace or "").strip().upper()
    blob = json.dumps(params or {}, sort_keys=True, separators=(",", ":"), default=str)
    return f"{ns}:{hashlib.sha256(blob.encode('utf-8')).hexdigest()[:16]}"


class _ListingCache:
    def __init__(self, ttl: int = DEFAULT_TTL_SECONDS, max_items: int = DEFAULT_MAX_ITEMS):
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._generation = 0
        self._cache = self._build(ttl, max_items)

    @staticmethod
    def _build(ttl: int, max_items: int) -> TTLCache:
        ttl = max(1, min(3600, int(ttl)))
        max_items = max(10, min(100_000, int(max_items)))
        return TTLCache(maxsize=max_items, ttl=ttl)

    def configure(self, ttl: int, max_items: int) -> None:
        with self._lock:
            self._cache = self._build(ttl, max_items)
            self._hits = 0
            self._misses = 0

    def get_or_set(self, key: str, factory: Callable[[], Any]) -> Any:
        with self._lock:
            val = self._cache.get(key)
            if val is not None:
                self._hits += 1
                return val
            self._misses += 1
            generation = self._generation
        computed = factory()
        with self._lock:
            # Skip the store if a writer invalidated while we were computing.
            if generation == self._generation:
                self._cache[key] = computed
        return computed

    def invalidate_prefix(self, prefix: str) -> int:
        pfx = str(prefix or "").strip().upper()
        if not pfx:
            return 0
        with self._lock:
            self._generation += 1
            keys = [k for k in list(self._cache.keys()) if str(k).startswith(pfx + ":")]
            for k in keys:
                self._cache.pop(k, None)
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._cache),
                "maxsize": self._cache.maxsize,
                "ttl": self._cache.ttl,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 2) if total else 0.0,
            }


_cache = _ListingCache()


def configure_cache(ttl: int, max_items: int) -> None:
    _cache.configure(ttl, max_items)


def cache_get_or_set(key: str, factory: Callable[[], Any]) -> Any:
    return _cache.get_or_set(key, factory)


def cache_invalidate_prefix(prefix: str) -> int:
    return _cache.invalidate_prefix(prefix)


def cache_clear() -> None:
    _cache.clear()


def cache_stats() -> dict[str, Any]:
    return _cache.stats()
