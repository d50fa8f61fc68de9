"""In-memory TTL cache with timer-based eviction."""

import asyncio
import json
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog
from pydantic import BaseModel

from neuroshop.logging import log_cache_operation

logger = structlog.get_logger()


class CacheStats(BaseModel):
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    items: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate hit rate percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def as_dict(self) -> dict[str, Any]:
        return {**self.model_dump(), "hit_rate": round(self.hit_rate, 1)}


class CacheEntry(BaseModel):
    """A single cache entry."""

    key: str
    value: str  # JSON serialized
    cache_type: str
    created_at: datetime
    expires_at: datetime
    hit_count: int = 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now()) >= self.expires_at


class CacheManager:
    """Key/value store where every entry carries its own expiry.

    Entries are evicted lazily when read after expiry, and eagerly by a
    timer scheduled on the running event loop at ``set`` time. Replacing,
    deleting or clearing a key cancels its pending timer, so a stale timer
    can never remove a newer value.

    None of the public coroutines await internally, which makes each
    operation atomic with respect to other tasks on the same loop.
    """

    def __init__(self, name: str = "cache"):
        """Initialize cache manager.

        Args:
            name: Label used in logs and stats output
        """
        self.name = name
        self._entries: dict[str, CacheEntry] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._stats = CacheStats()

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        entry = self._live_entry(key)
        if entry is None:
            self._stats.misses += 1
            log_cache_operation("miss", key, self.name)
            return None

        entry.hit_count += 1
        self._stats.hits += 1
        log_cache_operation("hit", key, self.name)
        return self._deserialize(entry.value)

    async def has(self, key: str) -> bool:
        """Check whether a live entry exists, without returning it."""
        return self._live_entry(key) is not None

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: float,
        cache_type: str = "general",
    ) -> None:
        """Store value in cache, replacing any existing entry for the key.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            ttl_seconds: Time to live in seconds
            cache_type: Category of cached item (search, search_term, ...)
        """
        loop = asyncio.get_running_loop()
        now = datetime.now()
        ttl = max(ttl_seconds, 0)

        entry = CacheEntry(
            key=key,
            value=self._serialize(value),
            cache_type=cache_type,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl),
        )

        self._cancel_timer(key)
        self._entries[key] = entry
        self._timers[key] = loop.call_later(ttl, self._expire, key, entry)

        log_cache_operation("set", key, self.name)

    async def delete(self, key: str) -> bool:
        """Remove an entry immediately.

        Returns:
            True if an entry was removed
        """
        self._cancel_timer(key)
        return self._entries.pop(key, None) is not None

    async def clear(self) -> int:
        """Remove all entries and cancel their timers.

        Returns:
            Number of entries cleared
        """
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        count = len(self._entries)
        self._entries.clear()

        logger.info("Cache cleared", cache=self.name, count=count)
        return count

    def keys(self) -> list[str]:
        """List keys of live entries."""
        now = datetime.now()
        return [k for k, v in self._entries.items() if not v.is_expired(now)]

    def get_stats(self) -> CacheStats:
        """Get cache statistics.

        Returns:
            CacheStats with hit/miss counts and item count
        """
        self._stats.items = len(self.keys())
        return self._stats.model_copy()

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            self._cancel_timer(key)
            del self._entries[key]
            log_cache_operation("evict", key, self.name)
            return None
        return entry

    def _expire(self, key: str, entry: CacheEntry) -> None:
        """Timer callback; only removes the entry it was scheduled for."""
        if self._entries.get(key) is entry:
            del self._entries[key]
            self._timers.pop(key, None)
            log_cache_operation("evict", key, self.name)

    def _cancel_timer(self, key: str) -> None:
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def _serialize(self, value: Any) -> str:
        """Serialize value to JSON string."""
        return json.dumps(value, default=self._json_default)

    def _deserialize(self, value: str) -> Any:
        """Deserialize JSON string to value."""
        return json.loads(value)

    def _json_default(self, obj: Any) -> Any:
        """Default JSON serializer for complex types."""
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return str(obj)


# Process-wide instances, owned by the application host
_search_cache: Optional[CacheManager] = None
_llm_cache: Optional[CacheManager] = None


def get_search_cache() -> CacheManager:
    """Get the process-wide cache for aggregated responses."""
    global _search_cache
    if _search_cache is None:
        _search_cache = CacheManager(name="search")
    return _search_cache


def get_llm_cache() -> CacheManager:
    """Get the process-wide cache for classifier and enrichment outputs."""
    global _llm_cache
    if _llm_cache is None:
        _llm_cache = CacheManager(name="llm")
    return _llm_cache


def reset_caches() -> None:
    """Reset the process-wide caches (for testing)."""
    global _search_cache, _llm_cache
    _search_cache = None
    _llm_cache = None
