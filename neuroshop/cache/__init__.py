"""In-memory TTL caching for responses and classifier outputs."""

from .keys import make_cache_key, normalize_query
from .manager import (
    CacheEntry,
    CacheManager,
    CacheStats,
    get_llm_cache,
    get_search_cache,
    reset_caches,
)

__all__ = [
    "CacheEntry",
    "CacheManager",
    "CacheStats",
    "get_llm_cache",
    "get_search_cache",
    "reset_caches",
    "make_cache_key",
    "normalize_query",
]
