# Cache Package
"""
In-memory response cache with per-entry expiry and LRU eviction.
"""

from src.infrastructure.cache.memory_cache import CacheEntry, MemoryCache

__all__ = ["CacheEntry", "MemoryCache"]
