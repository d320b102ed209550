"""Per-user persisted cache."""

from .store import CacheError, KeyValueCache, default_cache_path

__all__ = ["CacheError", "KeyValueCache", "default_cache_path"]
