"""Persistent cache of server-derived aggregates and its invalidation rules."""
from .store import CacheStore, MemoryCacheStore, SqliteCacheStore

__all__ = ["CacheStore", "MemoryCacheStore", "SqliteCacheStore"]
