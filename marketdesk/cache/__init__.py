"""Caching: in-memory TTL response cache and on-disk JSON files."""

from .cache import CacheEntry, ResponseCache, cache_key
from .json_store import JsonFileStore, write_bytes_atomic


__all__ = [
    "CacheEntry",
    "JsonFileStore",
    "ResponseCache",
    "cache_key",
    "write_bytes_atomic",
]
