"""
Cache package for the Jokes Service.

Holds the process-wide, last known-good result set together with its
freshness. Entries are replaced wholesale and never merged.
"""

from .store import CacheEntry, CacheStore, Record, DEFAULT_TTL_SECONDS

__all__ = ["CacheEntry", "CacheStore", "Record", "DEFAULT_TTL_SECONDS"]
