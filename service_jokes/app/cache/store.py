"""
In-process cache for the last known-good jokes result set.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from shared.logging import get_logger


Record = Dict[str, Any]

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class CacheEntry:
    """Immutable snapshot of the cache.

    ``valid`` implies ``last_updated`` is set and ``data`` holds the result of
    the most recent successful fetch. An expired entry is still a usable
    fallback; expiry only affects fast-path eligibility.
    """

    data: Tuple[Record, ...] = field(default_factory=tuple)
    last_updated: Optional[float] = None
    valid: bool = False

    @property
    def records(self) -> List[Record]:
        return list(self.data)

    def __len__(self) -> int:
        return len(self.data)


class CacheStore:
    """Single owner of the cached jokes and their freshness.

    The entry is replaced wholesale under a lock, so a reader always sees a
    matching ``data``/``last_updated`` pair.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS,
                 clock: Optional[Callable[[], float]] = None):
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.time
        self.logger = get_logger("jokes.cache.store")
        self._lock = threading.Lock()
        self._entry = CacheEntry()

    def is_valid(self) -> bool:
        """True while the entry is valid and younger than the TTL."""
        entry = self.peek()
        if not entry.valid or entry.last_updated is None:
            return False
        return (self.clock() - entry.last_updated) < self.ttl_seconds

    def update(self, data) -> CacheEntry:
        """Replace the cached result set and mark it fresh."""
        entry = CacheEntry(data=tuple(data), last_updated=self.clock(), valid=True)
        with self._lock:
            self._entry = entry
        self.logger.debug("Cache updated", records=len(entry), last_updated=entry.last_updated)
        return entry

    def peek(self) -> CacheEntry:
        """Current entry regardless of freshness."""
        with self._lock:
            return self._entry

    def age(self) -> Optional[float]:
        """Seconds since the last successful update, or None if never populated."""
        entry = self.peek()
        if entry.last_updated is None:
            return None
        return max(0.0, self.clock() - entry.last_updated)

    def reset(self):
        """Drop back to the initial empty, invalid entry."""
        with self._lock:
            self._entry = CacheEntry()
        self.logger.info("Cache reset")

    def stats(self) -> Dict[str, Any]:
        entry = self.peek()
        age = self.age()
        return {
            "records": len(entry),
            "valid": self.is_valid(),
            "populated": entry.last_updated is not None,
            "age_seconds": round(age, 3) if age is not None else None,
            "ttl_seconds": self.ttl_seconds,
        }
