"""
Read coordinator: the single read operation behind ``GET /post``.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from shared.errors import DatabaseConnectionError, ServiceUnavailableError
from shared.logging import get_logger
from .cache import CacheStore
from .fetcher import RetryingFetcher
from .persistence import DataSourceUnavailable

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_FRESH_MAX_AGE = 300
DEFAULT_STALE_MAX_AGE = 60


class CacheHint(str, Enum):
    """Downstream caching hint attached to a successful read."""
    FRESH = "fresh"
    STALE = "stale"


class ReadSource(str, Enum):
    CACHE = "cache"
    DATABASE = "database"
    STALE_CACHE = "stale_cache"


@dataclass(frozen=True)
class ReadResult:
    records: List[Dict[str, Any]]
    hint: CacheHint
    source: ReadSource
    max_age: int

    @property
    def cache_control(self) -> str:
        return f"public, max-age={self.max_age}"


class ReadCoordinator:
    """Serves jokes from the cache, the data source, or stale cache, in that order.

    The coordinator keeps no state of its own between calls. With
    ``single_flight`` enabled, concurrent cache misses share one in-flight
    fetch instead of each running the full retry sequence.
    """

    def __init__(self, cache: CacheStore, fetcher: RetryingFetcher, *,
                 fresh_max_age: int = DEFAULT_FRESH_MAX_AGE,
                 stale_max_age: int = DEFAULT_STALE_MAX_AGE,
                 stale_ceiling: Optional[float] = None,
                 single_flight: bool = False,
                 metrics: Optional["MetricsCollector"] = None):
        self.cache = cache
        self.fetcher = fetcher
        self.fresh_max_age = fresh_max_age
        self.stale_max_age = stale_max_age
        self.stale_ceiling = stale_ceiling
        self.single_flight = single_flight
        self.metrics = metrics
        self.logger = get_logger("jokes.coordinator")
        self._inflight: Optional[asyncio.Future] = None

    async def get_records(self) -> ReadResult:
        """Return the jokes together with a downstream caching hint.

        Raises ``DatabaseConnectionError`` or ``ServiceUnavailableError`` only
        when the data source is unreachable and nothing was ever cached.
        """
        if self.cache.is_valid():
            self._record_lookup("hit")
            self.logger.debug("Serving from cache")
            return self._result(self.cache.peek().records, CacheHint.FRESH, ReadSource.CACHE)

        self._record_lookup("miss")
        try:
            records = await self._fetch()
        except DataSourceUnavailable as e:
            return self._fallback(e)

        return self._result(records, CacheHint.FRESH, ReadSource.DATABASE)

    async def _fetch(self) -> List[Dict[str, Any]]:
        if not self.single_flight:
            return await self._fetch_and_store()

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._fetch_and_store())
            self._inflight.add_done_callback(self._clear_inflight)
        else:
            self.logger.debug("Joining in-flight fetch")
        return await asyncio.shield(self._inflight)

    def _clear_inflight(self, future: asyncio.Future):
        if self._inflight is future:
            self._inflight = None
        if not future.cancelled():
            # Mark the exception retrieved when every waiter was cancelled
            future.exception()

    async def _fetch_and_store(self) -> List[Dict[str, Any]]:
        records = await self.fetcher.fetch()
        self.cache.update(records)
        return list(records)

    def _fallback(self, error: DataSourceUnavailable) -> ReadResult:
        entry = self.cache.peek()
        age = self.cache.age()

        if len(entry) > 0:
            if self.stale_ceiling is not None and age is not None and age > self.stale_ceiling:
                self.logger.warning(
                    "Cached jokes too old to serve as fallback",
                    age_seconds=round(age, 3),
                    ceiling_seconds=self.stale_ceiling
                )
            else:
                self.logger.warning(
                    "Database error, serving stale cache",
                    records=len(entry),
                    age_seconds=round(age, 3) if age is not None else None,
                    cause=type(error.cause).__name__
                )
                if self.metrics:
                    self.metrics.record_stale_served()
                return self._result(entry.records, CacheHint.STALE, ReadSource.STALE_CACHE)

        details = {"attempts": error.attempts}
        if error.is_connection_failure:
            raise DatabaseConnectionError(details=details) from error
        raise ServiceUnavailableError(details=details) from error

    def _result(self, records: List[Dict[str, Any]], hint: CacheHint, source: ReadSource) -> ReadResult:
        if self.metrics:
            age = self.cache.age()
            if age is not None:
                self.metrics.set_gauge("cache_age_seconds", age)
        max_age = self.fresh_max_age if hint is CacheHint.FRESH else self.stale_max_age
        return ReadResult(records=records, hint=hint, source=source, max_age=max_age)

    def _record_lookup(self, result: str):
        if self.metrics:
            self.metrics.record_cache_lookup(result)
