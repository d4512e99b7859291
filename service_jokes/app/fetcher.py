"""
Retrying fetcher for the jokes data source.
"""

import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, TYPE_CHECKING

from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception
from .persistence import JokeSource, DataSourceError, DataSourceUnavailable

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0


class RetryingFetcher:
    """Fetches the full result set, absorbing transient data source failures.

    Up to ``max_attempts`` attempts are made with a fixed ``retry_delay``
    between a failed attempt and the next one. The first success returns
    immediately. When every attempt fails, ``DataSourceUnavailable`` is raised
    with the last attempt's failure as its cause.
    """

    def __init__(self, source: JokeSource,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 retry_delay: float = DEFAULT_RETRY_DELAY,
                 *,
                 metrics: Optional["MetricsCollector"] = None,
                 sleep: Optional[Callable[[float], Awaitable[Any]]] = None):
        self.source = source
        self.metrics = metrics
        self.logger = get_logger("jokes.fetcher")
        self.retry_config = RetryConfig(
            max_attempts=max_attempts,
            base_delay=retry_delay,
            max_delay=retry_delay,
            jitter=False,
            backoff_strategy="fixed",
            sleep=sleep,
        )
        self._fetch_with_retry = retry_on_exception(
            (DataSourceError,), self.retry_config, name="jokes.fetch"
        )(self._attempt)

    @property
    def max_attempts(self) -> int:
        return self.retry_config.max_attempts

    async def _attempt(self) -> List[Dict[str, Any]]:
        try:
            records = await self.source.fetch_all()
        except DataSourceError as e:
            self._record_attempt(e.reason)
            raise
        self._record_attempt("success")
        return records

    def _record_attempt(self, outcome: str):
        if self.metrics:
            self.metrics.record_fetch_attempt(outcome)

    async def fetch(self) -> List[Dict[str, Any]]:
        """Fetch all records, retrying on connection and query failures."""
        start_time = time.time()
        try:
            records = await self._fetch_with_retry()
        except RetryError as e:
            self._observe(start_time, "failure")
            self.logger.error(
                "Unable to fetch jokes after retries",
                attempts=e.attempts,
                cause=type(e.last_exception).__name__,
                error=str(e.last_exception)
            )
            raise DataSourceUnavailable(e.last_exception, e.attempts) from e.last_exception

        self._observe(start_time, "success")
        self.logger.debug("Fetched jokes from data source", records=len(records))
        return records

    def _observe(self, start_time: float, outcome: str):
        if self.metrics:
            self.metrics.observe_histogram("fetch_duration_seconds", time.time() - start_time, outcome=outcome)
