"""
Retry mechanism for resilient operations.
"""

import asyncio
import functools
import random
from typing import Dict, Any, Optional, Callable, Awaitable

from shared.logging import get_logger


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 jitter: bool = True,
                 backoff_strategy: str = "exponential",
                 sleep: Optional[Callable[[float], Awaitable[Any]]] = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy
        self.sleep = sleep or asyncio.sleep


class RetryError(Exception):
    """Exception raised when all retry attempts are exhausted."""
    def __init__(self, message: str, last_exception: Exception, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


def retry_on_exception(exceptions: tuple = (Exception,),
                       config: Optional[RetryConfig] = None,
                       name: Optional[str] = None) -> Callable:
    """Decorator for retrying async functions on exceptions.

    Only exceptions listed in ``exceptions`` are retried; anything else
    propagates on the first occurrence. When every attempt fails a
    ``RetryError`` is raised carrying the last underlying exception.
    The delay is awaited, so only the calling coroutine is suspended.
    """

    if config is None:
        config = RetryConfig()

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        stats_name = name or getattr(func, "__name__", type(func).__name__)

        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            logger = get_logger(f"retry.{stats_name}")

            last_exception = None

            for attempt in range(1, config.max_attempts + 1):
                retry_manager.record_attempt(stats_name)
                try:
                    logger.debug(
                        "Retry attempt",
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        function=stats_name
                    )

                    result = await func(*args, **kwargs)

                    if attempt > 1:
                        logger.info(
                            "Retry succeeded",
                            attempt=attempt,
                            function=stats_name
                        )

                    retry_manager.record_success(stats_name)
                    return result

                except exceptions as e:
                    last_exception = e

                    if attempt == config.max_attempts:
                        retry_manager.record_failure(stats_name)
                        logger.error(
                            "All retry attempts exhausted",
                            attempt=attempt,
                            max_attempts=config.max_attempts,
                            function=stats_name,
                            error=str(e)
                        )
                        raise RetryError(
                            f"Function {stats_name} failed after {config.max_attempts} attempts",
                            last_exception=e,
                            attempts=config.max_attempts
                        ) from e

                    delay = _calculate_delay(attempt, config)

                    logger.warning(
                        "Retry attempt failed, waiting before next attempt",
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        delay=delay,
                        function=stats_name,
                        error=str(e)
                    )

                    await config.sleep(delay)

            # Unreachable: the loop either returns or raises
            raise RetryError(
                f"Unexpected error in retry wrapper for {stats_name}",
                last_exception=last_exception or Exception("Unknown error"),
                attempts=config.max_attempts
            )

        return wrapper

    return decorator


def _calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay between retry attempts."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** (attempt - 1))
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * attempt
    elif config.backoff_strategy == "fixed":
        delay = config.base_delay
    else:
        delay = config.base_delay

    # Apply max delay cap
    delay = min(delay, config.max_delay)

    # Add jitter if enabled
    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        jitter = random.uniform(-jitter_amount, jitter_amount)
        delay += jitter

    return max(0.0, delay)


class RetryManager:
    """Keeps per-operation retry statistics."""

    def __init__(self):
        self.stats: Dict[str, Dict[str, int]] = {}

    def _entry(self, name: str) -> Dict[str, int]:
        return self.stats.setdefault(name, {"attempts": 0, "successes": 0, "failures": 0})

    def record_attempt(self, name: str):
        """Record a single attempt (first try or retry)."""
        self._entry(name)["attempts"] += 1

    def record_success(self, name: str):
        """Record an operation that eventually succeeded."""
        self._entry(name)["successes"] += 1

    def record_failure(self, name: str):
        """Record an operation that exhausted its attempts."""
        self._entry(name)["failures"] += 1

    def get_stats(self, name: Optional[str] = None) -> Dict[str, Any]:
        """Get retry statistics, for one operation or all of them."""
        if name is not None:
            stats = self._entry(name)
            return {**stats, "success_rate": stats["successes"] / max(1, stats["successes"] + stats["failures"])}
        return {key: self.get_stats(key) for key in list(self.stats)}

    def reset(self):
        self.stats.clear()


# Global retry manager
retry_manager = RetryManager()
