"""
Unit tests for the RetryingFetcher.
"""

import pytest
from unittest.mock import AsyncMock

from service_jokes.app.fetcher import RetryingFetcher
from service_jokes.app.persistence import (
    DataSourceUnavailable,
    HandleAcquisitionFailure,
    QueryExecutionFailure,
)
from shared.metrics import MetricsCollector
from shared.test_helpers import ScriptedJokeSource, joke_data_factory


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def metrics():
    return MetricsCollector("jokes")


def _fetcher(source, sleep, metrics=None):
    return RetryingFetcher(source, max_attempts=3, retry_delay=1.0, metrics=metrics, sleep=sleep)


@pytest.mark.asyncio
async def test_first_attempt_success_returns_immediately(sleep):
    jokes = joke_data_factory.create_jokes(2)
    source = ScriptedJokeSource([jokes])

    result = await _fetcher(source, sleep).fetch()

    assert result == jokes
    assert source.calls == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("succeed_on", [1, 2, 3])
async def test_success_on_attempt_k_stops_retrying(sleep, succeed_on):
    jokes = joke_data_factory.create_jokes(3)
    failures = [HandleAcquisitionFailure()] * (succeed_on - 1)
    source = ScriptedJokeSource(failures + [jokes, HandleAcquisitionFailure()])

    result = await _fetcher(source, sleep).fetch()

    assert result == jokes
    assert source.calls == succeed_on
    assert sleep.await_count == succeed_on - 1


@pytest.mark.asyncio
async def test_exhaustion_after_three_attempts_with_fixed_delay(sleep):
    source = ScriptedJokeSource([HandleAcquisitionFailure()])

    with pytest.raises(DataSourceUnavailable) as exc_info:
        await _fetcher(source, sleep).fetch()

    assert source.calls == 3
    assert exc_info.value.attempts == 3
    # A delay follows each failed attempt except the last
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 1.0]


@pytest.mark.asyncio
async def test_connection_cause_is_preserved(sleep):
    source = ScriptedJokeSource([HandleAcquisitionFailure()])

    with pytest.raises(DataSourceUnavailable) as exc_info:
        await _fetcher(source, sleep).fetch()

    assert isinstance(exc_info.value.cause, HandleAcquisitionFailure)
    assert exc_info.value.is_connection_failure is True


@pytest.mark.asyncio
async def test_last_cause_wins_when_causes_differ(sleep):
    source = ScriptedJokeSource([
        HandleAcquisitionFailure(),
        HandleAcquisitionFailure(),
        QueryExecutionFailure(),
    ])

    with pytest.raises(DataSourceUnavailable) as exc_info:
        await _fetcher(source, sleep).fetch()

    assert isinstance(exc_info.value.cause, QueryExecutionFailure)
    assert exc_info.value.is_connection_failure is False


@pytest.mark.asyncio
async def test_unexpected_errors_are_not_retried(sleep):
    source = ScriptedJokeSource([RuntimeError("bug")])

    with pytest.raises(RuntimeError):
        await _fetcher(source, sleep).fetch()

    assert source.calls == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_attempt_metrics(sleep, metrics):
    jokes = joke_data_factory.create_jokes(1)
    source = ScriptedJokeSource([HandleAcquisitionFailure(), QueryExecutionFailure(), jokes])

    await _fetcher(source, sleep, metrics).fetch()

    assert metrics.get_sample_value("fetch_attempts_total", {"outcome": "connect"}) == 1
    assert metrics.get_sample_value("fetch_attempts_total", {"outcome": "query"}) == 1
    assert metrics.get_sample_value("fetch_attempts_total", {"outcome": "success"}) == 1
    assert metrics.get_sample_value("fetch_duration_seconds_count", {"outcome": "success"}) == 1


def test_fetcher_uses_fixed_backoff():
    fetcher = RetryingFetcher(ScriptedJokeSource([[]]))

    assert fetcher.max_attempts == 3
    assert fetcher.retry_config.backoff_strategy == "fixed"
    assert fetcher.retry_config.base_delay == 1.0
    assert fetcher.retry_config.jitter is False
