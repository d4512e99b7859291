"""
Persistence package for the Jokes Service.

Defines the read-only data source contract, the failure types a single
fetch attempt can raise, and the PostgreSQL implementation.
"""

from .base import (
    JokeSource,
    DataSourceError,
    HandleAcquisitionFailure,
    QueryExecutionFailure,
    DataSourceUnavailable,
)
from .postgres import PostgresJokeSource

__all__ = [
    "JokeSource",
    "DataSourceError",
    "HandleAcquisitionFailure",
    "QueryExecutionFailure",
    "DataSourceUnavailable",
    "PostgresJokeSource",
]
