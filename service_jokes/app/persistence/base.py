"""
Data source contract and failure types for the jokes read path.
"""

from typing import Any, Dict, List, Optional


class DataSourceError(Exception):
    """A single fetch attempt against the data source failed."""

    reason = "data_source_error"

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


class HandleAcquisitionFailure(DataSourceError):
    """No connection could be obtained from the pool."""

    reason = "connect"

    def __init__(self, message: str = "Error connecting to the database",
                 original: Optional[BaseException] = None):
        super().__init__(message, original)


class QueryExecutionFailure(DataSourceError):
    """A connection was obtained but the query failed."""

    reason = "query"

    def __init__(self, message: str = "Error fetching data from the database",
                 original: Optional[BaseException] = None):
        super().__init__(message, original)


class DataSourceUnavailable(Exception):
    """Every fetch attempt failed; ``cause`` is the last attempt's failure."""

    def __init__(self, cause: BaseException, attempts: int):
        super().__init__(f"Unable to connect to the database after {attempts} attempts: {cause}")
        self.cause = cause
        self.attempts = attempts

    @property
    def is_connection_failure(self) -> bool:
        return isinstance(self.cause, HandleAcquisitionFailure)


class JokeSource:
    """Read-only gateway to the jokes collection.

    ``fetch_all`` performs exactly one handle acquisition and one query and
    must release the handle whatever the outcome. It raises
    ``HandleAcquisitionFailure`` or ``QueryExecutionFailure``.
    """

    async def start(self):
        """Prepare the underlying resources."""

    async def stop(self):
        """Release the underlying resources."""

    async def fetch_all(self) -> List[Dict[str, Any]]:
        raise NotImplementedError
