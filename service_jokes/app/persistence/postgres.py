"""
PostgreSQL data source for the Jokes Service.
"""

import asyncio
import re
from typing import Any, Dict, List, Optional

import asyncpg

from shared.logging import get_logger
from .base import JokeSource, HandleAcquisitionFailure, QueryExecutionFailure


_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class PostgresJokeSource(JokeSource):
    """Reads the jokes table through a bounded asyncpg pool."""

    def __init__(self, dsn: str, table: str = "jokes", *,
                 min_size: int = 0, max_size: int = 10,
                 command_timeout: float = 30.0, acquire_timeout: float = 10.0):
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name: {table!r}")
        self.dsn = dsn
        self.table = table
        self.query = f"SELECT * FROM {table}"
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.acquire_timeout = acquire_timeout
        self.logger = get_logger("jokes.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()

    async def start(self):
        """Create the connection pool.

        A database that is down at startup is not fatal: the pool is created
        lazily on the next fetch attempt instead.
        """
        try:
            await self._ensure_pool()
            self.logger.info("PostgreSQL data source started", table=self.table, max_size=self.max_size)
        except HandleAcquisitionFailure as e:
            self.logger.warning("PostgreSQL unavailable at startup, will retry on demand", error=str(e))

    async def stop(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL data source stopped")

    async def _ensure_pool(self) -> asyncpg.Pool:
        if self.pool is not None:
            return self.pool
        async with self._pool_lock:
            if self.pool is None:
                try:
                    self.pool = await asyncpg.create_pool(
                        self.dsn,
                        min_size=self.min_size,
                        max_size=self.max_size,
                        command_timeout=self.command_timeout
                    )
                except Exception as e:
                    self.logger.error("Error creating database pool", error=str(e))
                    raise HandleAcquisitionFailure(original=e) from e
        return self.pool

    async def fetch_all(self) -> List[Dict[str, Any]]:
        """Run the jokes query on one pooled connection."""
        pool = await self._ensure_pool()

        try:
            conn = await pool.acquire(timeout=self.acquire_timeout)
        except Exception as e:
            self.logger.error("Error getting database connection", error=str(e))
            raise HandleAcquisitionFailure(original=e) from e

        try:
            rows = await conn.fetch(self.query)
        except Exception as e:
            self.logger.error("Error fetching jokes from the database", error=str(e))
            raise QueryExecutionFailure(original=e) from e
        finally:
            release_error = await self._release(pool, conn)

        if release_error is not None:
            raise QueryExecutionFailure(original=release_error) from release_error

        return [dict(row) for row in rows]

    async def _release(self, pool: asyncpg.Pool, conn) -> Optional[Exception]:
        """Return the handle to the pool.

        asyncpg re-raises when resetting the connection fails. The error is
        returned instead so that it never replaces a failure already in flight.
        """
        try:
            await pool.release(conn)
        except Exception as e:
            self.logger.error("Error releasing database connection", error=str(e))
            return e
        return None
