"""
Jokes service: resilient read endpoint plus the static frontend bundle.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import FileResponse, JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.retry import retry_manager
from .cache import CacheStore
from .coordinator import ReadCoordinator
from .fetcher import RetryingFetcher
from .persistence import JokeSource, PostgresJokeSource


X_CACHE_VALUES = {
    "cache": "HIT",
    "database": "MISS",
    "stale_cache": "STALE",
}


class JokesService(BaseService):
    """Jokes service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, source: Optional[JokeSource] = None):
        super().__init__("jokes", 4000, config=config)

        self.source = source or PostgresJokeSource(
            self.config.postgres_dsn,
            self.config.jokes_table,
            min_size=self.config.db_pool_min_size,
            max_size=self.config.db_pool_size,
            command_timeout=self.config.db_command_timeout,
            acquire_timeout=self.config.db_acquire_timeout,
        )
        self.cache = CacheStore(ttl_seconds=self.config.cache_ttl_seconds)
        self.fetcher = RetryingFetcher(
            self.source,
            max_attempts=self.config.fetch_max_attempts,
            retry_delay=self.config.fetch_retry_delay_seconds,
            metrics=self.metrics,
        )
        self.coordinator = ReadCoordinator(
            self.cache,
            self.fetcher,
            fresh_max_age=self.config.fresh_max_age_seconds,
            stale_max_age=self.config.stale_max_age_seconds,
            stale_ceiling=self.config.stale_fallback_ceiling_seconds,
            single_flight=self.config.single_flight,
            metrics=self.metrics,
        )
        self.static_dir = Path(self.config.static_dir)

        @self.app.on_event("startup")
        async def _startup():
            await self.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.stop()

        self._setup_jokes_routes()

    def _setup_jokes_routes(self):
        """Set up jokes-specific routes. The SPA catch-all must come last."""

        @self.app.get("/post")
        async def get_posts():
            """Return every joke, from cache when fresh."""
            result = await self.coordinator.get_records()
            response = JSONResponse(content=jsonable_encoder(result.records))
            response.headers["Cache-Control"] = result.cache_control
            response.headers["X-Cache"] = X_CACHE_VALUES[result.source.value]
            return response

        @self.app.get("/{full_path:path}", include_in_schema=False)
        async def serve_frontend(full_path: str):
            """Serve the built frontend, falling back to index.html for client routes."""
            root = self.static_dir.resolve()
            if full_path:
                candidate = (root / full_path).resolve()
                if candidate.is_file() and root in candidate.parents:
                    return FileResponse(candidate)

            index = root / "index.html"
            if not index.is_file():
                raise HTTPException(status_code=404, detail="Not Found")
            return FileResponse(index)

    def _health_details(self) -> Dict[str, Any]:
        return {
            "cache": self.cache.stats(),
            "retry": retry_manager.get_stats("jokes.fetch"),
        }

    async def start(self):
        """Start jokes service components."""
        await self.source.start()
        self.logger.info("Jokes service started", port=self.port, static_dir=str(self.static_dir))

    async def stop(self):
        """Stop jokes service components."""
        await self.source.stop()
        self.logger.info("Jokes service stopped")


def create_app():
    """Create jokes service application."""
    service = JokesService()
    return service.app


if __name__ == "__main__":
    service = JokesService()
    service.run()
