"""
Jokes Service package.

Serves the jokes collection through a single read endpoint while shielding
callers from database latency and outages:

- app.main: FastAPI app, ``GET /post`` and the static frontend catch-all.
- app.coordinator: Cache-first read with stale-cache fallback.
- app.fetcher: Bounded, fixed-delay retries against the data source.
- app.cache: In-process store for the last known-good result set.
- app.persistence: Data source contract and the PostgreSQL implementation.
"""
