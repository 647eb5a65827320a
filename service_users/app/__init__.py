"""
Users Service application package.

Serves a bulk user dataset through a cache-aside pipeline: a Redis read,
and on a miss a concurrent fan-out over the paginated upstream provider
whose pages are normalized, serialized and written back before replying.

Structure:
- app.main: FastAPI app, routes and lifecycle wiring.
- app.feed: Cache-aside orchestration for the users payload.
- app.upstream: HTTP page fetcher and raw upstream models.
- app.aggregation: Concurrent page fan-out and result folding.
- app.records: Canonical record model, normalizer and serializer.
- app.caching: Redis-backed cache gateway.
"""
