"""
Cache-aside orchestration for the users payload.

    HIT  -> return the cached payload unchanged
    MISS -> aggregate -> encode -> set -> return the fresh payload

Cache failures propagate as CacheConnectionError. An encode failure is
logged and an empty payload is returned without being cached.

Concurrent misses each aggregate and each write the key, the later write
winning. With ``single_flight=True`` population is serialized through an
in-process lock and a waiter re-reads the cache before aggregating.
"""

import asyncio
from typing import Optional, Tuple, TYPE_CHECKING

from shared.errors import EncodeError
from shared.logging import get_logger

from .records.serializer import encode

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .aggregation.aggregator import Aggregator, AggregationReport
    from .caching.cache_gateway import CacheGateway
    from shared.metrics import MetricsCollector


class UsersFeed:
    """Serves the encoded users record set through the cache."""

    def __init__(
        self,
        cache: "CacheGateway",
        aggregator: "Aggregator",
        *,
        cache_key: str = "users",
        total_records: int = 15000,
        per_page: int = 3750,
        concurrency: int = 4,
        single_flight: bool = False,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.cache = cache
        self.aggregator = aggregator
        self.cache_key = cache_key
        self.total_records = total_records
        self.per_page = per_page
        self.concurrency = concurrency
        self.single_flight = single_flight
        self.metrics = metrics
        self.logger = get_logger("users.feed")
        self._populate_lock = asyncio.Lock()

    async def get_users(self) -> str:
        """Return the cached payload, populating the cache on a miss."""
        payload, found = await self.cache.get(self.cache_key)
        if found:
            self._count("cache_hits_total")
            self.logger.debug("Users served from cache", key=self.cache_key)
            return payload

        self._count("cache_misses_total")
        self.logger.info("Users cache miss, populating", key=self.cache_key)

        if not self.single_flight:
            payload, _ = await self.populate()
            return payload

        async with self._populate_lock:
            # Another request may have populated the key while we waited.
            payload, found = await self.cache.get(self.cache_key)
            if found:
                self._count("cache_hits_total")
                return payload
            payload, _ = await self.populate()
            return payload

    async def populate(self, *, write: bool = True) -> Tuple[str, "AggregationReport"]:
        """Run one full aggregation and store the encoded result.

        Returns the payload and the aggregation report. With ``write=False``
        nothing is written to the cache.
        """
        records, report = await self.aggregator.aggregate_with_report(
            self.total_records, self.per_page, self.concurrency
        )

        try:
            payload = encode(records)
        except EncodeError as exc:
            self.logger.error("Error encoding users", error=str(exc), records=len(records))
            if self.metrics:
                self.metrics.record_error(exc.code)
            return "", report

        if write:
            await self.cache.set(self.cache_key, payload)
            self.logger.info("Users cached", key=self.cache_key, records=len(records))
        return payload, report

    def _count(self, metric_name: str) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, cache_type="users")
