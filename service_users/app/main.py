"""
Users service for the Users Access Layer.
"""

from typing import Dict, Optional

import httpx
import redis.asyncio as redis
from fastapi import Response

from shared.base_service import BaseService
from shared.config import ServiceConfig

from .aggregation.aggregator import Aggregator
from .caching.cache_gateway import CacheGateway
from .feed import UsersFeed
from .upstream.page_fetcher import PageFetcher


class UsersService(BaseService):
    """Users service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        redis_client: Optional[redis.Redis] = None,
    ):
        super().__init__("users", 8020, config=config)

        # Initialize components
        self.fetcher = PageFetcher(
            self.config.upstream_url,
            http_client,
            timeout=self.config.upstream_timeout_seconds,
        )
        self.aggregator = Aggregator(
            self.fetcher,
            metrics=self.metrics,
            bound_concurrency=self.config.bound_concurrency,
        )
        self.cache = CacheGateway(self.config.redis_url, redis_client)
        self.feed = UsersFeed(
            self.cache,
            self.aggregator,
            cache_key=self.config.cache_key,
            total_records=self.config.total_records,
            per_page=self.config.per_page,
            concurrency=self.config.concurrency,
            single_flight=self.config.single_flight,
            metrics=self.metrics,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.fetcher.close()
            await self.cache.close()

        self._setup_users_routes()

    def _setup_users_routes(self):
        """Set up users-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "users",
                "message": "Users Access Layer - Users Service",
                "version": "1.0.0",
                "capabilities": ["aggregation", "caching"]
            }

        @self.app.get("/users")
        async def get_users():
            """Return the users record set, from cache or freshly aggregated."""
            payload = await self.feed.get_users()
            return Response(content=payload, media_type="application/json")

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check the cache store."""
        return {"redis": "ok" if await self.cache.health_check() else "error"}


def create_app():
    """Create users service application."""
    service = UsersService()
    return service.app


if __name__ == "__main__":
    service = UsersService()
    service.run()
