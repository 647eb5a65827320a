"""
Users Service caching package.

Provides the Redis-backed gateway behind the cache-aside users feed. A
single well-known key holds the encoded record set; there is no TTL and no
invalidation, entries live until evicted by the store.
"""

from .cache_gateway import CacheGateway

__all__ = ["CacheGateway"]
