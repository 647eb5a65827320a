#!/usr/bin/env python3
"""
Warm the Redis users cache by running one full aggregation.

This helper mirrors what the Users service does on a cache miss but can be
executed manually from a developer workstation or CI job, so the first client
request after a deploy is served from cache.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from shared.config import get_config
from shared.logging import configure_logging
from service_users.app.aggregation.aggregator import Aggregator
from service_users.app.caching.cache_gateway import CacheGateway
from service_users.app.feed import UsersFeed
from service_users.app.upstream.page_fetcher import PageFetcher


async def warm(
    *,
    redis_url: str,
    upstream_url: str,
    cache_key: str,
    total_records: int,
    per_page: int,
    concurrency: int,
    bound_concurrency: bool,
    dry_run: bool,
    timeout: Optional[float] = None,
) -> dict:
    """Execute cache warming and return the summary."""
    fetcher = PageFetcher(upstream_url, timeout=timeout)
    cache = CacheGateway(redis_url)
    feed = UsersFeed(
        cache,
        Aggregator(fetcher, bound_concurrency=bound_concurrency),
        cache_key=cache_key,
        total_records=total_records,
        per_page=per_page,
        concurrency=concurrency,
    )

    try:
        payload, report = await feed.populate(write=not dry_run)
    finally:
        await fetcher.close()
        await cache.close()

    summary = asdict(report)
    summary["cache_key"] = cache_key
    summary["payload_bytes"] = len(payload.encode("utf-8"))
    summary["written"] = not dry_run and bool(payload)
    return summary


def _parse_args() -> argparse.Namespace:
    config = get_config("users", 8020)
    parser = argparse.ArgumentParser(description="Warm the Redis users cache.")
    parser.add_argument("--redis-url", default=config.redis_url, help="Redis connection URL")
    parser.add_argument("--upstream-url", default=config.upstream_url, help="Upstream provider base URL")
    parser.add_argument("--cache-key", default=config.cache_key, help="Cache key to populate")
    parser.add_argument("--total-records", type=int, default=config.total_records, help="Total records to request")
    parser.add_argument("--per-page", type=int, default=config.per_page, help="Records per upstream page")
    parser.add_argument("--concurrency", type=int, default=config.concurrency, help="Nominal page concurrency")
    parser.add_argument("--bound-concurrency", action="store_true", default=config.bound_concurrency, help="Gate in-flight fetches by --concurrency")
    parser.add_argument("--timeout", type=float, default=config.upstream_timeout_seconds, help="Per-request upstream timeout in seconds")
    parser.add_argument("--dry-run", action="store_true", help="Do not write to Redis; only aggregate and report")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write JSON summary")
    parser.add_argument("--log-level", default=config.log_level, help="Log level")
    return parser.parse_args()


def main() -> int:
    args = _parse_args()
    configure_logging("users", args.log_level)
    try:
        summary = asyncio.run(
            warm(
                redis_url=args.redis_url,
                upstream_url=args.upstream_url,
                cache_key=args.cache_key,
                total_records=args.total_records,
                per_page=args.per_page,
                concurrency=args.concurrency,
                bound_concurrency=args.bound_concurrency,
                dry_run=args.dry_run,
                timeout=args.timeout,
            )
        )
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # pragma: no cover - CLI surface
        print(f"[users-warm] failed: {exc}", file=sys.stderr)
        return 1

    if args.dry_run:
        print("[users-warm] DRY RUN - no Redis writes executed")

    print(json.dumps(summary, indent=2))

    if args.output:
        args.output.write_text(json.dumps(summary, indent=2))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
