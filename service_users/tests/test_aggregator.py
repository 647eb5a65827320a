"""
Unit tests for the concurrent page Aggregator.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.errors import TransportError, UpstreamStatusError, DecodeError
from shared.metrics import MetricsCollector
from shared.test_helpers import UsersDataFactory
from service_users.app.aggregation.aggregator import Aggregator
from service_users.app.upstream.models import RawPage


def _page(page_index: int, count: int) -> RawPage:
    return RawPage.model_validate(UsersDataFactory.raw_page(page_index, count))


class ConcurrencyProbe:
    """Fake fetcher recording how many fetches are in flight at once."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, page_size: int, page_index: int) -> RawPage:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return _page(page_index, page_size)
        finally:
            self.in_flight -= 1


class TestAggregator:
    """Test cases for Aggregator."""

    @pytest.fixture
    def fetcher(self):
        """Fetcher stub returning full pages."""
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=lambda size, index: _page(index, size))
        return fetcher

    @pytest.fixture
    def metrics(self):
        """Users metrics collector with a private registry."""
        return MetricsCollector("users")

    @pytest.mark.parametrize("total,per_page,expected", [(8, 4, 2), (15000, 3750, 4), (10, 3, 3), (2, 4, 0), (0, 5, 0)])
    def test_page_count_drops_remainder(self, total, per_page, expected):
        """Test page count is integer division of total by page size."""
        assert Aggregator.page_count(total, per_page) == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("total,per_page", [(8, 4), (12, 3), (20, 1)])
    async def test_launches_one_fetch_per_page(self, fetcher, total, per_page):
        """Test exactly total/per_page fetches are launched with 1-based indices."""
        aggregator = Aggregator(fetcher)

        await aggregator.aggregate_all(total, per_page, 4)

        pages = total // per_page
        assert fetcher.fetch.await_count == pages
        called = sorted(call.args for call in fetcher.fetch.await_args_list)
        assert called == [(per_page, index) for index in range(1, pages + 1)]

    @pytest.mark.asyncio
    async def test_all_pages_succeed(self, fetcher):
        """Test the record set holds every record when no page fails."""
        aggregator = Aggregator(fetcher)

        records = await aggregator.aggregate_all(8, 4, 4)

        assert len(records) == 8
        assert {record.uuid for record in records} == {f"uuid-{p}-{i}" for p in (1, 2) for i in range(4)}

    @pytest.mark.asyncio
    async def test_records_within_page_keep_upstream_order(self, fetcher):
        """Test records of one page stay in upstream order."""
        aggregator = Aggregator(fetcher)

        records = await aggregator.aggregate_all(8, 4, 4)

        page_two = [record.uuid for record in records if record.uuid.startswith("uuid-2-")]
        assert page_two == [f"uuid-2-{i}" for i in range(4)]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            TransportError("connection refused"),
            UpstreamStatusError(503),
            DecodeError("bad payload"),
            RuntimeError("unexpected"),
        ],
    )
    async def test_one_failed_page_is_dropped(self, error):
        """Test a single failing page removes only that page's records."""
        def fetch(size, index):
            if index == 2:
                raise error
            return _page(index, size)

        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=fetch)
        aggregator = Aggregator(fetcher)

        records = await aggregator.aggregate_all(16, 4, 4)

        assert len(records) == 12
        assert not any(record.uuid.startswith("uuid-2-") for record in records)

    @pytest.mark.asyncio
    async def test_all_pages_fail_returns_empty(self):
        """Test total failure still returns an empty record set."""
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=TransportError("down"))
        aggregator = Aggregator(fetcher)

        records = await aggregator.aggregate_all(8, 4, 4)

        assert records == []

    @pytest.mark.asyncio
    async def test_failure_hook_and_report(self):
        """Test failures are reported through the hook and the run report."""
        failures = []

        def fetch(size, index):
            if index in (1, 3):
                raise UpstreamStatusError(500)
            return _page(index, size)

        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=fetch)
        aggregator = Aggregator(fetcher, on_page_failure=lambda index, exc: failures.append((index, type(exc))))

        records, report = await aggregator.aggregate_with_report(12, 3, 2)

        assert sorted(failures) == [(1, UpstreamStatusError), (3, UpstreamStatusError)]
        assert len(records) == 3
        assert report.pages_planned == 4
        assert report.pages_succeeded == 2
        assert report.pages_failed == 2
        assert report.records == 3
        assert report.degraded is True
        assert set(report.failures) == {1, 3}
        assert "500" in report.failures[1]

    @pytest.mark.asyncio
    async def test_raising_failure_hook_does_not_fail_aggregation(self):
        """Test a broken failure hook is called once per page and never escapes."""
        calls = []

        def hook(index, exc):
            calls.append(index)
            raise RuntimeError("hook broke")

        def fetch(size, index):
            if index == 2:
                raise UpstreamStatusError(503)
            return _page(index, size)

        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=fetch)
        aggregator = Aggregator(fetcher, on_page_failure=hook)

        records, report = await aggregator.aggregate_with_report(8, 4, 4)

        assert [record.uuid for record in records] == [f"uuid-1-{i}" for i in range(4)]
        assert calls == [2]
        assert report.pages_failed == 1

    @pytest.mark.asyncio
    async def test_zero_pages_makes_no_calls(self, fetcher):
        """Test a total below one page launches nothing."""
        aggregator = Aggregator(fetcher)

        records, report = await aggregator.aggregate_with_report(3, 4, 4)

        assert records == []
        assert report.pages_planned == 0
        fetcher.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_unbounded_launches_all_pages_at_once(self):
        """Test the default mode does not gate in-flight fetches."""
        probe = ConcurrencyProbe()
        aggregator = Aggregator(probe)

        records = await aggregator.aggregate_all(10, 1, 2)

        assert len(records) == 10
        assert probe.max_in_flight == 10

    @pytest.mark.asyncio
    async def test_bound_concurrency_limits_in_flight(self):
        """Test bounded mode caps in-flight fetches and still collects all pages."""
        probe = ConcurrencyProbe()
        aggregator = Aggregator(probe, bound_concurrency=True)

        records = await aggregator.aggregate_all(10, 1, 3)

        assert len(records) == 10
        assert probe.max_in_flight == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("total,per_page,concurrency", [(8, 0, 4), (-1, 4, 4), (8, 4, 0)])
    async def test_invalid_arguments(self, fetcher, total, per_page, concurrency):
        """Test invalid sizing is rejected."""
        aggregator = Aggregator(fetcher)

        with pytest.raises(ValueError):
            await aggregator.aggregate_all(total, per_page, concurrency)

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, metrics):
        """Test page outcomes and record totals are exported."""
        def fetch(size, index):
            if index == 1:
                raise TransportError("down")
            return _page(index, size)

        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(side_effect=fetch)
        aggregator = Aggregator(fetcher, metrics=metrics)

        await aggregator.aggregate_all(8, 4, 4)

        registry = metrics.registry
        assert registry.get_sample_value("upstream_pages_total", {"outcome": "success"}) == 1
        assert registry.get_sample_value("upstream_pages_total", {"outcome": "failure"}) == 1
        assert registry.get_sample_value("aggregated_records_total") == 4
        assert registry.get_sample_value("aggregation_duration_seconds_count") == 1
