"""
Concurrent page aggregation for the Users Service.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from shared.errors import UsersServiceException
from shared.logging import get_logger

from ..records.models import CanonicalRecord, RecordSet
from ..records.normalizer import normalize

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..upstream.page_fetcher import PageFetcher
    from shared.metrics import MetricsCollector


PageFailureHook = Callable[[int, BaseException], None]


@dataclass(frozen=True)
class PageOutcome:
    """Terminal state of one page task: records on success, error on failure."""

    page_index: int
    records: List[CanonicalRecord] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class AggregationReport:
    """Summary of one aggregation run."""

    pages_planned: int
    pages_succeeded: int
    pages_failed: int
    records: int
    duration_seconds: float
    failures: Dict[int, str] = field(default_factory=dict)

    @property
    def degraded(self) -> bool:
        return self.pages_failed > 0


class Aggregator:
    """Fans out page fetches concurrently and folds the successful pages.

    A failed page contributes no records and never fails the aggregation.
    Failures are logged, counted and passed to ``on_page_failure`` when set.

    By default every page task starts at once and ``concurrency`` is only
    reported. With ``bound_concurrency=True`` a semaphore of that size gates
    the in-flight fetches; all pages are still launched and collected.
    """

    def __init__(
        self,
        fetcher: "PageFetcher",
        *,
        metrics: Optional["MetricsCollector"] = None,
        on_page_failure: Optional[PageFailureHook] = None,
        bound_concurrency: bool = False,
    ):
        self.fetcher = fetcher
        self.metrics = metrics
        self.on_page_failure = on_page_failure
        self.bound_concurrency = bound_concurrency
        self.logger = get_logger("users.aggregator")

    @staticmethod
    def page_count(total_records: int, per_page: int) -> int:
        """Number of pages to request; a remainder is dropped."""
        if per_page < 1:
            raise ValueError(f"per_page must be positive, got {per_page}")
        if total_records < 0:
            raise ValueError(f"total_records must not be negative, got {total_records}")
        return total_records // per_page

    async def aggregate_all(self, total_records: int, per_page: int, concurrency: int) -> RecordSet:
        """Fetch every page concurrently and return the flattened records."""
        records, _ = await self.aggregate_with_report(total_records, per_page, concurrency)
        return records

    async def aggregate_with_report(
        self,
        total_records: int,
        per_page: int,
        concurrency: int,
    ) -> Tuple[RecordSet, AggregationReport]:
        """Same as :meth:`aggregate_all`, also returning a run summary."""
        pages = self.page_count(total_records, per_page)
        if concurrency < 1:
            raise ValueError(f"concurrency must be positive, got {concurrency}")

        start = time.perf_counter()
        semaphore = asyncio.Semaphore(concurrency) if self.bound_concurrency else None

        self.logger.info(
            "Aggregation started",
            pages=pages,
            per_page=per_page,
            concurrency=concurrency,
            bounded=self.bound_concurrency,
        )

        tasks = [self._fetch_page(per_page, index, semaphore) for index in range(1, pages + 1)]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        records: RecordSet = []
        failures: Dict[int, str] = {}
        for index, outcome in enumerate(results, start=1):
            if isinstance(outcome, BaseException):
                # Anything the fetch wrapper did not anticipate is still a page failure.
                outcome = PageOutcome(page_index=index, error=outcome)

            if outcome.ok:
                records.extend(outcome.records)
            else:
                self._record_failure(outcome)
                failures[outcome.page_index] = str(outcome.error) or type(outcome.error).__name__

        duration = time.perf_counter() - start
        report = AggregationReport(
            pages_planned=pages,
            pages_succeeded=pages - len(failures),
            pages_failed=len(failures),
            records=len(records),
            duration_seconds=duration,
            failures=failures,
        )

        if self.metrics:
            self.metrics.observe_histogram("aggregation_duration_seconds", duration)
            self.metrics.increment_counter("aggregated_records_total", len(records))

        log = self.logger.warning if report.degraded else self.logger.info
        log(
            "Aggregation completed",
            pages=pages,
            pages_failed=report.pages_failed,
            records=report.records,
            duration_ms=round(duration * 1000, 2),
        )
        return records, report

    async def _fetch_page(
        self,
        per_page: int,
        page_index: int,
        semaphore: Optional[asyncio.Semaphore],
    ) -> PageOutcome:
        """Fetch and normalize one page, turning typed failures into an outcome."""
        try:
            if semaphore is None:
                page = await self.fetcher.fetch(per_page, page_index)
            else:
                async with semaphore:
                    page = await self.fetcher.fetch(per_page, page_index)
        except UsersServiceException as exc:
            return PageOutcome(page_index=page_index, error=exc)

        if self.metrics:
            self.metrics.increment_counter("upstream_pages_total", outcome="success")
        return PageOutcome(page_index=page_index, records=[normalize(raw) for raw in page.results])

    def _record_failure(self, outcome: PageOutcome) -> None:
        """Log, count and report a failed page."""
        self.logger.warning(
            "Page fetch failed, dropping page",
            page_index=outcome.page_index,
            error=str(outcome.error),
            error_type=type(outcome.error).__name__,
        )
        if self.metrics:
            self.metrics.increment_counter("upstream_pages_total", outcome="failure")
        if self.on_page_failure is None:
            return
        try:
            self.on_page_failure(outcome.page_index, outcome.error)
        except Exception:
            self.logger.exception("Page failure hook raised", page_index=outcome.page_index)
