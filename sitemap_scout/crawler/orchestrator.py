# sitemap_scout/crawler/orchestrator.py
"""
Crawl orchestration: frontier discovery followed by bounded-concurrency page
analysis, with results published to subscribers as they are produced.
"""
from __future__ import annotations

import asyncio
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import partial
from typing import AsyncIterator, Dict, List, Optional

from aiohttp import ClientSession

from sitemap_scout.aggregator import CrawlReport
from sitemap_scout.config import CrawlConfig
from sitemap_scout.crawler.fetcher import ProxyFetcher
from sitemap_scout.crawler.frontier import FrontierResolver
from sitemap_scout.crawler.models import (
    ContentRecord,
    CrawlEvent,
    CrawlPhase,
    FrontierEntry,
    PhaseChanged,
    ProgressUpdated,
    RecordAnalyzed,
)
from sitemap_scout.crawler.scheduler import BoundedScheduler
from sitemap_scout.errors import NoUrlsFound
from sitemap_scout.logger import get_logger
from sitemap_scout.parser.content_analyzer import analyze
from sitemap_scout.utils import site_origin

__all__ = ("CrawlOrchestrator",)


class CrawlOrchestrator:
    """Two-phase crawl (discover, then analyze) with streamed results and cancellation.

    Subscribers obtained from :meth:`subscribe` receive phase changes, progress
    ticks and every :class:`ContentRecord` as soon as it is produced; ``None``
    closes the stream.
    """

    def __init__(
        self,
        config: CrawlConfig,
        fetcher: Optional[ProxyFetcher] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.executor = executor
        self.session: Optional[ClientSession] = None
        self.phase = CrawlPhase.IDLE
        self.logger = get_logger("orchestrator")
        self._owns_executor = False
        self._cancelled = False
        self._subscribers: List[asyncio.Queue] = []
        self.last_report: Optional[CrawlReport] = None

    async def __aenter__(self) -> CrawlOrchestrator:
        self._cancelled = False
        if self.fetcher is None:
            self.session = ClientSession(
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
            self.fetcher = ProxyFetcher(self.session, self.config)
        if self.executor is None and self.config.analysis_workers > 0:
            self.executor = ThreadPoolExecutor(
                max_workers=self.config.analysis_workers, thread_name_prefix="analyzer"
            )
            self._owns_executor = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session is not None:
            if not self.session.closed:
                await self.session.close()
            # the fetcher was built on this session; the next __aenter__ rebuilds both
            self.session = None
            self.fetcher = None
        if self._owns_executor and self.executor is not None:
            self.executor.shutdown(wait=False, cancel_futures=True)
            self.executor = None
            self._owns_executor = False

    # ------------------------------------------------------------------ #
    # Subscription                                                       #
    # ------------------------------------------------------------------ #

    def subscribe(self) -> asyncio.Queue[Optional[CrawlEvent]]:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self, event: Optional[CrawlEvent]) -> None:
        for queue in self._subscribers:
            queue.put_nowait(event)

    def _set_phase(self, phase: CrawlPhase, detail: str = "") -> None:
        self.phase = phase
        self.logger.info("Phase: %s%s", phase.value, f" ({detail})" if detail else "")
        self._publish(PhaseChanged(phase, detail))

    def cancel(self) -> None:
        """Stop starting new sitemap fetches and pages; in-flight ones finish."""
        if not self._cancelled:
            self.logger.info("Cancellation requested")
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    # ------------------------------------------------------------------ #
    # Pipeline                                                           #
    # ------------------------------------------------------------------ #

    async def run(self, site_url: str, sitemap_path: Optional[str] = None) -> CrawlReport:
        """Discover and analyze *site_url*; returns the final report.

        Raises NoUrlsFound (after publishing the ``failed`` phase) if discovery
        finds nothing. Page-level failures only show up as skipped pages.
        """
        if self.fetcher is None:
            raise RuntimeError("CrawlOrchestrator must be used as 'async with'")
        origin = site_origin(site_url)
        path = sitemap_path if sitemap_path is not None else self.config.sitemap_path
        report = CrawlReport(site_url=origin, started_at=datetime.now(timezone.utc))
        self.last_report = report
        start = time.monotonic()

        try:
            self._set_phase(CrawlPhase.DISCOVERING, origin)
            resolver = FrontierResolver(self.fetcher, self.config)
            try:
                frontier = await resolver.discover(origin, path, should_stop=lambda: self._cancelled)
            except NoUrlsFound as exc:
                report.phase = CrawlPhase.FAILED
                report.error = str(exc)
                report.cancelled = self._cancelled
                report.finished_at = datetime.now(timezone.utc)
                self._set_phase(CrawlPhase.FAILED, str(exc))
                raise
            report.discovered = len(frontier)

            self._set_phase(CrawlPhase.ANALYZING, f"{len(frontier)} URL(s)")
            await self._analyze_all(frontier, report)

            report.phase = CrawlPhase.COMPLETE
            report.cancelled = self._cancelled
            report.finished_at = datetime.now(timezone.utc)
            duration = time.monotonic() - start
            self.logger.info(
                "Finished %s: %d/%d page(s) analyzed, %d skipped in %.2f s",
                origin, report.analyzed, report.discovered, report.skipped, duration,
            )
            self._set_phase(CrawlPhase.COMPLETE, f"{report.analyzed}/{report.discovered}")
            return report
        finally:
            self._publish(None)

    async def stream(self, site_url: str, sitemap_path: Optional[str] = None) -> AsyncIterator[ContentRecord]:
        """Yield records in completion order while the crawl runs.

        The job-level failure, if any, is raised once the stream is drained.
        """
        queue = self.subscribe()
        job = asyncio.create_task(self.run(site_url, sitemap_path))
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                if isinstance(event, RecordAnalyzed):
                    yield event.record
            await job
        finally:
            self.unsubscribe(queue)
            if not job.done():
                self.cancel()
                await asyncio.gather(job, return_exceptions=True)

    async def _analyze_all(self, frontier: Dict[str, FrontierEntry], report: CrawlReport) -> None:
        entries = list(frontier.values())
        scheduler = BoundedScheduler(self.config.page_concurrency, name="pages")

        async def _work(entry: FrontierEntry, _index: int) -> None:
            html = await self.fetcher.fetch(entry.url)
            record = await self._analyze(entry, html)
            report.records.append(record)
            self._publish(RecordAnalyzed(record))

        def _progress(completed: int, total: int) -> None:
            self._publish(ProgressUpdated(completed, total))

        self._publish(ProgressUpdated(0, len(entries)))
        stats = await scheduler.run(entries, _work, on_progress=_progress, should_stop=lambda: self._cancelled)
        if stats.failed:
            self.logger.warning("%d page(s) could not be fetched or analyzed", stats.failed)

    async def _analyze(self, entry: FrontierEntry, html: str) -> ContentRecord:
        if self.executor is None:
            return analyze(entry.url, html, entry.last_modified)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, partial(analyze, entry.url, html, entry.last_modified))
