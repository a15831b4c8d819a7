# sitemap_scout/crawler/frontier.py
"""
Sitemap frontier resolution: breadth-first traversal of the sitemap /
sitemap-index graph into a deduplicated ``url -> FrontierEntry`` map.

States of a sitemap URL: unvisited → fetching → index | urlset | failed.
A URL enters ``seen`` the moment it is queued, so self-references and cycles
between indexes are fetched exactly once and the traversal always terminates.
Fetches inside one wave run concurrently; ``seen``, the queue and the result
map are only touched between waves, on the event loop.
"""
from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

from sitemap_scout.config import CrawlConfig
from sitemap_scout.crawler.fetcher import ProxyFetcher
from sitemap_scout.crawler.models import FrontierEntry
from sitemap_scout.crawler.scheduler import BoundedScheduler
from sitemap_scout.crawler.url_filter import is_content_url, matches_patterns
from sitemap_scout.errors import FetchExhausted, NoUrlsFound, SitemapParseError
from sitemap_scout.logger import get_logger
from sitemap_scout.parser.robots_parser import parse_robots_sitemaps
from sitemap_scout.parser.sitemap_parser import SitemapDocument, parse_sitemap
from sitemap_scout.utils import normalize_url, resolve_sitemap_url, site_origin

__all__ = ("DEFAULT_SITEMAP_PATHS", "FrontierResolver")

#: Tried in order when no explicit sitemap path is given (Yoast/Rank Math, core WP, generic).
DEFAULT_SITEMAP_PATHS: Sequence[str] = (
    "/sitemap_index.xml",
    "/sitemap.xml",
    "/wp-sitemap.xml",
    "/post-sitemap.xml",
    "/page-sitemap.xml",
)

logger = get_logger("frontier")


class FrontierResolver:
    """Resolves a site's sitemaps into the set of content URLs to analyze."""

    def __init__(
        self,
        fetcher: ProxyFetcher,
        config: CrawlConfig,
        scheduler: Optional[BoundedScheduler] = None,
    ) -> None:
        self.fetcher = fetcher
        self.config = config
        self.scheduler = scheduler or BoundedScheduler(config.sitemap_concurrency, name="sitemaps")

    async def discover(
        self,
        site_url: str,
        sitemap_path: Optional[str] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, FrontierEntry]:
        """Return ``url -> FrontierEntry`` for every content URL reachable from the seeds.

        ``should_stop`` is polled before every wave and before every sitemap
        fetch; once it trips, in-flight fetches finish and the URLs found so
        far are returned.

        Raises NoUrlsFound if the traversal produced no content URL.
        """
        origin = site_origin(site_url)
        start = time.monotonic()
        seeds = await self._seeds(origin, sitemap_path)
        logger.info("Discovering sitemaps of %s (%d seed(s))", origin, len(seeds))

        seen: set[str] = set()
        queue: Deque[str] = deque()
        for seed in seeds:
            if seed not in seen:
                seen.add(seed)
                queue.append(seed)

        found: Dict[str, FrontierEntry] = {}
        fetched = 0
        wave_no = 0
        while queue and not self._frontier_full(found):
            if should_stop is not None and should_stop():
                logger.info("Discovery stopped, %d sitemap(s) left unvisited", len(queue))
                break
            budget = self.config.max_sitemaps - fetched
            if budget <= 0:
                logger.warning("Sitemap limit of %d reached, %d left unvisited", self.config.max_sitemaps, len(queue))
                break
            wave = [queue.popleft() for _ in range(min(budget, len(queue)))]
            wave_no += 1
            documents, attempted = await self._fetch_wave(wave, should_stop)
            fetched += attempted
            logger.debug("Wave %d: %d sitemap(s) requested, %d parsed", wave_no, len(wave), len(documents))

            for doc in documents:
                for child in doc.sitemaps:
                    child_url = resolve_sitemap_url(origin, child)
                    if child_url not in seen:
                        seen.add(child_url)
                        queue.append(child_url)
                self._merge_entries(found, doc)

        duration = time.monotonic() - start
        if not found:
            logger.error("No content URLs found for %s after %d sitemap(s)", origin, fetched)
            raise NoUrlsFound(origin, tried=fetched)
        logger.info("Discovered %d URL(s) from %d sitemap(s) in %.2f s", len(found), fetched, duration)
        return found

    async def _seeds(self, origin: str, sitemap_path: Optional[str]) -> List[str]:
        if sitemap_path:
            return [resolve_sitemap_url(origin, sitemap_path)]
        seeds = [resolve_sitemap_url(origin, path) for path in DEFAULT_SITEMAP_PATHS]
        if self.config.use_robots:
            seeds.extend(await self._robots_sitemaps(origin))
        return seeds

    async def _robots_sitemaps(self, origin: str) -> List[str]:
        robots_url = f"{origin}/robots.txt"
        try:
            text = await self.fetcher.fetch(robots_url)
        except FetchExhausted as exc:
            logger.info("robots.txt unavailable for %s: %s", origin, exc)
            return []
        hints = [resolve_sitemap_url(origin, url) for url in parse_robots_sitemaps(text)]
        if hints:
            logger.debug("robots.txt declares %d sitemap(s)", len(hints))
        return hints

    async def _fetch_wave(
        self, wave: List[str], should_stop: Optional[Callable[[], bool]] = None
    ) -> Tuple[List[SitemapDocument], int]:
        """Fetch and parse one wave; returns the parsed documents and how many sitemaps were tried."""
        # slot per wave position keeps merge order independent of completion order
        documents: List[Optional[SitemapDocument]] = [None] * len(wave)

        async def _work(sitemap_url: str, index: int) -> None:
            try:
                body = await self.fetcher.fetch_bytes(sitemap_url)
                documents[index] = parse_sitemap(body, sitemap_url)
            except (FetchExhausted, SitemapParseError) as exc:
                logger.warning("Skipping sitemap %s: %s", sitemap_url, exc)
                return
            logger.debug("Parsed sitemap %s", sitemap_url)

        stats = await self.scheduler.run(wave, _work, should_stop=should_stop)
        return [doc for doc in documents if doc is not None], stats.completed

    def _merge_entries(self, found: Dict[str, FrontierEntry], doc: SitemapDocument) -> None:
        for entry in doc.entries:
            if self._frontier_full(found):
                return
            url = normalize_url(entry.url)
            if url in found or not is_content_url(url):
                continue
            if not matches_patterns(url, self.config.filter_patterns):
                continue
            found[url] = FrontierEntry(
                url=url,
                last_modified=entry.last_modified,
                sitemap_priority=entry.sitemap_priority,
                sitemap_changefreq=entry.sitemap_changefreq,
            )

    def _frontier_full(self, found: Dict[str, FrontierEntry]) -> bool:
        return self.config.max_urls is not None and len(found) >= self.config.max_urls
