# File: sitemap_scout/engine.py
"""sitemap_scout.engine: orchestration facade used by the CLI and tests."""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, Optional

from aiohttp import ClientSession

from sitemap_scout.aggregator import CrawlReport
from sitemap_scout.config import CrawlConfig, load_config
from sitemap_scout.crawler.fetcher import ProxyFetcher
from sitemap_scout.crawler.frontier import FrontierResolver
from sitemap_scout.crawler.models import ContentRecord, FrontierEntry
from sitemap_scout.crawler.orchestrator import CrawlOrchestrator
from sitemap_scout.logger import logger

__all__ = ["Engine", "start_scan", "discover_urls"]

RecordCallback = Callable[[ContentRecord], None]


def _target(cfg: CrawlConfig, site_url: Optional[str]) -> str:
    target = site_url or (str(cfg.site_url) if cfg.site_url else None)
    if not target:
        raise ValueError("No site URL given (argument or 'site_url' in the config)")
    return target


async def start_scan(
    cfg: CrawlConfig,
    site_url: Optional[str] = None,
    sitemap_path: Optional[str] = None,
    on_record: Optional[RecordCallback] = None,
) -> CrawlReport:
    """
    Run discovery and analysis for one site and return the report.

    Parameters
    ----------
    cfg : CrawlConfig
        Crawl configuration.
    site_url : str, optional
        Overrides ``cfg.site_url``.
    sitemap_path : str, optional
        Overrides ``cfg.sitemap_path``.
    on_record : callable, optional
        Called with every ContentRecord as soon as it is produced.
    """
    target = _target(cfg, site_url)
    async with CrawlOrchestrator(cfg) as orchestrator:
        if on_record is None:
            return await orchestrator.run(target, sitemap_path)
        async for record in orchestrator.stream(target, sitemap_path):
            on_record(record)
        # stream() re-raises job failures, so the report is final here
        return orchestrator.last_report


async def discover_urls(
    cfg: CrawlConfig,
    site_url: Optional[str] = None,
    sitemap_path: Optional[str] = None,
) -> Dict[str, FrontierEntry]:
    """Phase one only: resolve the sitemap graph into content URLs."""
    target = _target(cfg, site_url)
    async with ClientSession(headers={"User-Agent": cfg.user_agent}) as session:
        resolver = FrontierResolver(ProxyFetcher(session, cfg), cfg)
        return await resolver.discover(target, sitemap_path or cfg.sitemap_path)


class Engine:
    """Synchronous facade: load a config, run a crawl, return the report."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlConfig:
        """Load the config from YAML/JSON (``configs/default.yaml`` when *path* is None)."""
        return load_config(path)

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config

    def start_scan(self, site_url: Optional[str] = None, timeout: Optional[float] = None) -> CrawlReport:
        """Run the crawl to completion, optionally bounded by *timeout* seconds."""
        logger.info("Starting crawl…")
        try:
            return asyncio.run(asyncio.wait_for(start_scan(self.config, site_url), timeout=timeout))
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", timeout)
            raise
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise
