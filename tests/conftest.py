# File: tests/conftest.py
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
from aiohttp import web

from sitemap_scout.config import CrawlConfig
from sitemap_scout.logger import init_logging


@pytest.fixture(autouse=True)
def fresh_logging():
    """Handlers bound to a previous test's (closed) capture stream are replaced."""
    init_logging(level="DEBUG")


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


def xml_response(body: str, status: int = 200) -> web.Response:
    return web.Response(text=body, status=status, content_type="application/xml")


def urlset(*locs: str, lastmod: str = "") -> str:
    """Render a namespaced urlset with one <url> per loc."""
    items = "".join(
        f"<url><loc>{loc}</loc>{f'<lastmod>{lastmod}</lastmod>' if lastmod else ''}</url>"
        for loc in locs
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{items}</urlset>'
    )


def sitemap_index(*locs: str) -> str:
    items = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{items}</sitemapindex>'
    )


def article_html(title: str, words: int = 150, extra: str = "") -> str:
    body = " ".join(f"word{i}" for i in range(words))
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><nav>Home About Contact</nav><article><p>{body}</p>{extra}</article>"
        "<footer>Copyright 2001</footer></body></html>"
    )


@pytest.fixture()
def make_config() -> Callable[..., CrawlConfig]:
    """
    Factory for a CrawlConfig that talks to the local test server directly:
    no public relays, a single attempt, no backoff delay.
    """

    def _make(**overrides: Any) -> CrawlConfig:
        values: dict[str, Any] = {
            "proxies": [],
            "direct_fallback": True,
            "retry_times": 1,
            "backoff_base": 0.0,
            "attempt_timeout": 2.0,
            "use_robots": False,
            "user_agent": "TestAgent/1.0",
        }
        values.update(overrides)
        return CrawlConfig(**values)

    return _make
