# File: sitemap_scout/errors.py
"""sitemap_scout.errors: Exception hierarchy shared by the crawl pipeline."""

from __future__ import annotations

from typing import Optional

__all__ = ("ScoutError", "FetchExhausted", "SitemapParseError", "NoUrlsFound")


class ScoutError(Exception):
    """Base class for every error raised by SitemapScout."""


class FetchExhausted(ScoutError):
    """Every relay candidate and every retry failed for one logical URL."""

    def __init__(self, url: str, last_error: Optional[BaseException] = None) -> None:
        self.url = url
        self.last_error = last_error
        message = f"Failed to fetch {url}: all relay endpoints and the direct request failed"
        if last_error is not None:
            message = f"{message}. Last error: {last_error}"
        super().__init__(message)


class SitemapParseError(ScoutError):
    """A sitemap body is not a usable urlset or sitemap index."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot parse sitemap {url}: {reason}")


class NoUrlsFound(ScoutError):
    """Sitemap traversal finished without a single content URL."""

    def __init__(self, site_url: str, tried: int = 0) -> None:
        self.site_url = site_url
        self.tried = tried
        super().__init__(
            f"No content URLs discovered for {site_url} after checking {tried} sitemap(s). "
            "Verify that the site is reachable and publishes a public sitemap "
            "(e.g. /sitemap_index.xml, /wp-sitemap.xml or /sitemap.xml), "
            "or pass the sitemap path explicitly."
        )
