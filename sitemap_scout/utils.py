# File: sitemap_scout/utils.py
"""sitemap_scout.utils: URL helpers and W3C datetime parsing shared by the pipeline."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional, Sequence
from urllib.parse import unquote, urljoin, urlparse, urlunparse

from sitemap_scout.logger import get_logger

__all__: Sequence[str] = (
    "normalize_url",
    "site_origin",
    "resolve_sitemap_url",
    "slug_from_url",
    "parse_w3c_datetime",
)

logger = get_logger("utils")

_PAGE_EXT_RE = re.compile(r"\.(html?|php|aspx?)$", re.IGNORECASE)


def normalize_url(url: str) -> str:
    """Trim whitespace, drop the fragment, lower-case scheme and host.

    Path and query are kept as they are: WordPress treats ``/post`` and ``/post/``
    as distinct permalinks and query strings may select content.
    """
    parsed = urlparse(url.strip())
    normalized = urlunparse(
        (parsed.scheme.lower(), parsed.netloc.lower(), parsed.path, parsed.params, parsed.query, "")
    )
    return normalized


def site_origin(url: str) -> str:
    """Return ``scheme://host`` of *url*; a bare host gets ``https://``."""
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    parsed = urlparse(candidate)
    if not parsed.netloc:
        raise ValueError(f"Not a site URL: {url!r}")
    return urlunparse((parsed.scheme.lower(), parsed.netloc.lower(), "", "", "", ""))


def resolve_sitemap_url(origin: str, path: str) -> str:
    """Join a sitemap path onto *origin*; absolute URLs are returned normalized."""
    if urlparse(path).scheme in ("http", "https"):
        return normalize_url(path)
    if not path.startswith("/"):
        path = "/" + path
    return normalize_url(urljoin(origin + "/", path))


def slug_from_url(url: str) -> str:
    """Turn the last non-empty path segment into a title: ``/my-first-post/`` → ``My First Post``."""
    try:
        parts = [p for p in urlparse(url).path.split("/") if p]
    except ValueError:
        return url
    if not parts:
        return urlparse(url).netloc or url
    slug = _PAGE_EXT_RE.sub("", unquote(parts[-1]))
    words = re.sub(r"[-_]+", " ", slug).strip()
    return words.title() if words else url


def parse_w3c_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a sitemap ``<lastmod>`` value; naive values are taken as UTC.

    Accepts ``YYYY``, ``YYYY-MM``, ``YYYY-MM-DD`` and full timestamps with ``Z``
    or a numeric offset. Returns ``None`` for anything else.
    """
    if not value:
        return None
    text = value.strip()
    if re.fullmatch(r"\d{4}", text):
        text = f"{text}-01-01"
    elif re.fullmatch(r"\d{4}-\d{2}", text):
        text = f"{text}-01"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparsable lastmod: %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
