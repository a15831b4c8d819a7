# sitemap_scout/crawler/url_filter.py
"""
Content-URL filtering for URLs pulled out of urlsets.

Sitemaps generated by WordPress plugins regularly list attachments, feeds and
archive pages next to real posts; only pages worth analyzing pass this filter.
"""
from __future__ import annotations

import re
from typing import Iterable, Optional
from urllib.parse import urlparse

__all__ = ("is_content_url", "matches_patterns")

_EXCLUDED_PATH_RE = re.compile(
    r"""
    /wp-(?:admin|content|includes|json|login\.php)(?:/|$)
    | /xmlrpc\.php$
    | /(?:comments/)?feed/?$
    | /(?:rss|atom)/?$
    | /page/\d+/?$
    | /(?:cart|checkout|my-account|login|logout|register)/?$
    | /(?:cdn-cgi|assets|static)/
    """,
    re.IGNORECASE | re.VERBOSE,
)

_EXCLUDED_QUERY_RE = re.compile(r"(?:^|&)(?:s|p|replytocom|paged|feed|preview)=", re.IGNORECASE)

_NON_HTML_EXTENSIONS = (
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp", ".ico", ".avif",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".txt", ".csv",
    ".zip", ".gz", ".rar", ".7z", ".tar",
    ".mp3", ".mp4", ".wav", ".avi", ".mov", ".webm", ".ogg",
    ".css", ".js", ".json", ".xml", ".rss",
    ".woff", ".woff2", ".ttf", ".eot",
)


def is_content_url(url: str) -> bool:
    """Return True if *url* looks like an HTML content page.

    Rejects non-HTTP schemes, admin/login/asset/feed/API/pagination paths,
    search and comment-reply queries and non-HTML file extensions.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return False
    path = parsed.path or "/"
    if _EXCLUDED_PATH_RE.search(path):
        return False
    if parsed.query and _EXCLUDED_QUERY_RE.search(parsed.query):
        return False
    return not path.lower().endswith(_NON_HTML_EXTENSIONS)


def matches_patterns(url: str, patterns: Optional[Iterable[str]]) -> bool:
    """Include-filter: with no patterns everything matches, otherwise any substring hit."""
    if not patterns:
        return True
    return any(pattern in url for pattern in patterns)
