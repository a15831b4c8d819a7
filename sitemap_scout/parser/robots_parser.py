# File: sitemap_scout/parser/robots_parser.py
"""sitemap_scout.parser.robots_parser: extraction of ``Sitemap:`` hints from robots.txt."""

from __future__ import annotations

from typing import List, Tuple


def parse_robots_sitemaps(text: str) -> List[str]:
    """Return the sitemap URLs declared in a robots.txt body, in file order.

    ``Sitemap`` is a non-group directive, so it is honoured wherever it
    appears, independent of ``User-agent`` sections.
    """
    sitemaps: List[str] = []
    for directive, value in _prepare_lines(text):
        if directive == "sitemap" and value and value not in sitemaps:
            sitemaps.append(value)
    return sitemaps


def _prepare_lines(text: str) -> List[Tuple[str, str]]:
    """Strip comments and split each line into (directive, value)."""
    lines: List[Tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        if not line or ":" not in line:
            continue
        key, val = (part.strip() for part in line.split(":", 1))
        lines.append((key.lower(), val))
    return lines
