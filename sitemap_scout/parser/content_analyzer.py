# === FILE: sitemap_scout/parser/content_analyzer.py ===
"""Page content analysis for SitemapScout.

Turns one fetched HTML document into a :class:`ContentRecord`:

* title: ``<title>`` → first ``<h1>`` → ``og:title`` → URL slug.
* main text: first content container with real text after noise removal.
* word count, staleness, priority, change frequency, readability, hash.

Everything here is heuristic. The selector lists below are best-effort
approximations of common WordPress themes, not a content model; they can be
revised without touching the crawl pipeline. :func:`analyze` never raises for
bad markup: an unusable document yields a record with ``word_count == 0``.
"""
from __future__ import annotations

import hashlib
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from sitemap_scout.crawler.models import ChangeFrequency, ContentRecord
from sitemap_scout.utils import slug_from_url

__all__: Sequence[str] = (
    "CONTENT_SELECTORS",
    "NOISE_SELECTORS",
    "analyze",
    "extract_title",
    "extract_main_text",
    "count_words",
    "detect_staleness",
    "calculate_priority",
    "estimate_change_frequency",
    "readability_score",
)

#: Tried in order; the first one with enough text wins.
CONTENT_SELECTORS: Sequence[str] = (
    "main article",
    "main .content",
    "main .post-content",
    "main .entry-content",
    ".post-content",
    ".entry-content",
    "article",
    "main",
    "[role=main]",
    ".content",
)

#: Subtrees removed before any measurement.
NOISE_SELECTORS: Sequence[str] = (
    "script", "style", "noscript", "template", "nav", "header", "footer", "aside",
    ".sidebar", ".menu", ".navigation", ".comments", ".comment", "#comments",
    ".social-share", ".related-posts", ".advertisement", ".ads", ".ad",
    ".cookie-notice", ".popup", ".modal", ".breadcrumb", ".breadcrumbs",
)

MIN_CONTENT_CHARS = 100
MAX_TITLE_CHARS = 200

_YEAR_RE = re.compile(r"\b((?:19|20)\d{2})\b")
_STALE_PHRASE_RE = re.compile(
    r"(?:updated|last modified|published|copyright|©)\s*(?:on|in)?\s*:?\s*"
    r"(?:[a-z]+\.?\s+\d{1,2},?\s+)?((?:19|20)\d{2})\b",
    re.IGNORECASE,
)
_TITLE_BOOST_RE = re.compile(r"guide|complete", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return _WS_RE.sub(" ", node.get_text(" ")).strip()


def extract_title(soup: BeautifulSoup, url: str) -> str:
    """Pick the page title in priority order, falling back to the URL slug."""
    title = _text(soup.find("title"))
    if not title:
        title = _text(soup.find("h1"))
    if not title:
        og = soup.find("meta", attrs={"property": "og:title"})
        if isinstance(og, Tag):
            content = og.get("content")
            if isinstance(content, str):
                title = _WS_RE.sub(" ", content).strip()
    if not title:
        title = slug_from_url(url)
    return title[:MAX_TITLE_CHARS]


def extract_main_text(soup: BeautifulSoup) -> str:
    """Remove noise subtrees, then return the text of the best content container.

    Mutates *soup*.
    """
    for selector in NOISE_SELECTORS:
        for node in soup.select(selector):
            # already gone with a removed ancestor
            if node.decomposed:
                continue
            node.decompose()

    for selector in CONTENT_SELECTORS:
        for candidate in soup.select(selector):
            text = _text(candidate)
            if len(text) > MIN_CONTENT_CHARS:
                return text
    body = soup.body
    return _text(body) if body is not None else _text(soup)


def count_words(text: str) -> int:
    return len(text.split())


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


def detect_staleness(title: str, text: str, current_year: int) -> bool:
    """True if the title names a past year or the text says "updated <past year>" and alike."""
    if any(int(y) < current_year for y in _YEAR_RE.findall(title)):
        return True
    return any(int(m.group(1)) < current_year for m in _STALE_PHRASE_RE.finditer(text))


def calculate_priority(word_count: int, is_stale: bool, title: str) -> float:
    """Ranking signal in [0, 1]; only meaningful relative to other pages."""
    priority = 0.5
    if word_count > 2000:
        priority += 0.2
    if word_count > 1000:
        priority += 0.1
    if not is_stale:
        priority += 0.1
    if _TITLE_BOOST_RE.search(title):
        priority += 0.1
    return round(min(1.0, priority), 2)


def estimate_change_frequency(last_modified: Optional[datetime], now: datetime) -> ChangeFrequency:
    if last_modified is None:
        return ChangeFrequency.MONTHLY
    age_days = (now - last_modified).total_seconds() / 86400
    if age_days < 7:
        return ChangeFrequency.DAILY
    if age_days < 30:
        return ChangeFrequency.WEEKLY
    if age_days < 90:
        return ChangeFrequency.MONTHLY
    return ChangeFrequency.YEARLY


def _syllables(word: str) -> int:
    word = word.lower()
    if len(word) <= 3:
        return 1
    word = re.sub(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$", "", word)
    word = re.sub(r"^y", "", word)
    return len(re.findall(r"[aeiouy]{1,2}", word)) or 1


def readability_score(text: str) -> int:
    """Flesch reading ease, clamped to 0–100; 0 for empty text."""
    words = text.split()
    sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
    if not words or not sentences:
        return 0
    words_per_sentence = len(words) / len(sentences)
    syllables_per_word = sum(_syllables(w) for w in words) / len(words)
    score = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word
    return max(0, min(100, round(score)))


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


# ---------------------------------------------------------------------------
# Public function
# ---------------------------------------------------------------------------


def analyze(
    url: str,
    html: str,
    last_modified: Optional[datetime] = None,
    *,
    now: Optional[datetime] = None,
) -> ContentRecord:
    """Build the :class:`ContentRecord` of one page.

    Parameters
    ----------
    url
        Page URL (used for the slug title fallback).
    html
        Raw markup; may be empty or broken.
    last_modified
        ``<lastmod>`` from the sitemap, if any. Missing values are replaced by
        *now* in the record and map to a ``monthly`` change frequency.
    now
        Reference time, UTC; defaults to the current time. Tests pin it.
    """
    now = now or datetime.now(timezone.utc)
    soup = BeautifulSoup(html or "", "html.parser")

    title = extract_title(soup, url)
    text = extract_main_text(soup)
    word_count = count_words(text)
    is_stale = detect_staleness(title, text, now.year)

    return ContentRecord(
        url=url,
        title=title,
        word_count=word_count,
        last_modified=last_modified or now,
        is_stale=is_stale,
        priority=calculate_priority(word_count, is_stale, title),
        change_frequency=estimate_change_frequency(last_modified, now),
        readability_score=readability_score(text),
        content_hash=content_hash(text),
    )
