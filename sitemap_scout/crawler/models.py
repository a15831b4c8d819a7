# sitemap_scout/crawler/models.py
"""
Data models for the SitemapScout pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class ChangeFrequency(str, Enum):
    """Estimated update cadence of a page."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class CrawlPhase(str, Enum):
    """Lifecycle of one orchestrated crawl."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """A content URL found in a urlset, with its optional sitemap hints."""

    url: str
    last_modified: Optional[datetime] = None
    sitemap_priority: Optional[float] = None
    sitemap_changefreq: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ContentRecord:
    """Profile of one analyzed page."""

    url: str
    title: str
    word_count: int
    last_modified: datetime
    is_stale: bool
    priority: float
    change_frequency: ChangeFrequency
    readability_score: int = 0
    content_hash: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "word_count": self.word_count,
            "last_modified": self.last_modified.isoformat(),
            "is_stale": self.is_stale,
            "priority": self.priority,
            "change_frequency": self.change_frequency.value,
            "readability_score": self.readability_score,
            "content_hash": self.content_hash,
        }


# --------------------------------------------------------------------------- #
# Events published by the orchestrator                                        #
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class PhaseChanged:
    phase: CrawlPhase
    detail: str = ""


@dataclass(frozen=True, slots=True)
class ProgressUpdated:
    completed: int
    total: int


@dataclass(frozen=True, slots=True)
class RecordAnalyzed:
    record: ContentRecord


CrawlEvent = Union[PhaseChanged, ProgressUpdated, RecordAnalyzed]
