# File: sitemap_scout/aggregator.py
"""sitemap_scout.aggregator: final aggregate of one crawl."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sitemap_scout.crawler.models import ContentRecord, CrawlPhase


@dataclass(slots=True)
class CrawlReport:
    """Counts, status and records of a finished (or failed) crawl."""

    site_url: str
    phase: CrawlPhase = CrawlPhase.IDLE
    discovered: int = 0
    records: List[ContentRecord] = field(default_factory=list)
    error: Optional[str] = None
    cancelled: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def analyzed(self) -> int:
        return len(self.records)

    @property
    def skipped(self) -> int:
        """Discovered URLs that produced no record (fetch failure or cancellation)."""
        return max(0, self.discovered - self.analyzed)

    @property
    def stale_count(self) -> int:
        return sum(1 for r in self.records if r.is_stale)

    def summary(self) -> Dict[str, Any]:
        return {
            "site_url": self.site_url,
            "status": self.phase.value,
            "discovered": self.discovered,
            "analyzed": self.analyzed,
            "skipped": self.skipped,
            "stale": self.stale_count,
            "cancelled": self.cancelled,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }

    def to_dict(self, *, sort_by_priority: bool = False) -> Dict[str, Any]:
        records = self.records
        if sort_by_priority:
            records = sorted(records, key=lambda r: (-r.priority, r.url))
        return {**self.summary(), "records": [r.to_dict() for r in records]}

    def json(self, *, pretty: bool = False) -> str:
        """JSON representation of the report, records included."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
