# File: tests/test_reports.py
import json
import logging
from datetime import datetime, timezone

from sitemap_scout.aggregator import CrawlReport
from sitemap_scout.crawler.models import ChangeFrequency, ContentRecord, CrawlPhase
from sitemap_scout.logger import configure, get_logger
from sitemap_scout.report import render_html, render_json

WHEN = datetime(2024, 11, 2, tzinfo=timezone.utc)


def record(url: str, priority: float, stale: bool = False, freq=ChangeFrequency.MONTHLY) -> ContentRecord:
    return ContentRecord(
        url=url,
        title=f"Title of {url.rsplit('/', 2)[-2]}",
        word_count=800,
        last_modified=WHEN,
        is_stale=stale,
        priority=priority,
        change_frequency=freq,
    )


def sample_report() -> CrawlReport:
    return CrawlReport(
        site_url="https://example.com",
        phase=CrawlPhase.COMPLETE,
        discovered=4,
        records=[
            record("https://example.com/old/", 0.5, stale=True, freq=ChangeFrequency.YEARLY),
            record("https://example.com/fresh/", 0.8, freq=ChangeFrequency.DAILY),
            record("https://example.com/mid/", 0.6),
        ],
        started_at=WHEN,
        finished_at=WHEN,
    )


def test_report_counts():
    report = sample_report()
    assert report.analyzed == 3
    assert report.skipped == 1
    assert report.stale_count == 1
    summary = report.summary()
    assert summary["status"] == "complete"
    assert summary["finished_at"] == WHEN.isoformat()


def test_render_json(tmp_path):
    path = render_json(sample_report(), tmp_path / "nested" / "report.json", pretty=False)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert [r["url"] for r in data["records"]] == [
        "https://example.com/fresh/",
        "https://example.com/mid/",
        "https://example.com/old/",
    ]
    assert data["records"][0]["last_modified"] == WHEN.isoformat()
    assert data["stale"] == 1


def test_render_html(tmp_path):
    path = render_html(sample_report(), None, tmp_path / "report.html")
    html = path.read_text(encoding="utf-8")
    assert "Needs a refresh (1)" in html
    assert 'class="stale"' in html
    assert "daily 1" in html and "yearly 1" in html
    assert html.index("Title of fresh") < html.index("Title of mid")


def test_render_html_custom_template(tmp_path):
    (tmp_path / "report.html.j2").write_text("{{ summary.site_url }}|{{ records|length }}", encoding="utf-8")
    path = render_html(sample_report(), tmp_path, tmp_path / "out.html")
    assert path.read_text(encoding="utf-8") == "https://example.com|3"


def test_render_html_escapes_titles(tmp_path):
    report = CrawlReport(site_url="https://example.com", records=[record("https://example.com/x/", 0.5)])
    report.records[0] = ContentRecord(
        url="https://example.com/x/",
        title="<script>alert(1)</script>",
        word_count=1,
        last_modified=WHEN,
        is_stale=False,
        priority=0.5,
        change_frequency=ChangeFrequency.WEEKLY,
    )
    html = render_html(report, None, tmp_path / "r.html").read_text(encoding="utf-8")
    assert "<script>alert(1)</script>" not in html


def test_component_loggers_share_project_handlers(tmp_path):
    log_file = tmp_path / "logs" / "scout.log"
    configure(level="INFO", log_file=log_file)

    get_logger("frontier").info("discovered %d url(s)", 3)
    get_logger("fetcher").debug("not written at INFO")
    for handler in logging.getLogger("SitemapScout").handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "SitemapScout.frontier" in text
    assert "discovered 3 url(s)" in text
    assert "not written" not in text
    assert logging.getLogger("aiohttp.client").level == logging.WARNING
