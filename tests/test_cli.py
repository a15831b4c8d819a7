# File: tests/test_cli.py
"""Tests for the CLI (`sitemap_scout/cli.py`) using click.testing.CliRunner.
They cover `crawl`, `discover`, `config`, `--version` and error handling.
"""
import asyncio
import json
from datetime import datetime, timezone

import pytest
from click.testing import CliRunner

import sitemap_scout.cli as cli_module
from sitemap_scout.aggregator import CrawlReport
from sitemap_scout.cli import cli
from sitemap_scout.crawler.models import ChangeFrequency, ContentRecord, CrawlPhase, FrontierEntry
from sitemap_scout.errors import NoUrlsFound

WHEN = datetime(2025, 1, 15, tzinfo=timezone.utc)


def make_record(url: str, priority: float, title: str = "A post") -> ContentRecord:
    return ContentRecord(
        url=url,
        title=title,
        word_count=1200,
        last_modified=WHEN,
        is_stale=False,
        priority=priority,
        change_frequency=ChangeFrequency.WEEKLY,
        readability_score=61,
        content_hash="0123456789abcdef",
    )


@pytest.fixture(autouse=True)
def fake_scan(monkeypatch):
    """Replace start_scan with a canned two-page report; calls are recorded."""
    calls = []
    records = [
        make_record("https://example.com/low/", 0.5),
        make_record("https://example.com/high/", 0.9, title="The Complete Guide"),
    ]

    async def _scan(cfg, site_url=None, sitemap_path=None, on_record=None):
        calls.append({"cfg": cfg, "site_url": site_url, "sitemap_path": sitemap_path})
        for record in records:
            if on_record is not None:
                on_record(record)
        return CrawlReport(
            site_url="https://example.com",
            phase=CrawlPhase.COMPLETE,
            discovered=3,
            records=list(records),
            started_at=WHEN,
            finished_at=WHEN,
        )

    monkeypatch.setattr(cli_module, "start_scan", _scan)
    return calls


def last_json_line(output: str):
    return json.loads(output.strip().splitlines()[-1])


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SitemapScout" in result.output


def test_show_config(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("site_url: https://example.com\npage_concurrency: 5\nproxies: []\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])

    assert result.exit_code == 0
    data = json.loads(result.output[result.output.index("{"):])
    assert data["page_concurrency"] == 5
    assert data["proxies"] == []


def test_bad_config_fails(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("page_concurrency: -1\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_crawl_stdout(fake_scan):
    result = CliRunner().invoke(cli, ["crawl", "https://example.com", "--limit", "10", "--concurrency", "3"])

    assert result.exit_code == 0, result.output
    report = last_json_line(result.output)
    assert report["status"] == "complete"
    assert report["analyzed"] == 2
    assert report["skipped"] == 1
    assert [r["url"] for r in report["records"]] == ["https://example.com/low/", "https://example.com/high/"]

    cfg = fake_scan[0]["cfg"]
    assert cfg.max_urls == 10
    assert cfg.page_concurrency == 3
    assert fake_scan[0]["site_url"] == "https://example.com"


def test_crawl_stream_prints_json_lines():
    result = CliRunner().invoke(cli, ["crawl", "https://example.com", "--stream"])

    assert result.exit_code == 0, result.output
    lines = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
    urls = [line.get("url") for line in lines if "url" in line]
    assert urls == ["https://example.com/low/", "https://example.com/high/"]
    # summary closes the stream
    assert lines[-1]["analyzed"] == 2


def test_crawl_json_file_sorted_by_priority(tmp_path):
    out = tmp_path / "reports" / "out.json"
    result = CliRunner().invoke(cli, ["crawl", "https://example.com", "--json", str(out)])

    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert [r["url"] for r in data["records"]] == ["https://example.com/high/", "https://example.com/low/"]
    assert data["records"][0]["change_frequency"] == "weekly"


def test_crawl_html_file(tmp_path):
    out = tmp_path / "report.html"
    result = CliRunner().invoke(cli, ["crawl", "https://example.com", "--html", str(out)])

    assert result.exit_code == 0, result.output
    html = out.read_text(encoding="utf-8")
    assert "The Complete Guide" in html
    assert html.index("The Complete Guide") < html.index("A post")


def test_crawl_passes_sitemap_path(fake_scan):
    result = CliRunner().invoke(cli, ["crawl", "example.com", "-s", "/news-sitemap.xml"])
    assert result.exit_code == 0, result.output
    assert fake_scan[0]["sitemap_path"] == "/news-sitemap.xml"


def test_crawl_failure(monkeypatch):
    async def failing(cfg, site_url=None, sitemap_path=None, on_record=None):
        raise NoUrlsFound("https://example.com", tried=4)

    monkeypatch.setattr(cli_module, "start_scan", failing)
    result = CliRunner().invoke(cli, ["crawl", "https://example.com"])

    assert result.exit_code == 1
    assert "Crawl failed" in result.output
    assert "public sitemap" in result.output


def test_crawl_timeout(monkeypatch):
    async def slow(cfg, site_url=None, sitemap_path=None, on_record=None):
        await asyncio.sleep(2)

    monkeypatch.setattr(cli_module, "start_scan", slow)
    result = CliRunner().invoke(cli, ["crawl", "https://example.com", "--scan-timeout", "0.2"])

    assert result.exit_code == 1
    assert "did not finish" in result.output


def test_discover_lists_urls(monkeypatch):
    async def fake_discover(cfg, site_url=None, sitemap_path=None):
        return {
            "https://example.com/a/": FrontierEntry("https://example.com/a/", WHEN),
            "https://example.com/b/": FrontierEntry("https://example.com/b/"),
        }

    monkeypatch.setattr(cli_module, "discover_urls", fake_discover)
    result = CliRunner().invoke(cli, ["discover", "https://example.com"])

    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if line.startswith("https://")]
    assert lines == [
        f"https://example.com/a/\t{WHEN.isoformat()}",
        "https://example.com/b/\t-",
    ]
