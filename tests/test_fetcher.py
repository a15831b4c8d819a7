# File: tests/test_fetcher.py
from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from conftest import serve_app
from sitemap_scout.crawler.fetcher import ProxyFetcher, build_candidates
from sitemap_scout.errors import FetchExhausted

TARGET = "https://blog.example.com/a b/?x=1"


def test_build_candidates_order_and_encoding():
    templates = ["https://r1.test/?{url}", "https://r2.test/raw?url={encoded}", "https://r3.test/fetch/{url}"]
    candidates = build_candidates(TARGET, templates)
    assert candidates == [
        f"https://r1.test/?{TARGET}",
        "https://r2.test/raw?url=https%3A%2F%2Fblog.example.com%2Fa%20b%2F%3Fx%3D1",
        f"https://r3.test/fetch/{TARGET}",
        TARGET,
    ]


def test_build_candidates_without_direct():
    assert build_candidates(TARGET, ["https://r1.test/?{url}"], direct=False) == [f"https://r1.test/?{TARGET}"]


@pytest_asyncio.fixture
async def relay_server(unused_tcp_port: int) -> AsyncIterator[tuple[str, dict[str, int]]]:
    """
    Three fake relays plus the target page:
    /dead/* -> 503, /slow/* -> hangs, /alive/* -> body naming the relay.
    """
    hits: dict[str, int] = {"dead": 0, "slow": 0, "alive": 0, "page": 0, "flaky": 0}
    app = web.Application()

    async def dead(_):
        hits["dead"] += 1
        return web.Response(status=503)

    async def slow(_):
        hits["slow"] += 1
        await asyncio.sleep(2)
        return web.Response(text="too late")

    async def alive(_):
        hits["alive"] += 1
        return web.Response(text="via alive relay", content_type="text/html")

    async def page(_):
        hits["page"] += 1
        return web.Response(text="direct body", content_type="text/html")

    async def flaky(_):
        hits["flaky"] += 1
        if hits["flaky"] <= 2:
            return web.Response(status=500)
        return web.Response(text="recovered", content_type="text/html")

    app.router.add_get("/dead/{tail:.*}", dead)
    app.router.add_get("/slow/{tail:.*}", slow)
    app.router.add_get("/alive/{tail:.*}", alive)
    app.router.add_get("/page", page)
    app.router.add_get("/flaky", flaky)

    async for base in serve_app(app, unused_tcp_port):
        yield base, hits


@pytest.mark.asyncio()
async def test_falls_back_in_order_and_stops_at_first_success(relay_server, make_config):
    base, hits = relay_server
    cfg = make_config(
        proxies=[f"{base}/dead/{{url}}", f"{base}/dead/{{encoded}}", f"{base}/alive/{{encoded}}"],
        attempt_timeout=1.0,
    )
    async with ClientSession() as session:
        body = await ProxyFetcher(session, cfg).fetch(f"{base}/page")

    assert body == "via alive relay"
    assert hits["dead"] == 2
    assert hits["alive"] == 1
    # the direct request comes after the successful relay and is never tried
    assert hits["page"] == 0


@pytest.mark.asyncio()
async def test_timeout_moves_to_next_candidate(relay_server, make_config):
    base, hits = relay_server
    cfg = make_config(proxies=[f"{base}/slow/{{encoded}}"], attempt_timeout=0.3)
    async with ClientSession() as session:
        start = time.perf_counter()
        body = await ProxyFetcher(session, cfg).fetch(f"{base}/page")
        elapsed = time.perf_counter() - start

    assert body == "direct body"
    assert hits["slow"] == 1
    assert elapsed < 3


@pytest.mark.asyncio()
async def test_exhaustion_reports_last_error(relay_server, make_config):
    base, hits = relay_server
    cfg = make_config(proxies=[f"{base}/dead/{{encoded}}"], direct_fallback=False, retry_times=2)
    async with ClientSession() as session:
        with pytest.raises(FetchExhausted) as excinfo:
            await ProxyFetcher(session, cfg).fetch(f"{base}/page")

    assert excinfo.value.url == f"{base}/page"
    assert "503" in str(excinfo.value)
    # one pass per attempt
    assert hits["dead"] == 2


@pytest.mark.asyncio()
async def test_outer_retry_absorbs_transient_failures(relay_server, make_config):
    base, hits = relay_server
    cfg = make_config(retry_times=3, backoff_base=0.01)
    async with ClientSession() as session:
        body = await ProxyFetcher(session, cfg).fetch(f"{base}/flaky")

    assert body == "recovered"
    assert hits["flaky"] == 3


@pytest.mark.asyncio()
async def test_backoff_grows_exponentially(monkeypatch, make_config):
    delays: list[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    async def always_fail(self, url: str) -> str:
        raise FetchExhausted(url, ConnectionError("dns blip"))

    monkeypatch.setattr(ProxyFetcher, "fetch_once", always_fail)
    cfg = make_config(retry_times=3, backoff_base=0.5)

    fetcher = ProxyFetcher(None, cfg, sleep=fake_sleep)
    with pytest.raises(FetchExhausted, match="dns blip"):
        await fetcher.fetch("http://unreachable.invalid/")

    assert delays == [0.5, 1.0]


@pytest.mark.asyncio()
async def test_unreachable_host_is_exhausted(make_config, unused_tcp_port: int):
    cfg = make_config(attempt_timeout=1.0)
    async with ClientSession() as session:
        with pytest.raises(FetchExhausted):
            await ProxyFetcher(session, cfg).fetch(f"http://localhost:{unused_tcp_port}/nothing")


@pytest.mark.asyncio()
async def test_fetch_bytes_returns_undecoded_body(relay_server, make_config):
    base, hits = relay_server
    async with ClientSession() as session:
        body = await ProxyFetcher(session, make_config()).fetch_bytes(f"{base}/page")

    assert body == b"direct body"
    assert hits["page"] == 1
