# sitemap_scout/crawler/fetcher.py
"""
Fetcher module: GET a URL through an ordered list of relay endpoints with a
direct request as the last resort, per-attempt timeout and retry/backoff.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Tuple
from urllib.parse import quote, urlparse

from aiohttp import ClientError, ClientSession, ClientTimeout

from sitemap_scout.config import CrawlConfig
from sitemap_scout.errors import FetchExhausted
from sitemap_scout.logger import get_logger

__all__ = ("ProxyFetcher", "build_candidates")

logger = get_logger("fetcher")


def build_candidates(url: str, templates: List[str], direct: bool = True) -> List[str]:
    """
    Render every relay template for *url* and append the direct URL.

    ``{url}`` is substituted verbatim (path-prefix and query passthrough relays),
    ``{encoded}`` percent-encoded (relays taking the target as a query value).
    """
    encoded = quote(url, safe="")
    candidates = [t.replace("{url}", url).replace("{encoded}", encoded) for t in templates]
    if direct:
        candidates.append(url)
    return candidates


def _label(candidate: str, target: str) -> str:
    return "direct" if candidate == target else urlparse(candidate).netloc


class ProxyFetcher:
    """Handles HTTP fetching with relay fallback, per-attempt timeout and retries/backoff."""

    def __init__(
        self,
        session: ClientSession,
        config: CrawlConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.session = session
        self.config = config
        self._sleep = sleep
        self._timeout = ClientTimeout(total=config.attempt_timeout)

    def candidates(self, url: str) -> List[str]:
        return build_candidates(url, self.config.proxies, self.config.direct_fallback)

    async def fetch(self, url: str) -> str:
        """
        Return the body of *url* as text.

        Raises FetchExhausted once every candidate failed on every attempt.
        """
        body, charset = await self._fetch_with_retry(url)
        return _decode(body, charset)

    async def fetch_bytes(self, url: str) -> bytes:
        """Like :meth:`fetch` but undecoded, for XML that declares its own encoding."""
        body, _charset = await self._fetch_with_retry(url)
        return body

    async def _fetch_with_retry(self, url: str) -> Tuple[bytes, Optional[str]]:
        attempts = self.config.retry_times
        last_error: Optional[BaseException] = None
        for attempt in range(attempts):
            try:
                return await self.fetch_once(url)
            except FetchExhausted as exc:
                last_error = exc.last_error
                if attempt == attempts - 1:
                    break
                delay = self.config.backoff_base * 2**attempt
                logger.warning(
                    "Attempt %d/%d for %s failed, retrying in %.2f s", attempt + 1, attempts, url, delay
                )
                await self._sleep(delay)
        raise FetchExhausted(url, last_error)

    async def fetch_once(self, url: str) -> Tuple[bytes, Optional[str]]:
        """One pass over the candidate list; the first 2xx body and its charset win."""
        last_error: Optional[BaseException] = None
        for candidate in self.candidates(url):
            label = _label(candidate, url)
            try:
                logger.debug("Fetching %s via %s", url, label)
                async with self.session.get(
                    candidate, timeout=self._timeout, raise_for_status=False
                ) as resp:
                    if 200 <= resp.status < 300:
                        return await resp.read(), resp.charset
                    last_error = ClientError(f"HTTP {resp.status} from {label}")
            except asyncio.TimeoutError:
                last_error = asyncio.TimeoutError(
                    f"timed out after {self.config.attempt_timeout:.1f} s via {label}"
                )
            except (ClientError, ValueError) as exc:
                last_error = exc
            logger.warning("Fetch of %s via %s failed: %s", url, label, last_error)
        raise FetchExhausted(url, last_error)


def _decode(body: bytes, charset: Optional[str]) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
