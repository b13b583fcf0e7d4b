"""Top-level page fetch over aiohttp."""

import asyncio
import logging
import time
from typing import Optional

import aiohttp

from site_analyzer.modules.analysis.probes import FetchError, FetchResult, PageFetcher

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


class AiohttpPageFetcher(PageFetcher):
    """Fetch a page once with a fixed total timeout.

    Any HTTP status is accepted (a 404 page is still analysed); only
    connection-level failures and timeouts raise :class:`FetchError`.

    Usage::

        fetcher = AiohttpPageFetcher(timeout=15)
        result = await fetcher.fetch("https://example.com")
    """

    def __init__(
        self,
        timeout: float = 15,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._user_agent = user_agent
        self._session = session

    async def fetch(self, url: str) -> FetchResult:
        start = time.monotonic()
        try:
            if self._session is not None:
                return await self._get(self._session, url, start)
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                return await self._get(session, url, start)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise FetchError(f"{type(exc).__name__}: {exc}") from exc

    async def _get(self, session: aiohttp.ClientSession, url: str, start: float) -> FetchResult:
        async with session.get(
            url,
            headers={"User-Agent": self._user_agent},
            timeout=self._timeout,
            allow_redirects=True,
        ) as resp:
            body = await resp.text(errors="replace")
            elapsed_ms = int((time.monotonic() - start) * 1000)
            logger.debug("Fetched %s -> %d in %dms", url, resp.status, elapsed_ms)
            return FetchResult(
                url=url,
                final_url=str(resp.url),
                status_code=resp.status,
                headers=dict(resp.headers),
                set_cookies=tuple(resp.headers.getall("Set-Cookie", [])),
                body=body,
                elapsed_ms=elapsed_ms,
            )
