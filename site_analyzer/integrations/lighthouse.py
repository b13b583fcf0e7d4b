"""Performance audit sources: local Lighthouse CLI and PageSpeed Insights.

Both return the raw Lighthouse result document (``categories`` and
``audits``); normalisation happens in the analysis module.
"""

import asyncio
import json
import logging
import os
import shutil
from typing import Any, Mapping, Optional

import httpx

from site_analyzer.modules.analysis.probes import (
    PerformanceSource,
    PerformanceSourceError,
    PerformanceSourceUnavailable,
)

logger = logging.getLogger(__name__)

PAGESPEED_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"


class LighthouseSource(PerformanceSource):
    """Run the ``lighthouse`` CLI in headless Chrome and read its JSON output.

    Usage::

        source = LighthouseSource(timeout=90)
        lhr = await source.audit("https://example.com")
    """

    name = "lighthouse"

    def __init__(
        self,
        binary: str = "lighthouse",
        chrome_flags: Optional[list[str]] = None,
        timeout: int = 90,
        only_categories: Optional[list[str]] = None,
    ) -> None:
        self._binary = binary
        self._chrome_flags = chrome_flags or ["--headless", "--no-sandbox", "--disable-gpu"]
        self._timeout = timeout
        self._only_categories = only_categories or ["performance"]

    def _command(self, url: str) -> list[str]:
        cmd = [
            self._binary,
            url,
            "--output=json",
            "--output-path=stdout",
            "--quiet",
            "--chrome-flags=" + " ".join(self._chrome_flags),
        ]
        if self._only_categories:
            cmd.append("--only-categories=" + ",".join(self._only_categories))
        return cmd

    async def audit(self, url: str) -> Mapping[str, Any]:
        if shutil.which(self._binary) is None:
            raise PerformanceSourceUnavailable(f"{self._binary!r} not found on PATH")

        logger.info("Running Lighthouse on %s", url)
        proc = await asyncio.create_subprocess_exec(
            *self._command(url),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise PerformanceSourceError(f"Lighthouse timed out after {self._timeout}s") from exc

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()[:500]
            raise PerformanceSourceError(f"Lighthouse exited with {proc.returncode}: {message}")
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise PerformanceSourceError(f"Invalid Lighthouse output: {exc}") from exc


class PageSpeedSource(PerformanceSource):
    """Google PageSpeed Insights API client returning the embedded Lighthouse result.

    Retries with exponential backoff on 429 responses and timeouts.
    """

    name = "pagespeed"

    def __init__(
        self,
        api_key: Optional[str] = None,
        strategy: str = "mobile",
        timeout: int = 120,
        max_retries: int = 3,
        backoff_seconds: float = 30,
    ) -> None:
        self._api_key = api_key or os.getenv("PAGESPEED_API_KEY", "")
        self._strategy = strategy
        self._timeout = timeout
        self._max_retries = max_retries
        self._backoff = backoff_seconds
        if not self._api_key:
            logger.warning("No PAGESPEED_API_KEY set. Using free tier with strict rate limits.")

    async def _request_with_retry(self, client: httpx.AsyncClient, params: dict) -> dict:
        for attempt in range(self._max_retries + 1):
            try:
                response = await client.get(PAGESPEED_API_URL, params=params)
                if response.status_code == 429 and attempt < self._max_retries:
                    wait = self._backoff * (2 ** attempt)
                    logger.warning(
                        "PageSpeed 429 Too Many Requests. Retry %d/%d in %.0fs...",
                        attempt + 1, self._max_retries, wait,
                    )
                    await asyncio.sleep(wait)
                    continue
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException:
                if attempt < self._max_retries:
                    wait = self._backoff / 3 * (2 ** attempt)
                    logger.warning(
                        "PageSpeed timeout. Retry %d/%d in %.0fs...",
                        attempt + 1, self._max_retries, wait,
                    )
                    await asyncio.sleep(wait)
                    continue
                raise
        return {}

    async def audit(self, url: str) -> Mapping[str, Any]:
        params: dict[str, Any] = {"url": url, "strategy": self._strategy, "category": "performance"}
        if self._api_key:
            params["key"] = self._api_key
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                data = await self._request_with_retry(client, params)
            except httpx.HTTPError as exc:
                raise PerformanceSourceError(f"PageSpeed API error: {exc}") from exc
        lighthouse = data.get("lighthouseResult")
        if not lighthouse:
            raise PerformanceSourceError("PageSpeed response contained no lighthouseResult")
        logger.info("PageSpeed analysis for %s completed", url)
        return lighthouse


class ChainedPerformanceSource(PerformanceSource):
    """Try several sources in order, skipping those that are unavailable."""

    name = "chained"

    def __init__(self, sources: list[PerformanceSource]) -> None:
        self._sources = sources

    async def audit(self, url: str) -> Mapping[str, Any]:
        for source in self._sources:
            try:
                return await source.audit(url)
            except PerformanceSourceUnavailable as exc:
                logger.info("Performance source %s unavailable: %s", source.name, exc)
        raise PerformanceSourceUnavailable("No performance source available")
