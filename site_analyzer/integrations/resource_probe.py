"""Resource statistics sources: full headless browser and HTML-only estimate."""

import json
import logging
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Response, async_playwright

from site_analyzer.modules.analysis.probes import (
    FetchResult,
    ResourceEntry,
    ResourceProbeError,
    ResourceProbeResult,
    ResourceSource,
)

logger = logging.getLogger(__name__)

_NAVIGATION_TIMING_JS = "() => JSON.stringify(performance.getEntriesByType('navigation')[0] || {})"


def _content_length(headers: dict[str, str]) -> int:
    try:
        return int(headers.get("content-length", "0") or 0)
    except ValueError:
        return 0


class PlaywrightResourceSource(ResourceSource):
    """Load the page in headless Chromium and record every network response.

    Usage::

        source = PlaywrightResourceSource(timeout=30000)
        stats = await source.probe(url, fetch_result)
    """

    name = "playwright"

    def __init__(self, headless: bool = True, timeout: int = 30000) -> None:
        self._headless = headless
        self._timeout = timeout

    async def probe(self, url: str, fetch: FetchResult) -> ResourceProbeResult:
        entries: list[ResourceEntry] = []

        def _record(response: Response) -> None:
            headers = response.headers
            entries.append(
                ResourceEntry(
                    url=response.url,
                    resource_type=response.request.resource_type,
                    content_type=headers.get("content-type", ""),
                    status_code=response.status,
                    byte_size=_content_length(headers),
                )
            )

        try:
            async with async_playwright() as pw:
                browser = await pw.chromium.launch(
                    headless=self._headless,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
                try:
                    page = await browser.new_page()
                    page.on("response", _record)
                    main = await page.goto(url, wait_until="networkidle", timeout=self._timeout)
                    timing: dict[str, Any] = json.loads(await page.evaluate(_NAVIGATION_TIMING_JS))
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            raise ResourceProbeError(str(exc)) from exc

        document_size = _content_length(main.headers) if main is not None else 0
        logger.info("Playwright recorded %d resources for %s", len(entries), url)
        return ResourceProbeResult(
            entries=tuple(entries),
            load_event_end=timing.get("loadEventEnd"),
            dom_content_loaded=timing.get("domContentLoadedEventEnd"),
            document_size=document_size,
        )


class LightweightResourceSource(ResourceSource):
    """Estimate resources from the already fetched HTML without a browser.

    Sizes of sub-resources are unknown (0); the document size is the body
    length and the load time is the fetch duration.
    """

    name = "lightweight"

    _SELECTORS = (
        ("script", "src", "script"),
        ("img", "src", "image"),
        ("iframe", "src", "document"),
        ("video", "src", "media"),
        ("audio", "src", "media"),
    )

    def _entries(self, soup: BeautifulSoup, base_url: str) -> list[ResourceEntry]:
        entries = []
        for tag, attr, resource_type in self._SELECTORS:
            for node in soup.find_all(tag, attrs={attr: True}):
                entries.append(ResourceEntry(url=urljoin(base_url, node[attr]), resource_type=resource_type))
        for link in soup.find_all("link", href=True):
            rel = [r.lower() for r in (link.get("rel") or [])]
            if "stylesheet" in rel:
                resource_type = "stylesheet"
            elif any("icon" in r for r in rel):
                resource_type = "image"
            elif "preload" in rel and link.get("as") == "font":
                resource_type = "font"
            else:
                continue
            entries.append(ResourceEntry(url=urljoin(base_url, link["href"]), resource_type=resource_type))
        return entries

    async def probe(self, url: str, fetch: FetchResult) -> ResourceProbeResult:
        soup = BeautifulSoup(fetch.body, "html.parser")
        base_url = fetch.final_url or url
        headers = {str(k).lower(): v for k, v in fetch.headers.items()}
        document_size = len(fetch.body.encode("utf-8"))
        document = ResourceEntry(
            url=base_url,
            resource_type="document",
            content_type=headers.get("content-type", ""),
            status_code=fetch.status_code,
            byte_size=document_size,
        )
        return ResourceProbeResult(
            entries=(document, *self._entries(soup, base_url)),
            load_event_end=fetch.elapsed_ms,
            document_size=document_size,
        )
