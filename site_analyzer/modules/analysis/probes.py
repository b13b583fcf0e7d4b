"""Typed probe results and the source interfaces the pipeline consumes.

Concrete implementations live in :mod:`site_analyzer.integrations`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional


class FetchError(Exception):
    """The page could not be retrieved at all."""


class PerformanceSourceUnavailable(Exception):
    """No performance audit can be produced in this environment (e.g. no browser)."""


class PerformanceSourceError(Exception):
    """A performance audit was attempted and failed."""


class ResourceProbeError(Exception):
    """Resource statistics could not be collected."""


@dataclass(frozen=True)
class FetchResult:
    """Raw response of the top-level page fetch."""

    url: str
    final_url: str
    status_code: int
    headers: Mapping[str, str]
    set_cookies: tuple[str, ...] = ()
    body: str = ""
    elapsed_ms: int = 0


@dataclass(frozen=True)
class ResourceEntry:
    url: str
    resource_type: str = ""
    content_type: str = ""
    status_code: int = 0
    byte_size: int = 0


@dataclass(frozen=True)
class ResourceProbeResult:
    """Network resources and navigation timing of one page load."""

    entries: tuple[ResourceEntry, ...] = ()
    load_event_end: Optional[float] = None
    dom_content_loaded: Optional[float] = None
    document_size: int = 0


class PageFetcher(ABC):
    @abstractmethod
    async def fetch(self, url: str) -> FetchResult:
        """Retrieve *url*; raise :class:`FetchError` when unreachable."""


class PerformanceSource(ABC):
    """Produces a Lighthouse-shaped audit document for a URL.

    The returned mapping has ``categories.performance.score`` (0..1) and an
    ``audits`` map of ``{score, title, description, displayValue,
    numericValue, details}`` entries. Any of those may be missing.
    """

    name = "performance"

    @abstractmethod
    async def audit(self, url: str) -> Mapping[str, Any]:
        """Run the audit; raise :class:`PerformanceSourceUnavailable` if it cannot run."""


class ResourceSource(ABC):
    name = "resources"

    @abstractmethod
    async def probe(self, url: str, fetch: FetchResult) -> ResourceProbeResult:
        """Collect resource statistics for a page already fetched as *fetch*."""
