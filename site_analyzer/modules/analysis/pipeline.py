"""Analysis pipeline: fetch once, analyse each domain concurrently, then score.

Usage::

    pipeline = AnalysisPipeline(fetcher=PageFetcher(), performance_source=LighthouseSource())
    result = await pipeline.analyze("https://example.com")
    if result.success:
        print(result.report.scores)
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Union

from site_analyzer.modules.analysis.extractor import (
    count_dom_elements,
    extract_content,
    extract_seo,
    parse_html,
)
from site_analyzer.modules.analysis.insights import generate_insights, generate_recommendations
from site_analyzer.modules.analysis.performance import (
    failed_performance,
    fallback_performance,
    normalize_performance,
)
from site_analyzer.modules.analysis.probes import (
    FetchError,
    FetchResult,
    PageFetcher,
    PerformanceSource,
    PerformanceSourceUnavailable,
    ResourceProbeResult,
    ResourceSource,
)
from site_analyzer.modules.analysis.report import (
    AnalysisReport,
    AnalysisResult,
    DomainError,
    PartialReport,
    PerformanceReport,
)
from site_analyzer.modules.analysis.scoring import calculate_scores
from site_analyzer.modules.analysis.security import evaluate_security
from site_analyzer.modules.analysis.statistics import build_statistics

logger = logging.getLogger(__name__)

FETCH_FAILED = "Fehler bei der Website-Analyse"
SEO_FAILED = "SEO-Analyse fehlgeschlagen"
CONTENT_FAILED = "Inhaltsanalyse fehlgeschlagen"
SECURITY_FAILED = "Sicherheitsanalyse fehlgeschlagen"
STATISTICS_FAILED = "Statistiksammlung fehlgeschlagen"


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AnalysisPipeline:
    """Run a complete website analysis against pluggable probe sources.

    Args:
        fetcher: Retrieves the page; its failure aborts the analysis.
        performance_source: Lighthouse-shaped audit provider. ``None`` selects
            the documented fallback report (score 50, metrics ``"N/A"``).
        resource_source: Network resource probe. ``None`` reports only the
            main document size.
        cookie_attribute_aware: Parse cookie attributes instead of matching
            flag names anywhere in the header value.
        clock: Returns the report timestamp string.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        performance_source: Optional[PerformanceSource] = None,
        resource_source: Optional[ResourceSource] = None,
        cookie_attribute_aware: bool = False,
        clock: Callable[[], str] = _utc_timestamp,
    ) -> None:
        self._fetcher = fetcher
        self._performance_source = performance_source
        self._resource_source = resource_source
        self._cookie_attribute_aware = cookie_attribute_aware
        self._clock = clock

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def analyze(self, url: str) -> AnalysisResult:
        """Analyse *url* and return the finished report or a fetch failure."""
        logger.info("Starting analysis of %s", url)
        try:
            fetch = await self._fetcher.fetch(url)
        except FetchError as exc:
            logger.error("Could not fetch %s: %s", url, exc)
            return AnalysisResult(success=False, error=FETCH_FAILED, details=str(exc))

        soup = parse_html(fetch.body)
        seo, performance, content, security, resources = await asyncio.gather(
            self._guarded(SEO_FAILED, extract_seo, soup, url),
            self._analyze_performance(url),
            self._guarded(CONTENT_FAILED, extract_content, soup),
            self._guarded(
                SECURITY_FAILED,
                evaluate_security,
                fetch.headers,
                fetch.set_cookies,
                fetch.final_url or url,
                self._cookie_attribute_aware,
            ),
            self._probe_resources(url, fetch),
        )

        partial = PartialReport(
            url=url,
            timestamp=self._clock(),
            status_code=fetch.status_code,
            load_time_ms=fetch.elapsed_ms,
            seo=seo,
            performance=performance,
            content=content,
            security=security,
            statistics=build_statistics(fetch.body, count_dom_elements(soup), resources),
        )
        report = self.finalize(partial)
        logger.info(
            "Analysis of %s finished (seo=%s, performance=%s, security=%s)",
            url, report.scores.seo, report.scores.performance, report.scores.security,
        )
        return AnalysisResult(success=True, report=report)

    @staticmethod
    def finalize(partial: PartialReport) -> AnalysisReport:
        """Attach scores, insights and recommendations to a partial report."""
        return AnalysisReport(
            url=partial.url,
            timestamp=partial.timestamp,
            status_code=partial.status_code,
            load_time_ms=partial.load_time_ms,
            seo=partial.seo,
            performance=partial.performance,
            content=partial.content,
            security=partial.security,
            statistics=partial.statistics,
            scores=calculate_scores(partial),
            insights=generate_insights(partial),
            recommendations=generate_recommendations(partial),
        )

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _guarded(self, label: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run one domain analysis; an exception becomes a :class:`DomainError`."""
        try:
            return func(*args)
        except Exception as exc:
            logger.warning("%s: %s", label, exc, exc_info=True)
            return DomainError(error=label, details=str(exc))

    async def _analyze_performance(self, url: str) -> PerformanceReport:
        source = self._performance_source
        if source is None:
            return fallback_performance()
        try:
            audit = await source.audit(url)
            return normalize_performance(audit)
        except PerformanceSourceUnavailable as exc:
            logger.warning("Performance source %s unavailable, using fallback: %s", source.name, exc)
            return fallback_performance()
        except Exception as exc:
            logger.warning("Performance audit of %s failed: %s", url, exc)
            return failed_performance()

    async def _probe_resources(
        self, url: str, fetch: FetchResult
    ) -> Union[ResourceProbeResult, DomainError]:
        source = self._resource_source
        if source is None:
            return ResourceProbeResult(document_size=len(fetch.body.encode("utf-8")))
        try:
            return await source.probe(url, fetch)
        except Exception as exc:
            logger.warning("Resource probe %s failed for %s: %s", source.name, url, exc)
            return DomainError(error=STATISTICS_FAILED, details=str(exc))
