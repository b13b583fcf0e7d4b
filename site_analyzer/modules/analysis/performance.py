"""Normalise Lighthouse-shaped audit documents into a performance section."""

from typing import Any, Mapping, Optional

from site_analyzer.modules.analysis.report import (
    NA,
    Opportunity,
    PerformanceMetrics,
    PerformanceReport,
)
from site_analyzer.utils.helpers import round_half_up


# Score used when no audit source can run at all.
FALLBACK_SCORE = 50

OPPORTUNITY_THRESHOLD = 0.9

METRIC_AUDITS = {
    "fcp": "first-contentful-paint",
    "lcp": "largest-contentful-paint",
    "tti": "interactive",
    "tbt": "total-blocking-time",
    "cls": "cumulative-layout-shift",
    "speed_index": "speed-index",
}

# Reported in this order regardless of the source's ordering.
OPPORTUNITY_AUDITS = (
    "render-blocking-resources",
    "unused-javascript",
    "unused-css-rules",
    "offscreen-images",
    "unminified-css",
    "unminified-javascript",
    "uses-optimized-images",
    "uses-webp-images",
    "uses-text-compression",
    "uses-responsive-images",
    "server-response-time",
)


def _display_value(audits: Mapping[str, Any], audit_id: str) -> str:
    audit = audits.get(audit_id) or {}
    value = audit.get("displayValue")
    if value is None or value == "":
        return NA
    return str(value)


def extract_metrics(audits: Mapping[str, Any]) -> PerformanceMetrics:
    return PerformanceMetrics(
        **{field: _display_value(audits, audit_id) for field, audit_id in METRIC_AUDITS.items()}
    )


def extract_score(categories: Mapping[str, Any]) -> int | str:
    perf = (categories or {}).get("performance") or {}
    score = perf.get("score")
    if score is None:
        return NA
    return round_half_up(float(score) * 100)


def extract_opportunities(audits: Mapping[str, Any]) -> tuple[Opportunity, ...]:
    """Pick failing, actionable audits from the fixed allow-list.

    An audit qualifies when its score is below 0.9 (a missing score counts
    as failing) and ``details.items`` is non-empty.
    """
    found = []
    for audit_id in OPPORTUNITY_AUDITS:
        audit = audits.get(audit_id)
        if not audit:
            continue
        score: Optional[float] = audit.get("score")
        if (score or 0) >= OPPORTUNITY_THRESHOLD:
            continue
        items = (audit.get("details") or {}).get("items") or []
        if not items:
            continue
        found.append(
            Opportunity(
                name=audit.get("title", audit_id),
                description=audit.get("description", ""),
                score=score,
                impact=audit.get("numericValue") or "Unbekannt",
            )
        )
    return tuple(found)


def normalize_performance(result: Mapping[str, Any]) -> PerformanceReport:
    """Map an audit document to a :class:`PerformanceReport`.

    Missing pieces degrade individually: a missing category score gives
    ``"N/A"``, a missing metric gives ``"N/A"`` for that metric only.
    """
    audits = result.get("audits") or {}
    return PerformanceReport(
        score=extract_score(result.get("categories") or {}),
        metrics=extract_metrics(audits),
        opportunities=extract_opportunities(audits),
    )


def fallback_performance() -> PerformanceReport:
    """Report used when no audit source is available in this environment."""
    return PerformanceReport(score=FALLBACK_SCORE)


def failed_performance() -> PerformanceReport:
    """Report used when the audit source was available but raised."""
    return PerformanceReport(score=NA)
