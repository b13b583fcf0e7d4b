"""Score calculation over an assembled (partial) report.

All functions are pure. Scores are integers in 0..100 or ``"N/A"`` when
the underlying section failed.
"""

from typing import Any, Union

from site_analyzer.modules.analysis.report import (
    NA,
    DomainError,
    PerformanceReport,
    ScoreSummary,
    SecurityReport,
    SeoReport,
    is_error,
)
from site_analyzer.utils.helpers import round_half_up

TITLE_LENGTH_RANGE = (30, 60)
DESCRIPTION_LENGTH_RANGE = (50, 160)
MIN_ALT_PERCENTAGE = 80


def _in_range(value: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= value <= bounds[1]


def seo_rules(seo: SeoReport) -> list[bool]:
    """Evaluate the five SEO rules in their fixed order."""
    return [
        _in_range(seo.meta.title_length, TITLE_LENGTH_RANGE),
        _in_range(seo.meta.description_length, DESCRIPTION_LENGTH_RANGE),
        seo.headings.h1 == 1,
        seo.images.alt_percentage >= MIN_ALT_PERCENTAGE,
        seo.links.internal > 0 and seo.links.external > 0,
    ]


def calculate_seo_score(seo: Union[SeoReport, DomainError, None]) -> int | str:
    """Share of passed SEO rules as 0..100, or ``"N/A"`` for a failed section."""
    if is_error(seo):
        return NA
    rules = seo_rules(seo)
    return round_half_up(sum(rules) / len(rules) * 100)


def performance_score(performance: Union[PerformanceReport, DomainError, None]) -> int | str:
    if is_error(performance):
        return NA
    return performance.score


def calculate_header_score(security: Union[SecurityReport, DomainError, None]) -> int | str:
    if is_error(security):
        return NA
    return security.security_headers.score


def calculate_cookie_score(security: Union[SecurityReport, DomainError, None]) -> int | str:
    if is_error(security):
        return NA
    return security.cookies.score


def calculate_scores(report: Any) -> ScoreSummary:
    """Derive the score summary from a report's domain sections."""
    return ScoreSummary(
        seo=calculate_seo_score(report.seo),
        performance=performance_score(report.performance),
        security=calculate_header_score(report.security),
        cookies=calculate_cookie_score(report.security),
    )


def numeric_score(value: int | str | None) -> int | None:
    """Return *value* as an int, or None for the ``"N/A"`` sentinel."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)
