"""Immutable value objects for a website analysis report.

Every section dataclass is frozen and exposes ``to_dict()`` which produces
the camelCase document stored in the history and consumed by renderers.
A section that failed to compute is represented by :class:`DomainError`
in its slot instead of the section type.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

# Sentinel used wherever a score or metric could not be determined.
NA = "N/A"

Score = Union[int, str]


class Category(str, Enum):
    """Topic a message is about; declaration order is the detection order."""

    SEO = "SEO"
    PERFORMANCE = "Performance"
    CONTENT = "Content"
    SECURITY = "Security"
    MOBILE = "Mobile"
    GENERAL = "General"


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    NORMAL = "Normal"


@dataclass(frozen=True)
class DomainError:
    """Placeholder for an analysis section that raised."""

    error: str
    details: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "details": self.details}


def is_error(section: Any) -> bool:
    """Return True when *section* is missing or a :class:`DomainError`."""
    return section is None or isinstance(section, DomainError)


# ---------------------------------------------------------------------------
# SEO
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetaInfo:
    title: str = ""
    description: str = ""
    keywords: str = ""

    @property
    def title_length(self) -> int:
        return len(self.title)

    @property
    def description_length(self) -> int:
        return len(self.description)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "titleLength": self.title_length,
            "description": self.description,
            "descriptionLength": self.description_length,
            "keywords": self.keywords,
        }


@dataclass(frozen=True)
class HeadingCounts:
    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    h5: int = 0
    h6: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "h1": self.h1, "h2": self.h2, "h3": self.h3,
            "h4": self.h4, "h5": self.h5, "h6": self.h6,
        }


@dataclass(frozen=True)
class ImageStats:
    total: int = 0
    with_alt: int = 0
    alt_percentage: int = 0

    @property
    def without_alt(self) -> int:
        return self.total - self.with_alt

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "withAlt": self.with_alt,
            "withoutAlt": self.without_alt,
            "altPercentage": self.alt_percentage,
        }


@dataclass(frozen=True)
class LinkStats:
    internal: int = 0
    external: int = 0

    @property
    def total(self) -> int:
        return self.internal + self.external

    def to_dict(self) -> dict[str, int]:
        return {"internal": self.internal, "external": self.external, "total": self.total}


@dataclass(frozen=True)
class SeoReport:
    meta: MetaInfo
    headings: HeadingCounts
    images: ImageStats
    links: LinkStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "meta": self.meta.to_dict(),
            "headings": self.headings.to_dict(),
            "images": self.images.to_dict(),
            "links": self.links.to_dict(),
        }


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PerformanceMetrics:
    fcp: str = NA
    lcp: str = NA
    tti: str = NA
    tbt: str = NA
    cls: str = NA
    speed_index: str = NA

    def to_dict(self) -> dict[str, str]:
        return {
            "FCP": self.fcp,
            "LCP": self.lcp,
            "TTI": self.tti,
            "TBT": self.tbt,
            "CLS": self.cls,
            "SpeedIndex": self.speed_index,
        }


@dataclass(frozen=True)
class Opportunity:
    name: str
    description: str
    score: Optional[float]
    impact: Union[float, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "score": self.score,
            "impact": self.impact,
        }


@dataclass(frozen=True)
class PerformanceReport:
    score: Score = NA
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    opportunities: tuple[Opportunity, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "metrics": self.metrics.to_dict(),
            "opportunities": [o.to_dict() for o in self.opportunities],
        }


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextStats:
    word_count: int = 0
    character_count: int = 0
    average_word_length: float = 0
    paragraph_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "wordCount": self.word_count,
            "characterCount": self.character_count,
            "averageWordLength": self.average_word_length,
            "paragraphCount": self.paragraph_count,
        }


@dataclass(frozen=True)
class ResponsiveDesign:
    """Viewport meta tag and media queries found in the page markup."""

    viewport_meta: bool = False
    media_queries: bool = False

    @property
    def label(self) -> str:
        if self.viewport_meta and self.media_queries:
            return "Gut"
        if self.viewport_meta or self.media_queries:
            return "Mittelmäßig"
        return "Schlecht"

    def to_dict(self) -> dict[str, Any]:
        return {
            "viewportMeta": self.viewport_meta,
            "mediaQueries": self.media_queries,
            "score": self.label,
        }


@dataclass(frozen=True)
class ContentReport:
    text_stats: TextStats
    images: int = 0
    videos: int = 0
    paragraphs: int = 0
    lists: int = 0
    tables: int = 0
    responsive: ResponsiveDesign = field(default_factory=ResponsiveDesign)

    def to_dict(self) -> dict[str, Any]:
        return {
            "textStats": self.text_stats.to_dict(),
            "media": {"images": self.images, "videos": self.videos},
            "structure": {
                "paragraphs": self.paragraphs,
                "lists": self.lists,
                "tables": self.tables,
            },
            "responsiveDesign": self.responsive.to_dict(),
        }


# ---------------------------------------------------------------------------
# Security
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HttpsStatus:
    enabled: bool

    @property
    def label(self) -> str:
        return "Gut" if self.enabled else "Schlecht"

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "score": self.label}


@dataclass(frozen=True)
class SecurityHeaders:
    """Fixed-size map of the checked headers; absent headers map to ``None``."""

    headers: dict[str, Optional[str]]
    score: int = 0

    @property
    def implemented(self) -> int:
        return sum(1 for value in self.headers.values() if value is not None)

    @property
    def missing(self) -> int:
        return len(self.headers) - self.implemented

    @property
    def missing_names(self) -> list[str]:
        return [name for name, value in self.headers.items() if value is None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "headers": dict(self.headers),
            "implemented": self.implemented,
            "missing": self.missing,
            "score": self.score,
        }


@dataclass(frozen=True)
class CookieStats:
    total: int = 0
    secure: int = 0
    http_only: int = 0
    same_site: int = 0
    score: int = 100

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "secure": self.secure,
            "httpOnly": self.http_only,
            "sameSite": self.same_site,
            "score": self.score,
        }


@dataclass(frozen=True)
class SecurityReport:
    https: HttpsStatus
    security_headers: SecurityHeaders
    cookies: CookieStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "https": self.https.to_dict(),
            "securityHeaders": self.security_headers.to_dict(),
            "cookies": self.cookies.to_dict(),
        }


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResourceTypeStats:
    count: int = 0
    size: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"count": self.count, "size": self.size}


@dataclass(frozen=True)
class ResourceStats:
    load_time: str = NA
    dom_content_loaded: str = NA
    page_size: str = "0 Bytes"
    total_size: str = "0 Bytes"
    total_resources: int = 0
    by_type: dict[str, ResourceTypeStats] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loadTime": self.load_time,
            "domContentLoaded": self.dom_content_loaded,
            "pageSize": self.page_size,
            "totalSize": self.total_size,
            "resources": {
                "total": self.total_resources,
                "byType": {k: v.to_dict() for k, v in self.by_type.items()},
            },
        }


@dataclass(frozen=True)
class Statistics:
    html_size: str
    dom_elements: int
    resources: Union[ResourceStats, DomainError]

    def to_dict(self) -> dict[str, Any]:
        data = self.resources.to_dict()
        data["htmlSize"] = self.html_size
        data["domElements"] = self.dom_elements
        return data


# ---------------------------------------------------------------------------
# Derived output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreSummary:
    seo: Score = NA
    performance: Score = NA
    security: Score = NA
    cookies: Score = NA

    def to_dict(self) -> dict[str, Score]:
        return {
            "seo": self.seo,
            "performance": self.performance,
            "security": self.security,
            "cookies": self.cookies,
        }


@dataclass(frozen=True)
class Insight:
    text: str
    category: Category = Category.GENERAL
    priority: Priority = Priority.NORMAL

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "category": self.category.value, "priority": self.priority.value}


@dataclass(frozen=True)
class Recommendation:
    text: str
    category: Category = Category.GENERAL
    priority: Priority = Priority.NORMAL
    details: tuple[str, ...] = ()
    description: str = ""
    benefits: str = ""
    # report section whose rule produced it; empty for AI suggestions
    section: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "text": self.text,
            "category": self.category.value,
            "priority": self.priority.value,
            "details": list(self.details),
        }
        if self.section:
            data["section"] = self.section
        if self.description:
            data["description"] = self.description
        if self.benefits:
            data["benefits"] = self.benefits
        return data


@dataclass(frozen=True)
class PartialReport:
    """Domain sections before scores and messages are derived from them."""

    url: str
    timestamp: str
    status_code: int
    load_time_ms: int
    seo: Union[SeoReport, DomainError]
    performance: Union[PerformanceReport, DomainError]
    content: Union[ContentReport, DomainError]
    security: Union[SecurityReport, DomainError]
    statistics: Statistics


@dataclass(frozen=True)
class AnalysisReport:
    url: str
    timestamp: str
    status_code: int
    load_time_ms: int
    seo: Union[SeoReport, DomainError]
    performance: Union[PerformanceReport, DomainError]
    content: Union[ContentReport, DomainError]
    security: Union[SecurityReport, DomainError]
    statistics: Statistics
    scores: ScoreSummary = field(default_factory=ScoreSummary)
    insights: tuple[Insight, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()

    @property
    def load_time(self) -> str:
        return f"{self.load_time_ms}ms"

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "timestamp": self.timestamp,
            "statusCode": self.status_code,
            "loadTime": self.load_time,
            "seo": self.seo.to_dict(),
            "performance": self.performance.to_dict(),
            "content": self.content.to_dict(),
            "security": self.security.to_dict(),
            "statistics": self.statistics.to_dict(),
            "scores": self.scores.to_dict(),
            "insights": [i.to_dict() for i in self.insights],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of ``analyze(url)``: a report, or a report-level failure."""

    success: bool
    report: Optional[AnalysisReport] = None
    error: str = ""
    details: str = ""

    def to_dict(self) -> dict[str, Any]:
        if self.success and self.report is not None:
            return {"success": True, "report": self.report.to_dict()}
        return {"success": False, "error": self.error, "details": self.details}
