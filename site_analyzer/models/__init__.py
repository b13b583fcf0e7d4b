"""SQLAlchemy ORM models; import every model so Base.metadata is populated."""

from site_analyzer.models.website import (
    Website,
    Analysis,
    SeoResult,
    PerformanceResult,
    ContentResult,
    SecurityResult,
)
from site_analyzer.models.schedule import (
    ReportSchedule,
    ReportExecution,
)

__all__ = [
    "Website",
    "Analysis",
    "SeoResult",
    "PerformanceResult",
    "ContentResult",
    "SecurityResult",
    "ReportSchedule",
    "ReportExecution",
]
