"""Persistence of finished analysis reports.

The storage interface is async; the SQLAlchemy implementation runs its
blocking session work in a worker thread. Every failure surfaces as
:class:`StorageError`.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from site_analyzer.database import Database
from site_analyzer.models import (
    Analysis,
    ContentResult,
    PerformanceResult,
    SecurityResult,
    SeoResult,
    Website,
)
from site_analyzer.modules.analysis.report import AnalysisReport, is_error
from site_analyzer.modules.analysis.scoring import numeric_score

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A history read or write failed."""


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class AnalysisStorage(ABC):
    """Capabilities the application needs from a history store."""

    @abstractmethod
    async def upsert_website(self, url: str) -> int:
        """Insert *url* or bump its ``last_analysis``; return the website id."""

    @abstractmethod
    async def insert_analysis(
        self, website_id: int, report: AnalysisReport, pdf_path: Optional[str] = None
    ) -> int:
        """Store one report with its per-domain detail rows; return the analysis id."""

    @abstractmethod
    async def query_history(self, url: str) -> Optional[dict[str, Any]]:
        """Score snapshots for *url* in chronological order, or None if never analysed."""

    @abstractmethod
    async def get_analysis_details(self, analysis_id: int) -> Optional[dict[str, Any]]:
        """Detail rows and stored report of one analysis, or None."""

    @abstractmethod
    async def list_websites(self) -> list[dict[str, Any]]:
        """Every analysed website with its analysis count and latest scores."""


async def save_report(
    storage: AnalysisStorage, report: AnalysisReport, pdf_path: Optional[str] = None
) -> int:
    """Persist *report*: website upsert first, then the analysis and its details."""
    website_id = await storage.upsert_website(report.url)
    analysis_id = await storage.insert_analysis(website_id, report, pdf_path)
    logger.info("Saved analysis %d for %s", analysis_id, report.url)
    return analysis_id


class SqlAlchemyStorage(AnalysisStorage):
    """History store on an injected :class:`~site_analyzer.database.Database`."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def _call(self, operation: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            logger.error("Storage operation %s failed: %s", operation, exc)
            raise StorageError(f"{operation} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_website(self, url: str) -> int:
        return await self._call("upsert_website", self._upsert_website, url)

    def _upsert_website(self, url: str) -> int:
        now = datetime.now(timezone.utc)
        stmt = sqlite_insert(Website).values(url=url, first_analysis=now, last_analysis=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Website.url], set_={"last_analysis": now}
        )
        with self._db.session() as session:
            session.execute(stmt)
            return session.execute(select(Website.id).where(Website.url == url)).scalar_one()

    async def insert_analysis(
        self, website_id: int, report: AnalysisReport, pdf_path: Optional[str] = None
    ) -> int:
        return await self._call("insert_analysis", self._insert_analysis, website_id, report, pdf_path)

    def _insert_analysis(
        self, website_id: int, report: AnalysisReport, pdf_path: Optional[str]
    ) -> int:
        analysis = Analysis(
            website_id=website_id,
            pdf_path=pdf_path,
            status_code=report.status_code,
            load_time_ms=report.load_time_ms,
            report_json=report.to_dict(),
        )
        seo = report.seo
        if not is_error(seo):
            analysis.seo = SeoResult(
                title_length=seo.meta.title_length,
                description_length=seo.meta.description_length,
                h1_count=seo.headings.h1,
                alt_image_percentage=seo.images.alt_percentage,
                internal_links=seo.links.internal,
                external_links=seo.links.external,
                score=numeric_score(report.scores.seo),
            )
        perf = report.performance
        if not is_error(perf):
            metrics = perf.metrics
            analysis.performance = PerformanceResult(
                lighthouse_score=numeric_score(perf.score),
                fcp=metrics.fcp,
                lcp=metrics.lcp,
                tti=metrics.tti,
                tbt=metrics.tbt,
                cls=metrics.cls,
                load_time=report.load_time_ms,
            )
        content = report.content
        if not is_error(content):
            analysis.content = ContentResult(
                word_count=content.text_stats.word_count,
                paragraph_count=content.text_stats.paragraph_count,
                image_count=content.images,
                video_count=content.videos,
                list_count=content.lists,
                table_count=content.tables,
            )
        security = report.security
        if not is_error(security):
            analysis.security = SecurityResult(
                https_enabled=security.https.enabled,
                security_headers_score=security.security_headers.score,
                cookie_score=security.cookies.score,
                missing_headers=", ".join(security.security_headers.missing_names),
            )
        with self._db.session() as session:
            session.add(analysis)
            session.flush()
            return analysis.id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def query_history(self, url: str) -> Optional[dict[str, Any]]:
        return await self._call("query_history", self._query_history, url)

    def _query_history(self, url: str) -> Optional[dict[str, Any]]:
        with self._db.session() as session:
            website = session.execute(select(Website).where(Website.url == url)).scalar_one_or_none()
            if website is None:
                return None
            rows = session.execute(
                select(Analysis)
                .where(Analysis.website_id == website.id)
                .order_by(Analysis.timestamp.asc(), Analysis.id.asc())
            ).scalars().all()
            return {
                "url": url,
                "analyses": [
                    {"id": a.id, "date": _iso(a.timestamp), "scores": self._scores(a)}
                    for a in rows
                ],
            }

    async def get_analysis_details(self, analysis_id: int) -> Optional[dict[str, Any]]:
        return await self._call("get_analysis_details", self._get_analysis_details, analysis_id)

    def _get_analysis_details(self, analysis_id: int) -> Optional[dict[str, Any]]:
        with self._db.session() as session:
            analysis = session.get(Analysis, analysis_id)
            if analysis is None:
                return None
            seo, perf, content, sec = (
                analysis.seo, analysis.performance, analysis.content, analysis.security,
            )
            return {
                "id": analysis.id,
                "url": analysis.website.url,
                "date": _iso(analysis.timestamp),
                "pdfPath": analysis.pdf_path,
                "statusCode": analysis.status_code,
                "seo": None if seo is None else {
                    "titleLength": seo.title_length,
                    "descriptionLength": seo.description_length,
                    "h1Count": seo.h1_count,
                    "altImagePercentage": seo.alt_image_percentage,
                    "internalLinks": seo.internal_links,
                    "externalLinks": seo.external_links,
                    "score": seo.score,
                },
                "performance": None if perf is None else {
                    "score": perf.lighthouse_score,
                    "metrics": {
                        "FCP": perf.fcp, "LCP": perf.lcp, "TTI": perf.tti,
                        "TBT": perf.tbt, "CLS": perf.cls,
                    },
                    "loadTime": perf.load_time,
                },
                "content": None if content is None else {
                    "wordCount": content.word_count,
                    "paragraphCount": content.paragraph_count,
                    "imageCount": content.image_count,
                    "videoCount": content.video_count,
                    "listCount": content.list_count,
                    "tableCount": content.table_count,
                },
                "security": None if sec is None else {
                    "httpsEnabled": sec.https_enabled,
                    "securityHeadersScore": sec.security_headers_score,
                    "cookieScore": sec.cookie_score,
                    "missingHeaders": sec.missing_headers,
                },
                "report": analysis.report_json,
            }

    async def list_websites(self) -> list[dict[str, Any]]:
        return await self._call("list_websites", self._list_websites)

    def _list_websites(self) -> list[dict[str, Any]]:
        with self._db.session() as session:
            counts = dict(
                session.execute(
                    select(Analysis.website_id, func.count(Analysis.id)).group_by(Analysis.website_id)
                ).all()
            )
            websites = session.execute(
                select(Website).order_by(Website.last_analysis.desc())
            ).scalars().all()
            result = []
            for website in websites:
                latest = session.execute(
                    select(Analysis)
                    .where(Analysis.website_id == website.id)
                    .order_by(Analysis.timestamp.desc(), Analysis.id.desc())
                    .limit(1)
                ).scalar_one_or_none()
                result.append({
                    "id": website.id,
                    "url": website.url,
                    "firstAnalysis": _iso(website.first_analysis),
                    "lastAnalysis": _iso(website.last_analysis),
                    "analysisCount": counts.get(website.id, 0),
                    "latestScores": self._scores(latest) if latest is not None else None,
                })
            return result

    @staticmethod
    def _scores(analysis: Analysis) -> dict[str, Optional[int]]:
        return {
            "seo": analysis.seo.score if analysis.seo else None,
            "performance": analysis.performance.lighthouse_score if analysis.performance else None,
            "security": analysis.security.security_headers_score if analysis.security else None,
        }
