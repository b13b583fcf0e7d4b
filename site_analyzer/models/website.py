"""Website and analysis history SQLAlchemy models."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from site_analyzer.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Website(Base):
    """A URL that has been analysed at least once."""

    __tablename__ = "websites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    first_analysis: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    last_analysis: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    analyses: Mapped[list["Analysis"]] = relationship(
        back_populates="website", order_by="Analysis.timestamp"
    )

    def __repr__(self) -> str:
        return f"<Website id={self.id} url={self.url[:60]!r}>"


class Analysis(Base):
    """One stored analysis run with its full report document."""

    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    website_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("websites.id"), nullable=False, index=True
    )
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    pdf_path: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    status_code: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    load_time_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    report_json: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    website: Mapped["Website"] = relationship(back_populates="analyses")
    seo: Mapped[Optional["SeoResult"]] = relationship(
        back_populates="analysis", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )
    performance: Mapped[Optional["PerformanceResult"]] = relationship(
        back_populates="analysis", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )
    content: Mapped[Optional["ContentResult"]] = relationship(
        back_populates="analysis", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )
    security: Mapped[Optional["SecurityResult"]] = relationship(
        back_populates="analysis", cascade="all, delete-orphan", uselist=False, lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Analysis id={self.id} website_id={self.website_id} at={self.timestamp}>"


class SeoResult(Base):
    __tablename__ = "seo_results"

    analysis_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("analyses.id", ondelete="CASCADE"), primary_key=True
    )
    title_length: Mapped[int] = mapped_column(Integer, default=0)
    description_length: Mapped[int] = mapped_column(Integer, default=0)
    h1_count: Mapped[int] = mapped_column(Integer, default=0)
    alt_image_percentage: Mapped[float] = mapped_column(Float, default=0)
    internal_links: Mapped[int] = mapped_column(Integer, default=0)
    external_links: Mapped[int] = mapped_column(Integer, default=0)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    analysis: Mapped["Analysis"] = relationship(back_populates="seo")

    def __repr__(self) -> str:
        return f"<SeoResult analysis_id={self.analysis_id} score={self.score}>"


class PerformanceResult(Base):
    __tablename__ = "performance_results"

    analysis_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("analyses.id", ondelete="CASCADE"), primary_key=True
    )
    lighthouse_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fcp: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    lcp: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    tti: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    tbt: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    cls: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    load_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    analysis: Mapped["Analysis"] = relationship(back_populates="performance")

    def __repr__(self) -> str:
        return f"<PerformanceResult analysis_id={self.analysis_id} score={self.lighthouse_score}>"


class ContentResult(Base):
    __tablename__ = "content_results"

    analysis_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("analyses.id", ondelete="CASCADE"), primary_key=True
    )
    word_count: Mapped[int] = mapped_column(Integer, default=0)
    paragraph_count: Mapped[int] = mapped_column(Integer, default=0)
    image_count: Mapped[int] = mapped_column(Integer, default=0)
    video_count: Mapped[int] = mapped_column(Integer, default=0)
    list_count: Mapped[int] = mapped_column(Integer, default=0)
    table_count: Mapped[int] = mapped_column(Integer, default=0)

    analysis: Mapped["Analysis"] = relationship(back_populates="content")

    def __repr__(self) -> str:
        return f"<ContentResult analysis_id={self.analysis_id} words={self.word_count}>"


class SecurityResult(Base):
    __tablename__ = "security_results"

    analysis_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("analyses.id", ondelete="CASCADE"), primary_key=True
    )
    https_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    security_headers_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cookie_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    missing_headers: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    analysis: Mapped["Analysis"] = relationship(back_populates="security")

    def __repr__(self) -> str:
        return f"<SecurityResult analysis_id={self.analysis_id} score={self.security_headers_score}>"
