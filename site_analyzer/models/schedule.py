"""Recurring report schedule SQLAlchemy models."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from site_analyzer.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportSchedule(Base):
    """A cron-triggered analysis of one website delivered to recipients."""

    __tablename__ = "report_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    website_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("websites.id"), nullable=False, index=True
    )
    cron_expression: Mapped[str] = mapped_column(String(100), nullable=False)
    recipients: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    report_type: Mapped[str] = mapped_column(String(50), nullable=False, default="full")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    website: Mapped["Website"] = relationship(lazy="joined")  # noqa: F821
    executions: Mapped[list["ReportExecution"]] = relationship(
        back_populates="schedule", cascade="all, delete-orphan",
        order_by="ReportExecution.execution_time.desc()",
    )

    def __repr__(self) -> str:
        return (
            f"<ReportSchedule id={self.id} website_id={self.website_id} "
            f"cron={self.cron_expression!r} active={self.is_active}>"
        )


class ReportExecution(Base):
    """Outcome of one scheduled run."""

    __tablename__ = "report_executions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schedule_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("report_schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    execution_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    schedule: Mapped["ReportSchedule"] = relationship(back_populates="executions")

    def __repr__(self) -> str:
        return f"<ReportExecution id={self.id} schedule_id={self.schedule_id} success={self.success}>"
