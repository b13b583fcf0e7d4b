"""CRUD for recurring report schedules and their execution log."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from site_analyzer.database import Database
from site_analyzer.models import ReportExecution, ReportSchedule, Website
from site_analyzer.utils.validators import validate_email, validate_report_type, validate_url

logger = logging.getLogger(__name__)

_UPDATABLE = ("cron_expression", "recipients", "report_type", "is_active")


class ScheduleError(Exception):
    """Invalid schedule input or a failed schedule query."""


def _schedule_dict(schedule: ReportSchedule) -> dict[str, Any]:
    return {
        "id": schedule.id,
        "websiteId": schedule.website_id,
        "url": schedule.website.url if schedule.website else None,
        "cronExpression": schedule.cron_expression,
        "recipients": list(schedule.recipients or []),
        "reportType": schedule.report_type,
        "isActive": schedule.is_active,
        "createdAt": schedule.created_at.isoformat() if schedule.created_at else None,
    }


class ScheduleRepository:
    """Synchronous access to ``report_schedules`` and ``report_executions``.

    Usage::

        repo = ScheduleRepository(db)
        schedule = repo.create_schedule("https://example.com", "0 8 * * 1", ["a@b.de"])
        repo.log_execution(schedule["id"], success=True)
    """

    def __init__(self, database: Database) -> None:
        self._db = database

    @staticmethod
    def _validate(
        recipients: Optional[list[str]] = None, report_type: Optional[str] = None
    ) -> None:
        if recipients is not None:
            if not recipients:
                raise ScheduleError("At least one recipient is required.")
            for email in recipients:
                ok, message = validate_email(email)
                if not ok:
                    raise ScheduleError(f"{email!r}: {message}")
        if report_type is not None:
            ok, message = validate_report_type(report_type)
            if not ok:
                raise ScheduleError(message)

    def create_schedule(
        self,
        url: str,
        cron_expression: str,
        recipients: list[str],
        report_type: str = "full",
    ) -> dict[str, Any]:
        """Create an active schedule, registering the website if it is new."""
        ok, message = validate_url(url)
        if not ok:
            raise ScheduleError(message)
        self._validate(recipients, report_type)
        try:
            with self._db.session() as session:
                session.execute(
                    sqlite_insert(Website)
                    .values(url=url, first_analysis=datetime.now(timezone.utc))
                    .on_conflict_do_nothing(index_elements=[Website.url])
                )
                website_id = session.execute(
                    select(Website.id).where(Website.url == url)
                ).scalar_one()
                schedule = ReportSchedule(
                    website_id=website_id,
                    cron_expression=cron_expression,
                    recipients=list(recipients),
                    report_type=report_type,
                    is_active=True,
                )
                session.add(schedule)
                session.flush()
                session.refresh(schedule)
                logger.info("Schedule %d created for %s [%s]", schedule.id, url, cron_expression)
                return _schedule_dict(schedule)
        except SQLAlchemyError as exc:
            raise ScheduleError(f"Could not create schedule: {exc}") from exc

    def get_schedule(self, schedule_id: int) -> Optional[dict[str, Any]]:
        with self._db.session() as session:
            schedule = session.get(ReportSchedule, schedule_id)
            return _schedule_dict(schedule) if schedule is not None else None

    def list_schedules(self, active_only: bool = False) -> list[dict[str, Any]]:
        stmt = select(ReportSchedule).order_by(ReportSchedule.id)
        if active_only:
            stmt = stmt.where(ReportSchedule.is_active.is_(True))
        with self._db.session() as session:
            return [_schedule_dict(s) for s in session.execute(stmt).scalars().unique().all()]

    def list_active_schedules(self) -> list[dict[str, Any]]:
        return self.list_schedules(active_only=True)

    def update_schedule(self, schedule_id: int, **changes: Any) -> Optional[dict[str, Any]]:
        """Apply *changes* (cron_expression, recipients, report_type, is_active)."""
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ScheduleError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        self._validate(changes.get("recipients"), changes.get("report_type"))
        with self._db.session() as session:
            schedule = session.get(ReportSchedule, schedule_id)
            if schedule is None:
                return None
            for key, value in changes.items():
                setattr(schedule, key, list(value) if key == "recipients" else value)
            session.flush()
            logger.info("Schedule %d updated: %s", schedule_id, sorted(changes))
            return _schedule_dict(schedule)

    def delete_schedule(self, schedule_id: int) -> bool:
        with self._db.session() as session:
            schedule = session.get(ReportSchedule, schedule_id)
            if schedule is None:
                return False
            session.delete(schedule)
        logger.info("Schedule %d deleted", schedule_id)
        return True

    def log_execution(
        self, schedule_id: int, success: bool, error_message: Optional[str] = None
    ) -> int:
        with self._db.session() as session:
            execution = ReportExecution(
                schedule_id=schedule_id, success=success, error_message=error_message
            )
            session.add(execution)
            session.flush()
            return execution.id

    def get_execution_history(self, schedule_id: int, limit: int = 10) -> list[dict[str, Any]]:
        with self._db.session() as session:
            rows = session.execute(
                select(ReportExecution)
                .where(ReportExecution.schedule_id == schedule_id)
                .order_by(ReportExecution.execution_time.desc(), ReportExecution.id.desc())
                .limit(limit)
            ).scalars().all()
            return [
                {
                    "id": r.id,
                    "success": r.success,
                    "errorMessage": r.error_message,
                    "executionTime": r.execution_time.isoformat() if r.execution_time else None,
                }
                for r in rows
            ]
