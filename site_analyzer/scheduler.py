"""Recurring report scheduler built on APScheduler.

Schedules live in the database; on start every active schedule is
registered as a cron job in an in-memory job store.
"""

import asyncio
import logging
import re
from typing import Any, Callable, Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from site_analyzer.modules.analysis.pipeline import AnalysisPipeline
from site_analyzer.modules.analysis.report import AnalysisReport
from site_analyzer.modules.history.schedules import ScheduleError, ScheduleRepository
from site_analyzer.modules.history.storage import AnalysisStorage, save_report
from site_analyzer.modules.reporting.report_renderer import ReportRenderer

logger = logging.getLogger(__name__)

INTERVAL_PRESETS = {
    "hourly": "0 * * * *",
    "daily": "0 8 * * *",
    "weekly": "0 8 * * 1",
    "biweekly": "0 8 1,15 * *",
    "monthly": "0 8 1 * *",
}

Deliverer = Callable[[dict[str, Any], AnalysisReport, str], None]

# cron numbers days from Sunday (0 and 7), APScheduler from Monday
_CRON_DAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")
_NUMERIC_DAYS = re.compile(r"\*|\d+(?:-\d+)?")


def _next_run(job) -> Optional[str]:
    # Jobs added before start() have no next_run_time yet.
    next_run = getattr(job, "next_run_time", None)
    return next_run.isoformat() if next_run else None


def interval_to_cron(interval: str) -> str:
    """Translate a named interval to cron syntax; anything else passes through."""
    return INTERVAL_PRESETS.get(interval.strip().lower(), interval.strip())


def _cron_day_of_week(field: str) -> str:
    """Rewrite numeric cron weekdays as APScheduler day names.

    ``1-5`` becomes ``mon,tue,wed,thu,fri`` and ``*/2`` becomes ``sun,tue,thu,sat``.
    Day names and a bare ``*`` pass through unchanged.
    """
    if field == "*":
        return field
    days: list[str] = []
    for element in field.split(","):
        span, _, step = element.partition("/")
        if not _NUMERIC_DAYS.fullmatch(span):
            days.append(element)
            continue
        try:
            every = int(step) if step else 1
            if span == "*":
                first, last = 0, 6
            else:
                start, _, end = span.partition("-")
                first = int(start)
                last = int(end) if end else (6 if step else first)
        except ValueError as exc:
            raise ScheduleError(f"Invalid day of week {field!r}: {exc}") from exc
        if every < 1 or not 0 <= first <= last <= 7:
            raise ScheduleError(f"Invalid day of week {field!r}")
        for number in range(first, last + 1, every):
            if _CRON_DAYS[number] not in days:
                days.append(_CRON_DAYS[number])
    return ",".join(days)


def build_trigger(cron: str, timezone: str = "UTC") -> CronTrigger:
    """Build a trigger from a 5-field cron expression.

    Raises:
        ScheduleError: The expression is malformed.
    """
    parts = cron.strip().split()
    if len(parts) != 5:
        raise ScheduleError(f"Cron expression must have 5 fields, got {len(parts)}: {cron!r}")
    day_of_week = _cron_day_of_week(parts[4])
    try:
        return CronTrigger(
            minute=parts[0],
            hour=parts[1],
            day=parts[2],
            month=parts[3],
            day_of_week=day_of_week,
            timezone=timezone,
        )
    except ValueError as exc:
        raise ScheduleError(f"Invalid cron expression {cron!r}: {exc}") from exc


class ReportScheduler:
    """Runs analyse -> save -> render -> deliver for each due schedule.

    Usage::

        sched = ReportScheduler(repo, pipeline, storage, deliver=send_report)
        sched.start()
        sched.create_schedule("https://example.com", "weekly", ["team@example.com"])
        sched.stop()
    """

    def __init__(
        self,
        repository: ScheduleRepository,
        pipeline: AnalysisPipeline,
        storage: AnalysisStorage,
        deliver: Optional[Deliverer] = None,
        renderer: Optional[ReportRenderer] = None,
        timezone: str = "UTC",
        max_workers: int = 3,
    ):
        self._repository = repository
        self._pipeline = pipeline
        self._storage = storage
        self._deliver = deliver
        self._renderer = renderer or ReportRenderer()
        self._timezone = timezone
        self._scheduler = BackgroundScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": ThreadPoolExecutor(max_workers=max_workers)},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 3600},
            timezone=timezone,
        )
        self._running = False
        logger.info("ReportScheduler initialized (tz=%s, workers=%d)", timezone, max_workers)

    @property
    def is_running(self) -> bool:
        """Whether the scheduler is currently active."""
        return self._running

    @staticmethod
    def _job_id(schedule_id: int) -> str:
        return f"report_schedule_{schedule_id}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> int:
        """Register every active schedule and start the scheduler.

        Returns:
            Number of schedules activated.
        """
        if self._running:
            logger.warning("Scheduler is already running.")
            return len(self._scheduler.get_jobs())
        activated = sum(
            1 for schedule in self._repository.list_active_schedules()
            if self.activate(schedule)
        )
        self._scheduler.start()
        self._running = True
        logger.info("%d report schedules activated.", activated)
        return activated

    def stop(self, wait: bool = True) -> None:
        """Shut down the scheduler."""
        if not self._running:
            return
        self._scheduler.shutdown(wait=wait)
        self._running = False
        logger.info("Scheduler stopped.")

    # ------------------------------------------------------------------
    # Schedule management
    # ------------------------------------------------------------------

    def activate(self, schedule: dict[str, Any]) -> bool:
        """(Re)register the cron job for *schedule*; invalid cron is logged and skipped."""
        try:
            trigger = build_trigger(schedule["cronExpression"], self._timezone)
        except ScheduleError as exc:
            logger.error("Schedule %s not activated: %s", schedule["id"], exc)
            return False
        self._scheduler.add_job(
            self.execute_schedule,
            trigger=trigger,
            id=self._job_id(schedule["id"]),
            args=(schedule["id"],),
            replace_existing=True,
        )
        logger.info("Schedule %s activated: %s", schedule["id"], schedule["cronExpression"])
        return True

    def deactivate(self, schedule_id: int) -> bool:
        try:
            self._scheduler.remove_job(self._job_id(schedule_id))
        except JobLookupError:
            return False
        logger.info("Schedule %s stopped.", schedule_id)
        return True

    def create_schedule(
        self, url: str, interval: str, recipients: list[str], report_type: str = "full"
    ) -> dict[str, Any]:
        cron = interval_to_cron(interval)
        build_trigger(cron, self._timezone)
        schedule = self._repository.create_schedule(url, cron, recipients, report_type)
        self.activate(schedule)
        return schedule

    def update_schedule(self, schedule_id: int, interval: Optional[str] = None, **changes: Any):
        if interval is not None:
            changes["cron_expression"] = interval_to_cron(interval)
            build_trigger(changes["cron_expression"], self._timezone)
        schedule = self._repository.update_schedule(schedule_id, **changes)
        if schedule is None:
            return None
        self.deactivate(schedule_id)
        if schedule["isActive"]:
            self.activate(schedule)
        return schedule

    def delete_schedule(self, schedule_id: int) -> bool:
        self.deactivate(schedule_id)
        return self._repository.delete_schedule(schedule_id)

    def list_jobs(self) -> list[dict[str, Any]]:
        """Currently registered jobs with their next run time."""
        return [
            {
                "id": job.id,
                "trigger": str(job.trigger),
                "next_run_time": _next_run(job),
            }
            for job in self._scheduler.get_jobs()
        ]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_schedule(self, schedule_id: int) -> bool:
        """Run one schedule now and log the outcome.

        Returns:
            True when analysis, storage and delivery all succeeded.
        """
        schedule = self._repository.get_schedule(schedule_id)
        if schedule is None:
            logger.warning("Schedule %s no longer exists.", schedule_id)
            self.deactivate(schedule_id)
            return False
        logger.info("Executing schedule %s for %s", schedule_id, schedule["url"])
        try:
            report = asyncio.run(self._analyze_and_save(schedule["url"]))
            text = self._renderer.render_text(report, report_type=schedule["reportType"])
            if self._deliver is not None:
                self._deliver(schedule, report, text)
        except Exception as exc:
            logger.error("Schedule %s failed: %s", schedule_id, exc)
            self._repository.log_execution(schedule_id, False, str(exc))
            return False
        self._repository.log_execution(schedule_id, True)
        logger.info("Schedule %s executed successfully.", schedule_id)
        return True

    async def _analyze_and_save(self, url: str) -> AnalysisReport:
        result = await self._pipeline.analyze(url)
        if not result.success:
            raise RuntimeError(f"{result.error}: {result.details}")
        await save_report(self._storage, result.report)
        return result.report
