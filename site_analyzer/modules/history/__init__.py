"""Analysis history: persistence of reports and report schedules."""

from site_analyzer.modules.history.storage import (
    AnalysisStorage,
    SqlAlchemyStorage,
    StorageError,
    save_report,
)
from site_analyzer.modules.history.schedules import ScheduleError, ScheduleRepository

__all__ = [
    "AnalysisStorage",
    "SqlAlchemyStorage",
    "StorageError",
    "save_report",
    "ScheduleError",
    "ScheduleRepository",
]
