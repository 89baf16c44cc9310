"""Task scheduler core functionality."""

from .core import TaskScheduler
from .cron_parser import get_cron_description, next_cron_occurrence, validate_cron
from .errors import (
    DuplicateTaskError,
    InvalidIntervalError,
    InvalidScheduleError,
    SchedulerError,
    TaskNotFoundError,
    UnsupportedUnitError,
)
from .executor import ErrorReporter, ExecutionResult, LoggingErrorReporter
from .intervals import add_interval, build_interval, compute_next_run
from .timers import APSchedulerTimer, Timer

__all__ = [
    "TaskScheduler",
    "get_cron_description",
    "next_cron_occurrence",
    "validate_cron",
    "DuplicateTaskError",
    "InvalidIntervalError",
    "InvalidScheduleError",
    "SchedulerError",
    "TaskNotFoundError",
    "UnsupportedUnitError",
    "ErrorReporter",
    "ExecutionResult",
    "LoggingErrorReporter",
    "add_interval",
    "build_interval",
    "compute_next_run",
    "APSchedulerTimer",
    "Timer"
]
