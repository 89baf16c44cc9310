"""In-memory task model for scheduled callbacks."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

TaskCallback = Callable[[], Union[None, Awaitable[None]]]


class TaskStatus(str, Enum):
    SCHEDULED = "scheduled"
    PAUSED = "paused"


class IntervalUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


class ScheduleType(str, Enum):
    INTERVAL = "interval"  # Fixed unit cadence
    ONCE = "once"  # One-time execution
    CRON = "cron"  # Cron expression
    COMPUTED = "computed"  # Caller-supplied next function


@dataclass
class ScheduleOptions:
    """Free-form task options.

    retry_on_error and retry_delay are stored for callers that inspect them;
    the dispatcher does not retry failed callbacks.
    """
    type: Optional[ScheduleType] = None
    retry_on_error: bool = False
    retry_delay: Optional[int] = None  # seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value if self.type else None,
            "retry_on_error": self.retry_on_error,
            "retry_delay": self.retry_delay
        }


@dataclass(frozen=True)
class RecurringInterval:
    """Runs every `value` `unit`s, measured from the previous run."""
    unit: str
    value: int


@dataclass(frozen=True)
class OnceInterval:
    """Runs a single time at `date`."""
    date: datetime


@dataclass(frozen=True)
class ComputedInterval:
    """Next run is whatever `next()` returns at arming time."""
    next: Callable[[], datetime]
    description: str = "computed"


Interval = Union[RecurringInterval, OnceInterval, ComputedInterval]


@dataclass
class Task:
    name: str
    callback: TaskCallback
    interval: Interval
    options: ScheduleOptions = field(default_factory=ScheduleOptions)
    status: TaskStatus = TaskStatus.SCHEDULED

    # Execution bookkeeping
    created_at: Optional[datetime] = None
    last_run: Optional[datetime] = None
    run_count: int = 0
    failure_count: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "options": self.options.to_dict(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error
        }

    def is_paused(self) -> bool:
        return self.status == TaskStatus.PAUSED


@dataclass
class TaskStatusInfo:
    """Snapshot returned by status queries."""
    name: str
    status: TaskStatus
    next_run: Optional[datetime]
    last_run: Optional[datetime] = None
    run_count: int = 0
    failure_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "failure_count": self.failure_count
        }
