"""Single-shot timers backed by APScheduler."""

import itertools
import logging
from datetime import datetime, timedelta, timezone as dt_timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger

from config import settings

logger = logging.getLogger(__name__)


class Timer(Protocol):
    """Schedules a coroutine function to run once after a delay."""

    running: bool

    def start(self) -> None:
        ...

    def arm(self, delay: float, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        ...

    def disarm(self, handle: Any) -> None:
        ...

    def shutdown(self) -> None:
        ...


class APSchedulerTimer:
    """Timer that arms one DateTrigger job per call on an AsyncIOScheduler."""

    def __init__(self, timezone: Optional[str] = None, job_defaults: Optional[Dict[str, Any]] = None):
        self.timezone = timezone or settings.scheduler_timezone
        self._job_ids = itertools.count(1)
        # AsyncIOScheduler.shutdown completes on a later loop tick
        self._started = False
        self.scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults=job_defaults or settings.scheduler_job_defaults,
            timezone=self.timezone
        )

    @property
    def running(self) -> bool:
        return self._started

    def start(self) -> None:
        """Start the underlying scheduler; must be called with an event loop running."""
        if not self._started:
            self.scheduler.start()
            self._started = True
            logger.info("Timer backend started")

    def arm(self, delay: float, func: Callable[..., Awaitable[Any]], *args: Any) -> str:
        """Arm a job running `func(*args)` after `delay` seconds."""
        job_id = f"timer_{next(self._job_ids)}"
        # Overdue timers fire immediately rather than being dropped as misfires
        run_date = datetime.now(dt_timezone.utc) + timedelta(seconds=max(delay, 0))

        self.scheduler.add_job(
            func=func,
            trigger=DateTrigger(run_date=run_date),
            args=list(args),
            id=job_id,
            misfire_grace_time=None
        )
        return job_id

    def disarm(self, handle: str) -> None:
        try:
            self.scheduler.remove_job(handle)
        except JobLookupError:
            # Already fired
            pass

    def shutdown(self) -> None:
        if self._started:
            self._started = False
            self.scheduler.shutdown(wait=False)
            logger.info("Timer backend shut down")
