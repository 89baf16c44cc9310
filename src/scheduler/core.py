"""In-memory task scheduler.

Owns the task registry and the set of armed timers. Every registry and
timer mutation happens on the asyncio event loop that drives the timer
backend, so no locking is needed. Each task has at most one armed timer
and at most one callback in flight.
"""

import itertools
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from config import settings
from models import (
    OnceInterval,
    RecurringInterval,
    ScheduleOptions,
    ScheduleType,
    Task,
    TaskCallback,
    TaskStatus,
    TaskStatusInfo,
)
from .errors import DuplicateTaskError, InvalidScheduleError, TaskNotFoundError
from .executor import CallbackExecutor, ErrorReporter, ExecutionResult, LoggingErrorReporter
from .intervals import build_interval, compute_next_run, cron_interval, describe_interval, is_one_time
from .timers import APSchedulerTimer, Timer

logger = logging.getLogger(__name__)


@dataclass
class ArmedTimer:
    handle: Any
    run_at: datetime
    token: int


class TaskScheduler:
    """Registers named callbacks and dispatches them on their schedules."""

    def __init__(
        self,
        timer: Optional[Timer] = None,
        reporter: Optional[ErrorReporter] = None,
        clock: Optional[Callable[[], datetime]] = None,
        timezone: Optional[str] = None
    ):
        self.timezone = ZoneInfo(timezone or settings.scheduler_timezone)
        self.clock = clock or self._now
        self.timer = timer or APSchedulerTimer(timezone=str(self.timezone))
        self.executor = CallbackExecutor(reporter or LoggingErrorReporter(), self.clock)

        self._tasks: Dict[str, Task] = {}
        self._armed: Dict[str, ArmedTimer] = {}
        self._running: Dict[str, Task] = {}  # callbacks in flight
        self._tokens = itertools.count(1)

    def _now(self) -> datetime:
        return datetime.now(self.timezone)

    def _normalize(self, value: datetime) -> datetime:
        """Interpret naive datetimes in the scheduler's timezone."""
        if value.tzinfo is None:
            return value.replace(tzinfo=self.timezone)
        return value

    # Lifecycle

    def start(self):
        """Start the timer backend."""
        self.timer.start()
        logger.info(f"Scheduler started (timezone {self.timezone})")

    def shutdown(self):
        """Cancel every task and stop the timer backend."""
        for name in list(self._tasks):
            self.cancel_task(name)
        self.timer.shutdown()
        logger.info("Scheduler shut down")

    async def __aenter__(self) -> "TaskScheduler":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # Registration

    def schedule_task(
        self,
        task_name: str,
        callback: TaskCallback,
        interval: Any,
        options: Optional[ScheduleOptions] = None
    ) -> str:
        """Schedule `callback` to run on `interval`.

        Args:
            task_name: Unique task name, returned as the handle
            callback: Zero-argument callable; may return an awaitable
            interval: RecurringInterval, OnceInterval, ComputedInterval or
                an equivalent configuration mapping
            options: Optional schedule options

        Raises:
            DuplicateTaskError: if the name is already registered
            InvalidIntervalError: if the interval is malformed
            UnsupportedUnitError: if a recurring unit is unknown
        """
        if task_name in self._tasks:
            raise DuplicateTaskError(task_name)

        interval = build_interval(interval, self.clock)
        options = options or ScheduleOptions()
        if options.type is None:
            options = replace(options, type=self._schedule_type(interval))

        task = Task(
            name=task_name,
            callback=callback,
            interval=interval,
            options=options,
            created_at=self.clock()
        )
        self._tasks[task_name] = task
        try:
            self._schedule_next_run(task_name)
        except Exception:
            # Registration has no effect if the first arming fails
            self._tasks.pop(task_name, None)
            raise

        logger.info(f"Scheduled task '{task_name}' ({describe_interval(interval)})")
        return task_name

    def schedule_cron(
        self,
        task_name: str,
        callback: TaskCallback,
        cron_expression: str,
        options: Optional[ScheduleOptions] = None
    ) -> str:
        """Schedule `callback` on a cron expression, evaluated afresh at every arming."""
        interval = cron_interval(cron_expression, self.clock)
        options = replace(options or ScheduleOptions(), type=ScheduleType.CRON)
        return self.schedule_task(task_name, callback, interval, options)

    def schedule_once(self, task_name: str, callback: TaskCallback, date: datetime) -> str:
        """Schedule `callback` to run a single time at `date`.

        Raises:
            InvalidScheduleError: if `date` is not strictly in the future
        """
        date = self._normalize(date)
        if date <= self.clock():
            raise InvalidScheduleError("Scheduled time must be in the future")

        return self.schedule_task(
            task_name, callback, OnceInterval(date=date), ScheduleOptions(type=ScheduleType.ONCE)
        )

    @staticmethod
    def _schedule_type(interval) -> ScheduleType:
        if isinstance(interval, OnceInterval):
            return ScheduleType.ONCE
        if isinstance(interval, RecurringInterval):
            return ScheduleType.INTERVAL
        return ScheduleType.COMPUTED

    # Lifecycle operations

    def cancel_task(self, task_name: str) -> None:
        """Disarm and remove a task. Unknown names are ignored."""
        self._disarm(task_name)
        if self._tasks.pop(task_name, None) is not None:
            logger.info(f"Cancelled task '{task_name}'")

    def pause_task(self, task_name: str) -> None:
        """Disarm a task's timer, keeping its definition."""
        task = self._get_task(task_name)
        if task.is_paused():
            return
        task.status = TaskStatus.PAUSED
        self._disarm(task_name)
        logger.info(f"Paused task '{task_name}'")

    def resume_task(self, task_name: str) -> None:
        """Re-arm a paused task from the current time; missed runs are not replayed."""
        task = self._get_task(task_name)
        if not task.is_paused():
            return
        task.status = TaskStatus.SCHEDULED
        self._schedule_next_run(task_name)
        logger.info(f"Resumed task '{task_name}'")

    # Queries

    def get_task_status(self, task_name: str) -> Optional[TaskStatusInfo]:
        task = self._tasks.get(task_name)
        if not task:
            return None

        return TaskStatusInfo(
            name=task_name,
            status=task.status,
            next_run=self._get_next_run_time(task_name),
            last_run=task.last_run,
            run_count=task.run_count,
            failure_count=task.failure_count
        )

    def list_tasks(self) -> List[TaskStatusInfo]:
        return [self.get_task_status(name) for name in list(self._tasks)]

    def get_scheduler_status(self) -> Dict[str, Any]:
        """Get current scheduler status."""
        jobs = []
        for name, task in self._tasks.items():
            next_run = self._get_next_run_time(name)
            jobs.append({
                "name": name,
                "status": task.status.value,
                "next_run": next_run.isoformat() if next_run else None,
                "trigger": describe_interval(task.interval)
            })

        return {
            "running": self.timer.running,
            "tasks_count": len(jobs),
            "jobs": jobs,
            "timezone": str(self.timezone)
        }

    async def execute_task_now(self, task_name: str) -> bool:
        """Run a task's callback immediately, outside its schedule.

        Returns False if the callback failed or was already running.
        """
        task = self._get_task(task_name)
        if self._is_running(task):
            logger.warning(f"Task '{task_name}' is already running, skipping execution")
            return False

        result = await self._run_callback(task)

        # A timer that fired during the manual run was skipped; arm the next one
        if self._tasks.get(task_name) is task and task_name not in self._armed:
            self._schedule_next_run(task_name)
        return result.success

    # Internals

    def _get_task(self, task_name: str) -> Task:
        task = self._tasks.get(task_name)
        if not task:
            raise TaskNotFoundError(task_name)
        return task

    def _get_next_run_time(self, task_name: str) -> Optional[datetime]:
        armed = self._armed.get(task_name)
        if not armed:
            return None
        return armed.run_at

    def _is_running(self, task: Task) -> bool:
        return self._running.get(task.name) is task

    def _disarm(self, task_name: str) -> None:
        armed = self._armed.pop(task_name, None)
        if armed:
            self.timer.disarm(armed.handle)

    def _schedule_next_run(self, task_name: str) -> None:
        """Arm the single timer for a task's next occurrence."""
        task = self._tasks.get(task_name)
        if not task or task.is_paused():
            return
        if self._is_running(task):
            # Dispatch arms the next run when the callback returns
            return

        self._disarm(task_name)

        now = self.clock()
        next_run = self._normalize(compute_next_run(task.interval, now))
        delay = next_run.timestamp() - now.timestamp()

        token = next(self._tokens)
        handle = self.timer.arm(delay, self._execute_task, task_name, token)
        self._armed[task_name] = ArmedTimer(handle=handle, run_at=next_run, token=token)
        logger.debug(f"Armed task '{task_name}' for {next_run.isoformat()} (in {delay:.1f}s)")

    async def _run_callback(self, task: Task) -> ExecutionResult:
        self._running[task.name] = task
        try:
            result = await self.executor.run(task.name, task.callback)
        finally:
            if self._is_running(task):
                del self._running[task.name]

        task.last_run = result.started_at
        task.run_count += 1
        if not result.success:
            task.failure_count += 1
            task.last_error = result.error
        return result

    async def _execute_task(self, task_name: str, token: int) -> None:
        """Timer entry point: run the callback, then re-arm or retire the task."""
        armed = self._armed.get(task_name)
        if armed is None or armed.token != token:
            logger.debug(f"Ignoring stale timer for task '{task_name}'")
            return
        del self._armed[task_name]

        task = self._tasks.get(task_name)
        if task is None:
            return
        if self._is_running(task):
            logger.warning(f"Task '{task_name}' is already running, skipping execution")
            return

        await self._run_callback(task)

        if self._tasks.get(task_name) is not task:
            # Cancelled while the callback was running
            return

        if is_one_time(task.interval):
            self._tasks.pop(task_name, None)
            self._disarm(task_name)
            logger.info(f"One-time task '{task_name}' completed and removed")
            return

        try:
            self._schedule_next_run(task_name)
        except Exception as e:
            logger.error(f"Failed to re-arm task '{task_name}': {e}", exc_info=True)
