"""Callback execution and failure reporting for scheduled tasks."""

import inspect
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Protocol

from models import TaskCallback

logger = logging.getLogger(__name__)


class ErrorReporter(Protocol):
    """Receives (task name, error) pairs for failed callbacks."""

    def report(self, task_name: str, error: BaseException) -> None:
        ...


class LoggingErrorReporter:
    """Default reporter: writes the failure and traceback to the log."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def report(self, task_name: str, error: BaseException) -> None:
        self.log.error(f"Error executing task {task_name}: {error}", exc_info=error)


@dataclass
class ExecutionResult:
    """Result of a single callback invocation."""
    success: bool
    started_at: datetime
    finished_at: datetime
    duration: float  # seconds
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration": self.duration,
            "error": self.error
        }


class CallbackExecutor:
    """Runs task callbacks and isolates their failures from the scheduler."""

    def __init__(self, reporter: ErrorReporter, clock: Callable[[], datetime]):
        self.reporter = reporter
        self.clock = clock

    async def run(self, task_name: str, callback: TaskCallback) -> ExecutionResult:
        """Invoke `callback` with no arguments, awaiting it if it returns an awaitable.

        Errors are reported once and returned as a failed result; they are
        never raised to the caller.
        """
        started_at = self.clock()
        error = None
        try:
            outcome = callback()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            error = e
            self.reporter.report(task_name, e)

        finished_at = self.clock()
        return ExecutionResult(
            success=error is None,
            started_at=started_at,
            finished_at=finished_at,
            duration=(finished_at - started_at).total_seconds(),
            error=str(error) if error is not None else None
        )
