"""Scheduler error types."""


class SchedulerError(Exception):
    """Base class for scheduler configuration errors."""


class DuplicateTaskError(SchedulerError):
    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"Task {task_name} already exists")


class TaskNotFoundError(SchedulerError, KeyError):
    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"Task {task_name} not found")

    def __str__(self) -> str:
        return self.args[0]


class InvalidScheduleError(SchedulerError, ValueError):
    """A one-time date that is not in the future, or an invalid cron expression."""


class UnsupportedUnitError(SchedulerError, ValueError):
    def __init__(self, unit):
        self.unit = unit
        super().__init__(f"Unsupported interval unit: {unit}")


class InvalidIntervalError(SchedulerError, TypeError):
    """Interval value matches none of the known shapes."""
