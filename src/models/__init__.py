"""Data model for Cadence tasks."""

from .task import (
    ComputedInterval,
    Interval,
    IntervalUnit,
    OnceInterval,
    RecurringInterval,
    ScheduleOptions,
    ScheduleType,
    Task,
    TaskCallback,
    TaskStatus,
    TaskStatusInfo,
)

__all__ = [
    "ComputedInterval",
    "Interval",
    "IntervalUnit",
    "OnceInterval",
    "RecurringInterval",
    "ScheduleOptions",
    "ScheduleType",
    "Task",
    "TaskCallback",
    "TaskStatus",
    "TaskStatusInfo"
]
