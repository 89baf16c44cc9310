"""Deterministic collaborators for scheduler tests."""

import itertools
from datetime import datetime, timedelta, timezone


def elapsed(start: datetime, delta: timedelta) -> datetime:
    """Add real elapsed time to `start`, keeping its timezone."""
    return (start.astimezone(timezone.utc) + delta).astimezone(start.tzinfo)


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: datetime = None):
        self.now = now or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = elapsed(self.now, timedelta(**kwargs))


class ManualTimer:
    """Timer whose jobs fire only when the test advances the fake clock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.running = False
        self.jobs = {}  # handle -> (due, func, args)
        self.delays = []
        self._handles = itertools.count(1)

    def start(self):
        self.running = True

    def shutdown(self):
        self.running = False

    def arm(self, delay, func, *args):
        handle = next(self._handles)
        self.delays.append(delay)
        due = elapsed(self.clock.now, timedelta(seconds=max(delay, 0)))
        self.jobs[handle] = (due, func, args)
        return handle

    def disarm(self, handle):
        self.jobs.pop(handle, None)

    def due_times(self):
        return sorted(due for due, _, _ in self.jobs.values())

    async def advance(self, **kwargs):
        """Move the clock forward, firing due jobs in order at their due time."""
        target = elapsed(self.clock.now, timedelta(**kwargs))
        while True:
            due = [(when, handle) for handle, (when, _, _) in self.jobs.items() if when <= target]
            if not due:
                break
            when, handle = min(due)
            _, func, args = self.jobs.pop(handle)
            self.clock.now = max(self.clock.now, when.astimezone(self.clock.now.tzinfo))
            await func(*args)
        self.clock.now = max(self.clock.now, target)


class RecordingReporter:
    """Collects (task name, error) pairs instead of logging them."""

    def __init__(self):
        self.reports = []

    def report(self, task_name, error):
        self.reports.append((task_name, error))
