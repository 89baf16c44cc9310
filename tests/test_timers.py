"""Tests for the APScheduler-backed timer and executor."""

import asyncio
import logging
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from fakes import FakeClock, RecordingReporter
from scheduler import APSchedulerTimer, LoggingErrorReporter, TaskScheduler
from scheduler.executor import CallbackExecutor


def soon(seconds: float) -> datetime:
    return datetime.now(timezone.utc) + timedelta(seconds=seconds)


class TestAPSchedulerTimer:
    """Test the production timer against a running event loop."""

    @pytest.mark.asyncio
    async def test_arm_fires_once(self):
        timer = APSchedulerTimer(timezone="UTC")
        timer.start()
        fired = []

        async def fire(value):
            fired.append(value)

        try:
            timer.arm(0.05, fire, "a")
            await asyncio.sleep(0.3)
        finally:
            timer.shutdown()

        assert fired == ["a"]

    @pytest.mark.asyncio
    async def test_overdue_timer_fires_immediately(self):
        timer = APSchedulerTimer(timezone="UTC")
        timer.start()
        fired = []

        async def fire():
            fired.append(True)

        try:
            timer.arm(-60, fire)
            await asyncio.sleep(0.2)
        finally:
            timer.shutdown()

        assert fired == [True]

    @pytest.mark.asyncio
    async def test_disarm_prevents_fire_and_tolerates_fired_jobs(self):
        timer = APSchedulerTimer(timezone="UTC")
        timer.start()
        fired = []

        async def fire(value):
            fired.append(value)

        try:
            pending = timer.arm(0.1, fire, "pending")
            done = timer.arm(0.0, fire, "done")
            timer.disarm(pending)
            await asyncio.sleep(0.3)
            timer.disarm(done)
        finally:
            timer.shutdown()

        assert fired == ["done"]
        assert timer.running is False

    @pytest.mark.asyncio
    async def test_shutdown_is_immediate_and_repeatable(self):
        """Test running drops at once and a second shutdown is a no-op."""
        timer = APSchedulerTimer(timezone="UTC")
        timer.start()
        assert timer.running is True

        timer.shutdown()
        assert timer.running is False
        timer.shutdown()
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert timer.running is False


class TestSchedulerWithRealTimer:
    """End-to-end dispatch on the event loop."""

    @pytest.mark.asyncio
    async def test_one_time_task_runs_and_retires(self):
        callback = Mock()

        async with TaskScheduler(timezone="UTC") as scheduler:
            scheduler.schedule_once("reminder", callback, soon(0.05))
            await asyncio.sleep(0.3)

            callback.assert_called_once_with()
            assert scheduler.get_task_status("reminder") is None

    @pytest.mark.asyncio
    async def test_scheduler_status_after_shutdown(self):
        scheduler = TaskScheduler(timezone="UTC")
        scheduler.start()
        scheduler.schedule_task("report", Mock(), {"unit": "minutes", "value": 5})

        scheduler.shutdown()
        scheduler.shutdown()
        await asyncio.sleep(0)

        status = scheduler.get_scheduler_status()
        assert status["running"] is False
        assert status["tasks_count"] == 0

    @pytest.mark.asyncio
    async def test_slow_task_does_not_delay_other_tasks(self):
        """Test a long-running async callback does not hold up another task's dispatch."""
        events = []

        async def slow():
            events.append("slow started")
            await asyncio.sleep(0.5)
            events.append("slow finished")

        def fast():
            events.append("fast")

        async with TaskScheduler(timezone="UTC") as scheduler:
            scheduler.schedule_once("slow", slow, soon(0.05))
            scheduler.schedule_once("fast", fast, soon(0.15))

            await asyncio.sleep(0.35)
            assert events == ["slow started", "fast"]

            await asyncio.sleep(0.5)
            assert events == ["slow started", "fast", "slow finished"]

    @pytest.mark.asyncio
    async def test_failing_callback_is_isolated(self):
        reporter = RecordingReporter()
        error = RuntimeError("boom")

        async with TaskScheduler(reporter=reporter, timezone="UTC") as scheduler:
            scheduler.schedule_once("broken", Mock(side_effect=error), soon(0.05))
            await asyncio.sleep(0.3)

            assert reporter.reports == [("broken", error)]
            assert scheduler.get_task_status("broken") is None


class TestCallbackExecutor:
    """Test callback invocation and error reporting."""

    @pytest.mark.asyncio
    async def test_success_result(self):
        clock = FakeClock()
        executor = CallbackExecutor(RecordingReporter(), clock)

        result = await executor.run("job", Mock())

        assert result.success is True
        assert result.error is None
        assert result.to_dict()["started_at"] == clock.now.isoformat()

    @pytest.mark.asyncio
    async def test_async_failure_is_reported(self):
        reporter = RecordingReporter()
        executor = CallbackExecutor(reporter, FakeClock())

        async def callback():
            raise ValueError("bad input")

        result = await executor.run("job", callback)

        assert result.success is False
        assert result.error == "bad input"
        assert [(name, str(err)) for name, err in reporter.reports] == [("job", "bad input")]

    def test_logging_reporter_tags_task_name(self, caplog):
        reporter = LoggingErrorReporter()

        with caplog.at_level(logging.ERROR):
            reporter.report("nightly", RuntimeError("disk full"))

        assert "Error executing task nightly: disk full" in caplog.text
