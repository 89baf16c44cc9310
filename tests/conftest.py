"""Shared fixtures for scheduler tests."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fakes import FakeClock, ManualTimer, RecordingReporter
from scheduler import TaskScheduler


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timer(clock):
    return ManualTimer(clock)


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def scheduler(timer, reporter, clock):
    """Create a scheduler driven by the fake clock and manual timer."""
    manager = TaskScheduler(timer=timer, reporter=reporter, clock=clock, timezone="UTC")
    manager.start()
    yield manager
    manager.shutdown()
