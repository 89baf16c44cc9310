"""Next-occurrence strategies for the three interval shapes."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from models import (
    ComputedInterval,
    Interval,
    IntervalUnit,
    OnceInterval,
    RecurringInterval,
    ScheduleType,
)
from .cron_parser import cron_next_function, get_cron_description, validate_cron
from .errors import InvalidIntervalError, InvalidScheduleError, UnsupportedUnitError

UNIT_DELTAS = {
    IntervalUnit.MINUTES.value: lambda n: timedelta(minutes=n),
    IntervalUnit.HOURS.value: lambda n: timedelta(hours=n),
    IntervalUnit.DAYS.value: lambda n: timedelta(days=n),
}


def add_interval(base: datetime, unit: str, value: int) -> datetime:
    """Shift `base` forward by `value` `unit`s.

    Minutes and hours are elapsed time; days keep the wall-clock time of day
    across DST changes.
    """
    key = unit.value if isinstance(unit, IntervalUnit) else unit
    delta = UNIT_DELTAS.get(key)
    if delta is None:
        raise UnsupportedUnitError(unit)
    if key == IntervalUnit.DAYS.value or base.tzinfo is None:
        return base + delta(value)
    return (base.astimezone(timezone.utc) + delta(value)).astimezone(base.tzinfo)


def compute_next_run(interval: Interval, now: datetime) -> datetime:
    """Compute the next fire time of `interval` relative to `now`.

    Computed intervals are trusted as-is; a result in the past simply
    makes the timer fire immediately.
    """
    if isinstance(interval, ComputedInterval):
        return interval.next()
    if isinstance(interval, OnceInterval):
        return interval.date
    if isinstance(interval, RecurringInterval):
        if isinstance(interval.value, bool) or not isinstance(interval.value, int) or interval.value <= 0:
            raise InvalidIntervalError(
                f"Interval value must be a positive integer, got {interval.value!r}"
            )
        return add_interval(now, interval.unit, interval.value)
    raise InvalidIntervalError(f"Invalid interval configuration: {interval!r}")


def is_one_time(interval: Interval) -> bool:
    return isinstance(interval, OnceInterval)


def describe_interval(interval: Interval) -> str:
    if isinstance(interval, RecurringInterval):
        unit = interval.unit.value if isinstance(interval.unit, IntervalUnit) else interval.unit
        return f"every {interval.value} {unit}"
    if isinstance(interval, OnceInterval):
        return f"once at {interval.date.isoformat()}"
    if isinstance(interval, ComputedInterval):
        return interval.description
    return repr(interval)


def cron_interval(expression: str, clock: Callable[[], datetime]) -> ComputedInterval:
    """Wrap a cron expression as a lazily evaluated computed interval."""
    if not validate_cron(expression):
        raise InvalidScheduleError(f"Invalid cron expression: {expression}")
    return ComputedInterval(
        next=cron_next_function(expression, clock),
        description=f"cron[{expression}] {get_cron_description(expression)}"
    )


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidIntervalError(f"Invalid datetime in interval configuration: {value}")
    return None


def build_interval(config: Any, clock: Callable[[], datetime]) -> Interval:
    """Build an interval from a configuration mapping.

    Accepted shapes:
        {"unit": "minutes", "value": 5}
        {"type": "once", "date": datetime | ISO string}  ("datetime" also accepted)
        {"type": "cron", "expression": "0 */2 * * *"}
        {"next": callable}

    Intervals that are already one of the dataclass shapes pass through.
    """
    if isinstance(config, (RecurringInterval, OnceInterval, ComputedInterval)):
        return config
    if not isinstance(config, Mapping):
        raise InvalidIntervalError(f"Invalid interval configuration: {config!r}")

    if callable(config.get("next")):
        return ComputedInterval(next=config["next"])

    schedule_type = config.get("type")
    if schedule_type == ScheduleType.ONCE.value:
        run_date = _parse_datetime(config.get("date") or config.get("datetime"))
        if run_date is not None:
            return OnceInterval(date=run_date)
    elif schedule_type == ScheduleType.CRON.value:
        expression = config.get("expression")
        if expression:
            return cron_interval(expression, clock)
    elif "unit" in config and "value" in config:
        return RecurringInterval(unit=config["unit"], value=config["value"])

    raise InvalidIntervalError(f"Invalid interval configuration: {dict(config)!r}")
