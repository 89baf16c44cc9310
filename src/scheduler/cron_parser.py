"""Cron expression validation and evaluation.

The scheduler never reads cron syntax itself; it only consumes the
"next occurrence from now" function produced here.
"""

from croniter import croniter
from datetime import datetime
from typing import Callable
import logging

logger = logging.getLogger(__name__)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday",
                 "Thursday", "Friday", "Saturday"]

COMMON_PATTERNS = {
    "* * * * *": "Every minute",
    "*/5 * * * *": "Every 5 minutes",
    "*/15 * * * *": "Every 15 minutes",
    "*/30 * * * *": "Every 30 minutes",
    "0 * * * *": "Every hour",
    "0 0 * * *": "Daily at midnight",
    "0 12 * * *": "Daily at noon",
    "0 0 * * 0": "Weekly on Sunday at midnight",
    "0 0 * * 1": "Weekly on Monday at midnight",
    "0 0 1 * *": "Monthly on the 1st at midnight",
    "0 0 1 1 *": "Yearly on January 1st at midnight",
}


def validate_cron(expression: str) -> bool:
    """Check that `expression` is a valid five-field cron expression.

    Args:
        expression: Cron expression string (e.g., "0 */2 * * *")

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(expression, str) or len(expression.split()) != 5:
        logger.error(f"Invalid cron expression '{expression}': expected 5 fields")
        return False
    try:
        croniter(expression)
        return True
    except (ValueError, TypeError, KeyError) as e:
        logger.error(f"Invalid cron expression '{expression}': {e}")
        return False


def next_cron_occurrence(expression: str, base_time: datetime) -> datetime:
    """Return the first fire time of `expression` strictly after `base_time`.

    Raises ValueError (via croniter) if the expression is invalid.
    """
    return croniter(expression, base_time).get_next(datetime)


def cron_next_function(expression: str, clock: Callable[[], datetime]) -> Callable[[], datetime]:
    """Build a "next occurrence from now" function for `expression`.

    The expression is evaluated on every call against a fresh `clock()`
    reading, never once up front.
    """
    def next_run() -> datetime:
        return next_cron_occurrence(expression, clock())

    return next_run


def _describe_field(value: str, unit: str, names=None, offset: int = 0) -> str:
    if value.startswith("*/"):
        return f"every {value[2:]} {unit}s"
    if names is not None:
        try:
            idx = int(value) - offset
        except ValueError:
            return f"in {unit} {value}"
        if 0 <= idx < len(names):
            return f"{'in' if unit == 'month' else 'on'} {names[idx]}"
        return f"in {unit} {value}"
    return f"at {unit} {value}" if unit in ("minute", "hour") else f"on {unit} {value}"


def get_cron_description(expression: str) -> str:
    """Get a human-readable description of a cron expression.

    Falls back to the raw expression when it cannot be described.
    """
    if expression in COMMON_PATTERNS:
        return COMMON_PATTERNS[expression]

    parts = expression.split()
    if len(parts) != 5:
        return expression

    minute, hour, day, month, weekday = parts
    desc_parts = []
    if minute != "*":
        desc_parts.append(_describe_field(minute, "minute"))
    if hour != "*":
        desc_parts.append(_describe_field(hour, "hour"))
    if day != "*":
        desc_parts.append(_describe_field(day, "day"))
    if month != "*":
        desc_parts.append(_describe_field(month, "month", MONTH_NAMES, offset=1))
    if weekday != "*":
        desc_parts.append(_describe_field(weekday, "weekday", WEEKDAY_NAMES))

    if not desc_parts:
        return "Every minute"
    return "Runs " + ", ".join(desc_parts)
