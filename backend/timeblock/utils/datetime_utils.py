"""
Calendar arithmetic utilities.

Plan dates are handled as plain ``date`` values (local midnight), so adding
days or comparing two dates never drifts across a timezone boundary. Times of
day are handled as minutes since midnight and rendered as ``HH:MM``.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from timeblock.core.exceptions import ValidationError

# UTC timezone constant
UTC = timezone.utc

DateLike = Union[date, datetime, str]


def get_user_now(user_timezone: str) -> datetime:
    """
    Get the user's wall-clock time as a naive datetime.

    This is the shape the scheduler expects for ``current_time``: the hour and
    minute the user sees, with no tzinfo attached.
    """
    tz = ZoneInfo(user_timezone)
    return datetime.now(UTC).astimezone(tz).replace(tzinfo=None, second=0, microsecond=0)


def get_user_today(user_timezone: str) -> date:
    """Calendar date the user sees, used as the default plan start."""
    return get_user_now(user_timezone).date()


def to_local_midnight(value: DateLike) -> date:
    """
    Normalize a date, datetime, or date string to a calendar date.

    Strings may be plain ``YYYY-MM-DD`` or ISO datetimes; only the date part
    is kept, so the result never shifts with the process timezone.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def format_date(value: date) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date(value: str) -> date:
    """
    Parse ``YYYY-MM-DD`` (or an ISO string with a time part) into a date.

    Raises:
        ValidationError: If the string is not a valid date
    """
    if not value:
        raise ValidationError("Date string is empty")
    date_part = value.split("T")[0].strip()
    try:
        return date.fromisoformat(date_part)
    except ValueError as exc:
        raise ValidationError(f"Invalid date string: {value!r}") from exc


def days_between(start: DateLike, end: DateLike) -> int:
    """Number of calendar days from start to end, counting both ends."""
    return (to_local_midnight(end) - to_local_midnight(start)).days + 1


def add_days(value: DateLike, days: int) -> date:
    return to_local_midnight(value) + timedelta(days=days)


def get_day_number(value: DateLike, start: DateLike) -> int:
    """1-indexed day number of ``value`` within a plan starting at ``start``."""
    return max(1, (to_local_midnight(value) - to_local_midnight(start)).days + 1)


def is_same_day(first: DateLike, second: DateLike) -> bool:
    return to_local_midnight(first) == to_local_midnight(second)


def is_weekend(value: DateLike) -> bool:
    return to_local_midnight(value).weekday() >= 5


def parse_time_to_minutes(value: str) -> Optional[int]:
    """Parse ``HH:MM`` into minutes since midnight, or None if malformed."""
    parts = value.split(":")
    if len(parts) != 2:
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return None
    if hours < 0 or hours > 23 or minutes < 0 or minutes > 59:
        return None
    return hours * 60 + minutes


def time_to_minutes(value: str) -> int:
    """
    Strict variant of :func:`parse_time_to_minutes`.

    Raises:
        ValidationError: If the value is not a valid ``HH:MM`` time
    """
    minutes = parse_time_to_minutes(value)
    if minutes is None:
        raise ValidationError(f"Invalid time (expected HH:MM): {value!r}")
    return minutes


def format_minutes(total_minutes: int) -> str:
    """Render minutes since midnight as ``HH:MM``."""
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def add_minutes_to_time(value: str, minutes: int) -> str:
    return format_minutes(time_to_minutes(value) + minutes)


def apply_time_buffer(current_time: datetime) -> datetime:
    """
    Round a current time up so tasks do not start the instant a plan is made.

    Rounding rules by minute-of-hour:
    - 0-4   -> :05
    - 5-9   -> :10
    - 10-14 -> :15
    - 15-29 -> :30
    - 30-59 -> next full hour
    """
    base = current_time.replace(second=0, microsecond=0)
    minute = base.minute
    if minute >= 30:
        return base.replace(minute=0) + timedelta(hours=1)
    if minute >= 15:
        return base.replace(minute=30)
    if minute >= 10:
        return base.replace(minute=15)
    if minute >= 5:
        return base.replace(minute=10)
    return base.replace(minute=5)


def minute_of_day(value: datetime) -> int:
    """Minutes since midnight, rounded up when ``value`` is mid-minute."""
    minutes = value.hour * 60 + value.minute
    if value.second or value.microsecond:
        minutes += 1
    return minutes
