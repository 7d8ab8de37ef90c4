"""
Remaining-time and days-needed calculations for a workday.
"""

import math
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from timeblock.models.schedule import DayScheduleConfig
from timeblock.utils.datetime_utils import minute_of_day


class RemainingTime(BaseModel):
    """Workday time still usable on a start date."""

    model_config = ConfigDict(frozen=True)

    remaining_minutes: int
    workday_start_minutes: int
    workday_end_minutes: int
    lunch_start_minutes: Optional[int] = None
    lunch_end_minutes: Optional[int] = None
    is_before_workday: bool = False
    is_after_workday: bool = False
    is_during_lunch: bool = False


def calculate_remaining_time(
    start_date: date,
    config: DayScheduleConfig,
    current_time: Optional[datetime] = None,
) -> RemainingTime:
    """
    Calculate remaining time in the workday of ``start_date``.

    Handles the current time falling before the workday, during lunch, or
    after the workday. A start date other than the current date always gets
    the full capacity.

    Args:
        start_date: Day being planned
        config: Working window of that day
        current_time: User-local current time (None = not today)
    """
    start = config.start_minutes
    end = config.end_minutes
    lunch = config.lunch_window
    lunch_start, lunch_end = lunch if lunch else (None, None)

    result = dict(
        workday_start_minutes=start,
        workday_end_minutes=end,
        lunch_start_minutes=lunch_start,
        lunch_end_minutes=lunch_end,
    )

    if current_time is None or current_time.date() != start_date:
        return RemainingTime(remaining_minutes=config.daily_capacity, **result)

    now = minute_of_day(current_time)

    if now < start:
        return RemainingTime(
            remaining_minutes=config.daily_capacity, is_before_workday=True, **result
        )
    if now >= end:
        return RemainingTime(remaining_minutes=0, is_after_workday=True, **result)

    if lunch is None or now >= lunch_end:
        remaining = end - now
    elif now < lunch_start:
        remaining = (lunch_start - now) + (end - lunch_end)
    else:
        return RemainingTime(
            remaining_minutes=min(end - lunch_end, config.daily_capacity),
            is_during_lunch=True,
            **result,
        )

    return RemainingTime(remaining_minutes=min(remaining, config.daily_capacity), **result)


def calculate_days_needed(
    total_duration_minutes: int,
    remaining_minutes: int,
    daily_capacity_minutes: int,
) -> int:
    """
    Additional days needed after today's remaining time is used up.

    Returns 0 when the work fits in ``remaining_minutes``.
    """
    if total_duration_minutes <= remaining_minutes:
        return 0
    if daily_capacity_minutes <= 0:
        raise ValueError("daily_capacity_minutes must be positive")
    return math.ceil((total_duration_minutes - remaining_minutes) / daily_capacity_minutes)
