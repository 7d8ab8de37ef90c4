"""
Unit tests for remaining-time calculations.
"""

from datetime import date, datetime

import pytest

from timeblock.models.schedule import DayScheduleConfig
from timeblock.services.time_constraints import calculate_days_needed, calculate_remaining_time

MONDAY = date(2025, 1, 6)


def make_config(daily_capacity: int = 420) -> DayScheduleConfig:
    return DayScheduleConfig(
        start_hour=9,
        start_minute=0,
        end_hour=17,
        lunch_start_hour=12,
        lunch_end_hour=13,
        workday_duration=480,
        lunch_overlap_duration=60,
        daily_capacity=daily_capacity,
        is_weekend=False,
    )


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


def test_full_day_without_current_time():
    result = calculate_remaining_time(MONDAY, make_config())
    assert result.remaining_minutes == 420
    assert result.lunch_start_minutes == 720
    assert result.lunch_end_minutes == 780


def test_full_day_when_planning_another_date():
    result = calculate_remaining_time(MONDAY, make_config(), at(15, 0, day=date(2025, 1, 3)))
    assert result.remaining_minutes == 420
    assert not result.is_after_workday


def test_before_workday():
    result = calculate_remaining_time(MONDAY, make_config(), at(8))
    assert result.remaining_minutes == 420
    assert result.is_before_workday


def test_after_workday():
    result = calculate_remaining_time(MONDAY, make_config(), at(17, 30))
    assert result.remaining_minutes == 0
    assert result.is_after_workday


def test_before_lunch():
    result = calculate_remaining_time(MONDAY, make_config(), at(10))
    assert result.remaining_minutes == 360


def test_during_lunch():
    result = calculate_remaining_time(MONDAY, make_config(), at(12, 30))
    assert result.remaining_minutes == 240
    assert result.is_during_lunch


def test_after_lunch():
    result = calculate_remaining_time(MONDAY, make_config(), at(14))
    assert result.remaining_minutes == 180


def test_remaining_time_respects_capacity_cap():
    result = calculate_remaining_time(MONDAY, make_config(daily_capacity=200), at(10))
    assert result.remaining_minutes == 200


@pytest.mark.parametrize(
    "total, remaining, capacity, expected",
    [(300, 360, 420, 0), (360, 360, 420, 0), (1000, 100, 420, 3), (421, 0, 420, 2)],
)
def test_days_needed(total, remaining, capacity, expected):
    assert calculate_days_needed(total, remaining, capacity) == expected


def test_days_needed_requires_positive_capacity():
    with pytest.raises(ValueError):
        calculate_days_needed(500, 0, 0)


def test_partial_minute_counts_as_used():
    result = calculate_remaining_time(MONDAY, make_config(), datetime(2025, 1, 6, 10, 0, 45))
    assert result.remaining_minutes == 359
