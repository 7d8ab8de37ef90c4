"""
Schedule models for scheduling inputs and placement outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from timeblock.models.enums import UnscheduledReason
from timeblock.utils.datetime_utils import parse_time_to_minutes, time_to_minutes

EXISTING_SLOT_OCCUPANT = "existing"


class BusySlot(BaseModel):
    """Pre-existing commitment that task placement must avoid."""

    date: date
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _check_time_format(cls, value: str) -> str:
        if parse_time_to_minutes(value) is None:
            raise ValueError(f"expected HH:MM, got {value!r}")
        return value

    @model_validator(mode="after")
    def _check_range(self) -> "BusySlot":
        if self.end_minutes <= self.start_minutes:
            raise ValueError(
                f"busy slot on {self.date.isoformat()} ends before it starts "
                f"({self.start_time}-{self.end_time})"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)


class SchedulerOptions(BaseModel):
    """
    Global settings for one scheduling run.

    Hour fields left as None fall back to the configured defaults. Weekend
    hour fields left as None reuse the weekday values.
    """

    start_date: date
    end_date: date
    workday_start_hour: Optional[int] = None
    workday_start_minute: Optional[int] = None
    workday_end_hour: Optional[int] = None
    lunch_start_hour: Optional[int] = None
    lunch_end_hour: Optional[int] = None
    allow_weekends: bool = False
    weekend_start_hour: Optional[int] = None
    weekend_start_minute: Optional[int] = None
    weekend_end_hour: Optional[int] = None
    weekend_lunch_start_hour: Optional[int] = None
    weekend_lunch_end_hour: Optional[int] = None
    weekday_max_minutes: Optional[int] = Field(None, description="Cap on weekday capacity (minutes)")
    weekend_max_minutes: Optional[int] = Field(None, description="Cap on weekend capacity (minutes)")
    current_time: Optional[datetime] = Field(
        None, description="User-local current time; nothing is placed before it on that date"
    )
    force_start_date: bool = Field(False, description="Allow day 0 even when it falls on a weekend")
    require_start_date: bool = Field(
        False, description="Anchor day 0 to workday start regardless of current_time"
    )
    existing_schedules: list[BusySlot] = Field(default_factory=list)
    task_dependencies: Optional[dict[str, list[str]]] = Field(
        None, description="Pre-computed dependent -> prerequisites map keyed by task id"
    )


class DayScheduleConfig(BaseModel):
    """Working window and capacity for one calendar day."""

    model_config = ConfigDict(frozen=True)

    start_hour: int
    start_minute: int
    end_hour: int
    lunch_start_hour: int
    lunch_end_hour: int
    workday_duration: int
    lunch_overlap_duration: int
    daily_capacity: int
    is_weekend: bool

    @property
    def start_minutes(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_minutes(self) -> int:
        return self.end_hour * 60

    @property
    def lunch_window(self) -> Optional[tuple[int, int]]:
        """Lunch clipped to the workday, or None when they do not intersect."""
        start = max(self.start_minutes, self.lunch_start_hour * 60)
        end = min(self.end_minutes, self.lunch_end_hour * 60)
        if end <= start:
            return None
        return start, end


@dataclass
class ScheduledSlot:
    start_minute: int
    end_minute: int
    occupant_task_id: str

    def overlaps(self, start_minute: int, end_minute: int) -> bool:
        return start_minute < self.end_minute and end_minute > self.start_minute


class TargetDay(BaseModel):
    """Preferred day for a task before availability is considered."""

    target_day: int = Field(..., ge=0)
    enforced: bool = False


class Placement(BaseModel):
    """A task committed to a concrete time range."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    date: date
    day_index: int = Field(..., ge=0)
    start_time: str
    end_time: str
    duration_minutes: int = Field(..., gt=0)

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)


class UnscheduledTask(BaseModel):
    """Unscheduled task with reason."""

    task_id: str
    reason: UnscheduledReason


class ScheduleResult(BaseModel):
    """Full result of one scheduling run."""

    placements: list[Placement] = Field(default_factory=list)
    total_scheduled_minutes: int = 0
    unscheduled_task_ids: list[str] = Field(default_factory=list)
    unscheduled_tasks: list[UnscheduledTask] = Field(default_factory=list)
    dependencies: dict[str, list[str]] = Field(default_factory=dict)
    target_days: dict[str, TargetDay] = Field(default_factory=dict)

    @property
    def total_scheduled_hours(self) -> float:
        return self.total_scheduled_minutes / 60

    def placement_for(self, task_id: str) -> Optional[Placement]:
        return next((p for p in self.placements if p.task_id == task_id), None)
