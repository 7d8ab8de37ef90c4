"""Pydantic models (schemas) for the scheduling engine."""

from timeblock.models.enums import DependencySource, TaskType, UnscheduledReason
from timeblock.models.task import SchedulableTask
from timeblock.models.schedule import (
    EXISTING_SLOT_OCCUPANT,
    BusySlot,
    DayScheduleConfig,
    Placement,
    ScheduledSlot,
    ScheduleResult,
    SchedulerOptions,
    TargetDay,
    UnscheduledTask,
)

__all__ = [
    # Enums
    "DependencySource",
    "TaskType",
    "UnscheduledReason",
    # Task
    "SchedulableTask",
    # Schedule
    "EXISTING_SLOT_OCCUPANT",
    "BusySlot",
    "DayScheduleConfig",
    "Placement",
    "ScheduledSlot",
    "ScheduleResult",
    "SchedulerOptions",
    "TargetDay",
    "UnscheduledTask",
]
