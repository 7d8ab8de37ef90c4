"""Time-block task scheduling engine."""

from timeblock.models import (
    BusySlot,
    Placement,
    SchedulableTask,
    ScheduleResult,
    SchedulerOptions,
    TargetDay,
    UnscheduledReason,
    UnscheduledTask,
)
from timeblock.services.scheduler_service import TimeBlockScheduler, schedule_tasks

__all__ = [
    "BusySlot",
    "Placement",
    "SchedulableTask",
    "ScheduleResult",
    "SchedulerOptions",
    "TargetDay",
    "TimeBlockScheduler",
    "UnscheduledReason",
    "UnscheduledTask",
    "schedule_tasks",
]
