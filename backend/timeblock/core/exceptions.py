"""
Custom exceptions for the scheduling engine.
"""

from typing import Any, Optional


class SchedulerError(Exception):
    """Base exception for timeblock."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(SchedulerError):
    """Validation error."""

    pass


class TaskValidationError(ValidationError):
    """An input task violates the upstream contract."""

    def __init__(self, message: str, task_id: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.task_id = task_id


class ConfigurationError(SchedulerError):
    """Scheduling configuration cannot produce a valid day."""

    pass


class CapacityExceededError(ConfigurationError):
    """Single-day plan whose workload cannot fit in that day."""

    def __init__(self, message: str, total_minutes: int, capacity_minutes: int, days_needed: int):
        super().__init__(
            message,
            details={
                "total_minutes": total_minutes,
                "capacity_minutes": capacity_minutes,
                "days_needed": days_needed,
            },
        )
        self.total_minutes = total_minutes
        self.capacity_minutes = capacity_minutes
        self.days_needed = days_needed


class BusinessLogicError(SchedulerError):
    """Business logic constraint violation."""

    pass


class DependencyCycleError(BusinessLogicError):
    """Dependency graph still contains cycles after resolution."""

    def __init__(self, message: str, cycles: list[list[str]]):
        super().__init__(message, details={"cycles": cycles})
        self.cycles = cycles
