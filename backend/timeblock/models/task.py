"""
Task model definitions.

A schedulable task is the unit the engine places on the calendar. Instances
are produced by the upstream task generator and stay immutable for a run.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_TASK_MINUTES = 5
MAX_TASK_MINUTES = 360


class SchedulableTask(BaseModel):
    """Input task for a scheduling run."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Task identifier")
    name: str = Field(..., min_length=1, max_length=500, description="Task name")
    priority: int = Field(..., ge=1, le=4, description="1 = highest, 4 = lowest")
    estimated_duration_minutes: int = Field(
        ..., ge=MIN_TASK_MINUTES, le=MAX_TASK_MINUTES, description="Estimated duration in minutes"
    )
    idx: Optional[int] = Field(None, description="Explicit ordering hint from the generator")

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped

    @property
    def lower_name(self) -> str:
        return self.name.lower()
