"""
Enum definitions for the scheduling engine.
"""

from enum import Enum, IntEnum


class TaskType(IntEnum):
    """
    Coarse task type, ordered by where it naturally falls in a plan.

    The numeric value is the position in the hierarchy used when breaking
    dependency cycles: a higher type depending on a lower type is the
    expected direction.
    """

    UNKNOWN = 0
    SETUP = 1
    LEARN = 2
    PRACTICE = 3
    BUILD = 4
    TEST = 5
    FINAL = 6


class DependencySource(str, Enum):
    """Where a dependency edge came from."""

    SEQUENCE = "sequence"
    SEMANTIC = "semantic"
    PROVIDED = "provided"


class UnscheduledReason(str, Enum):
    """Why a task could not be placed."""

    NO_CAPACITY = "no_capacity"
    NO_GAP = "no_gap"
    DEPENDENCY_WINDOW = "dependency_window"
