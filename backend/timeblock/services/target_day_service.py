"""
Day-target assignment.

Spreads tasks over the active days of a plan by priority band, then pushes
targets later where ``idx`` order, dependencies, or end-of-plan semantics
require it.
"""

import math
from typing import Optional

from timeblock.core.logger import setup_logger
from timeblock.models.schedule import TargetDay
from timeblock.models.task import SchedulableTask
from timeblock.services.dependency_rules import Phrase, any_phrase_in
from timeblock.utils.dependency_validator import DependencyGraph, topological_order

logger = setup_logger(__name__)

# Share of active days each priority may target (None = whole plan)
PRIORITY_BAND_RATIOS: dict[int, Optional[float]] = {1: 0.40, 2: 0.70, 3: None, 4: None}

# Tasks that belong at the end of a plan are pinned to its last active day
END_OF_TIMELINE_PHRASES: dict[str, tuple[Phrase, ...]] = {
    "final_review": ("final review", ("final", "review"), "wrap up", "wrap-up"),
    "rehearsal": ("practice", "mock interview", "rehears"),
    "interview_space": (
        "interview space",
        "set up space",
        "setup space",
        "tech check",
        "equipment check",
        "camera",
        "microphone",
        "lighting",
    ),
    "mental_prep": ("relax", "mental prep", "prepare mentally", ("prepare", "mentally")),
}


class TargetDayService:
    """Service for assigning each task a preferred calendar day."""

    def assign_target_days(
        self,
        ordered_tasks: list[SchedulableTask],
        dependencies: DependencyGraph,
        total_days: int,
        active_day_indices: list[int],
    ) -> dict[str, TargetDay]:
        """
        Assign target days.

        Args:
            ordered_tasks: Tasks in placement order (rank within a priority
                follows this order)
            dependencies: Acyclic dependent -> prerequisites map
            total_days: Calendar days in the plan
            active_day_indices: Calendar day indices usable for placement; if
                empty every day is treated as active

        Returns:
            Task id -> TargetDay, where ``target_day`` is a calendar day index
        """
        active = active_day_indices or list(range(total_days))
        targets: dict[str, int] = {}

        # 1. Priority band interpolation
        by_priority: dict[int, list[SchedulableTask]] = {}
        for task in ordered_tasks:
            by_priority.setdefault(task.priority, []).append(task)

        for priority, group in by_priority.items():
            band_end = self.band_end(priority, len(active))
            for rank, task in enumerate(group):
                position = rank / (len(group) - 1) if len(group) > 1 else 0.0
                active_index = math.floor(position * band_end)
                active_index = max(0, min(active_index, band_end - 1, len(active) - 1))
                targets[task.id] = active[active_index]

        # 2. Sequence enforcement within a priority
        for group in by_priority.values():
            first_pass = dict(targets)
            for task in group:
                if task.idx is None:
                    continue
                earlier = [
                    first_pass[other.id]
                    for other in group
                    if other.idx is not None and other.idx < task.idx
                ]
                if earlier and max(earlier) > targets[task.id]:
                    logger.debug(
                        f"Target day for {task.name!r}: {targets[task.id]} -> {max(earlier)} (sequence)"
                    )
                    targets[task.id] = max(earlier)

        task_ids = [task.id for task in ordered_tasks]
        topo_ids = topological_order(task_ids, dependencies)

        # 3. Dependency enforcement
        self._cascade(topo_ids, dependencies, targets, enforced=set())

        # 4. End-of-timeline semantics
        enforced: set[str] = set()
        if len(active) > 1:
            last_day = active[-1]
            for task in ordered_tasks:
                rule = self.end_of_timeline_rule(task.name)
                if rule is None:
                    continue
                if targets[task.id] != last_day:
                    logger.debug(
                        f"Target day for {task.name!r}: {targets[task.id]} -> {last_day} ({rule})"
                    )
                targets[task.id] = last_day
                enforced.add(task.id)

        # 5. Re-raise dependents of pulled tasks
        self._cascade(topo_ids, dependencies, targets, enforced)

        return {
            task_id: TargetDay(target_day=targets[task_id], enforced=task_id in enforced)
            for task_id in task_ids
        }

    @staticmethod
    def band_end(priority: int, active_days: int) -> int:
        """Exclusive end of the active-day band a priority targets."""
        total = max(active_days, 1)
        ratio = PRIORITY_BAND_RATIOS.get(priority)
        if ratio is None:
            return total
        return max(1, math.ceil(total * ratio))

    @staticmethod
    def end_of_timeline_rule(name: str) -> Optional[str]:
        lower = name.lower()
        for rule, phrases in END_OF_TIMELINE_PHRASES.items():
            if any_phrase_in(phrases, lower):
                return rule
        return None

    @staticmethod
    def _cascade(
        topo_ids: list[str],
        dependencies: DependencyGraph,
        targets: dict[str, int],
        enforced: set[str],
    ) -> None:
        for task_id in topo_ids:
            if task_id in enforced:
                continue
            prerequisite_targets = [
                targets[prerequisite_id]
                for prerequisite_id in dependencies.get(task_id, [])
                if prerequisite_id in targets
            ]
            if prerequisite_targets and max(prerequisite_targets) > targets[task_id]:
                logger.debug(
                    f"Target day for {task_id}: {targets[task_id]} -> "
                    f"{max(prerequisite_targets)} (dependency)"
                )
                targets[task_id] = max(prerequisite_targets)
