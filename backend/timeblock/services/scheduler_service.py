"""
Scheduler service for time-block task placement.

Places each task as one unsplit block on a concrete date and time range,
respecting workday hours, lunch, weekends, busy windows, per-day capacity and
dependency order. Tasks that cannot be placed are reported, not raised.
"""

import math
from datetime import date
from functools import cmp_to_key
from typing import Any, Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from timeblock.core.config import Settings, get_settings
from timeblock.core.exceptions import (
    CapacityExceededError,
    ConfigurationError,
    TaskValidationError,
    ValidationError,
)
from timeblock.core.logger import setup_logger
from timeblock.models.enums import UnscheduledReason
from timeblock.models.schedule import (
    EXISTING_SLOT_OCCUPANT,
    DayScheduleConfig,
    Placement,
    ScheduledSlot,
    ScheduleResult,
    SchedulerOptions,
    TargetDay,
    UnscheduledTask,
)
from timeblock.models.task import SchedulableTask
from timeblock.services.dependency_service import DependencyService
from timeblock.services.target_day_service import TargetDayService
from timeblock.services.time_constraints import calculate_days_needed, calculate_remaining_time
from timeblock.utils.datetime_utils import (
    add_days,
    days_between,
    format_minutes,
    is_weekend,
    minute_of_day,
)
from timeblock.utils.dependency_validator import DependencyGraph, topological_order

logger = setup_logger(__name__)

TaskInput = Union[SchedulableTask, dict[str, Any]]

# Base search window (days either side of the target) per priority
BASE_DEVIATION_DAYS: dict[int, int] = {1: 2, 2: 3, 3: 4, 4: 5}


class _RunState:
    """Mutable bookkeeping for a single ``schedule()`` call."""

    def __init__(self):
        self.slots: dict[date, list[ScheduledSlot]] = {}
        self.used_minutes: dict[int, int] = {}
        self.placements: dict[str, Placement] = {}

    def day_slots(self, day: date) -> list[ScheduledSlot]:
        return self.slots.setdefault(day, [])


class TimeBlockScheduler:
    """
    Service for time-block scheduling.

    Provides:
    - Day configuration and input validation
    - Dependency-aware processing order
    - Capacity-aware day search with backfilling
    - Gap scanning around lunch and busy windows
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        dependency_service: Optional[DependencyService] = None,
        target_day_service: Optional[TargetDayService] = None,
    ):
        """
        Initialize scheduler.

        Args:
            settings: Engine settings (None = cached environment settings)
            dependency_service: Dependency graph builder
            target_day_service: Day-target assignor
        """
        self.settings = settings or get_settings()
        self.dependency_service = dependency_service or DependencyService()
        self.target_day_service = target_day_service or TargetDayService()

    # ===========================================
    # Public API
    # ===========================================

    def schedule(
        self,
        tasks: Iterable[TaskInput],
        options: Union[SchedulerOptions, dict[str, Any]],
    ) -> ScheduleResult:
        """
        Place tasks on the calendar.

        Args:
            tasks: Tasks (models or plain dicts) to place
            options: Scheduling options for this run

        Returns:
            ScheduleResult with placements and unscheduled tasks

        Raises:
            TaskValidationError: If a task violates the input contract
            ValidationError: If options, busy slots or hints are malformed
            ConfigurationError: If the hours or dates cannot produce a valid day
            CapacityExceededError: If a single-day plan cannot hold all tasks
            DependencyCycleError: If dependency cycles cannot be resolved
        """
        task_list = self._coerce_tasks(tasks)
        opts = self._coerce_options(options)
        self._validate_options(opts)

        dates, configs = self._build_day_configs(opts)
        total_days = len(dates)
        active_days = [
            index for index, config in enumerate(configs)
            if not config.is_weekend or opts.allow_weekends
        ]
        total_minutes = sum(task.estimated_duration_minutes for task in task_list)

        if total_days == 1:
            self._check_single_day_capacity(total_minutes, configs[0])

        available = sum(configs[index].daily_capacity for index in active_days)
        if total_minutes > available:
            logger.warning(
                f"Total task duration ({total_minutes} min) exceeds available capacity "
                f"({available} min); some tasks may be unscheduled"
            )

        if not task_list:
            return ScheduleResult()

        dependencies = self.dependency_service.build_dependencies(
            task_list, hints=opts.task_dependencies
        )
        ordered = self._processing_order(task_list, dependencies)
        target_days = self.target_day_service.assign_target_days(
            ordered, dependencies, total_days, active_days
        )

        state = _RunState()
        for busy in opts.existing_schedules:
            state.day_slots(busy.date).append(
                ScheduledSlot(busy.start_minutes, busy.end_minutes, EXISTING_SLOT_OCCUPANT)
            )

        weekday_cap, weekend_cap = self._effective_caps(opts, configs)
        deviation_limit = math.floor(
            len(active_days or configs) * self.settings.TIMELINE_DEVIATION_RATIO
        )

        unscheduled: list[UnscheduledTask] = []
        for task in ordered:
            reason = self._place_task(
                task,
                target_days[task.id],
                dependencies,
                opts,
                dates,
                configs,
                state,
                weekday_cap,
                weekend_cap,
                deviation_limit,
            )
            if reason is not None:
                logger.info(
                    f"Could not place {task.name!r} ({task.estimated_duration_minutes} min): {reason.value}"
                )
                unscheduled.append(UnscheduledTask(task_id=task.id, reason=reason))

        placements = list(state.placements.values())
        scheduled_minutes = sum(p.duration_minutes for p in placements)
        logger.info(
            f"Scheduled {len(placements)}/{len(task_list)} tasks "
            f"({scheduled_minutes} min over {total_days} days, {len(unscheduled)} unscheduled)"
        )

        return ScheduleResult(
            placements=placements,
            total_scheduled_minutes=scheduled_minutes,
            unscheduled_task_ids=[item.task_id for item in unscheduled],
            unscheduled_tasks=unscheduled,
            dependencies=dependencies,
            target_days=target_days,
        )

    def check_schedule_feasibility(
        self,
        tasks: Iterable[TaskInput],
        options: Union[SchedulerOptions, dict[str, Any]],
    ) -> dict:
        """
        Check if tasks fit within the plan's capacity.

        Returns:
            Dictionary with:
                - feasible: bool
                - total_minutes: int
                - capacity_minutes: int (all active days)
                - remaining_minutes_today: int (usable on the start date)
                - overflow_minutes: int
                - days_needed: int (days beyond the start date)
                - capacity_usage_percent: int
        """
        task_list = self._coerce_tasks(tasks)
        opts = self._coerce_options(options)
        self._validate_options(opts)
        dates, configs = self._build_day_configs(opts)

        total_minutes = sum(task.estimated_duration_minutes for task in task_list)
        capacity_minutes = sum(
            config.daily_capacity
            for config in configs
            if not config.is_weekend or opts.allow_weekends
        )

        current_time = None if opts.require_start_date else opts.current_time
        remaining_today = calculate_remaining_time(dates[0], configs[0], current_time)
        weekday_capacity = self._compute_day_config(opts, weekend=False).daily_capacity
        days_needed = calculate_days_needed(
            total_minutes, remaining_today.remaining_minutes, weekday_capacity
        )

        result = {
            "feasible": total_minutes <= capacity_minutes,
            "total_minutes": total_minutes,
            "capacity_minutes": capacity_minutes,
            "remaining_minutes_today": remaining_today.remaining_minutes,
            "overflow_minutes": max(0, total_minutes - capacity_minutes),
            "days_needed": days_needed,
            "capacity_usage_percent": (
                min(100, int((total_minutes / capacity_minutes) * 100))
                if capacity_minutes > 0
                else 0
            ),
        }

        logger.info(
            f"Capacity check: {total_minutes}/{capacity_minutes} min "
            f"({result['capacity_usage_percent']}% capacity, {days_needed} extra days needed)"
        )
        return result

    @staticmethod
    def suggest_timeline_extension(unscheduled_tasks: list[SchedulableTask]) -> str:
        """
        Generate a human-friendly suggestion for tasks that did not fit.

        Args:
            unscheduled_tasks: Tasks reported as unscheduled

        Returns:
            Suggestion message ("" when nothing is unscheduled)
        """
        if not unscheduled_tasks:
            return ""

        task_count = len(unscheduled_tasks)
        task_names = [f'"{task.name}"' for task in unscheduled_tasks[:3]]
        total_minutes = sum(task.estimated_duration_minutes for task in unscheduled_tasks)

        if task_count == 1:
            message = f"Task {task_names[0]} does not fit in the current timeline."
        elif task_count <= 3:
            message = f"{task_count} tasks ({', '.join(task_names)}) do not fit in the current timeline."
        else:
            remaining = task_count - 3
            message = (
                f"{task_count} tasks ({', '.join(task_names)} and {remaining} more) "
                f"do not fit in the current timeline."
            )

        return f"{message} Extend the timeline to make room for about {total_minutes} more minutes?"

    # ===========================================
    # Input handling
    # ===========================================

    @staticmethod
    def _coerce_tasks(tasks: Iterable[TaskInput]) -> list[SchedulableTask]:
        task_list: list[SchedulableTask] = []
        seen: set[str] = set()

        for raw in tasks:
            if isinstance(raw, SchedulableTask):
                task = raw
            else:
                task_id = raw.get("id") if isinstance(raw, dict) else None
                try:
                    task = SchedulableTask.model_validate(raw)
                except PydanticValidationError as exc:
                    name = raw.get("name") if isinstance(raw, dict) else None
                    raise TaskValidationError(
                        f"Invalid task {name or task_id!r}: {exc.errors()[0]['msg']}",
                        task_id=task_id,
                        details=exc.errors(),
                    ) from exc

            if task.id in seen:
                raise TaskValidationError(f"Duplicate task id {task.id!r}", task_id=task.id)
            seen.add(task.id)
            task_list.append(task)

        return task_list

    @staticmethod
    def _coerce_options(options: Union[SchedulerOptions, dict[str, Any]]) -> SchedulerOptions:
        if isinstance(options, SchedulerOptions):
            return options
        try:
            return SchedulerOptions.model_validate(options)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid scheduler options: {exc.errors()[0]['msg']}",
                details=exc.errors(),
            ) from exc

    def _resolved_hours(self, opts: SchedulerOptions, weekend: bool) -> tuple[int, int, int, int, int]:
        """(start_hour, start_minute, end_hour, lunch_start_hour, lunch_end_hour)."""
        s = self.settings

        def pick(value: Optional[int], default: int) -> int:
            return default if value is None else value

        start_hour = pick(opts.workday_start_hour, s.DEFAULT_WORKDAY_START_HOUR)
        start_minute = pick(opts.workday_start_minute, s.DEFAULT_WORKDAY_START_MINUTE)
        end_hour = pick(opts.workday_end_hour, s.DEFAULT_WORKDAY_END_HOUR)
        lunch_start = pick(opts.lunch_start_hour, s.DEFAULT_LUNCH_START_HOUR)
        lunch_end = pick(opts.lunch_end_hour, s.DEFAULT_LUNCH_END_HOUR)

        if not weekend:
            return start_hour, start_minute, end_hour, lunch_start, lunch_end
        return (
            pick(opts.weekend_start_hour, start_hour),
            pick(opts.weekend_start_minute, start_minute),
            pick(opts.weekend_end_hour, end_hour),
            pick(opts.weekend_lunch_start_hour, lunch_start),
            pick(opts.weekend_lunch_end_hour, lunch_end),
        )

    def _validate_options(self, opts: SchedulerOptions) -> None:
        """
        Raises:
            ConfigurationError: If hours are out of range or inverted
        """
        if opts.start_date > opts.end_date:
            raise ConfigurationError(
                f"Start date {opts.start_date} is after end date {opts.end_date}",
                details={"start_date": opts.start_date, "end_date": opts.end_date},
            )

        checks = [("workday", False)]
        if opts.allow_weekends:
            checks.append(("weekend", True))

        for label, weekend in checks:
            start_hour, start_minute, end_hour, lunch_start, lunch_end = self._resolved_hours(
                opts, weekend
            )
            for field, value in (
                (f"{label} start hour", start_hour),
                (f"{label} end hour", end_hour),
                (f"{label} lunch start hour", lunch_start),
                (f"{label} lunch end hour", lunch_end),
            ):
                if not 0 <= value <= 23:
                    raise ConfigurationError(f"Invalid {field}: {value}", details={field: value})
            if not 0 <= start_minute <= 59:
                raise ConfigurationError(
                    f"Invalid {label} start minute: {start_minute}",
                    details={f"{label} start minute": start_minute},
                )
            if start_hour * 60 + start_minute >= end_hour * 60:
                raise ConfigurationError(
                    f"{label.capitalize()} start ({format_minutes(start_hour * 60 + start_minute)}) "
                    f"must be before end ({end_hour:02d}:00)"
                )
            if lunch_start >= lunch_end:
                raise ConfigurationError(
                    f"{label.capitalize()} lunch start hour ({lunch_start}) must be before "
                    f"end hour ({lunch_end})"
                )

        for field, value in (
            ("weekday_max_minutes", opts.weekday_max_minutes),
            ("weekend_max_minutes", opts.weekend_max_minutes),
        ):
            if value is not None and value <= 0:
                raise ConfigurationError(f"{field} must be positive, got {value}", details={field: value})

    # ===========================================
    # Day configuration
    # ===========================================

    def _compute_day_config(self, opts: SchedulerOptions, weekend: bool) -> DayScheduleConfig:
        start_hour, start_minute, end_hour, lunch_start, lunch_end = self._resolved_hours(opts, weekend)

        day_start = start_hour * 60 + start_minute
        day_end = end_hour * 60
        workday_duration = day_end - day_start
        if workday_duration <= 0:
            raise ConfigurationError(
                f"Invalid daily span: {format_minutes(day_start)} -> {format_minutes(day_end)}"
            )

        lunch_overlap = max(0, min(day_end, lunch_end * 60) - max(day_start, lunch_start * 60))
        daily_capacity = workday_duration - lunch_overlap
        if daily_capacity <= 0:
            raise ConfigurationError(
                f"Invalid daily capacity ({daily_capacity}) for "
                f"{'weekend' if weekend else 'weekday'} configuration"
            )

        cap = opts.weekend_max_minutes if weekend else opts.weekday_max_minutes
        if cap is not None:
            daily_capacity = min(daily_capacity, cap)

        return DayScheduleConfig(
            start_hour=start_hour,
            start_minute=start_minute,
            end_hour=end_hour,
            lunch_start_hour=lunch_start,
            lunch_end_hour=lunch_end,
            workday_duration=workday_duration,
            lunch_overlap_duration=lunch_overlap,
            daily_capacity=daily_capacity,
            is_weekend=weekend,
        )

    def _build_day_configs(self, opts: SchedulerOptions) -> tuple[list[date], list[DayScheduleConfig]]:
        weekday_config = self._compute_day_config(opts, weekend=False)
        weekend_config = self._compute_day_config(opts, weekend=True) if opts.allow_weekends else None

        dates: list[date] = []
        configs: list[DayScheduleConfig] = []
        for offset in range(days_between(opts.start_date, opts.end_date)):
            day = add_days(opts.start_date, offset)
            dates.append(day)
            if not is_weekend(day):
                configs.append(weekday_config)
            elif weekend_config is not None:
                configs.append(weekend_config)
            else:
                # Weekend hours are not used, but the day still needs a shape
                configs.append(weekday_config.model_copy(update={"is_weekend": True}))
        return dates, configs

    @staticmethod
    def _check_single_day_capacity(total_minutes: int, config: DayScheduleConfig) -> None:
        if total_minutes <= config.daily_capacity:
            return
        days_needed = 1 + calculate_days_needed(
            total_minutes, config.daily_capacity, config.daily_capacity
        )
        raise CapacityExceededError(
            f"Cannot fit all tasks in a single day. Total duration: {total_minutes} min, "
            f"available capacity: {config.daily_capacity} min. "
            f"Timeline needs to be extended to at least {days_needed} days.",
            total_minutes=total_minutes,
            capacity_minutes=config.daily_capacity,
            days_needed=days_needed,
        )

    @staticmethod
    def _effective_caps(
        opts: SchedulerOptions,
        configs: list[DayScheduleConfig],
    ) -> tuple[int, int]:
        """Per-day capacity used for the weekend/weekday affinity thresholds."""
        weekday_derived = max((c.daily_capacity for c in configs if not c.is_weekend), default=0)
        weekend_derived = max((c.daily_capacity for c in configs if c.is_weekend), default=0)

        weekday_cap = opts.weekday_max_minutes or weekday_derived or weekend_derived or 60
        weekday_cap = max(weekday_cap, 1)
        if not opts.allow_weekends:
            return weekday_cap, weekday_cap
        weekend_cap = max(opts.weekend_max_minutes or weekend_derived or weekday_cap, weekday_cap)
        return weekday_cap, weekend_cap

    # ===========================================
    # Ordering
    # ===========================================

    @staticmethod
    def _processing_order(
        tasks: list[SchedulableTask],
        dependencies: DependencyGraph,
    ) -> list[SchedulableTask]:
        """Sort by idx > priority > longer first > name, then refine topologically."""
        task_map = {task.id: task for task in tasks}
        sorted_tasks = sorted(
            tasks,
            key=lambda task: (
                task.idx is None,
                task.idx if task.idx is not None else 0,
                task.priority,
                -task.estimated_duration_minutes,
                task.name,
            ),
        )
        ordered_ids = topological_order([task.id for task in sorted_tasks], dependencies)
        return [task_map[task_id] for task_id in ordered_ids]

    # ===========================================
    # Placement
    # ===========================================

    def _candidate_days(
        self,
        task: SchedulableTask,
        target: TargetDay,
        total_days: int,
        deviation_limit: int,
    ) -> tuple[list[int], list[int]]:
        """(deviation window, fallback days) around the target."""
        window = [target.target_day]
        if not target.enforced:
            max_deviation = min(BASE_DEVIATION_DAYS.get(task.priority, 5), deviation_limit)
            for offset in range(1, max_deviation + 1):
                for day_index in (target.target_day - offset, target.target_day + offset):
                    if 0 <= day_index < total_days:
                        window.append(day_index)

        in_window = set(window)
        fallback = [day_index for day_index in range(total_days) if day_index not in in_window]
        return window, fallback

    def _rank_days(
        self,
        days: list[int],
        task: SchedulableTask,
        target_day: int,
        configs: list[DayScheduleConfig],
        state: _RunState,
        prefers_weekend: bool,
        prefers_weekday: bool,
    ) -> list[int]:
        duration = task.estimated_duration_minutes

        def available(day_index: int) -> int:
            return configs[day_index].daily_capacity - state.used_minutes.get(day_index, 0)

        def bias(day_index: int) -> float:
            weekend = configs[day_index].is_weekend
            if prefers_weekend:
                weight = self.settings.WEEKEND_PREFERENCE_WEIGHT
                return -weight if weekend else weight
            if prefers_weekday:
                return self.settings.WEEKEND_PREFERENCE_WEIGHT if weekend else -self.settings.WEEKDAY_PREFERENCE_WEIGHT
            return 0.0

        def compare(a: int, b: int) -> int:
            # (a) target day that can hold the whole task
            a_room = a == target_day and available(a) >= duration
            b_room = b == target_day and available(b) >= duration
            if a_room != b_room:
                return -1 if a_room else 1

            a_dist = abs(a - target_day)
            b_dist = abs(b - target_day)

            # (b) proximity for high priorities
            if task.priority <= 2 and abs(a_dist - b_dist) > 1:
                return a_dist - b_dist

            # (c) more free capacity first
            if available(a) != available(b):
                return available(b) - available(a)

            # (d) distance with weekend/weekday affinity
            a_score = a_dist + bias(a)
            b_score = b_dist + bias(b)
            if a_score != b_score:
                return -1 if a_score < b_score else 1

            # (e) raw distance, then day index
            if a_dist != b_dist:
                return a_dist - b_dist
            return a - b

        return sorted(days, key=cmp_to_key(compare))

    def _place_task(
        self,
        task: SchedulableTask,
        target: TargetDay,
        dependencies: DependencyGraph,
        opts: SchedulerOptions,
        dates: list[date],
        configs: list[DayScheduleConfig],
        state: _RunState,
        weekday_cap: int,
        weekend_cap: int,
        deviation_limit: int,
    ) -> Optional[UnscheduledReason]:
        """Place one task; returns None on success or the reason it failed."""
        duration = task.estimated_duration_minutes
        prefers_weekend = (
            opts.allow_weekends and weekend_cap > weekday_cap and duration >= weekday_cap * 0.6
        )
        prefers_weekday = opts.allow_weekends and not prefers_weekend and duration <= weekday_cap * 0.5

        prerequisite_placements = [
            state.placements[prerequisite_id]
            for prerequisite_id in dependencies.get(task.id, [])
            if prerequisite_id in state.placements
        ]
        earliest_day = max((p.day_index for p in prerequisite_placements), default=0)
        max_deviation = min(BASE_DEVIATION_DAYS.get(task.priority, 5), deviation_limit)

        window, fallback = self._candidate_days(task, target, len(dates), deviation_limit)
        search_days = [
            *self._rank_days(window, task, target.target_day, configs, state, prefers_weekend, prefers_weekday),
            *self._rank_days(fallback, task, target.target_day, configs, state, prefers_weekend, prefers_weekday),
        ]

        today = self._current_date(opts)

        reasons: set[UnscheduledReason] = set()
        for day_index in search_days:
            config = configs[day_index]
            day = dates[day_index]

            if config.is_weekend and not opts.allow_weekends:
                if not (day_index == 0 and opts.force_start_date):
                    continue

            # Days already behind the current date have no usable time left
            if today is not None and day < today:
                reasons.add(UnscheduledReason.NO_CAPACITY)
                continue

            if day_index < earliest_day:
                reasons.add(UnscheduledReason.DEPENDENCY_WINDOW)
                continue

            used = state.used_minutes.get(day_index, 0)
            if config.daily_capacity - used < duration:
                reasons.add(UnscheduledReason.NO_CAPACITY)
                continue

            if (
                task.priority >= 3
                and day_index < target.target_day
                and target.target_day - day_index > max_deviation
            ):
                continue

            earliest_start = self._earliest_start(day, config, opts)
            for placement in prerequisite_placements:
                if placement.day_index == day_index:
                    earliest_start = max(earliest_start, placement.end_minutes)

            start = self._find_next_available_slot(
                earliest_start, duration, config, state.day_slots(day)
            )
            if start is None:
                reasons.add(UnscheduledReason.NO_GAP)
                continue

            end = start + duration
            placement = Placement(
                task_id=task.id,
                date=day,
                day_index=day_index,
                start_time=format_minutes(start),
                end_time=format_minutes(end),
                duration_minutes=duration,
            )
            state.placements[task.id] = placement
            state.day_slots(day).append(ScheduledSlot(start, end, task.id))
            state.used_minutes[day_index] = used + duration
            logger.debug(
                f"Placed {task.name!r} on {day.isoformat()} {placement.start_time}-{placement.end_time} "
                f"(day {day_index}, target {target.target_day})"
            )
            return None

        for reason in (
            UnscheduledReason.NO_GAP,
            UnscheduledReason.DEPENDENCY_WINDOW,
            UnscheduledReason.NO_CAPACITY,
        ):
            if reason in reasons:
                return reason
        return UnscheduledReason.NO_CAPACITY

    @staticmethod
    def _current_date(opts: SchedulerOptions) -> Optional[date]:
        if opts.current_time is None or opts.require_start_date:
            return None
        return opts.current_time.date()

    @classmethod
    def _earliest_start(
        cls,
        day: date,
        config: DayScheduleConfig,
        opts: SchedulerOptions,
    ) -> int:
        """Workday start, or the current time on the day it falls on."""
        start = config.start_minutes
        if cls._current_date(opts) == day:
            start = max(start, minute_of_day(opts.current_time))
        return start

    def _find_next_available_slot(
        self,
        earliest_start: int,
        duration: int,
        config: DayScheduleConfig,
        day_slots: list[ScheduledSlot],
    ) -> Optional[int]:
        """
        Scan forward from ``earliest_start`` for the first free gap.

        Returns the start minute, or None if nothing fits before the workday
        ends or the attempt ceiling is hit.
        """
        lunch = config.lunch_window
        workday_end = config.end_minutes
        slots = sorted(day_slots, key=lambda slot: slot.start_minute)

        def skip_lunch(candidate: int) -> int:
            if lunch and candidate < lunch[1] and candidate + duration > lunch[0]:
                return lunch[1]
            return candidate

        candidate = skip_lunch(earliest_start)
        for _ in range(self.settings.MAX_SLOT_SCAN_ATTEMPTS):
            if candidate + duration > workday_end:
                return None
            overlapping = next(
                (slot for slot in slots if slot.overlaps(candidate, candidate + duration)),
                None,
            )
            if overlapping is None:
                return candidate
            candidate = skip_lunch(overlapping.end_minute)

        logger.warning(
            f"Gave up scanning for a {duration} min gap after "
            f"{self.settings.MAX_SLOT_SCAN_ATTEMPTS} attempts"
        )
        return None


def schedule_tasks(tasks: Iterable[TaskInput], **options: Any) -> ScheduleResult:
    """
    Convenience wrapper: ``schedule_tasks(tasks, start_date=..., end_date=...)``.
    """
    return TimeBlockScheduler().schedule(tasks, options)
