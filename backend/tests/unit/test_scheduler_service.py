"""
Unit tests for TimeBlockScheduler.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta

import pytest

from timeblock.core.config import Settings
from timeblock.core.exceptions import (
    CapacityExceededError,
    ConfigurationError,
    TaskValidationError,
    ValidationError,
)
from timeblock.models import BusySlot, SchedulableTask, SchedulerOptions, UnscheduledReason
from timeblock.services.scheduler_service import TimeBlockScheduler, _RunState, schedule_tasks
from timeblock.utils.datetime_utils import is_weekend, time_to_minutes

MONDAY = date(2025, 1, 6)
TUESDAY = date(2025, 1, 7)
WEDNESDAY = date(2025, 1, 8)
FRIDAY = date(2025, 1, 10)
SATURDAY = date(2025, 1, 11)
SUNDAY = date(2025, 1, 12)


def make_task(
    name: str,
    priority: int = 1,
    minutes: int = 60,
    idx: int | None = None,
    task_id: str | None = None,
) -> SchedulableTask:
    return SchedulableTask(
        id=task_id or name.lower().replace(" ", "-"),
        name=name,
        priority=priority,
        estimated_duration_minutes=minutes,
        idx=idx,
    )


def make_options(start: date = MONDAY, end: date | None = None, **overrides) -> SchedulerOptions:
    data = {
        "start_date": start,
        "end_date": end or start,
        "workday_start_hour": 9,
        "workday_end_hour": 17,
        "lunch_start_hour": 12,
        "lunch_end_hour": 13,
    }
    data.update(overrides)
    return SchedulerOptions(**data)


@pytest.fixture
def scheduler():
    return TimeBlockScheduler(settings=Settings())


def times(result, task_id):
    placement = result.placement_for(task_id)
    return placement.start_time, placement.end_time


def assert_invariants(result, tasks, options, daily_capacity=420):
    task_map = {task.id: task for task in tasks}

    # No-split: one placement per task with the full duration
    placed_ids = [p.task_id for p in result.placements]
    assert len(placed_ids) == len(set(placed_ids))
    for placement in result.placements:
        assert placement.duration_minutes == task_map[placement.task_id].estimated_duration_minutes
        assert placement.end_minutes - placement.start_minutes == placement.duration_minutes
    assert set(placed_ids) | set(result.unscheduled_task_ids) == set(task_map)

    # No-overlap, including busy slots
    by_date = defaultdict(list)
    for placement in result.placements:
        by_date[placement.date].append((placement.start_minutes, placement.end_minutes))
    for busy in options.existing_schedules:
        by_date[busy.date].append((busy.start_minutes, busy.end_minutes))
    for ranges in by_date.values():
        ranges.sort()
        for (_, first_end), (second_start, _) in zip(ranges, ranges[1:]):
            assert first_end <= second_start

    # Capacity
    used = defaultdict(int)
    for placement in result.placements:
        used[placement.day_index] += placement.duration_minutes
    assert all(minutes <= daily_capacity for minutes in used.values())

    # Dependency ordering
    for dependent_id, prerequisite_ids in result.dependencies.items():
        dependent = result.placement_for(dependent_id)
        for prerequisite_id in prerequisite_ids:
            prerequisite = result.placement_for(prerequisite_id)
            if dependent is None or prerequisite is None:
                continue
            assert prerequisite.day_index <= dependent.day_index
            if prerequisite.day_index == dependent.day_index:
                assert prerequisite.end_minutes <= dependent.start_minutes


class TestScenarios:
    def test_single_day_tasks_skip_lunch(self, scheduler):
        tasks = [
            make_task("Alpha block", priority=1, minutes=120, task_id="a"),
            make_task("Beta block", priority=2, minutes=120, task_id="b"),
            make_task("Gamma block", priority=3, minutes=120, task_id="c"),
        ]
        options = make_options()

        result = scheduler.schedule(tasks, options)

        assert times(result, "a") == ("09:00", "11:00")
        assert times(result, "b") == ("13:00", "15:00")
        assert times(result, "c") == ("15:00", "17:00")
        assert result.unscheduled_task_ids == []
        assert result.total_scheduled_minutes == 360
        assert result.total_scheduled_hours == 6
        for placement in result.placements:
            assert placement.end_minutes <= 720 or placement.start_minutes >= 780
        assert_invariants(result, tasks, options)

    def test_single_day_overflow_fails_fast(self, scheduler):
        tasks = [
            make_task("Alpha block", minutes=200, task_id="a"),
            make_task("Beta block", minutes=200, task_id="b"),
        ]

        with pytest.raises(CapacityExceededError) as exc_info:
            scheduler.schedule(tasks, make_options(weekday_max_minutes=360))

        error = exc_info.value
        assert isinstance(error, ConfigurationError)
        assert error.days_needed == 2
        assert error.details == {"total_minutes": 400, "capacity_minutes": 360, "days_needed": 2}
        assert "at least 2 days" in error.message

    def test_research_before_writing(self, scheduler):
        tasks = [
            make_task("Write report", priority=2, idx=2, task_id="write"),
            make_task("Research topic", priority=2, idx=1, task_id="research"),
        ]
        options = make_options(end=FRIDAY)

        result = scheduler.schedule(tasks, options)

        assert result.dependencies["write"] == ["research"]
        assert result.placement_for("research").day_index <= result.placement_for("write").day_index
        assert_invariants(result, tasks, options)

    def test_end_of_timeline_tasks_land_on_last_day(self, scheduler):
        tasks = [
            make_task("Final review", task_id="review"),
            make_task("Practice presentation", task_id="practice"),
        ]
        options = make_options(end=FRIDAY)

        result = scheduler.schedule(tasks, options)

        for task_id in ("review", "practice"):
            assert result.target_days[task_id].target_day == 4
            assert result.target_days[task_id].enforced
            assert result.placement_for(task_id).date == FRIDAY

    def test_busy_slot_is_never_overlapped(self, scheduler):
        tasks = [make_task("Deep work", minutes=90, task_id="deep")]
        options = make_options(
            existing_schedules=[BusySlot(date=MONDAY, start_time="10:00", end_time="11:00")]
        )

        result = scheduler.schedule(tasks, options)

        start, end = times(result, "deep")
        assert time_to_minutes(start) >= 660
        assert (start, end) == ("13:00", "14:30")
        assert_invariants(result, tasks, options)

    def test_gap_before_busy_slot_is_backfilled(self, scheduler):
        tasks = [make_task("Quick call prep", minutes=60, task_id="prep")]
        options = make_options(
            existing_schedules=[BusySlot(date=MONDAY, start_time="10:00", end_time="11:00")]
        )

        result = scheduler.schedule(tasks, options)

        assert times(result, "prep") == ("09:00", "10:00")


class TestCurrentTime:
    def test_nothing_is_placed_in_the_past(self, scheduler):
        tasks = [make_task(f"Task {letter}", minutes=120, task_id=letter) for letter in "abc"]
        options = make_options(end=TUESDAY, current_time=datetime(2025, 1, 6, 14, 10))

        result = scheduler.schedule(tasks, options)

        assert result.unscheduled_task_ids == []
        for placement in result.placements:
            if placement.date == MONDAY:
                assert placement.start_minutes >= 14 * 60 + 10
        assert times(result, "a") == ("14:10", "16:10")
        assert result.placement_for("b").date == TUESDAY
        assert_invariants(result, tasks, options)

    def test_current_time_after_busy_slot(self, scheduler):
        tasks = [make_task("Follow up", minutes=60, task_id="f")]
        options = make_options(
            current_time=datetime(2025, 1, 6, 10, 30),
            existing_schedules=[BusySlot(date=MONDAY, start_time="10:00", end_time="11:00")],
        )

        result = scheduler.schedule(tasks, options)

        assert times(result, "f") == ("11:00", "12:00")

    def test_current_time_with_seconds_rounds_up(self, scheduler):
        tasks = [make_task("Task a", minutes=30, task_id="a")]
        now = datetime(2025, 1, 6, 10, 0, 45)

        result = scheduler.schedule(tasks, make_options(current_time=now))

        placement = result.placement_for("a")
        assert placement.start_time == "10:01"
        assert datetime.combine(placement.date, datetime.min.time()) + timedelta(
            minutes=placement.start_minutes
        ) >= now

    def test_days_before_current_date_are_skipped(self, scheduler):
        tasks = [make_task("Task a", task_id="a")]
        options = make_options(
            start=date(2025, 1, 3),
            end=MONDAY,
            current_time=datetime(2025, 1, 6, 10, 0),
        )

        result = scheduler.schedule(tasks, options)

        assert result.placement_for("a").date == MONDAY
        assert times(result, "a") == ("10:00", "11:00")

    def test_plan_entirely_in_the_past(self, scheduler):
        tasks = [make_task("Task a", task_id="a")]
        options = make_options(
            start=date(2025, 1, 2),
            end=date(2025, 1, 3),
            current_time=datetime(2025, 1, 6, 9, 0),
        )

        result = scheduler.schedule(tasks, options)

        assert result.placements == []
        assert result.unscheduled_task_ids == ["a"]
        assert result.unscheduled_tasks[0].reason == UnscheduledReason.NO_CAPACITY

    def test_require_start_date_ignores_current_time(self, scheduler):
        tasks = [make_task("Task a", minutes=60, task_id="a")]
        options = make_options(
            current_time=datetime(2025, 1, 6, 14, 10),
            require_start_date=True,
        )

        result = scheduler.schedule(tasks, options)

        assert times(result, "a") == ("09:00", "10:00")


class TestUnscheduled:
    def test_fragmented_day_reports_no_gap(self, scheduler):
        tasks = [
            make_task("Long session", minutes=90, task_id="long"),
            make_task("Short session", minutes=30, task_id="short"),
        ]
        options = make_options(
            existing_schedules=[
                BusySlot(date=MONDAY, start_time="09:00", end_time="11:30"),
                BusySlot(date=MONDAY, start_time="13:00", end_time="17:00"),
            ]
        )

        result = scheduler.schedule(tasks, options)

        assert result.unscheduled_task_ids == ["long"]
        assert result.unscheduled_tasks[0].reason == UnscheduledReason.NO_GAP
        assert times(result, "short") == ("11:30", "12:00")
        assert_invariants(result, tasks, options)

    def test_exhausted_capacity_reports_no_capacity(self, scheduler):
        tasks = [make_task(f"Task {letter}", task_id=letter) for letter in "abc"]
        options = make_options(end=TUESDAY, weekday_max_minutes=60)

        result = scheduler.schedule(tasks, options)

        assert len(result.placements) == 2
        assert result.unscheduled_task_ids == ["c"]
        assert result.unscheduled_tasks[0].reason == UnscheduledReason.NO_CAPACITY
        assert_invariants(result, tasks, options, daily_capacity=60)

    def test_scan_attempt_ceiling(self):
        scheduler = TimeBlockScheduler(settings=Settings(MAX_SLOT_SCAN_ATTEMPTS=1))
        tasks = [make_task("Task a", minutes=30, task_id="a")]
        options = make_options(
            existing_schedules=[
                BusySlot(date=MONDAY, start_time="09:00", end_time="10:00"),
                BusySlot(date=MONDAY, start_time="10:00", end_time="11:00"),
            ]
        )

        result = scheduler.schedule(tasks, options)

        assert result.unscheduled_task_ids == ["a"]


class TestWeekends:
    def test_weekends_are_skipped_by_default(self, scheduler):
        tasks = [make_task(f"Task {i}", minutes=240, task_id=f"t{i}") for i in range(4)]
        options = make_options(start=FRIDAY, end=date(2025, 1, 13))

        result = scheduler.schedule(tasks, options)

        assert len(result.placements) == 2
        assert not any(is_weekend(p.date) for p in result.placements)
        assert_invariants(result, tasks, options)

    def test_force_start_date_allows_weekend_day_zero(self, scheduler):
        tasks = [make_task("Task a", task_id="a"), make_task("Task b", task_id="b")]
        options = make_options(
            start=SATURDAY,
            end=date(2025, 1, 13),
            weekday_max_minutes=60,
            force_start_date=True,
        )

        result = scheduler.schedule(tasks, options)

        assert result.placement_for("a").date == date(2025, 1, 13)
        assert result.placement_for("b").date == SATURDAY

    def test_weekend_hours_are_used_when_allowed(self, scheduler):
        tasks = [make_task("Long build", priority=3, minutes=180, task_id="long")]
        options = make_options(
            start=SATURDAY,
            end=SUNDAY,
            allow_weekends=True,
            weekend_start_hour=10,
            weekend_end_hour=16,
        )

        result = scheduler.schedule(tasks, options)

        # Does not fit 10:00-12:00, so it starts after lunch
        assert times(result, "long") == ("13:00", "16:00")
        assert result.placement_for("long").date == SATURDAY

    def test_weekend_affinity_breaks_ties(self, scheduler):
        options = make_options(
            start=FRIDAY,
            end=SUNDAY,
            allow_weekends=True,
            weekday_max_minutes=120,
            weekend_max_minutes=300,
        )
        _, configs = scheduler._build_day_configs(options)
        state = _RunState()
        state.used_minutes = {1: 300, 2: 180}
        task = make_task("Task a", priority=3, minutes=90)

        long_order = scheduler._rank_days([0, 2], task, 1, configs, state, True, False)
        short_order = scheduler._rank_days([0, 2], task, 1, configs, state, False, True)

        assert long_order == [2, 0]
        assert short_order == [0, 2]


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"lunch_start_hour": 13, "lunch_end_hour": 12},
            {"workday_start_hour": 17, "workday_end_hour": 9},
            {"workday_end_hour": 24},
            {"workday_start_minute": 75},
            {"weekday_max_minutes": 0},
            {"allow_weekends": True, "weekend_start_hour": 18, "weekend_end_hour": 10},
        ],
    )
    def test_invalid_configuration(self, scheduler, overrides):
        with pytest.raises(ConfigurationError):
            scheduler.schedule([make_task("Task a")], make_options(end=TUESDAY, **overrides))

    def test_inverted_dates(self, scheduler):
        with pytest.raises(ConfigurationError):
            scheduler.schedule([make_task("Task a")], make_options(start=TUESDAY, end=MONDAY))

    def test_task_dict_with_bad_duration(self, scheduler):
        with pytest.raises(TaskValidationError) as exc_info:
            scheduler.schedule(
                [{"id": "x", "name": "Marathon", "priority": 1, "estimated_duration_minutes": 400}],
                make_options(),
            )
        assert exc_info.value.task_id == "x"
        assert "Marathon" in exc_info.value.message

    def test_duplicate_task_ids(self, scheduler):
        with pytest.raises(TaskValidationError):
            scheduler.schedule(
                [make_task("Task a", task_id="a"), make_task("Task b", task_id="a")],
                make_options(),
            )

    def test_malformed_busy_slot_in_options_dict(self, scheduler):
        with pytest.raises(ValidationError):
            scheduler.schedule(
                [make_task("Task a")],
                {
                    "start_date": "2025-01-06",
                    "end_date": "2025-01-06",
                    "existing_schedules": [
                        {"date": "2025-01-06", "start_time": "11:00", "end_time": "10:00"}
                    ],
                },
            )


class TestInterfaces:
    def test_empty_task_list(self, scheduler):
        result = scheduler.schedule([], make_options())
        assert result.placements == []
        assert result.total_scheduled_minutes == 0

    def test_dependency_hints_are_honoured(self, scheduler):
        tasks = [
            make_task("Alpha", minutes=60, task_id="a"),
            make_task("Beta", minutes=60, task_id="b"),
        ]
        options = make_options(end=FRIDAY, task_dependencies={"a": ["b"]})

        result = scheduler.schedule(tasks, options)

        assert result.dependencies == {"a": ["b"], "b": []}
        assert_invariants(result, tasks, options)

    def test_schedule_tasks_accepts_plain_data(self):
        result = schedule_tasks(
            [
                {"id": "a", "name": "Alpha", "priority": 1, "estimated_duration_minutes": 45},
                {"id": "b", "name": "Beta", "priority": 2, "estimated_duration_minutes": 30, "idx": 1},
            ],
            start_date="2025-01-06",
            end_date="2025-01-06",
            workday_start_hour=9,
            workday_end_hour=17,
            lunch_start_hour=12,
            lunch_end_hour=13,
        )

        assert result.unscheduled_task_ids == []
        # Tasks with an idx are processed first
        assert times(result, "b") == ("09:00", "09:30")
        assert times(result, "a") == ("09:30", "10:15")

    def test_mixed_plan_invariants(self, scheduler):
        tasks = [
            make_task("Install tools", priority=1, minutes=45, idx=1, task_id="install"),
            make_task("Learn basics", priority=1, minutes=90, idx=2, task_id="learn"),
            make_task("Practice basics", priority=2, minutes=60, idx=3, task_id="practice"),
            make_task("Build prototype", priority=2, minutes=180, idx=4, task_id="build"),
            make_task("Test prototype", priority=3, minutes=120, idx=5, task_id="test"),
            make_task("Write documentation", priority=3, minutes=90, task_id="docs"),
            make_task("Final review", priority=4, minutes=60, task_id="review"),
            make_task("Plan launch", priority=4, minutes=30, task_id="plan"),
            make_task("Design logo", priority=2, minutes=120, task_id="logo"),
            make_task("Research competitors", priority=1, minutes=60, task_id="research"),
        ]
        options = make_options(
            end=FRIDAY,
            existing_schedules=[
                BusySlot(date=TUESDAY, start_time="09:00", end_time="10:00"),
                BusySlot(date=WEDNESDAY, start_time="13:00", end_time="15:00"),
            ],
        )

        result = scheduler.schedule(tasks, options)

        assert len(result.placements) + len(result.unscheduled_tasks) == len(tasks)
        assert_invariants(result, tasks, options)

    def test_long_idx_chain_in_reverse_order(self, scheduler):
        tasks = [
            make_task(f"Step {i}", priority=3, minutes=5, idx=i, task_id=f"step-{i}")
            for i in range(1500, 0, -1)
        ]
        options = make_options(end=date(2025, 3, 31))

        result = scheduler.schedule(tasks, options)

        assert result.dependencies["step-2"] == ["step-1"]
        assert result.dependencies["step-1"] == []
        assert len(result.placements) + len(result.unscheduled_tasks) == len(tasks)
        assert_invariants(result, tasks, options)


class TestFeasibility:
    def test_capacity_summary(self, scheduler):
        tasks = [make_task(f"Task {letter}", minutes=120, task_id=letter) for letter in "abc"]
        options = make_options(end=TUESDAY, current_time=datetime(2025, 1, 6, 14, 0))

        summary = scheduler.check_schedule_feasibility(tasks, options)

        assert summary["feasible"] is True
        assert summary["total_minutes"] == 360
        assert summary["capacity_minutes"] == 840
        assert summary["remaining_minutes_today"] == 180
        assert summary["days_needed"] == 1
        assert summary["capacity_usage_percent"] == 42

    def test_suggest_timeline_extension(self, scheduler):
        assert scheduler.suggest_timeline_extension([]) == ""

        single = scheduler.suggest_timeline_extension([make_task("Write report", minutes=90)])
        assert '"Write report"' in single
        assert "90" in single

        many = scheduler.suggest_timeline_extension(
            [make_task(f"Task {i}", task_id=f"t{i}") for i in range(5)]
        )
        assert "5 tasks" in many
        assert "2 more" in many
