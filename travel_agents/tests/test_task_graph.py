"""
Tests for the task graph builder and the dependency graph checks.
"""

from datetime import date

import pytest

from travel_agents.shared.contracts import PlannerTask, TaskMetadata, TripInfo
from travel_agents.shared.errors import TaskGraphCycleError, TaskGraphError
from travel_agents.tasks.builder import (
    build_task_list,
    format_total_time,
    parse_estimated_minutes,
)
from travel_agents.tasks.dag import TaskDag
from travel_agents.tasks.queries import hotel_budget_per_night


def _make_trip(**overrides) -> TripInfo:
    fields = {
        "origin": "Boston",
        "destination": "Rome",
        "depart_date": date(2024, 5, 10),
        "return_date": date(2024, 5, 14),
        "num_travelers": 2,
    }
    fields.update(overrides)
    return TripInfo(**fields)


def _make_task(task_id: str, *dependencies: str) -> PlannerTask:
    return PlannerTask(
        id=task_id,
        type="airfare",
        agent="air_tickets",
        description=f"Task {task_id}",
        query="Book something",
        dependencies=tuple(dependencies),
        metadata=TaskMetadata(priority=1, estimated_time="10-15 minutes"),
    )


# ============================================================================
# TestBuildTaskList
# ============================================================================


class TestBuildTaskList:
    """Tests for the generation rules in build_task_list()."""

    def test_round_trip_gets_flight_and_hotel(self):
        """Overnight round trips book a flight and a hotel."""
        task_list = build_task_list(_make_trip())
        assert [t.type for t in task_list.tasks] == ["airfare", "hotel"]
        assert [t.agent for t in task_list.tasks] == ["air_tickets", "hotels"]
        assert [t.metadata.priority for t in task_list.tasks] == [1, 2]

    def test_ids_are_sequential(self):
        """Task ids are task_1..task_n in list order."""
        task_list = build_task_list(_make_trip(car_type="suv"))
        assert task_list.task_ids() == ["task_1", "task_2", "task_3"]

    def test_one_way_trip_is_airfare_only(self):
        """Without a return date no hotel is planned."""
        task_list = build_task_list(_make_trip(return_date=None))
        assert [t.type for t in task_list.tasks] == ["airfare"]
        assert "one-way" in task_list.tasks[0].query
        assert "No return date was given" in task_list.reasoning

    def test_day_trip_has_no_hotel(self):
        """Same-day return means zero nights and no hotel."""
        task_list = build_task_list(_make_trip(return_date=date(2024, 5, 10)))
        assert [t.type for t in task_list.tasks] == ["airfare"]
        assert "day trip" in task_list.reasoning

    def test_single_night_gets_hotel(self):
        """One night is enough for a hotel."""
        task_list = build_task_list(_make_trip(return_date=date(2024, 5, 11)))
        assert [t.type for t in task_list.tasks] == ["airfare", "hotel"]
        assert "(1 night)" in task_list.tasks[1].query

    def test_car_rental_when_requested(self):
        """An explicit request adds the car rental task."""
        task_list = build_task_list(_make_trip(needs_car_rental=True))
        assert task_list.tasks[-1].type == "car_rental"
        assert task_list.tasks[-1].metadata.priority == 3

    def test_car_preference_implies_rental(self):
        """A car type without an explicit answer still adds a rental."""
        task_list = build_task_list(_make_trip(car_type="suv"))
        assert task_list.tasks[-1].type == "car_rental"
        assert "Car type: suv" in task_list.tasks[-1].query

    def test_declined_car_wins_over_preferences(self):
        """An explicit 'no car' beats a stated car type."""
        task_list = build_task_list(_make_trip(needs_car_rental=False, car_type="suv"))
        assert "car_rental" not in [t.type for t in task_list.tasks]
        assert "you said you don't need one" in task_list.reasoning

    def test_no_dependencies_between_bookings(self):
        """All generated tasks can run in the first wave."""
        task_list = build_task_list(_make_trip(needs_car_rental=True))
        assert all(t.dependencies == () for t in task_list.tasks)
        assert TaskDag(task_list.tasks).layers() == [["task_1", "task_2", "task_3"]]

    def test_missing_required_field(self):
        """An incomplete TripInfo cannot be turned into tasks."""
        with pytest.raises(TaskGraphError):
            build_task_list(_make_trip(num_travelers=None))

    def test_deterministic(self):
        """The same TripInfo always yields the same TaskList."""
        trip = _make_trip(budget=2000, trip_type="leisure", needs_car_rental=True)
        assert build_task_list(trip) == build_task_list(trip)

    def test_queries_carry_trip_facts(self):
        """Queries include places, dates and party size."""
        task_list = build_task_list(_make_trip(cabin_class="business"))
        flight = task_list.tasks[0].query
        assert "round-trip" in flight
        assert "2 passengers from Boston to Rome" in flight
        assert "2024-05-10" in flight and "2024-05-14" in flight
        assert "Cabin class: business" in flight
        assert "check-out 2024-05-14 (4 nights)" in task_list.tasks[1].query

    def test_hotel_budget_per_night(self):
        """40% of the budget is spread over the nights."""
        trip = _make_trip(budget=2000)
        assert hotel_budget_per_night(trip) == 200
        task_list = build_task_list(trip)
        assert "Budget: $200 per night" in task_list.tasks[1].query
        assert "Budget: $2,000 total" in task_list.tasks[0].query


# ============================================================================
# TestTotalTime
# ============================================================================


class TestTotalTime:
    """Tests for the aggregate time estimate."""

    def test_parse_midpoint(self):
        """Ranges are reduced to their mid-point in minutes."""
        assert parse_estimated_minutes("10-15 minutes") == 12.5
        assert parse_estimated_minutes("1-2 hours") == 90
        assert parse_estimated_minutes("soon") == 10.0

    def test_airfare_only(self):
        """12.5 minutes rounds half up."""
        assert build_task_list(_make_trip(return_date=None)).total_estimated_time == "13 minutes"

    def test_flight_and_hotel(self):
        """12.5 + 10 rounds to 23."""
        assert build_task_list(_make_trip()).total_estimated_time == "23 minutes"

    def test_all_three(self):
        """12.5 + 10 + 6.5 is 29."""
        task_list = build_task_list(_make_trip(needs_car_rental=True))
        assert task_list.total_estimated_time == "29 minutes"

    def test_hours_format(self):
        """Totals of an hour or more switch to hours."""
        tasks = [
            _make_task("a").model_copy(
                update={"metadata": TaskMetadata(priority=1, estimated_time="1-2 hours")}
            )
        ]
        assert format_total_time(tasks) == "1 hours 30 minutes"


# ============================================================================
# TestTaskDag
# ============================================================================


class TestTaskDag:
    """Tests for TaskDag validation and layering."""

    def test_layers(self):
        """Dependents land in a later wave."""
        dag = TaskDag([_make_task("t1"), _make_task("t2", "t1"), _make_task("t3")])
        assert dag.layers() == [["t1", "t3"], ["t2"]]
        assert dag.topological_order() == ["t1", "t3", "t2"]

    def test_ready(self):
        """Tasks become ready once their dependencies are done."""
        dag = TaskDag([_make_task("t1"), _make_task("t2", "t1")])
        assert dag.ready(done=[], pending=["t1", "t2"]) == ["t1"]
        assert dag.ready(done=["t1"], pending=["t2"]) == ["t2"]

    def test_cycle(self):
        """Mutual dependencies are a cycle."""
        with pytest.raises(TaskGraphCycleError) as exc:
            TaskDag([_make_task("t1", "t2"), _make_task("t2", "t1")])
        assert exc.value.task_ids == ["t1", "t2"]

    def test_self_dependency(self):
        """A task depending on itself is a cycle."""
        with pytest.raises(TaskGraphCycleError):
            TaskDag([_make_task("t1", "t1")])

    def test_unknown_dependency(self):
        """Dependencies must name tasks in the list."""
        with pytest.raises(TaskGraphError) as exc:
            TaskDag([_make_task("t1", "t9")])
        assert "unknown task 't9'" in str(exc.value)

    def test_duplicate_id(self):
        """Task ids must be unique."""
        with pytest.raises(TaskGraphError):
            TaskDag([_make_task("t1"), _make_task("t1")])

    def test_forward_reference(self):
        """A dependency on a later task is rejected without being a cycle."""
        with pytest.raises(TaskGraphError) as exc:
            TaskDag([_make_task("t1", "t2"), _make_task("t2")])
        assert not isinstance(exc.value, TaskGraphCycleError)
        assert "before it is defined" in str(exc.value)
