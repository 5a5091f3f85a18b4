"""
Tests for the orchestrator: wave dispatch, partial failure, cancellation
and the progress stream.

Agents are in-process handlers behind LocalAgentDispatcher, resolved
through a static registry.
"""

import asyncio
import json
from datetime import date

from travel_agents.shared.contracts import PlannerTask, TaskList, TaskMetadata, TripInfo
from travel_agents.shared.errors import DispatchError, TaskGraphCycleError
from travel_agents.planning.engine import PlanningEngine
from travel_agents.planning.extraction import KeywordTripInfoExtractor
from travel_agents.planning.graph.config import PlannerConfig
from travel_agents.planning.service import PlanningService
from travel_agents.registry.client import StaticAgentRegistry
from travel_agents.sessions.store import InMemoryConversationStore
from travel_agents.graph.build import summarize_round
from travel_agents.graph.config import OrchestratorConfig
from travel_agents.graph.dispatch import AgentResult, LocalAgentDispatcher
from travel_agents.graph.orchestrator import Orchestrator
from travel_agents.graph.state import TaskOutcome


COMPLETE_TRIP = "Fly from Boston to Rome on 2024-05-10 returning 2024-05-14 for 2 people"
ALL_AGENTS = {"air_tickets": "local", "hotels": "local", "car_rental": "local"}

TRIP = TripInfo(
    origin="Boston",
    destination="Rome",
    depart_date=date(2024, 5, 10),
    return_date=date(2024, 5, 14),
    num_travelers=2,
)


def _make_task(task_id: str, type_: str, agent: str, *dependencies: str) -> PlannerTask:
    return PlannerTask(
        id=task_id,
        type=type_,
        agent=agent,
        description=f"Book {type_}",
        query=f"Book {type_} for the trip",
        dependencies=tuple(dependencies),
        metadata=TaskMetadata(priority=1, estimated_time="5-8 minutes"),
    )


def _make_task_list(*tasks: PlannerTask) -> TaskList:
    return TaskList(
        trip_info=TRIP,
        tasks=tuple(tasks),
        reasoning="Built by hand",
        total_estimated_time="20 minutes",
    )


def _three_tasks(car_depends_on_flight: bool = True) -> TaskList:
    deps = ("task_1",) if car_depends_on_flight else ()
    return _make_task_list(
        _make_task("task_1", "airfare", "air_tickets"),
        _make_task("task_2", "hotel", "hotels"),
        _make_task("task_3", "car_rental", "car_rental", *deps),
    )


async def _ok(task, context_id):
    return f"{task.agent} booked"


async def _broken(task, context_id):
    raise DispatchError("no seats left")


def _make_orchestrator(clock, handlers, agent_urls=None, **config) -> Orchestrator:
    engine = PlanningEngine(KeywordTripInfoExtractor(), PlannerConfig(), clock=clock)
    service = PlanningService(engine, InMemoryConversationStore(clock=clock))
    return Orchestrator(
        planning=service,
        registry=StaticAgentRegistry(ALL_AGENTS if agent_urls is None else agent_urls),
        dispatcher=LocalAgentDispatcher(handlers),
        config=OrchestratorConfig(**config),
    )


def _collect(stream):
    async def main():
        return [event async for event in stream]

    return asyncio.run(main())


def _final_outcomes(events):
    assert events[-1].type == "final"
    return {task_id: TaskOutcome.model_validate(o) for task_id, o in events[-1].data["statuses"].items()}


# ============================================================================
# TestDispatchRound
# ============================================================================


class TestDispatchRound:
    """Tests for wave ordering, skipping and partial failure."""

    def test_all_succeed(self, clock):
        """Every task is dispatched and reported."""
        orchestrator = _make_orchestrator(
            clock, {"air_tickets": _ok, "hotels": _ok, "car_rental": _ok}
        )
        events = _collect(orchestrator.dispatch_round(_three_tasks(), "s1"))

        outcomes = _final_outcomes(events)
        assert {t: o.status for t, o in outcomes.items()} == {
            "task_1": "succeeded",
            "task_2": "succeeded",
            "task_3": "succeeded",
        }
        assert outcomes["task_1"].result == "air_tickets booked"
        assert events[-1].content.startswith("Dispatched 3 booking tasks: 3 succeeded")

    def test_dependency_runs_in_later_wave(self, clock):
        """A dependent task starts only after its dependency finished."""
        order = []

        async def recording(task, context_id):
            order.append(task.id)
            return "ok"

        orchestrator = _make_orchestrator(
            clock, {"air_tickets": recording, "hotels": recording, "car_rental": recording}
        )
        events = _collect(orchestrator.dispatch_round(_three_tasks(), "s1"))

        assert order[-1] == "task_3"
        waves = [e.content for e in events if e.type == "status"]
        assert waves == [
            "Dispatching wave 1 of 2: task_1, task_2",
            "Dispatching wave 2 of 2: task_3",
        ]

    def test_failed_dependency_skips_dependent(self, clock):
        """A failed flight skips the car rental but not the hotel."""
        calls = []

        async def car(task, context_id):
            calls.append(task.id)
            return "ok"

        orchestrator = _make_orchestrator(
            clock, {"air_tickets": _broken, "hotels": _ok, "car_rental": car}
        )
        events = _collect(orchestrator.dispatch_round(_three_tasks(), "s1"))

        outcomes = _final_outcomes(events)
        assert outcomes["task_1"].status == "failed"
        assert outcomes["task_1"].error == "no seats left"
        assert outcomes["task_2"].status == "succeeded"
        assert outcomes["task_3"].status == "skipped"
        assert outcomes["task_3"].error == "dependency task_1 failed"
        assert calls == []

    def test_unresolvable_agent_fails_task(self, clock):
        """A registry miss fails that task only."""
        orchestrator = _make_orchestrator(
            clock,
            {"air_tickets": _ok, "hotels": _ok},
            agent_urls={"air_tickets": "local", "hotels": "local"},
        )
        events = _collect(
            orchestrator.dispatch_round(_three_tasks(car_depends_on_flight=False), "s1")
        )

        outcomes = _final_outcomes(events)
        assert outcomes["task_3"].status == "failed"
        assert "car_rental" in outcomes["task_3"].error
        assert outcomes["task_1"].status == "succeeded"
        assert outcomes["task_2"].status == "succeeded"

    def test_unexpected_exception_is_contained(self, clock):
        """A crashing agent fails its task; siblings still complete."""

        async def crash(task, context_id):
            raise KeyError("confirmation")

        orchestrator = _make_orchestrator(
            clock, {"air_tickets": crash, "hotels": _ok, "car_rental": _ok}
        )
        events = _collect(
            orchestrator.dispatch_round(_three_tasks(car_depends_on_flight=False), "s1")
        )

        outcomes = _final_outcomes(events)
        assert outcomes["task_1"].status == "failed"
        assert outcomes["task_1"].error.startswith("KeyError")
        assert outcomes["task_2"].status == "succeeded"

    def test_agent_asking_for_input(self, clock):
        """An agent that needs more input is recorded as such."""

        async def needs_input(task, context_id):
            return AgentResult(content="Which hotel area?", requires_input=True)

        orchestrator = _make_orchestrator(clock, {"hotels": needs_input})
        task_list = _make_task_list(_make_task("task_1", "hotel", "hotels"))
        outcomes = _final_outcomes(_collect(orchestrator.dispatch_round(task_list, "s1")))

        assert outcomes["task_1"].status == "succeeded"
        assert outcomes["task_1"].requires_input is True

    def test_context_id_passed_to_agents(self, clock):
        """Agents receive the session id as their context."""
        seen = []

        async def recording(task, context_id):
            seen.append(context_id)
            return "ok"

        orchestrator = _make_orchestrator(clock, {"air_tickets": recording})
        task_list = _make_task_list(_make_task("task_1", "airfare", "air_tickets"))
        _collect(orchestrator.dispatch_round(task_list, "s1"))
        assert seen == ["s1"]

    def test_invalid_task_list_is_refused(self, clock):
        """A cyclic list is reported, nothing is dispatched."""
        orchestrator = _make_orchestrator(clock, {})
        task_list = _make_task_list(
            _make_task("task_1", "airfare", "air_tickets", "task_2"),
            _make_task("task_2", "hotel", "hotels", "task_1"),
        )
        events = _collect(orchestrator.dispatch_round(task_list, "s1"))

        assert [e.type for e in events] == ["error"]
        assert "cycle" in events[0].content

    def test_concurrency_bound(self, clock):
        """No more than max_concurrency tasks of a wave run at once."""

        def make_handlers():
            state = {"active": 0, "peak": 0}

            async def handler(task, context_id):
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                await asyncio.sleep(0.01)
                state["active"] -= 1
                return "ok"

            return state, {"air_tickets": handler, "hotels": handler, "car_rental": handler}

        for limit, expected_peak in ((2, 2), (1, 1)):
            state, handlers = make_handlers()
            orchestrator = _make_orchestrator(clock, handlers, max_concurrency=limit)
            _collect(
                orchestrator.dispatch_round(_three_tasks(car_depends_on_flight=False), "s1")
            )
            assert state["peak"] == expected_peak


# ============================================================================
# TestCancellation
# ============================================================================


class TestCancellation:
    """Tests for cancelling a round."""

    def test_cancelled_before_start(self, clock):
        """A round cancelled up front dispatches nothing."""
        calls = []

        async def handler(task, context_id):
            calls.append(task.id)
            return "ok"

        orchestrator = _make_orchestrator(
            clock, {"air_tickets": handler, "hotels": handler, "car_rental": handler}
        )

        async def main():
            cancel = asyncio.Event()
            cancel.set()
            return [e async for e in orchestrator.dispatch_round(_three_tasks(), "s1", cancel)]

        events = asyncio.run(main())

        assert calls == []
        assert [e.type for e in events] == ["final"]
        outcomes = _final_outcomes(events)
        assert all(o.status == "skipped" and o.error == "cancelled" for o in outcomes.values())

    def test_cancelled_mid_wave(self, clock):
        """In-flight results are discarded and later waves never start."""
        calls = []

        async def main():
            cancel = asyncio.Event()

            async def flight(task, context_id):
                calls.append(task.id)
                cancel.set()
                return "booked"

            async def hotel(task, context_id):
                calls.append(task.id)
                await asyncio.sleep(0.05)
                return "booked"

            orchestrator = _make_orchestrator(
                clock, {"air_tickets": flight, "hotels": hotel, "car_rental": _ok}
            )
            return [e async for e in orchestrator.dispatch_round(_three_tasks(), "s1", cancel)]

        events = asyncio.run(main())

        assert "task_3" not in calls
        assert not [e for e in events if e.type == "task_finished"]
        outcomes = _final_outcomes(events)
        assert {t: (o.status, o.error) for t, o in outcomes.items()} == {
            "task_1": ("skipped", "cancelled"),
            "task_2": ("skipped", "cancelled"),
            "task_3": ("skipped", "cancelled"),
        }


# ============================================================================
# TestOrchestratorTurn
# ============================================================================


class TestOrchestratorTurn:
    """Tests for whole turns: planning, then dispatch."""

    def test_event_sequence(self, clock):
        """A completing turn streams status, planning, task and final events."""
        orchestrator = _make_orchestrator(clock, {"air_tickets": _ok, "hotels": _ok})
        events = _collect(orchestrator.handle_turn(COMPLETE_TRIP, "s1"))

        types = [e.type for e in events]
        assert types[:3] == ["status", "planning_complete", "status"]
        assert types[-1] == "final"
        assert types.count("task_started") == 2
        assert types.count("task_finished") == 2
        assert events[1].content.startswith("Planning complete! Found 2 tasks to execute.")
        assert all(e.context_id == "s1" for e in events[1:])

        started = [e for e in events if e.type == "task_started"]
        assert started[0].content == "Executing: air_tickets - Book flight tickets"

    def test_input_required_stops_before_dispatch(self, clock):
        """Nothing is dispatched while planning still needs answers."""
        orchestrator = _make_orchestrator(clock, {})
        result = asyncio.run(orchestrator.run_turn("I want to visit Paris"))

        assert result.status == "input_required"
        assert result.context_id
        assert result.planner_response["field"] == "origin"
        assert result.round is None
        assert [e.type for e in result.events] == ["status", "input_required"]

    def test_run_turn_completed(self, clock):
        """run_turn collects the round result."""
        orchestrator = _make_orchestrator(clock, {"air_tickets": _ok, "hotels": _broken})
        result = asyncio.run(orchestrator.run_turn(COMPLETE_TRIP, "s1"))

        assert result.status == "completed"
        assert result.context_id == "s1"
        assert result.planner_response["status"] == "completed"
        assert result.round.count("succeeded") == 1
        assert result.round.count("failed") == 1
        assert result.round.task_list.task_ids() == ["task_1", "task_2"]

    def test_planning_failure_is_an_error_event(self, clock, monkeypatch):
        """A fatal planning error ends the stream with an error event."""

        def _broken_builder(trip_info):
            raise TaskGraphCycleError(["task_1"])

        monkeypatch.setattr(
            "travel_agents.planning.nodes.output.build_task_list", _broken_builder
        )
        orchestrator = _make_orchestrator(clock, {})
        result = asyncio.run(orchestrator.run_turn(COMPLETE_TRIP, "s1"))

        assert result.status == "error"
        assert result.events[-1].content.startswith("Planning failed:")
        assert result.planner_response is None

    def test_events_serialize(self, clock):
        """Every event is valid JSON on the wire."""
        orchestrator = _make_orchestrator(clock, {"air_tickets": _ok, "hotels": _ok})
        for event in _collect(orchestrator.handle_turn(COMPLETE_TRIP, "s1")):
            assert json.loads(event.model_dump_json(exclude_none=True))["type"] == event.type


class TestSummarizeRound:
    """Tests for the round summary text."""

    def test_lines(self):
        """Totals first, then one line per task with its reason."""
        task_list = _three_tasks()
        summary = summarize_round(
            task_list,
            {
                "task_1": TaskOutcome(status="failed", error="no seats left"),
                "task_2": TaskOutcome(status="succeeded", result="ok"),
                "task_3": TaskOutcome(status="skipped", error="dependency task_1 failed"),
            },
        )
        assert summary.splitlines() == [
            "Dispatched 3 booking tasks: 1 succeeded, 1 failed, 1 skipped.",
            "- task_1 (air_tickets): failed (no seats left)",
            "- task_2 (hotels): succeeded",
            "- task_3 (car_rental): skipped (dependency task_1 failed)",
        ]
