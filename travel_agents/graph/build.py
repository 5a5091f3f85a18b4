"""
Dispatch graph construction.

Builds the graph that runs a completed TaskList against the booking
agents, one topological wave at a time. Tasks inside a wave are
independent and go out concurrently; a task whose dependency did not
succeed is skipped instead of attempted. A per-task failure never aborts
its siblings.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from langgraph.graph import StateGraph, END

from travel_agents.shared.contracts import PlannerTask, TaskList
from travel_agents.shared.errors import TravelAgentError
from travel_agents.registry.client import AgentRegistry
from travel_agents.graph.config import OrchestratorConfig, DEFAULT_CONFIG
from travel_agents.graph.dispatch import AgentDispatcher
from travel_agents.graph.router import route_next_wave
from travel_agents.graph.state import (
    CANCELLED_REASON,
    FAILED,
    SKIPPED,
    SUCCEEDED,
    DispatchState,
    ProgressEvent,
    RoundResult,
    TaskOutcome,
)


logger = logging.getLogger(__name__)


def _finished_event(state: DispatchState, task_id: str, outcome: TaskOutcome) -> ProgressEvent:
    detail = outcome.error if outcome.status != SUCCEEDED else outcome.result
    return ProgressEvent(
        type="task_finished",
        content=f"{task_id} {outcome.status}" + (f": {detail}" if detail else ""),
        context_id=state.get("context_id"),
        task_id=task_id,
        data=outcome.model_dump(),
    )


def make_dispatch_wave_node(
    registry: AgentRegistry,
    dispatcher: AgentDispatcher,
    config: OrchestratorConfig,
    background: Set[asyncio.Future],
):
    """
    Create the node that runs the next wave of tasks.

    Args:
        registry: Resolves each task's capability to an agent endpoint
        dispatcher: Sends the task to the agent
        config: Concurrency bound for the wave
        background: Receives in-flight dispatches abandoned by a cancelled
            round, so they can run to completion

    Returns:
        Async node function for the dispatch graph
    """

    async def dispatch_wave(state: DispatchState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        wave = state["wave"]
        layer = state["layers"][wave]
        task_list: TaskList = state["task_list"]
        cancel_event: asyncio.Event = state["cancel_event"]
        emit = state["emit"]
        context_id = state.get("context_id")
        outcomes: Dict[str, TaskOutcome] = dict(state["outcomes"])
        _log = f"[session={session_id}] [graph=dispatch] [node=dispatch_wave] "

        logger.info(f"{_log}Entering node | wave={wave + 1}/{len(state['layers'])}, tasks={layer}")
        emit(
            ProgressEvent(
                type="status",
                content=f"Dispatching wave {wave + 1} of {len(state['layers'])}: {', '.join(layer)}",
                context_id=context_id,
            )
        )

        runnable: List[PlannerTask] = []
        for task_id in layer:
            task = task_list.get_task(task_id)
            blocked = [dep for dep in task.dependencies if outcomes[dep].status != SUCCEEDED]
            if blocked:
                dep = blocked[0]
                outcome = TaskOutcome(
                    status=SKIPPED, error=f"dependency {dep} {outcomes[dep].status}"
                )
                outcomes[task_id] = outcome
                logger.info(f"{_log}Skipping {task_id} | {outcome.error}")
                emit(_finished_event(state, task_id, outcome))
                continue
            runnable.append(task)

        semaphore = asyncio.Semaphore(config.max_concurrency)

        async def run_task(task: PlannerTask) -> TaskOutcome:
            async with semaphore:
                if cancel_event.is_set():
                    return TaskOutcome(status=SKIPPED, error=CANCELLED_REASON)

                emit(
                    ProgressEvent(
                        type="task_started",
                        content=f"Executing: {task.agent} - {task.description}",
                        context_id=context_id,
                        task_id=task.id,
                    )
                )
                try:
                    endpoint = await registry.resolve(task.agent)
                    reply = await dispatcher.dispatch(endpoint, task, context_id)
                except TravelAgentError as e:
                    logger.warning(f"{_log}Task {task.id} failed | {type(e).__name__}: {e}")
                    outcome = TaskOutcome(status=FAILED, error=str(e))
                except Exception as e:
                    logger.exception(f"{_log}Task {task.id} crashed: {e}")
                    outcome = TaskOutcome(status=FAILED, error=f"{type(e).__name__}: {e}")
                else:
                    outcome = TaskOutcome(
                        status=SUCCEEDED,
                        result=reply.content,
                        requires_input=reply.requires_input,
                    )

            # A cancelled round discards whatever is still in flight
            if not cancel_event.is_set():
                emit(_finished_event(state, task.id, outcome))
            return outcome

        in_flight = {task.id: asyncio.ensure_future(run_task(task)) for task in runnable}
        if not in_flight:
            return {"outcomes": outcomes, "wave": wave + 1}

        gathered = asyncio.gather(*(asyncio.shield(f) for f in in_flight.values()))
        cancel_waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({gathered, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            _detach(in_flight.values(), background)
            raise
        finally:
            cancel_waiter.cancel()

        if gathered.done() and not gathered.cancelled():
            for task_id, outcome in zip(in_flight, gathered.result()):
                outcomes[task_id] = outcome
            if not cancel_event.is_set():
                logger.info(
                    f"{_log}Wave finished | "
                    + ", ".join(f"{tid}={outcomes[tid].status}" for tid in layer)
                )
                return {"outcomes": outcomes, "wave": wave + 1}

        # Cancelled mid-wave: let in-flight dispatches finish, drop their results
        gathered.cancel()
        _detach(in_flight.values(), background)
        for task_id in in_flight:
            outcomes[task_id] = TaskOutcome(status=SKIPPED, error=CANCELLED_REASON)
        logger.info(f"{_log}Round cancelled during wave {wave + 1} | in_flight={list(in_flight)}")
        return {"outcomes": outcomes, "wave": len(state["layers"])}

    return dispatch_wave


def _detach(futures, background: Set[asyncio.Future]) -> None:
    for future in futures:
        if not future.done():
            background.add(future)
            future.add_done_callback(background.discard)


def summarize_round(task_list: TaskList, statuses: Dict[str, TaskOutcome]) -> str:
    """One line of totals, then one line per task."""
    counts = {SUCCEEDED: 0, FAILED: 0, SKIPPED: 0}
    for outcome in statuses.values():
        counts[outcome.status] += 1

    lines = [
        f"Dispatched {len(task_list.tasks)} booking tasks: "
        f"{counts[SUCCEEDED]} succeeded, {counts[FAILED]} failed, {counts[SKIPPED]} skipped."
    ]
    for task in task_list.tasks:
        outcome = statuses[task.id]
        line = f"- {task.id} ({task.agent}): {outcome.status}"
        if outcome.status != SUCCEEDED and outcome.error:
            line += f" ({outcome.error})"
        elif outcome.requires_input:
            line += " (agent needs more input)"
        lines.append(line)
    return "\n".join(lines)


def aggregate_node(state: DispatchState) -> Dict[str, Any]:
    """
    Final node: every task gets a status and the round result is assembled.

    Tasks never reached (the round was cancelled first) are skipped.
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=dispatch] [node=aggregate] "
    task_list: TaskList = state["task_list"]

    outcomes = dict(state["outcomes"])
    for task in task_list.tasks:
        if task.id not in outcomes:
            outcomes[task.id] = TaskOutcome(status=SKIPPED, error=CANCELLED_REASON)

    statuses = {task.id: outcomes[task.id] for task in task_list.tasks}
    result = RoundResult(
        task_list=task_list,
        statuses=statuses,
        summary=summarize_round(task_list, statuses),
    )

    logger.info(
        f"{_log}Round complete | succeeded={result.count(SUCCEEDED)}, "
        f"failed={result.count(FAILED)}, skipped={result.count(SKIPPED)} -> END"
    )
    return {"outcomes": outcomes, "result": result}


def create_dispatch_graph(
    registry: AgentRegistry,
    dispatcher: AgentDispatcher,
    config: Optional[OrchestratorConfig] = None,
    background: Optional[Set[asyncio.Future]] = None,
):
    """
    Create and compile the dispatch graph.

    The graph structure is:
        Entry -> route_next_wave
          -> "dispatch_wave" -> dispatch_wave -> route_next_wave
          -> "aggregate"     -> aggregate     -> END

    Returns:
        Compiled LangGraph application ready for execution.
    """
    if config is None:
        config = DEFAULT_CONFIG
    if background is None:
        background = set()

    graph = StateGraph(DispatchState)

    graph.add_node("dispatch_wave", make_dispatch_wave_node(registry, dispatcher, config, background))
    graph.add_node("aggregate", aggregate_node)

    graph.set_conditional_entry_point(
        route_next_wave,
        {
            "dispatch_wave": "dispatch_wave",
            "aggregate": "aggregate",
        },
    )
    graph.add_conditional_edges(
        "dispatch_wave",
        route_next_wave,
        {
            "dispatch_wave": "dispatch_wave",
            "aggregate": "aggregate",
        },
    )
    graph.add_edge("aggregate", END)

    return graph.compile()
