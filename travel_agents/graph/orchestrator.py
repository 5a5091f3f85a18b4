"""
Orchestrator.

Drives the planning engine for each turn and, once a round completes,
runs its TaskList through the dispatch graph. Progress is streamed as
ProgressEvents while the round runs; ``run_turn`` collects the stream
into one result for callers that do not stream.
"""

import asyncio
import logging
from typing import AsyncIterator, List, Literal, Optional, Set

import httpx
from pydantic import BaseModel, Field

from travel_agents.shared.clock import Clock
from travel_agents.shared.contracts import TaskList
from travel_agents.shared.errors import TaskGraphError, TravelAgentError
from travel_agents.planning.service import PlanningService
from travel_agents.registry.client import (
    AgentRegistry,
    CachingAgentRegistry,
    ChainedAgentRegistry,
    DirectoryAgentRegistry,
    StaticAgentRegistry,
)
from travel_agents.tasks.dag import TaskDag
from travel_agents.graph.build import create_dispatch_graph
from travel_agents.graph.config import OrchestratorConfig, DEFAULT_CONFIG
from travel_agents.graph.dispatch import AgentDispatcher, HttpAgentDispatcher
from travel_agents.graph.state import DispatchState, ProgressEvent, RoundResult


logger = logging.getLogger(__name__)


class OrchestratorTurnResult(BaseModel):
    """A whole orchestrator turn, collected from its progress stream."""

    context_id: Optional[str] = None
    status: Literal["input_required", "completed", "error"]
    planner_response: Optional[dict] = Field(
        default=None, description="The planning engine's response for this turn"
    )
    round: Optional[RoundResult] = Field(
        default=None, description="Per-task outcomes when the round was dispatched"
    )
    events: List[ProgressEvent] = Field(default_factory=list)


def build_registry(
    config: OrchestratorConfig,
    clock: Optional[Clock] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> CachingAgentRegistry:
    """
    Static mapping first, then the remote directory (when configured),
    behind a TTL cache with retries.
    """
    registries: List[AgentRegistry] = []
    if config.agent_urls:
        registries.append(StaticAgentRegistry(config.agent_urls))
    if config.directory_url:
        registries.append(DirectoryAgentRegistry(config.directory_url, http_client=http_client))

    inner = registries[0] if len(registries) == 1 else ChainedAgentRegistry(*registries)
    return CachingAgentRegistry(
        inner,
        clock=clock,
        ttl_seconds=config.registry_cache_ttl_seconds,
        max_attempts=config.registry_max_attempts,
        retry_min_wait=config.registry_retry_min_wait,
        retry_max_wait=config.registry_retry_max_wait,
    )


class Orchestrator:
    """Planning turn plus dispatch round, streamed as progress events."""

    def __init__(
        self,
        planning: PlanningService,
        registry: AgentRegistry,
        dispatcher: Optional[AgentDispatcher] = None,
        config: Optional[OrchestratorConfig] = None,
    ):
        self.planning = planning
        self.registry = registry
        self.config = config or DEFAULT_CONFIG
        self.dispatcher = dispatcher or HttpAgentDispatcher(
            timeout_seconds=self.config.dispatch_timeout_seconds
        )
        self._background: Set[asyncio.Future] = set()
        self._graph = create_dispatch_graph(
            self.registry, self.dispatcher, self.config, self._background
        )

    async def handle_turn(
        self,
        query: str,
        context_id: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Run one turn and stream its progress.

        Args:
            query: The user's message
            context_id: Existing session id, or None to start a new session
            cancel_event: Set it (e.g. on client disconnect) to stop dispatching
                further tasks; closing the stream early sets it as well

        Yields:
            ProgressEvents, ending with ``input_required``, ``final`` or ``error``
        """
        cancel_event = cancel_event or asyncio.Event()
        _log = f"[session={context_id or 'new'}] [graph=orchestrator] "

        yield ProgressEvent(type="status", content="Processing your request...", context_id=context_id)

        try:
            turn = await self.planning.handle_turn(query, context_id)
        except TravelAgentError as e:
            logger.exception(f"{_log}Planning turn failed: {e}")
            yield ProgressEvent(
                type="error", content=f"Planning failed: {e}", context_id=context_id
            )
            return

        response = turn.response
        context_id = response.context_id
        payload = response.model_dump(by_alias=True, mode="json")
        _log = f"[session={context_id}] [graph=orchestrator] "
        logger.info(f"{_log}Planner answered | status={response.status}")

        if response.status == "input_required":
            yield ProgressEvent(
                type="input_required", content=response.question, context_id=context_id, data=payload
            )
            return

        if response.status == "error":
            yield ProgressEvent(type="error", content=response.message, context_id=context_id, data=payload)
            return

        task_list: TaskList = response.data
        yield ProgressEvent(
            type="planning_complete",
            content=(
                f"Planning complete! Found {len(task_list.tasks)} tasks to execute. "
                "Starting task execution..."
            ),
            context_id=context_id,
            data=payload,
        )

        async for event in self.dispatch_round(task_list, context_id, cancel_event):
            yield event

    async def dispatch_round(
        self,
        task_list: TaskList,
        context_id: Optional[str],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Dispatch a completed TaskList wave by wave.

        Yields task_started / task_finished events as they happen and a
        final event carrying the RoundResult.
        """
        cancel_event = cancel_event or asyncio.Event()
        _log = f"[session={context_id}] [graph=orchestrator] "

        try:
            layers = TaskDag(task_list.tasks).layers()
        except TaskGraphError as e:
            logger.error(f"{_log}Refusing to dispatch invalid task list: {e}")
            yield ProgressEvent(type="error", content=str(e), context_id=context_id)
            return

        queue: asyncio.Queue = asyncio.Queue()
        state: DispatchState = {
            "session_id": context_id or "none",
            "context_id": context_id,
            "task_list": task_list,
            "layers": layers,
            "wave": 0,
            "outcomes": {},
            "cancel_event": cancel_event,
            "emit": queue.put_nowait,
            "result": None,
        }

        logger.info(f"{_log}Dispatch round starting | tasks={len(task_list.tasks)}, waves={len(layers)}")
        run = asyncio.ensure_future(
            self._graph.ainvoke(state, config={"recursion_limit": len(layers) + 5})
        )
        try:
            while True:
                getter = asyncio.ensure_future(queue.get())
                done, _ = await asyncio.wait({run, getter}, return_when=asyncio.FIRST_COMPLETED)
                if getter in done:
                    yield getter.result()
                    continue
                getter.cancel()
                break

            while not queue.empty():
                yield queue.get_nowait()

            try:
                final_state = run.result()
            except Exception as e:
                logger.exception(f"{_log}Dispatch round failed: {e}")
                yield ProgressEvent(
                    type="error", content=f"Task execution failed: {e}", context_id=context_id
                )
                return
        finally:
            if not run.done():
                # Stream closed early: stop further waves, let in-flight work finish
                logger.info(f"{_log}Stream closed before the round finished, cancelling")
                cancel_event.set()
                self._background.add(run)
                run.add_done_callback(self._background.discard)

        result: RoundResult = final_state["result"]
        yield ProgressEvent(
            type="final",
            content=result.summary,
            context_id=context_id,
            data=result.model_dump(by_alias=True, mode="json"),
        )

    async def run_turn(
        self, query: str, context_id: Optional[str] = None
    ) -> OrchestratorTurnResult:
        """Run a turn to completion and collect its stream."""
        events: List[ProgressEvent] = []
        async for event in self.handle_turn(query, context_id):
            events.append(event)

        last = events[-1]
        planner_event = next(
            (
                e
                for e in events
                if e.type in ("input_required", "planning_complete")
                or (e.type == "error" and e.data)
            ),
            None,
        )
        planner_response = planner_event.data if planner_event is not None else None

        if last.type == "final":
            status = "completed"
            round_result = RoundResult.model_validate(last.data)
        else:
            status = "input_required" if last.type == "input_required" else "error"
            round_result = None

        return OrchestratorTurnResult(
            context_id=last.context_id,
            status=status,
            planner_response=planner_response,
            round=round_result,
            events=events,
        )
