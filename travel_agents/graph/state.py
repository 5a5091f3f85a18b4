"""
Orchestrator state schema.

Defines the per-task outcome records, the aggregated round result, the
progress events streamed to the client, and the state that flows through
the dispatch graph.
"""

import asyncio
from typing import TypedDict, Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from travel_agents.shared.contracts import TaskList


TaskStatus = Literal["succeeded", "failed", "skipped"]

SUCCEEDED: TaskStatus = "succeeded"
FAILED: TaskStatus = "failed"
SKIPPED: TaskStatus = "skipped"

CANCELLED_REASON = "cancelled"

EventType = Literal[
    "status",
    "input_required",
    "planning_complete",
    "task_started",
    "task_finished",
    "final",
    "error",
]


class TaskOutcome(BaseModel):
    """What happened to one task in a dispatch round."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: TaskStatus
    result: Optional[str] = Field(default=None, description="Agent reply content")
    error: Optional[str] = Field(default=None, description="Failure or skip reason")
    requires_input: bool = Field(
        default=False, description="The agent asked the traveler for more input"
    )


class RoundResult(BaseModel):
    """Aggregated result of one completed planning round."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    task_list: TaskList
    statuses: Dict[str, TaskOutcome] = Field(default_factory=dict)
    summary: str = ""

    def count(self, status: TaskStatus) -> int:
        return sum(1 for outcome in self.statuses.values() if outcome.status == status)


class ProgressEvent(BaseModel):
    """One line of the orchestrator's progress stream."""

    model_config = ConfigDict(populate_by_name=True)

    type: EventType
    content: str = ""
    context_id: Optional[str] = None
    task_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class DispatchState(TypedDict):
    """
    State schema for the dispatch graph.

    ``layers`` holds the topological waves of task ids; ``wave`` is the
    index of the next one to run. ``emit`` pushes progress events to the
    stream while the graph is still running.
    """

    session_id: str
    context_id: Optional[str]
    task_list: TaskList
    layers: List[List[str]]
    wave: int
    outcomes: Dict[str, TaskOutcome]
    cancel_event: asyncio.Event
    emit: Callable[[ProgressEvent], None]
    result: Optional[RoundResult]
