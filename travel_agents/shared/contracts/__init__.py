"""Agent contracts for planner/orchestrator handoffs."""

from travel_agents.shared.contracts.trip_info import TripInfo, REQUIRED_FIELDS
from travel_agents.shared.contracts.task_list import PlannerTask, TaskList, TaskMetadata
from travel_agents.shared.contracts.responses import (
    CompletedResponse,
    ErrorResponse,
    InputRequiredResponse,
    PlannerResponse,
)
from travel_agents.shared.contracts.agent_card import AgentCard, build_planner_card

__all__ = [
    "TripInfo",
    "REQUIRED_FIELDS",
    "PlannerTask",
    "TaskList",
    "TaskMetadata",
    "CompletedResponse",
    "ErrorResponse",
    "InputRequiredResponse",
    "PlannerResponse",
    "AgentCard",
    "build_planner_card",
]
