"""
Planner response contract.

Every planning turn (conversational or quick-plan) answers with exactly one
of three shapes, discriminated by ``status``.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from travel_agents.shared.contracts.task_list import TaskList
from travel_agents.shared.contracts.trip_info import TripInfo


class _ResponseBase(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    context_id: Optional[str] = Field(
        default=None,
        alias="context_id",
        description="Session the response belongs to (absent for quick plans)",
    )


class InputRequiredResponse(_ResponseBase):
    """More information is needed before a plan can be produced."""

    status: Literal["input_required"] = "input_required"
    question: str = Field(description="The single highest-priority clarifying question")
    field: Optional[str] = Field(default=None, description="TripInfo field the question fills")
    trip_info_so_far: TripInfo = Field(default_factory=TripInfo)


class CompletedResponse(_ResponseBase):
    """Planning finished; the task list is ready for dispatch."""

    status: Literal["completed"] = "completed"
    data: TaskList


class ErrorResponse(_ResponseBase):
    """The turn could not be processed; the session was reset."""

    status: Literal["error"] = "error"
    message: str
    error: Optional[str] = Field(default=None, description="Diagnostic detail")


PlannerResponse = Annotated[
    Union[InputRequiredResponse, CompletedResponse, ErrorResponse],
    Field(discriminator="status"),
]

planner_response_adapter = TypeAdapter(PlannerResponse)
