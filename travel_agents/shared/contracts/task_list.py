"""
Planner output contract.

Defines the task list the planning engine hands to the orchestrator once a
conversation has gathered enough trip facts. Tasks and task lists are frozen:
a new planning round produces a new TaskList rather than mutating one.
"""

from typing import List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from travel_agents.shared.contracts.trip_info import TripInfo


TaskType = Literal["airfare", "hotel", "car_rental"]


class TaskMetadata(BaseModel):
    """Scheduling hints attached to a task."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    priority: int = Field(ge=1, description="1 is dispatched first")
    estimated_time: str = Field(description="Range such as '10-15 minutes'")
    requires_user_input: bool = Field(default=False)


class PlannerTask(BaseModel):
    """One unit of delegated booking work."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(description="Task identifier, unique within a task list")
    type: TaskType = Field(description="Booking domain")
    agent: str = Field(description="Capability name resolved through the agent registry")
    description: str = Field(description="Human-readable summary")
    query: str = Field(description="Natural-language request sent to the agent")
    dependencies: Tuple[str, ...] = Field(
        default=(), description="Ids of tasks that must succeed first"
    )
    metadata: TaskMetadata


class TaskList(BaseModel):
    """
    Complete planning output.

    Carries the finalized TripInfo, the ordered tasks, an audit-trail
    narrative and the aggregate time estimate.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    trip_info: TripInfo
    tasks: Tuple[PlannerTask, ...] = Field(default=())
    reasoning: str = Field(description="Which generation rules fired and why")
    total_estimated_time: str

    def task_ids(self) -> List[str]:
        return [task.id for task in self.tasks]

    def get_task(self, task_id: str) -> PlannerTask:
        for task in self.tasks:
            if task.id == task_id:
                return task
        raise KeyError(task_id)
