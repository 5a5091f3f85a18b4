"""Task graph builder: TripInfo -> dependency-checked TaskList."""

from travel_agents.tasks.builder import build_task_list, needs_car_rental, needs_hotel
from travel_agents.tasks.dag import TaskDag

__all__ = ["build_task_list", "needs_car_rental", "needs_hotel", "TaskDag"]
