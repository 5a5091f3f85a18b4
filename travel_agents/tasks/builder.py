"""
Task graph builder.

Deterministic TripInfo -> TaskList conversion:

1. Airfare is always generated, priority 1, no dependencies.
2. Hotel is generated when the trip has at least one overnight stay,
   priority 2, no dependencies (runs alongside airfare).
3. Car rental is generated when requested or implied by car preferences,
   priority 3, no dependencies.

The result is validated as a DAG before it is returned.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from travel_agents.shared.contracts import PlannerTask, TaskList, TaskMetadata, TripInfo
from travel_agents.shared.errors import TaskGraphError
from travel_agents.tasks.dag import TaskDag
from travel_agents.tasks.queries import (
    build_airfare_query,
    build_car_rental_query,
    build_hotel_query,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskRule:
    """Static attributes of one task type."""

    type: str
    agent: str
    description: str
    priority: int
    estimated_time: str
    build_query: Callable[[TripInfo], str]


AIRFARE_RULE = TaskRule(
    type="airfare",
    agent="air_tickets",
    description="Book flight tickets",
    priority=1,
    estimated_time="10-15 minutes",
    build_query=build_airfare_query,
)
HOTEL_RULE = TaskRule(
    type="hotel",
    agent="hotels",
    description="Book hotel accommodation",
    priority=2,
    estimated_time="8-12 minutes",
    build_query=build_hotel_query,
)
CAR_RENTAL_RULE = TaskRule(
    type="car_rental",
    agent="car_rental",
    description="Book car rental",
    priority=3,
    estimated_time="5-8 minutes",
    build_query=build_car_rental_query,
)

REASONING_TEMPLATES: Dict[str, str] = {
    "business_trip": (
        "For this business trip, I've prioritized efficiency and convenience. Flight "
        "timing allows for productive work days, and hotel location is chosen for easy "
        "access to business districts."
    ),
    "leisure_trip": (
        "For this leisure trip, I've focused on maximizing your experience while staying "
        "within budget. The itinerary balances sightseeing opportunities with relaxation time."
    ),
    "family_trip": (
        "For this family trip, I've emphasized comfort, convenience, and family-friendly "
        "options. All arrangements consider the needs of travelers of different ages."
    ),
    "romantic_trip": (
        "For this romantic getaway, I've selected options that enhance the special nature "
        "of your trip, with attention to ambiance and memorable experiences."
    ),
}

DEFAULT_TASK_MINUTES = 10.0
_ESTIMATE_PATTERN = re.compile(r"(\d+)\s*[-–]\s*(\d+)\s*(minutes?|hours?)")


def needs_hotel(trip_info: TripInfo) -> bool:
    nights = trip_info.trip_nights()
    return nights is not None and nights >= 1


def needs_car_rental(trip_info: TripInfo) -> bool:
    """Explicit answer wins; otherwise any car preference implies a rental."""
    if trip_info.needs_car_rental is not None:
        return trip_info.needs_car_rental
    return bool(
        trip_info.car_type
        or trip_info.car_pickup_location
        or trip_info.car_return_location
    )


def parse_estimated_minutes(estimate: str) -> float:
    """Mid-point of an 'a-b minutes|hours' range, 10 minutes when unparsable."""
    match = _ESTIMATE_PATTERN.search(estimate)
    if not match:
        return DEFAULT_TASK_MINUTES
    midpoint = (int(match.group(1)) + int(match.group(2))) / 2
    return midpoint * 60 if match.group(3).startswith("hour") else midpoint


def format_total_time(tasks: Sequence[PlannerTask]) -> str:
    total = math.floor(
        sum(parse_estimated_minutes(t.metadata.estimated_time) for t in tasks) + 0.5
    )
    if total < 60:
        return f"{total} minutes"
    hours, minutes = divmod(total, 60)
    return f"{hours} hours {minutes} minutes" if minutes else f"{hours} hours"


def trip_kind(trip_info: TripInfo) -> str:
    travelers = trip_info.num_travelers or 1
    if trip_info.trip_type == "business":
        return "business_trip"
    if travelers == 2 and trip_info.trip_type == "leisure":
        return "romantic_trip"
    if 1 < travelers <= 4:
        return "family_trip"
    return "leisure_trip"


def build_reasoning(trip_info: TripInfo, tasks: Sequence[PlannerTask], total_time: str) -> str:
    """Audit-trail narrative: which rules fired, which did not, and why."""
    nights = trip_info.trip_nights()
    kind = f"{trip_info.trip_type} trip" if trip_info.trip_type else "trip"
    lines = [f"I've created a travel plan for your {kind} to {trip_info.destination}."]

    lines.append("Airfare is always booked first (priority 1).")

    if needs_hotel(trip_info):
        lines.append(
            f"Hotel accommodation was added (priority 2) for {nights} nights; "
            f"it is booked in parallel with the flights."
        )
    elif nights == 0:
        lines.append("Since this is a day trip, no hotel stay is needed.")
    else:
        lines.append("No return date was given, so no hotel stay was planned.")

    if needs_car_rental(trip_info):
        lines.append("Car rental was added (priority 3) based on your car preferences.")
    elif trip_info.needs_car_rental is False:
        lines.append("No car rental was added because you said you don't need one.")
    else:
        lines.append("No car rental was added because none was requested.")

    lines.append("")
    lines.extend(f"{i}. {task.description}: {task.query}" for i, task in enumerate(tasks, 1))
    lines.append("")
    lines.append(
        f"The total estimated time for all bookings is {total_time}. "
        f"{REASONING_TEMPLATES[trip_kind(trip_info)]}"
    )
    return "\n".join(lines)


def build_task_list(trip_info: TripInfo) -> TaskList:
    """
    Convert a complete TripInfo into a validated TaskList.

    Args:
        trip_info: Snapshot with every required field present

    Returns:
        Frozen TaskList

    Raises:
        TaskGraphError: If required fields are missing or the graph is invalid
        TaskGraphCycleError: If the generated dependencies contain a cycle
    """
    missing = trip_info.missing_required()
    if missing:
        raise TaskGraphError(f"Cannot build tasks, missing required fields: {missing}")

    rules: List[TaskRule] = [AIRFARE_RULE]
    if needs_hotel(trip_info):
        rules.append(HOTEL_RULE)
    if needs_car_rental(trip_info):
        rules.append(CAR_RENTAL_RULE)

    tasks = [
        PlannerTask(
            id=f"task_{index}",
            type=rule.type,
            agent=rule.agent,
            description=rule.description,
            query=rule.build_query(trip_info),
            dependencies=(),
            metadata=TaskMetadata(
                priority=rule.priority,
                estimated_time=rule.estimated_time,
                requires_user_input=False,
            ),
        )
        for index, rule in enumerate(rules, 1)
    ]

    TaskDag(tasks)

    total_time = format_total_time(tasks)
    logger.info(
        f"Built task list | destination={trip_info.destination}, "
        f"tasks={[t.type for t in tasks]}, total_time={total_time}"
    )

    return TaskList(
        trip_info=trip_info,
        tasks=tuple(tasks),
        reasoning=build_reasoning(trip_info, tasks, total_time),
        total_estimated_time=total_time,
    )
