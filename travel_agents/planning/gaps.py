"""
Gap analysis for the planning engine.

Determines which trip fields are still missing and in what order the
clarifying questions should be asked. This is deterministic code so the
question order is identical across sessions and independent of the model.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from travel_agents.shared.contracts import TripInfo
from travel_agents.shared.errors import ValidationError


@dataclass(frozen=True)
class GapQuestion:
    """A clarifying question for one missing field."""

    field: str
    question: str
    priority: int
    required: bool


# (priority group, field, required). Order inside a group is the tie-break.
FIELD_PRIORITY: Tuple[Tuple[int, str, bool], ...] = (
    (1, "origin", True),
    (1, "destination", True),
    (2, "depart_date", True),
    (3, "num_travelers", True),
    (4, "budget", False),
    (4, "trip_type", False),
    (5, "hotel_class", False),
    (5, "needs_car_rental", False),
)

QUESTION_TEMPLATES: Dict[str, str] = {
    "origin": "Which city will you be departing from?",
    "destination": "Where would you like to travel to? Please specify the city and country.",
    "depart_date": "What are your preferred travel dates? Please provide departure and return dates.",
    "return_date": "When will you be returning? The return date can't be before your departure.",
    "num_travelers": "How many people will be traveling?",
    "budget": "What's your approximate budget for this trip? (This helps us find the best options for you)",
    "trip_type": "Is this for business or leisure travel?",
    "cabin_class": "Do you have a preference for cabin class? (Economy, Premium Economy, Business, or First Class)",
    "hotel_class": "Do you have a preferred hotel class? (1 to 5 stars)",
    "needs_car_rental": "Will you need a car rental during your trip?",
    "special_requests": "Do you have any special requirements or requests for your trip?",
}

# Rejected values that keep a round open: required fields, plus the return
# date because it changes which tasks are generated
BLOCKING_FIELDS = frozenset(
    [name for _, name, required in FIELD_PRIORITY if required] + ["return_date"]
)

DEFAULT_QUESTION = "Could you tell me a bit more about your trip?"

FIELD_LABELS: Dict[str, str] = {
    "origin": "departure city",
    "depart_date": "departure date",
    "num_travelers": "number of travelers",
    "needs_car_rental": "car rental answer",
}


def is_field_answered(data: Dict[str, Any], field_name: str) -> bool:
    """
    Check if a field has been answered (non-null, non-empty).

    False and 0 count as answers: "no car" is a decision, not a gap.

    Args:
        data: TripInfo as a dictionary
        field_name: Field name to check

    Returns:
        True if field has a meaningful value
    """
    value = data.get(field_name)

    if value is None:
        return False

    if isinstance(value, str) and not value.strip():
        return False

    if isinstance(value, (list, dict)) and len(value) == 0:
        return False

    return True


def question_for(field_name: str) -> str:
    return QUESTION_TEMPLATES.get(field_name, DEFAULT_QUESTION)


def reask_question(error: ValidationError) -> str:
    """Re-queue a rejected field's question with the validation message in front."""
    label = FIELD_LABELS.get(error.field, error.field.replace("_", " "))
    return f"I couldn't use that {label}: {error.message}. {question_for(error.field)}"


def split_rejections(
    errors: List[ValidationError],
) -> Tuple[List[ValidationError], List[ValidationError]]:
    """Partition rejected values into (blocking, dropped)."""
    blocking = [e for e in errors if e.field in BLOCKING_FIELDS]
    dropped = [e for e in errors if e.field not in BLOCKING_FIELDS]
    return blocking, dropped


def analyze_gaps(trip_info: TripInfo) -> List[GapQuestion]:
    """
    Rank the questions still open for a TripInfo snapshot.

    Returns an empty list once every required field is present; desired
    fields (budget, trip type, preferences) never block completion on their
    own. While something required is missing, every unanswered field is
    returned in fixed priority order so the queue is visible to callers.

    Args:
        trip_info: Current snapshot

    Returns:
        Ordered list of GapQuestion, highest priority first
    """
    if trip_info.is_complete():
        return []

    data = trip_info.model_dump()
    return [
        GapQuestion(
            field=field_name,
            question=question_for(field_name),
            priority=priority,
            required=required,
        )
        for priority, field_name, required in FIELD_PRIORITY
        if not is_field_answered(data, field_name)
    ]


def next_question(trip_info: TripInfo) -> Optional[GapQuestion]:
    """The single question to surface this turn, or None when nothing blocks."""
    gaps = analyze_gaps(trip_info)
    return gaps[0] if gaps else None
