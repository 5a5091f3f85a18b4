"""
Extractor contract.

An extractor turns (previous TripInfo, utterance, recent history) into an
updated TripInfo plus a confidence and validity flag for every field it
changed. Values are sanity-checked before they are merged, so a rejected
value never reaches the TripInfo.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from travel_agents.shared.contracts import TripInfo
from travel_agents.shared.errors import ValidationError
from travel_agents.planning.validation import validate_updates


Scalar = Optional[Union[bool, int, float, str]]


@dataclass
class ExtractionRequest:
    """Everything an extractor may look at for one turn."""

    trip_info: TripInfo
    utterance: str
    history: List[Dict[str, str]] = field(default_factory=list)
    today: date = field(default_factory=date.today)
    max_travelers: int = 50


@dataclass(frozen=True)
class FieldUpdate:
    """One field the extractor proposed to change."""

    field: str
    value: Any
    confidence: float
    valid: bool


@dataclass
class ExtractionResult:
    """Updated snapshot plus per-field flags."""

    trip_info: TripInfo
    updates: List[FieldUpdate] = field(default_factory=list)
    errors: List[ValidationError] = field(default_factory=list)
    source: str = "model"

    def changed_fields(self) -> List[str]:
        return [u.field for u in self.updates if u.valid]

    def rejected_fields(self) -> List[str]:
        return [u.field for u in self.updates if not u.valid]


class TripInfoExtractor(Protocol):
    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        ...


# =============================================================================
# Model output contract
# =============================================================================


class ExtractedFields(BaseModel):
    """
    Field updates as returned by the model.

    Types are kept loose (scalars only) so that value-level problems surface
    as per-field ValidationErrors instead of failing the whole payload.
    """

    model_config = ConfigDict(extra="ignore")

    origin: Scalar = None
    destination: Scalar = None
    depart_date: Scalar = None
    return_date: Scalar = None
    num_travelers: Scalar = None
    trip_type: Scalar = None
    budget: Scalar = None
    cabin_class: Scalar = None
    hotel_class: Scalar = None
    property_type: Scalar = None
    room_type: Scalar = None
    needs_car_rental: Scalar = None
    car_type: Scalar = None
    car_pickup_location: Scalar = None
    car_return_location: Scalar = None
    special_requests: Scalar = None


class ExtractionPayload(BaseModel):
    """Top-level JSON object the model must return."""

    updates: ExtractedFields = Field(description="Fields stated or corrected in this turn")
    confidence: Dict[str, float] = Field(
        default_factory=dict, description="Per-field confidence between 0 and 1"
    )


def build_result(
    request: ExtractionRequest,
    proposed: Dict[str, Any],
    confidence: Dict[str, float],
    source: str,
    default_confidence: float = 0.5,
) -> ExtractionResult:
    """
    Validate proposed values and merge the accepted ones.

    Args:
        request: The extraction request (current TripInfo, today, limits)
        proposed: Field name to raw proposed value
        confidence: Field name to confidence
        source: "model" or "keywords"
        default_confidence: Used for fields missing from ``confidence``

    Returns:
        ExtractionResult with the merged TripInfo and per-field flags
    """
    current = request.trip_info
    accepted, errors = validate_updates(
        current, proposed, max_travelers=request.max_travelers, today=request.today
    )

    updates = []
    for name, value in proposed.items():
        if value is None:
            continue
        valid = name in accepted
        if valid and getattr(current, name) == accepted[name]:
            # Restated, not changed
            continue
        updates.append(
            FieldUpdate(
                field=name,
                value=accepted[name] if valid else value,
                confidence=float(confidence.get(name, default_confidence)),
                valid=valid,
            )
        )

    return ExtractionResult(
        trip_info=current.merge(accepted),
        updates=updates,
        errors=errors,
        source=source,
    )
