"""
TripInfo contract.

The running accumulator of trip facts gathered across conversation turns.
Every field stays None until a turn supplies it, and a later turn only
overwrites a field with an explicit non-null value.
"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


TripType = Literal["business", "leisure"]
CabinClass = Literal["economy", "premium_economy", "business", "first"]

# Fields that must be present before a task list can be generated
REQUIRED_FIELDS: Tuple[str, ...] = (
    "origin",
    "destination",
    "depart_date",
    "num_travelers",
)


class TripInfo(BaseModel):
    """Partially-filled description of a trip."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Core trip facts
    origin: Optional[str] = Field(default=None, description="Departure city or airport")
    destination: Optional[str] = Field(default=None, description="Destination city or airport")
    depart_date: Optional[date] = Field(default=None, description="Outbound travel date")
    return_date: Optional[date] = Field(default=None, description="Return travel date")
    num_travelers: Optional[int] = Field(default=None, description="Number of travelers")
    trip_type: Optional[TripType] = Field(default=None, description="Business or leisure")
    budget: Optional[float] = Field(default=None, description="Total trip budget in USD")
    cabin_class: Optional[CabinClass] = Field(default=None, description="Preferred cabin class")

    # Hotel preferences
    hotel_class: Optional[int] = Field(default=None, description="Hotel star rating (1-5)")
    property_type: Optional[str] = Field(default=None, description="hotel, resort, apartment, ...")
    room_type: Optional[str] = Field(default=None, description="standard, deluxe, suite, ...")

    # Car rental preferences
    needs_car_rental: Optional[bool] = Field(default=None, description="Explicit car rental request")
    car_type: Optional[str] = Field(default=None, description="economy, compact, suv, ...")
    car_pickup_location: Optional[str] = Field(default=None)
    car_return_location: Optional[str] = Field(default=None)

    special_requests: Optional[str] = Field(default=None)

    def missing_required(self) -> List[str]:
        """Required fields that are still unset, in priority order."""
        return [name for name in REQUIRED_FIELDS if getattr(self, name) is None]

    def is_complete(self) -> bool:
        return not self.missing_required()

    def merge(self, updates: Dict[str, Any]) -> "TripInfo":
        """
        Return a new TripInfo with updates applied.

        Null values in ``updates`` are ignored so a field that is already
        set is never silently cleared.

        Args:
            updates: Field name to new value (already validated)

        Returns:
            New TripInfo instance
        """
        data = self.model_dump()
        for name, value in updates.items():
            if value is not None and name in type(self).model_fields:
                data[name] = value
        return TripInfo.model_validate(data)

    def trip_nights(self) -> Optional[int]:
        """Nights between departure and return, or None for one-way trips."""
        if self.depart_date is None or self.return_date is None:
            return None
        return (self.return_date - self.depart_date).days

    def filled_fields(self) -> List[str]:
        return [name for name, value in self.model_dump().items() if value is not None]
