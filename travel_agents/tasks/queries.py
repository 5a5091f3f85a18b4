"""
Natural-language queries sent to the booking agents.

Each query templates the relevant TripInfo fields into one request the
agent can act on without seeing the conversation.
"""

from typing import Optional

from travel_agents.shared.contracts import TripInfo


# Share of the total budget assumed to go to accommodation
HOTEL_BUDGET_SHARE = 0.4


def _plural(count: int, singular: str, plural: Optional[str] = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


def hotel_budget_per_night(trip_info: TripInfo) -> Optional[int]:
    """40% of the total budget spread over the nights, or None without a budget."""
    nights = trip_info.trip_nights()
    if not trip_info.budget or not nights or nights < 1:
        return None
    return round(trip_info.budget * HOTEL_BUDGET_SHARE / nights)


def build_airfare_query(trip_info: TripInfo) -> str:
    passengers = _plural(trip_info.num_travelers, "passenger")
    cabin_class = (trip_info.cabin_class or "economy").replace("_", " ")
    depart = trip_info.depart_date.isoformat()

    if trip_info.return_date is not None:
        route = (
            f"Book round-trip flights for {passengers} from {trip_info.origin} to "
            f"{trip_info.destination}, departing {depart}, returning "
            f"{trip_info.return_date.isoformat()}."
        )
    else:
        route = (
            f"Book one-way flights for {passengers} from {trip_info.origin} to "
            f"{trip_info.destination}, departing {depart}."
        )

    query = f"{route} Cabin class: {cabin_class}."
    if trip_info.budget:
        query += f" Budget: {_money(trip_info.budget)} total."
    if trip_info.trip_type:
        query += f" Trip type: {trip_info.trip_type}."
    return query + " Find the best available options with good timing and value."


def build_hotel_query(trip_info: TripInfo) -> str:
    guests = _plural(trip_info.num_travelers, "guest")
    nights = trip_info.trip_nights()
    property_type = trip_info.property_type or "hotel"
    room_type = trip_info.room_type or "standard"

    query = (
        f"Book {property_type} accommodation in {trip_info.destination} for {guests}, "
        f"check-in {trip_info.depart_date.isoformat()}, check-out "
        f"{trip_info.return_date.isoformat()} ({_plural(nights, 'night')}). "
        f"Room type: {room_type}."
    )
    if trip_info.hotel_class:
        query += f" Hotel class: {trip_info.hotel_class}-star."
    per_night = hotel_budget_per_night(trip_info)
    if per_night is not None:
        query += f" Budget: {_money(per_night)} per night."
    return query + " Find well-rated properties in good locations with necessary amenities."


def build_car_rental_query(trip_info: TripInfo) -> str:
    car_type = trip_info.car_type or "economy"
    pickup = trip_info.car_pickup_location or f"{trip_info.destination} airport"
    dropoff = trip_info.car_return_location or pickup
    depart = trip_info.depart_date.isoformat()

    if trip_info.return_date is not None:
        days = max(trip_info.trip_nights(), 1)
        period = (
            f"for {depart} to {trip_info.return_date.isoformat()}. "
            f"Duration: {_plural(days, 'day')}."
        )
    else:
        period = f"starting {depart}. Return date open."

    return (
        f"Book car rental in {trip_info.destination} {period} Pickup: {pickup}. "
        f"Return: {dropoff}. Car type: {car_type}. "
        f"Coordinate pickup/return times with flight schedule."
    )
