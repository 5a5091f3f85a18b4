"""
Tests for field validation and the TripInfo merge rules.
"""

from datetime import date

import pytest

from travel_agents.shared.contracts import TripInfo
from travel_agents.shared.errors import ValidationError
from travel_agents.planning.validation import validate_field, validate_updates


TODAY = date(2024, 1, 10)


class TestValidateField:
    """Tests for validate_field()."""

    def test_traveler_count_lower_bound(self):
        """Zero travelers is rejected."""
        with pytest.raises(ValidationError) as exc:
            validate_field("num_travelers", 0)
        assert exc.value.field == "num_travelers"

    def test_traveler_count_upper_bound(self):
        """More than max_travelers is rejected."""
        with pytest.raises(ValidationError):
            validate_field("num_travelers", 51, max_travelers=50)
        assert validate_field("num_travelers", 50, max_travelers=50) == 50

    def test_traveler_count_from_string(self):
        """Digit strings are accepted."""
        assert validate_field("num_travelers", "3") == 3

    def test_budget_strips_currency(self):
        """Dollar signs and thousands separators are ignored."""
        assert validate_field("budget", "$2,500") == 2500.0

    def test_budget_must_be_positive(self):
        """A zero budget is rejected."""
        with pytest.raises(ValidationError):
            validate_field("budget", 0)

    def test_cabin_class_normalized(self):
        """Cabin class is normalized to the enum spelling."""
        assert validate_field("cabin_class", "Premium Economy") == "premium_economy"

    def test_unknown_trip_type_rejected(self):
        """Only business and leisure are trip types."""
        with pytest.raises(ValidationError):
            validate_field("trip_type", "adventure")

    def test_hotel_class_range(self):
        """Hotel class is 1 to 5 stars."""
        assert validate_field("hotel_class", 4) == 4
        with pytest.raises(ValidationError):
            validate_field("hotel_class", 6)

    def test_date_parsing(self):
        """ISO strings become dates."""
        assert validate_field("depart_date", "2024-03-15") == date(2024, 3, 15)

    def test_bad_date_rejected(self):
        """Non-dates are rejected."""
        with pytest.raises(ValidationError):
            validate_field("depart_date", "next week")

    def test_past_departure_rejected(self):
        """A departure before today is rejected."""
        with pytest.raises(ValidationError) as exc:
            validate_field("depart_date", "2023-12-31", today=TODAY)
        assert "in the past" in exc.value.message

    def test_blank_place_rejected(self):
        """Blank strings never fill a place field."""
        with pytest.raises(ValidationError):
            validate_field("origin", "  ")

    def test_car_rental_yes_no(self):
        """Yes/no words are accepted for the car rental flag."""
        assert validate_field("needs_car_rental", "yes") is True
        assert validate_field("needs_car_rental", False) is False


class TestValidateUpdates:
    """Tests for validate_updates()."""

    def test_nulls_skipped(self):
        """None values are neither accepted nor errors."""
        accepted, errors = validate_updates(TripInfo(), {"origin": None, "destination": "Rome"})
        assert accepted == {"destination": "Rome"}
        assert errors == []

    def test_return_before_departure_in_same_turn(self):
        """The return date is rejected when both dates arrive together."""
        accepted, errors = validate_updates(
            TripInfo(),
            {"depart_date": "2024-05-10", "return_date": "2024-05-01"},
            today=TODAY,
        )
        assert accepted == {"depart_date": date(2024, 5, 10)}
        assert [e.field for e in errors] == ["return_date"]

    def test_return_checked_against_stored_departure(self):
        """A new return date is compared with the stored departure."""
        current = TripInfo(depart_date=date(2024, 5, 10))
        accepted, errors = validate_updates(current, {"return_date": "2024-05-01"})
        assert accepted == {}
        assert errors[0].field == "return_date"

    def test_departure_checked_against_stored_return(self):
        """Moving the departure past the stored return rejects the departure."""
        current = TripInfo(depart_date=date(2024, 5, 1), return_date=date(2024, 5, 5))
        accepted, errors = validate_updates(current, {"depart_date": "2024-05-09"})
        assert "depart_date" not in accepted
        assert errors[0].field == "depart_date"

    def test_same_day_return_allowed(self):
        """A day trip is valid."""
        accepted, errors = validate_updates(
            TripInfo(), {"depart_date": "2024-05-10", "return_date": "2024-05-10"}
        )
        assert errors == []
        assert accepted["return_date"] == date(2024, 5, 10)

    def test_one_bad_field_does_not_block_others(self):
        """Valid fields are accepted alongside a rejected one."""
        accepted, errors = validate_updates(
            TripInfo(), {"origin": "Boston", "num_travelers": -1}
        )
        assert accepted == {"origin": "Boston"}
        assert [e.field for e in errors] == ["num_travelers"]


class TestTripInfoMerge:
    """Tests for TripInfo.merge() and trip_nights()."""

    def test_merge_never_clears(self):
        """A null update leaves the stored value alone."""
        trip = TripInfo(origin="Boston")
        merged = trip.merge({"origin": None, "destination": "Rome"})
        assert merged.origin == "Boston"
        assert merged.destination == "Rome"

    def test_merge_returns_new_object(self):
        """The input snapshot is untouched."""
        trip = TripInfo(origin="Boston")
        merged = trip.merge({"origin": "Chicago"})
        assert trip.origin == "Boston"
        assert merged.origin == "Chicago"

    def test_trip_nights(self):
        """Nights are the day difference, None without both dates."""
        trip = TripInfo(depart_date=date(2024, 3, 15), return_date=date(2024, 3, 22))
        assert trip.trip_nights() == 7
        assert TripInfo(depart_date=date(2024, 3, 15)).trip_nights() is None
