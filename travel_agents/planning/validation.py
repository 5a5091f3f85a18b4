"""
Sanity checks applied to extracted field values before they are merged.

A value that fails its check is not written into the TripInfo; the engine
re-asks that field's question with the validation message in front.
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from travel_agents.shared.contracts import TripInfo
from travel_agents.shared.errors import ValidationError


logger = logging.getLogger(__name__)

TRIP_TYPES = ("business", "leisure")
CABIN_CLASSES = ("economy", "premium_economy", "business", "first")
STRING_FIELDS = (
    "origin",
    "destination",
    "property_type",
    "room_type",
    "car_type",
    "car_pickup_location",
    "car_return_location",
    "special_requests",
)
_TRUE_WORDS = {"true", "yes", "y"}
_FALSE_WORDS = {"false", "no", "n"}


def _parse_date(field: str, value: Any) -> date:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(field, value, "is not a valid date (expected YYYY-MM-DD)")


def _parse_int(field: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(field, value, "must be a whole number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(field, value, "must be a whole number")


def _parse_amount(field: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(field, value, "must be an amount")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[,$\s]", "", value)
        try:
            return float(cleaned)
        except ValueError:
            pass
    raise ValidationError(field, value, "must be an amount")


def _parse_bool(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValidationError(field, value, "must be yes or no")


def validate_field(
    field: str,
    value: Any,
    max_travelers: int = 50,
    today: Optional[date] = None,
) -> Any:
    """
    Validate and normalize one field value.

    Args:
        field: TripInfo field name
        value: Raw extracted value (not None)
        max_travelers: Upper bound for num_travelers
        today: Reference date; departure dates before it are rejected

    Returns:
        The normalized value

    Raises:
        ValidationError: If the value fails its check
    """
    if field in STRING_FIELDS:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(field, value, "must not be blank")
        return value.strip()

    if field in ("depart_date", "return_date"):
        parsed = _parse_date(field, value)
        if field == "depart_date" and today is not None and parsed < today:
            raise ValidationError(field, value, f"{parsed.isoformat()} is in the past")
        return parsed

    if field == "num_travelers":
        count = _parse_int(field, value)
        if not 1 <= count <= max_travelers:
            raise ValidationError(
                field, value, f"must be between 1 and {max_travelers} travelers"
            )
        return count

    if field == "budget":
        amount = _parse_amount(field, value)
        if amount <= 0:
            raise ValidationError(field, value, "must be greater than zero")
        return amount

    if field == "hotel_class":
        stars = _parse_int(field, value)
        if not 1 <= stars <= 5:
            raise ValidationError(field, value, "must be between 1 and 5 stars")
        return stars

    if field == "trip_type":
        kind = str(value).strip().lower()
        if kind not in TRIP_TYPES:
            raise ValidationError(field, value, "must be business or leisure")
        return kind

    if field == "cabin_class":
        cabin = re.sub(r"[\s\-]+", "_", str(value).strip().lower())
        if cabin not in CABIN_CLASSES:
            raise ValidationError(
                field, value, "must be economy, premium economy, business or first"
            )
        return cabin

    if field == "needs_car_rental":
        return _parse_bool(field, value)

    raise ValidationError(field, value, "is not a known trip field")


def validate_updates(
    current: TripInfo,
    updates: Dict[str, Any],
    max_travelers: int = 50,
    today: Optional[date] = None,
) -> Tuple[Dict[str, Any], List[ValidationError]]:
    """
    Validate a batch of extracted updates against the current snapshot.

    Nulls are skipped (they never clear a field). Date ordering is checked
    on the merged pair, and the date changed this turn is the one rejected;
    when both changed, the return date is rejected.

    Args:
        current: TripInfo before this turn
        updates: Field name to extracted value
        max_travelers: Upper bound for num_travelers
        today: Reference date for past-date checks

    Returns:
        Tuple of (accepted updates, validation errors)
    """
    accepted: Dict[str, Any] = {}
    errors: List[ValidationError] = []

    for field, value in updates.items():
        if value is None:
            continue
        try:
            accepted[field] = validate_field(field, value, max_travelers, today)
        except ValidationError as e:
            logger.info(f"Rejected extracted value | {e}")
            errors.append(e)

    depart = accepted.get("depart_date", current.depart_date)
    ret = accepted.get("return_date", current.return_date)
    date_changed = "depart_date" in accepted or "return_date" in accepted
    if date_changed and depart is not None and ret is not None and ret < depart:
        rejected_field = "return_date" if "return_date" in accepted else "depart_date"
        value = accepted.pop(rejected_field)
        error = ValidationError(
            rejected_field,
            value.isoformat(),
            f"return date {ret.isoformat()} is before departure date {depart.isoformat()}",
        )
        logger.info(f"Rejected extracted value | {error}")
        errors.append(error)

    return accepted, errors
