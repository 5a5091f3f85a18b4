"""
Deterministic keyword extractor.

Used when the model is unreachable. It only understands common English
phrasings and fills what it can; anything it misses is simply asked for
again by the gap analyzer.
"""

import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from travel_agents.planning.extraction.base import (
    ExtractionRequest,
    ExtractionResult,
    build_result,
)


logger = logging.getLogger(__name__)

KEYWORD_CONFIDENCE = 0.5

MONTHS: Dict[str, int] = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
NUMBER_WORDS: Dict[str, int] = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
}
STOP_WORDS = {
    "january", "february", "march", "april", "may", "june", "july", "august",
    "september", "october", "november", "december",
    "jan", "feb", "mar", "apr", "jun", "jul", "aug", "sep", "sept", "oct", "nov", "dec",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "i", "i'm", "i'd", "we", "my", "our", "the", "next", "this",
}

_MONTH = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_ORD = r"(?:st|nd|rd|th)?"
_NUM = r"(\d+|one|two|three|four|five|six|seven|eight|nine|ten)"

ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
MONTH_RANGE = re.compile(
    rf"\b{_MONTH}\.?\s+(\d{{1,2}}){_ORD}\s*(?:-|–|to|until|through)\s*(\d{{1,2}}){_ORD}\b"
    rf"(?:,?\s+(\d{{4}}))?",
    re.IGNORECASE,
)
MONTH_DAY = re.compile(
    rf"\b{_MONTH}\.?\s+(\d{{1,2}}){_ORD}\b(?:,?\s+(\d{{4}}))?", re.IGNORECASE
)
DAY_MONTH = re.compile(
    rf"\b(\d{{1,2}}){_ORD}\s+(?:of\s+)?{_MONTH}\b(?:,?\s+(\d{{4}}))?", re.IGNORECASE
)

_PLACE = r"([A-Z][\w'.-]*(?:\s+[A-Z][\w'.-]*)*)"
ORIGIN_PATTERN = re.compile(rf"\b(?i:from|leaving|departing)\s+{_PLACE}")
DESTINATION_PATTERNS = (
    re.compile(rf"\b(?i:to|visit|visiting|towards)\s+{_PLACE}"),
    re.compile(rf"\b(?i:in|at)\s+{_PLACE}"),
)

TRAVELER_COUNT = re.compile(
    rf"\b{_NUM}\s+(?:people|persons|travell?ers|adults|passengers|guests|of us)\b",
    re.IGNORECASE,
)
GROUP_OF = re.compile(rf"\b(?:family|party|group) of\s+{_NUM}\b", re.IGNORECASE)
COUPLE = re.compile(
    r"\b(?:couple|honeymoon|(?:my|with my) (?:wife|husband|partner|girlfriend|boyfriend|fianc[eé]e?))\b",
    re.IGNORECASE,
)
SOLO = re.compile(r"\b(?:solo|alone|by myself|just me|on my own)\b", re.IGNORECASE)
FIRST_PERSON = re.compile(r"\bI\b|\bI'm\b|\bI'd\b|\b(?:me|my|myself)\b")
PLURAL_CUES = re.compile(
    r"\b(?:we|us|our|family|kids|children|friends|colleagues|team|group)\b",
    re.IGNORECASE,
)

BUDGET_PATTERNS = (
    re.compile(r"\$\s?(\d[\d,]*(?:\.\d+)?)\s*(k)?\b", re.IGNORECASE),
    re.compile(
        r"\bbudget\s+(?:of|is|around|about|under)?\s*\$?(\d[\d,]*(?:\.\d+)?)\s*(k)?\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(\d[\d,]*(?:\.\d+)?)\s*(k)?\s*(?:usd|dollars)\b", re.IGNORECASE),
)

CABIN_CLASS = re.compile(
    r"\b(premium economy|economy|business|first)(?:\s+class)\b", re.IGNORECASE
)
BUSINESS_TRIP = re.compile(
    r"\b(?:business(?!\s+class)|work trip|conference|client meeting|meetings?)\b",
    re.IGNORECASE,
)
LEISURE_TRIP = re.compile(
    r"\b(?:vacation|holiday|leisure|honeymoon|getaway|sightseeing|anniversary)\b",
    re.IGNORECASE,
)
HOTEL_CLASS = re.compile(r"\b([1-5]|one|two|three|four|five)[\s-]?stars?\b", re.IGNORECASE)

NO_CAR = re.compile(
    r"\b(?:no car|don't need a car|do not need a car|without a car|no rental car|no car rental)\b",
    re.IGNORECASE,
)
NEED_CAR = re.compile(
    r"\b(?:rent(?:ing)? a car|car rental|rental car|need a car|hire a car|car hire)\b",
    re.IGNORECASE,
)
CAR_TYPE = re.compile(
    r"\b(?:(economy|compact|mid-?size|full-?size|minivan|convertible|luxury)\s+(?:car|rental|vehicle)"
    r"|(suv|minivan|convertible))\b",
    re.IGNORECASE,
)


def _clean_place(raw: str) -> Optional[str]:
    """Cut a captured capitalized phrase at the first month/weekday/pronoun."""
    words = []
    for word in raw.split():
        if word.lower().strip(".,") in STOP_WORDS:
            break
        words.append(word.strip(".,"))
    place = " ".join(words).strip()
    return place or None


def extract_origin(text: str) -> Optional[str]:
    for match in ORIGIN_PATTERN.finditer(text):
        place = _clean_place(match.group(1))
        if place:
            return place
    return None


def extract_destination(text: str, origin: Optional[str] = None) -> Optional[str]:
    """Prefer 'to/visit X' over 'in/at X'; never return the origin."""
    for pattern in DESTINATION_PATTERNS:
        for match in pattern.finditer(text):
            place = _clean_place(match.group(1))
            if place and place != origin:
                return place
    return None


def _resolve(year: Optional[str], month: int, day: int, today: date) -> Optional[date]:
    """Build a date; yearless dates resolve to the next occurrence on/after today."""
    try:
        if year:
            return date(int(year), month, day)
        candidate = date(today.year, month, day)
        if candidate < today:
            candidate = date(today.year + 1, month, day)
        return candidate
    except ValueError:
        return None


def extract_dates(text: str, today: date) -> List[Tuple[date, bool]]:
    """
    Find explicit dates in order of appearance.

    Returns:
        List of (date, had_explicit_year) tuples
    """
    found: List[Tuple[int, date, bool]] = []
    taken: List[Tuple[int, int]] = []

    def free(span: Tuple[int, int]) -> bool:
        return all(span[1] <= s or span[0] >= e for s, e in taken)

    for match in ISO_DATE.finditer(text):
        try:
            value = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            continue
        found.append((match.start(), value, True))
        taken.append(match.span())

    for match in MONTH_RANGE.finditer(text):
        if not free(match.span()):
            continue
        month = MONTHS[match.group(1)[:3].lower()]
        year = match.group(4)
        first = _resolve(year, month, int(match.group(2)), today)
        second = _resolve(year, month, int(match.group(3)), today)
        if first and second:
            found.append((match.start(), first, bool(year)))
            found.append((match.start() + 1, second, bool(year)))
            taken.append(match.span())

    for pattern, month_group, day_group in ((MONTH_DAY, 1, 2), (DAY_MONTH, 2, 1)):
        for match in pattern.finditer(text):
            if not free(match.span()):
                continue
            month = MONTHS[match.group(month_group)[:3].lower()]
            year = match.group(3)
            value = _resolve(year, month, int(match.group(day_group)), today)
            if value:
                found.append((match.start(), value, bool(year)))
                taken.append(match.span())

    found.sort(key=lambda item: item[0])
    return [(value, explicit) for _, value, explicit in found]


def _to_number(token: str) -> int:
    token = token.lower()
    return NUMBER_WORDS[token] if token in NUMBER_WORDS else int(token)


def extract_traveler_count(text: str) -> Optional[int]:
    """Only an explicit head count ("4 people", "group of 6")."""
    match = TRAVELER_COUNT.search(text) or GROUP_OF.search(text)
    return _to_number(match.group(1)) if match else None


def infer_travelers(text: str) -> Optional[int]:
    """Guess a head count from couple, solo or first-person cues."""
    if COUPLE.search(text):
        return 2
    if SOLO.search(text):
        return 1
    if FIRST_PERSON.search(text) and not PLURAL_CUES.search(text):
        return 1
    return None


def extract_travelers(text: str) -> Optional[int]:
    count = extract_traveler_count(text)
    return count if count is not None else infer_travelers(text)


def extract_budget(text: str) -> Optional[float]:
    for pattern in BUDGET_PATTERNS:
        match = pattern.search(text)
        if match:
            amount = float(match.group(1).replace(",", ""))
            if match.group(2):
                amount *= 1000
            return amount
    return None


def extract_trip_type(text: str) -> Optional[str]:
    if BUSINESS_TRIP.search(text):
        return "business"
    if LEISURE_TRIP.search(text):
        return "leisure"
    return None


def extract_cabin_class(text: str) -> Optional[str]:
    match = CABIN_CLASS.search(text)
    if not match:
        return None
    return match.group(1).lower().replace(" ", "_")


def extract_hotel_class(text: str) -> Optional[int]:
    match = HOTEL_CLASS.search(text)
    return _to_number(match.group(1)) if match else None


def extract_car_preferences(text: str) -> Dict[str, Any]:
    if NO_CAR.search(text):
        return {"needs_car_rental": False}
    prefs: Dict[str, Any] = {}
    car_type = CAR_TYPE.search(text)
    if car_type:
        prefs["car_type"] = (car_type.group(1) or car_type.group(2)).lower().replace("-", "")
    if car_type or NEED_CAR.search(text):
        prefs["needs_car_rental"] = True
    return prefs


class KeywordTripInfoExtractor:
    """Regex-based partial extractor with a fixed confidence on every field."""

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        proposed = self.propose(
            request.utterance, request.today, known_travelers=request.trip_info.num_travelers
        )
        logger.info(f"Keyword extraction | proposed_fields={sorted(proposed)}")
        confidence = {name: KEYWORD_CONFIDENCE for name in proposed}
        return build_result(request, proposed, confidence, source="keywords")

    def propose(
        self, text: str, today: date, known_travelers: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Map an utterance to raw field proposals.

        The first date found is the departure and the second the return.
        A yearless return date that lands before the departure is moved to
        the following year. Once a traveler count is known, only an explicit
        head count replaces it.
        """
        proposed: Dict[str, Any] = {}

        origin = extract_origin(text)
        if origin:
            proposed["origin"] = origin
        destination = extract_destination(text, origin)
        if destination:
            proposed["destination"] = destination

        dates = extract_dates(text, today)
        if dates:
            proposed["depart_date"] = dates[0][0]
        if len(dates) > 1:
            depart = dates[0][0]
            ret, explicit = dates[1]
            if ret < depart and not explicit:
                try:
                    ret = ret.replace(year=ret.year + 1)
                except ValueError:
                    pass
            proposed["return_date"] = ret

        travelers = extract_travelers if known_travelers is None else extract_traveler_count
        extractors = (
            ("num_travelers", travelers),
            ("budget", extract_budget),
            ("trip_type", extract_trip_type),
            ("cabin_class", extract_cabin_class),
            ("hotel_class", extract_hotel_class),
        )
        for name, extractor in extractors:
            value = extractor(text)
            if value is not None:
                proposed[name] = value

        proposed.update(extract_car_preferences(text))
        return proposed
