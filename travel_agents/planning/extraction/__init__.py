"""TripInfo extractors: model-backed, keyword fallback and the resilient wrapper."""

from travel_agents.planning.extraction.base import (
    ExtractionRequest,
    ExtractionResult,
    FieldUpdate,
    TripInfoExtractor,
)
from travel_agents.planning.extraction.keywords import KeywordTripInfoExtractor
from travel_agents.planning.extraction.model import ModelTripInfoExtractor
from travel_agents.planning.extraction.resilient import ResilientExtractor

__all__ = [
    "ExtractionRequest",
    "ExtractionResult",
    "FieldUpdate",
    "TripInfoExtractor",
    "KeywordTripInfoExtractor",
    "ModelTripInfoExtractor",
    "ResilientExtractor",
]
