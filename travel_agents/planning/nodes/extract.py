"""
Extract node for the planning graph.

Runs the (resilient) extractor on the working copy of the conversation.
Extraction failure is not raised: it becomes the ``extraction_failed``
event and the graph routes to the fail node.
"""

import logging
import time
from typing import Any, Callable, Dict

from travel_agents.shared.errors import ExtractionError
from travel_agents.planning.extraction.base import ExtractionRequest, TripInfoExtractor
from travel_agents.planning.graph.config import PlannerConfig
from travel_agents.planning.schemas import PlanningGraphState
from travel_agents.planning.transitions import EXTRACTION_FAILED


logger = logging.getLogger(__name__)


def make_extract_node(
    extractor: TripInfoExtractor,
    config: PlannerConfig,
) -> Callable[[PlanningGraphState], Any]:
    """Bind the extractor and config into an async graph node."""

    async def extract_node(state: PlanningGraphState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        conversation = state["conversation"]
        _log = f"[session={session_id}] [graph=planning] [node=extract] "

        logger.info(
            f"{_log}Entering node | round={conversation.round}, "
            f"turns_in_round={conversation.turns_in_round}, "
            f"filled_fields={len(conversation.trip_info.filled_fields())}"
        )

        request = ExtractionRequest(
            trip_info=conversation.trip_info,
            utterance=state["utterance"],
            history=conversation.history.for_model(),
            today=state["today"],
            max_travelers=config.max_travelers,
        )

        start_time = time.perf_counter()
        try:
            result = await extractor.extract(request)
        except ExtractionError as e:
            logger.error(f"{_log}Extraction failed: {e}")
            return {
                "extraction": None,
                "extraction_error": str(e),
                "event": EXTRACTION_FAILED,
            }
        duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"{_log}Node finished | source={result.source}, duration={duration_ms:.0f}ms, "
            f"changed={result.changed_fields()}, rejected={result.rejected_fields()}"
        )
        return {"extraction": result, "extraction_error": None}

    return extract_node
