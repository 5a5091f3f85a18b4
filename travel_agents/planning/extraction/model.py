"""
Model-backed trip extractor.

Single attempt per call; retries, timeouts and the keyword fallback are the
job of ResilientExtractor.
"""

import logging
import time

from travel_agents.shared.errors import ExtractionError
from travel_agents.shared.llm.client import ModelClient
from travel_agents.planning.extraction.base import (
    ExtractionRequest,
    ExtractionResult,
    build_result,
)
from travel_agents.planning.prompts.builders import build_messages
from travel_agents.planning.response_parser import parse_extraction_response


logger = logging.getLogger(__name__)


class ModelTripInfoExtractor:
    """Extracts trip fields by asking the language model for structured updates."""

    def __init__(self, client: ModelClient):
        self.client = client

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """
        Run one extraction call.

        Raises:
            ExtractionError: If the model is unreachable or its reply is unusable
        """
        messages = build_messages(request)

        start_time = time.perf_counter()
        try:
            raw = await self.client.complete(messages)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"Model collaborator unreachable: {e}") from e
        duration_ms = (time.perf_counter() - start_time) * 1000

        if not raw:
            raise ExtractionError("Empty response from model")

        payload = parse_extraction_response(raw)
        proposed = payload.updates.model_dump(exclude_none=True)

        logger.info(
            f"Model extraction | duration={duration_ms:.0f}ms, "
            f"proposed_fields={sorted(proposed)}"
        )

        return build_result(
            request,
            proposed,
            payload.confidence,
            source="model",
            default_confidence=1.0,
        )
