"""
Prompt builders for the trip extractor.

These functions construct the actual messages sent to the model based on
the extraction request.
"""

import json
from typing import TYPE_CHECKING, Dict, List

from travel_agents.planning.prompts.templates import (
    EXTRACTION_SYSTEM_PROMPT,
    EXTRACTION_USER_PROMPT,
    NO_HISTORY,
)

if TYPE_CHECKING:
    from travel_agents.planning.extraction.base import ExtractionRequest


def build_system_prompt(request: "ExtractionRequest") -> str:
    return EXTRACTION_SYSTEM_PROMPT.format(today=request.today.isoformat())


def build_history_text(history: List[Dict[str, str]]) -> str:
    """
    Render the bounded history as ``role: content`` lines.

    Args:
        history: Messages from TurnHistory.for_model()

    Returns:
        History text, or a placeholder for the first turn
    """
    if not history:
        return NO_HISTORY
    return "\n".join(f"{m['role']}: {m['content']}" for m in history)


def build_user_prompt(request: "ExtractionRequest") -> str:
    trip_info = request.trip_info.model_dump(mode="json", exclude_none=True)
    return EXTRACTION_USER_PROMPT.format(
        history=build_history_text(request.history),
        trip_info=json.dumps(trip_info, indent=2),
        utterance=request.utterance,
    )


def build_messages(request: "ExtractionRequest") -> List[Dict[str, str]]:
    """Full chat message list for one extraction call."""
    return [
        {"role": "system", "content": build_system_prompt(request)},
        {"role": "user", "content": build_user_prompt(request)},
    ]
