"""Prompt templates and builders for the trip extractor."""

from travel_agents.planning.prompts.templates import (
    EXTRACTION_SYSTEM_PROMPT,
    EXTRACTION_USER_PROMPT,
)
from travel_agents.planning.prompts.builders import (
    build_system_prompt,
    build_user_prompt,
    build_messages,
)

__all__ = [
    "EXTRACTION_SYSTEM_PROMPT",
    "EXTRACTION_USER_PROMPT",
    "build_system_prompt",
    "build_user_prompt",
    "build_messages",
]
