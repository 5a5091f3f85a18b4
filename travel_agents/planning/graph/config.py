"""
Configuration for the planning engine.

Centralizes the thresholds and timeouts of the planning state machine,
making it easy to tune behavior without modifying the graph wiring.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass
class PlannerConfig:
    """
    Configuration for the planning graph.

    Attributes:
        max_history_turns: Turns kept verbatim in the conversation history
        max_turns_per_round: User turns allowed in one planning round before
            the session is reset
        extraction_timeout_seconds: Bound on a single extraction call
        extraction_max_attempts: Model attempts before the keyword fallback
        retry_min_wait / retry_max_wait: Backoff bounds (seconds)
        session_ttl_seconds: Inactivity window after which a session expires
        max_travelers: Upper bound accepted for num_travelers
        model: Model used by the extractor
        enable_keyword_fallback: Use the keyword extractor when the model fails
    """

    # Conversation limits
    max_history_turns: int = 10
    max_turns_per_round: int = 12

    # Extraction
    extraction_timeout_seconds: float = 20
    extraction_max_attempts: int = 3
    retry_min_wait: float = 1  # seconds
    retry_max_wait: float = 8  # seconds
    enable_keyword_fallback: bool = True

    # LLM configuration
    model: str = "gpt-4.1-mini"

    # Sessions
    session_ttl_seconds: int = 86400

    # Validation
    max_travelers: int = 50


# Default configuration instance
DEFAULT_CONFIG = PlannerConfig()


def get_config(
    max_history_turns: Optional[int] = None,
    max_turns_per_round: Optional[int] = None,
    extraction_timeout_seconds: Optional[float] = None,
    extraction_max_attempts: Optional[int] = None,
    retry_min_wait: Optional[float] = None,
    retry_max_wait: Optional[float] = None,
    enable_keyword_fallback: Optional[bool] = None,
    model: Optional[str] = None,
    session_ttl_seconds: Optional[int] = None,
    max_travelers: Optional[int] = None,
) -> PlannerConfig:
    """
    Create a configuration with optional overrides.

    Returns:
        PlannerConfig with specified overrides applied
    """
    return PlannerConfig(
        max_history_turns=max_history_turns or DEFAULT_CONFIG.max_history_turns,
        max_turns_per_round=max_turns_per_round or DEFAULT_CONFIG.max_turns_per_round,
        extraction_timeout_seconds=extraction_timeout_seconds
        or DEFAULT_CONFIG.extraction_timeout_seconds,
        extraction_max_attempts=extraction_max_attempts
        or DEFAULT_CONFIG.extraction_max_attempts,
        retry_min_wait=retry_min_wait
        if retry_min_wait is not None
        else DEFAULT_CONFIG.retry_min_wait,
        retry_max_wait=retry_max_wait
        if retry_max_wait is not None
        else DEFAULT_CONFIG.retry_max_wait,
        enable_keyword_fallback=enable_keyword_fallback
        if enable_keyword_fallback is not None
        else DEFAULT_CONFIG.enable_keyword_fallback,
        model=model or DEFAULT_CONFIG.model,
        session_ttl_seconds=session_ttl_seconds or DEFAULT_CONFIG.session_ttl_seconds,
        max_travelers=max_travelers or DEFAULT_CONFIG.max_travelers,
    )


def load_config_from_env() -> PlannerConfig:
    """Build a config from TRAVEL_* environment variables (after .env loading)."""
    load_dotenv()

    def _get(name: str, cast):
        raw = os.environ.get(f"TRAVEL_{name.upper()}")
        return cast(raw) if raw not in (None, "") else None

    def _bool(raw: str) -> bool:
        return raw.strip().lower() in ("1", "true", "yes", "on")

    return get_config(
        max_history_turns=_get("max_history_turns", int),
        max_turns_per_round=_get("max_turns_per_round", int),
        extraction_timeout_seconds=_get("extraction_timeout_seconds", float),
        extraction_max_attempts=_get("extraction_max_attempts", int),
        retry_min_wait=_get("retry_min_wait", float),
        retry_max_wait=_get("retry_max_wait", float),
        enable_keyword_fallback=_get("enable_keyword_fallback", _bool),
        model=_get("model", str),
        session_ttl_seconds=_get("session_ttl_seconds", int),
        max_travelers=_get("max_travelers", int),
    )
