"""
Configuration for the orchestrator.

Dispatch bounds, registry caching and the static capability -> agent URL
table used when no remote directory is configured.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv


DEFAULT_AGENT_URLS: Dict[str, str] = {
    "air_tickets": "http://localhost:8001/",
    "hotels": "http://localhost:8002/",
    "car_rental": "http://localhost:8003/",
}


@dataclass
class OrchestratorConfig:
    """
    Configuration for the dispatch round.

    Attributes:
        dispatch_timeout_seconds: Bound on a single agent call
        max_concurrency: Tasks of one wave dispatched at the same time
        registry_cache_ttl_seconds: How long a resolved endpoint is reused
        registry_max_attempts: Directory attempts before a lookup fails
        registry_retry_min_wait / registry_retry_max_wait: Backoff bounds (seconds)
        directory_url: Remote agent directory; None disables it
        agent_urls: Static capability -> agent URL mapping, consulted first
    """

    # Dispatch
    dispatch_timeout_seconds: float = 60
    max_concurrency: int = 4

    # Registry
    registry_cache_ttl_seconds: float = 600
    registry_max_attempts: int = 3
    registry_retry_min_wait: float = 0.5  # seconds
    registry_retry_max_wait: float = 4  # seconds
    directory_url: Optional[str] = None
    agent_urls: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_AGENT_URLS))


# Default configuration instance
DEFAULT_CONFIG = OrchestratorConfig()


def get_config(
    dispatch_timeout_seconds: Optional[float] = None,
    max_concurrency: Optional[int] = None,
    registry_cache_ttl_seconds: Optional[float] = None,
    registry_max_attempts: Optional[int] = None,
    registry_retry_min_wait: Optional[float] = None,
    registry_retry_max_wait: Optional[float] = None,
    directory_url: Optional[str] = None,
    agent_urls: Optional[Dict[str, str]] = None,
) -> OrchestratorConfig:
    """
    Create a configuration with optional overrides.

    Returns:
        OrchestratorConfig with specified overrides applied
    """
    return OrchestratorConfig(
        dispatch_timeout_seconds=dispatch_timeout_seconds
        or DEFAULT_CONFIG.dispatch_timeout_seconds,
        max_concurrency=max_concurrency or DEFAULT_CONFIG.max_concurrency,
        registry_cache_ttl_seconds=registry_cache_ttl_seconds
        if registry_cache_ttl_seconds is not None
        else DEFAULT_CONFIG.registry_cache_ttl_seconds,
        registry_max_attempts=registry_max_attempts or DEFAULT_CONFIG.registry_max_attempts,
        registry_retry_min_wait=registry_retry_min_wait
        if registry_retry_min_wait is not None
        else DEFAULT_CONFIG.registry_retry_min_wait,
        registry_retry_max_wait=registry_retry_max_wait
        if registry_retry_max_wait is not None
        else DEFAULT_CONFIG.registry_retry_max_wait,
        directory_url=directory_url or DEFAULT_CONFIG.directory_url,
        agent_urls=dict(agent_urls) if agent_urls is not None else dict(DEFAULT_AGENT_URLS),
    )


def load_config_from_env() -> OrchestratorConfig:
    """
    Build a config from TRAVEL_* environment variables (after .env loading).

    Agent URLs are read from TRAVEL_AGENT_URL_<CAPABILITY>, e.g.
    TRAVEL_AGENT_URL_AIR_TICKETS.
    """
    load_dotenv()

    def _get(name: str, cast):
        raw = os.environ.get(f"TRAVEL_{name.upper()}")
        return cast(raw) if raw not in (None, "") else None

    agent_urls = dict(DEFAULT_AGENT_URLS)
    for capability in DEFAULT_AGENT_URLS:
        url = _get(f"agent_url_{capability}", str)
        if url:
            agent_urls[capability] = url

    return get_config(
        dispatch_timeout_seconds=_get("dispatch_timeout_seconds", float),
        max_concurrency=_get("max_concurrency", int),
        registry_cache_ttl_seconds=_get("registry_cache_ttl_seconds", float),
        registry_max_attempts=_get("registry_max_attempts", int),
        registry_retry_min_wait=_get("registry_retry_min_wait", float),
        registry_retry_max_wait=_get("registry_retry_max_wait", float),
        directory_url=_get("directory_url", str),
        agent_urls=agent_urls,
    )
