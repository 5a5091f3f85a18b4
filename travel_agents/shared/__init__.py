"""
Shared infrastructure for all agents.

Modules:
- llm: async OpenAI client for trip extraction
- logging: Structured JSON logging
- contracts: Agent contracts for planner/orchestrator handoffs
- errors: Error taxonomy
"""

from travel_agents.shared.llm.client import get_cached_client, OpenAIModelClient
from travel_agents.shared.logging.config import setup_logging, log_state_transition

__all__ = [
    "get_cached_client",
    "OpenAIModelClient",
    "setup_logging",
    "log_state_transition",
]
