"""LLM client utilities."""

from travel_agents.shared.llm.client import get_cached_client, ModelClient, OpenAIModelClient

__all__ = ["get_cached_client", "ModelClient", "OpenAIModelClient"]
