"""Capability -> booking agent endpoint resolution."""

from travel_agents.registry.client import (
    AgentEndpoint,
    AgentRegistry,
    CachingAgentRegistry,
    ChainedAgentRegistry,
    DirectoryAgentRegistry,
    StaticAgentRegistry,
)

__all__ = [
    "AgentEndpoint",
    "AgentRegistry",
    "CachingAgentRegistry",
    "ChainedAgentRegistry",
    "DirectoryAgentRegistry",
    "StaticAgentRegistry",
]
