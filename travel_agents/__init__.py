"""
Travel planning agents.

This package contains:
- shared/: Common infrastructure (LLM client, logging, contracts, errors)
- planning/: Planning engine that gathers trip facts over a conversation
- tasks/: Task graph builder turning a complete TripInfo into booking tasks
- sessions/: Conversation state store and per-session locks
- registry/: Capability -> booking agent endpoint resolution
- graph/: Top-level orchestrator (planning -> wave-based task dispatch)
"""

from travel_agents.planning.graph.build import create_planning_graph
from travel_agents.graph.build import create_dispatch_graph

__all__ = ["create_planning_graph", "create_dispatch_graph"]
