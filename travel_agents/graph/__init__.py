"""
Top-level orchestrator.

Runs a planning turn and, once the planner completes a round, dispatches
its TaskList to the booking agents:
    turn -> planning engine -> (completed) -> dispatch waves -> aggregate
"""

from travel_agents.graph.build import create_dispatch_graph
from travel_agents.graph.config import OrchestratorConfig, get_config
from travel_agents.graph.orchestrator import Orchestrator, OrchestratorTurnResult, build_registry

__all__ = [
    "create_dispatch_graph",
    "OrchestratorConfig",
    "get_config",
    "Orchestrator",
    "OrchestratorTurnResult",
    "build_registry",
]
