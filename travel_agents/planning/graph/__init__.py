"""Graph construction and configuration for the planning engine."""

from travel_agents.planning.graph.build import create_planning_graph
from travel_agents.planning.graph.config import PlannerConfig, get_config

__all__ = ["create_planning_graph", "PlannerConfig", "get_config"]
