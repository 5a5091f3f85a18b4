"""Graph nodes for the planning engine."""

from travel_agents.planning.nodes.extract import make_extract_node
from travel_agents.planning.nodes.merge import make_merge_node
from travel_agents.planning.nodes.routing import route_after_extract, route_turn
from travel_agents.planning.nodes.output import ask_node, plan_node, make_fail_node

__all__ = [
    "make_extract_node",
    "make_merge_node",
    "route_after_extract",
    "route_turn",
    "ask_node",
    "plan_node",
    "make_fail_node",
]
