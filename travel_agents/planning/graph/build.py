"""
Graph construction for the planning engine.

Builds and compiles the per-turn LangGraph workflow.
"""

from typing import Optional

from langgraph.graph import StateGraph, END

from travel_agents.planning.extraction.base import TripInfoExtractor
from travel_agents.planning.graph.config import PlannerConfig, DEFAULT_CONFIG
from travel_agents.planning.nodes.extract import make_extract_node
from travel_agents.planning.nodes.merge import make_merge_node
from travel_agents.planning.nodes.output import ask_node, plan_node, make_fail_node
from travel_agents.planning.nodes.routing import route_after_extract, route_turn
from travel_agents.planning.schemas import PlanningGraphState


def create_planning_graph(
    extractor: TripInfoExtractor,
    config: Optional[PlannerConfig] = None,
):
    """
    Create and compile the LangGraph workflow for one planning turn.

    The graph structure is:
        Entry → extract → route_after_extract()
                            ├→ failed → fail → END
                            └→ merge → route_turn()
                                          ├→ missing_fields → ask → END
                                          ├→ fields_complete → plan → END
                                          └→ history_exhausted → fail → END

    Args:
        extractor: TripInfo extractor (normally a ResilientExtractor)
        config: Optional configuration. Uses DEFAULT_CONFIG if not provided.

    Returns:
        Compiled LangGraph application ready for execution.
    """
    if config is None:
        config = DEFAULT_CONFIG

    graph = StateGraph(PlanningGraphState)

    # Add nodes
    graph.add_node("extract", make_extract_node(extractor, config))
    graph.add_node("merge", make_merge_node(config))
    graph.add_node("ask", ask_node)
    graph.add_node("plan", plan_node)
    graph.add_node("fail", make_fail_node(config))

    # Set entry point
    graph.set_entry_point("extract")

    graph.add_conditional_edges(
        "extract",
        route_after_extract,
        {
            "merge": "merge",
            "fail": "fail",
        },
    )
    graph.add_conditional_edges(
        "merge",
        route_turn,
        {
            "ask": "ask",
            "plan": "plan",
            "fail": "fail",
        },
    )

    # Every response node ends the turn
    graph.add_edge("ask", END)
    graph.add_edge("plan", END)
    graph.add_edge("fail", END)

    return graph.compile()
