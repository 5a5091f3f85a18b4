"""
Routing logic for the planning LangGraph workflow.

Determines the next node to execute based on the state-machine event.
"""

import logging
from typing import Literal

from travel_agents.planning.schemas import PlanningGraphState
from travel_agents.planning.transitions import FIELDS_COMPLETE, MISSING_FIELDS


logger = logging.getLogger(__name__)


def route_after_extract(state: PlanningGraphState) -> Literal["merge", "fail"]:
    """Skip the merge entirely when extraction failed, so nothing is written."""
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=planning] [router=route_after_extract] "

    if state.get("extraction") is None:
        logger.info(f"{_log}Routing to 'fail' | extraction_error={state.get('extraction_error')}")
        return "fail"
    return "merge"


def route_turn(state: PlanningGraphState) -> Literal["ask", "plan", "fail"]:
    """
    Map the merge node's event to the node that emits the response.

    Args:
        state: Current planning graph state

    Returns:
        "ask" for missing fields, "plan" when complete, "fail" otherwise
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=planning] [router=route_turn] "

    event = state.get("event")
    if event == MISSING_FIELDS:
        target = "ask"
    elif event == FIELDS_COMPLETE:
        target = "plan"
    else:
        target = "fail"

    logger.info(f"{_log}Routing to '{target}' | event={event}")
    return target
