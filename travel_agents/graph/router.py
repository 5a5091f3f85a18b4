"""
Routing logic for the dispatch graph.

Decides whether another wave of tasks should run or the round is done.
"""

import logging
from typing import Literal

from travel_agents.graph.state import DispatchState


logger = logging.getLogger(__name__)


def route_next_wave(state: DispatchState) -> Literal["dispatch_wave", "aggregate"]:
    """
    Determine the next node to execute.

    Routing logic:
    1. If the round was cancelled -> aggregate (remaining tasks get skipped there)
    2. If waves remain -> dispatch_wave
    3. Otherwise -> aggregate

    Args:
        state: Current dispatch state

    Returns:
        Name of the next node to execute
    """
    session_id = state.get("session_id", "unknown")
    wave = state.get("wave", 0)
    total = len(state.get("layers", []))
    cancelled = state["cancel_event"].is_set()
    _log = f"[session={session_id}] [graph=dispatch] [router=route_next_wave] "

    if cancelled:
        logger.info(f"{_log}Routing to 'aggregate' | cancelled at wave {wave}/{total}")
        return "aggregate"

    if wave < total:
        logger.info(f"{_log}Routing to 'dispatch_wave' | wave={wave + 1}/{total}")
        return "dispatch_wave"

    logger.info(f"{_log}Routing to 'aggregate' | waves={total}")
    return "aggregate"
