"""
Merge node for the planning graph.

Adopts the extractor's validated TripInfo, records the user turn, and
decides which state-machine event this turn produces.
"""

import logging
from typing import Any, Callable, Dict

from travel_agents.planning.gaps import analyze_gaps, split_rejections
from travel_agents.planning.graph.config import PlannerConfig
from travel_agents.planning.schemas import PlanningGraphState
from travel_agents.planning.transitions import (
    FIELDS_COMPLETE,
    HISTORY_EXHAUSTED,
    MISSING_FIELDS,
)


logger = logging.getLogger(__name__)


def make_merge_node(config: PlannerConfig) -> Callable[[PlanningGraphState], Dict[str, Any]]:
    """Bind the config into the merge node."""

    def merge_node(state: PlanningGraphState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        _log = f"[session={session_id}] [graph=planning] [node=merge] "

        conversation = state["conversation"].model_copy(deep=True)
        result = state["extraction"]

        conversation.trip_info = result.trip_info
        conversation.history.append("user", state["utterance"], timestamp=state.get("now"))
        conversation.turns_in_round += 1
        conversation.last_touched = state.get("now", conversation.last_touched)

        gaps = analyze_gaps(conversation.trip_info)
        missing = [gap.field for gap in gaps if gap.required]

        blocking, dropped = split_rejections(result.errors)

        if gaps or blocking:
            if conversation.turns_in_round >= config.max_turns_per_round:
                event = HISTORY_EXHAUSTED
            else:
                event = MISSING_FIELDS
        else:
            event = FIELDS_COMPLETE

        logger.info(
            f"{_log}Node finished | event={event}, missing={missing}, "
            f"rejected={[e.field for e in blocking]}, dropped={[e.field for e in dropped]}, "
            f"turns_in_round={conversation.turns_in_round}/{config.max_turns_per_round}"
        )

        return {
            "conversation": conversation,
            "rejected": blocking,
            "dropped": dropped,
            "missing_fields": missing,
            "event": event,
        }

    return merge_node
