"""
Planning state machine transition table.

Every state change the planning graph makes is looked up here; a pair that
is not in the table is a bug in the graph wiring, not a user error.
"""

import logging
from typing import Dict, Tuple

from travel_agents.shared.errors import InvalidTransitionError
from travel_agents.planning.schemas import COMPLETE, ERROR, GATHERING, MachineState


logger = logging.getLogger(__name__)

MISSING_FIELDS = "missing_fields"
FIELDS_COMPLETE = "fields_complete"
EXTRACTION_FAILED = "extraction_failed"
HISTORY_EXHAUSTED = "history_exhausted"
NEW_ROUND = "new_round"
RESET = "reset"

TRANSITIONS: Dict[Tuple[MachineState, str], MachineState] = {
    (GATHERING, MISSING_FIELDS): GATHERING,
    (GATHERING, FIELDS_COMPLETE): COMPLETE,
    (GATHERING, EXTRACTION_FAILED): ERROR,
    (GATHERING, HISTORY_EXHAUSTED): ERROR,
    (COMPLETE, NEW_ROUND): GATHERING,
    (ERROR, RESET): GATHERING,
}


def next_state(current: MachineState, event: str) -> MachineState:
    """
    Look up the target state for an event.

    Raises:
        InvalidTransitionError: If the (state, event) pair is not defined
    """
    try:
        target = TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"No transition from '{current}' on event '{event}'"
        ) from None
    logger.debug(f"Transition {current} --{event}--> {target}")
    return target
