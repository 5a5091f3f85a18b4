"""
Output nodes for the planning LangGraph workflow.

Each terminal node applies one state-machine transition and emits the
single response for the turn:

- ask:  gathering -> gathering, input_required with the next question
- plan: gathering -> complete, completed with the TaskList
- fail: gathering -> error, error response, then reset to gathering
"""

import logging
from typing import Any, Callable, Dict

from travel_agents.shared.contracts import (
    CompletedResponse,
    ErrorResponse,
    InputRequiredResponse,
)
from travel_agents.shared.logging.config import log_state_transition
from travel_agents.planning.gaps import analyze_gaps, reask_question
from travel_agents.planning.graph.config import PlannerConfig
from travel_agents.planning.schemas import ConversationState, PlanningGraphState
from travel_agents.planning.transitions import (
    EXTRACTION_FAILED,
    FIELDS_COMPLETE,
    MISSING_FIELDS,
    RESET,
    next_state,
)
from travel_agents.tasks.builder import build_task_list


logger = logging.getLogger(__name__)

EXTRACTION_FAILED_MESSAGE = (
    "I'm having trouble understanding that right now. "
    "Could you rephrase your trip details?"
)
HISTORY_EXHAUSTED_MESSAGE = (
    "We've gone back and forth for a while without the details needed to plan, "
    "so let's start fresh. Where would you like to travel, and from where?"
)


def _transition_summary(conversation: ConversationState, from_state: str, to_state: str) -> Dict[str, Any]:
    return {
        "session_id": conversation.session_id,
        "from_state": from_state,
        "to_state": to_state,
        "round": conversation.round,
        "turns_in_round": conversation.turns_in_round,
        "missing_fields": conversation.trip_info.missing_required(),
    }


def _context_id(state: PlanningGraphState):
    return state.get("session_id") if state.get("persist", True) else None


def ask_node(state: PlanningGraphState) -> Dict[str, Any]:
    """Emit the single highest-priority question (or a re-ask after a rejected value)."""
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=planning] [node=ask] "

    conversation = state["conversation"]
    from_state = conversation.machine_state
    conversation.machine_state = next_state(from_state, MISSING_FIELDS)

    rejected = state.get("rejected") or []
    if rejected:
        field = rejected[0].field
        question = reask_question(rejected[0])
    else:
        gap = analyze_gaps(conversation.trip_info)[0]
        field = gap.field
        question = gap.question

    conversation.last_question_field = field
    conversation.history.append("assistant", question, timestamp=state.get("now"))

    log_state_transition(
        MISSING_FIELDS,
        _transition_summary(conversation, from_state, conversation.machine_state),
        extra={"question_field": field},
    )
    logger.info(f"{_log}Asking for '{field}'")

    return {
        "conversation": conversation,
        "response": InputRequiredResponse(
            context_id=_context_id(state),
            question=question,
            field=field,
            trip_info_so_far=conversation.trip_info,
        ),
    }


def plan_node(state: PlanningGraphState) -> Dict[str, Any]:
    """
    Build the TaskList and complete the round.

    A TaskGraphCycleError from the builder is not caught here: it means the
    builder is broken and the whole round is aborted.
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=planning] [node=plan] "

    conversation = state["conversation"]
    from_state = conversation.machine_state
    to_state = next_state(from_state, FIELDS_COMPLETE)

    task_list = build_task_list(conversation.trip_info)
    dropped = state.get("dropped") or []
    if dropped:
        notes = " ".join(f"Ignored {e.field.replace('_', ' ')} ({e.message})." for e in dropped)
        task_list = task_list.model_copy(update={"reasoning": f"{task_list.reasoning} {notes}"})

    conversation.machine_state = to_state
    conversation.task_list = task_list
    conversation.last_question_field = None
    conversation.history.append(
        "assistant",
        f"Plan ready with {len(task_list.tasks)} booking tasks "
        f"({', '.join(t.type for t in task_list.tasks)}).",
        timestamp=state.get("now"),
    )

    log_state_transition(
        FIELDS_COMPLETE,
        _transition_summary(conversation, from_state, to_state),
        extra={"tasks": task_list.task_ids()},
    )
    logger.info(
        f"{_log}Round {conversation.round} COMPLETE | tasks={len(task_list.tasks)}, "
        f"total_time={task_list.total_estimated_time}"
    )

    return {
        "conversation": conversation,
        "response": CompletedResponse(context_id=_context_id(state), data=task_list),
    }


def make_fail_node(config: PlannerConfig) -> Callable[[PlanningGraphState], Dict[str, Any]]:
    """Bind the config (history size for the reset state) into the fail node."""

    def fail_node(state: PlanningGraphState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        _log = f"[session={session_id}] [graph=planning] [node=fail] "

        event = state.get("event")
        conversation = state["conversation"]
        from_state = conversation.machine_state
        error_state = next_state(from_state, event)

        log_state_transition(
            event,
            _transition_summary(conversation, from_state, error_state),
            extra={"error": state.get("extraction_error")},
        )

        if event == EXTRACTION_FAILED:
            # The failing turn is dropped: stored trip facts stay as they were
            reset = conversation.model_copy(deep=True)
            message = EXTRACTION_FAILED_MESSAGE
            detail = state.get("extraction_error")
        else:
            reset = ConversationState.fresh(
                conversation.session_id,
                max_history_turns=config.max_history_turns,
                now=state.get("now"),
            )
            message = HISTORY_EXHAUSTED_MESSAGE
            detail = (
                f"No complete trip after {conversation.turns_in_round} turns "
                f"(limit {config.max_turns_per_round})"
            )

        reset.machine_state = next_state(error_state, RESET)
        logger.warning(f"{_log}Turn failed | event={event}, detail={detail}")

        return {
            "conversation": reset,
            "response": ErrorResponse(
                context_id=_context_id(state), message=message, error=detail
            ),
        }

    return fail_node
