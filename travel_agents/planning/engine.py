"""
Planning engine.

Ties extraction, gap analysis and task generation together as an explicit
state machine (see transitions.py). The engine never holds the
authoritative ConversationState: it deep-copies what it is given and
returns the state the caller should persist.
"""

import logging
from typing import Optional

from travel_agents.shared.clock import Clock, SystemClock
from travel_agents.shared.llm.client import ModelClient, OpenAIModelClient
from travel_agents.shared.logging.config import log_state_transition
from travel_agents.planning.extraction import (
    KeywordTripInfoExtractor,
    ModelTripInfoExtractor,
    ResilientExtractor,
    TripInfoExtractor,
)
from travel_agents.planning.graph.build import create_planning_graph
from travel_agents.planning.graph.config import DEFAULT_CONFIG, PlannerConfig
from travel_agents.planning.schemas import (
    COMPLETE,
    ERROR,
    ConversationState,
    PlanningGraphState,
    TurnResult,
)
from travel_agents.planning.transitions import NEW_ROUND, RESET, next_state


logger = logging.getLogger(__name__)

QUICK_PLAN_SESSION = "quick-plan"


def build_extractor(
    config: PlannerConfig,
    client: Optional[ModelClient] = None,
) -> ResilientExtractor:
    """
    Model extractor wrapped with timeout, retry and (optionally) the keyword fallback.

    Args:
        config: Planner configuration
        client: Model client; defaults to the OpenAI-backed client

    Returns:
        ResilientExtractor
    """
    return ResilientExtractor(
        primary=ModelTripInfoExtractor(client or OpenAIModelClient(model=config.model)),
        fallback=KeywordTripInfoExtractor() if config.enable_keyword_fallback else None,
        timeout_seconds=config.extraction_timeout_seconds,
        max_attempts=config.extraction_max_attempts,
        retry_min_wait=config.retry_min_wait,
        retry_max_wait=config.retry_max_wait,
    )


class PlanningEngine:
    """Runs one planning turn through the planning graph."""

    def __init__(
        self,
        extractor: TripInfoExtractor,
        config: Optional[PlannerConfig] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.clock = clock or SystemClock()
        self._graph = create_planning_graph(extractor, self.config)

    def new_state(self, session_id: str) -> ConversationState:
        return ConversationState.fresh(
            session_id,
            max_history_turns=self.config.max_history_turns,
            now=self.clock.now(),
        )

    def _start_new_round(self, state: ConversationState) -> None:
        """A turn on a completed session opens the next round, seeded with its TripInfo."""
        from_state = state.machine_state
        state.machine_state = next_state(from_state, NEW_ROUND)
        state.round += 1
        state.turns_in_round = 0
        state.task_list = None
        log_state_transition(
            NEW_ROUND,
            {
                "session_id": state.session_id,
                "from_state": from_state,
                "to_state": state.machine_state,
                "round": state.round,
                "turns_in_round": 0,
                "missing_fields": state.trip_info.missing_required(),
            },
        )

    async def process_turn(self, state: ConversationState, utterance: str) -> TurnResult:
        """
        Process one user turn.

        Args:
            state: Current session state (not modified)
            utterance: The user's message

        Returns:
            TurnResult with the response and the state to persist

        Raises:
            TaskGraphCycleError: If the generated task list is cyclic (fatal)
            InvalidTransitionError: If the graph asks for an undefined transition
        """
        working = state.model_copy(deep=True)

        if working.machine_state == COMPLETE:
            self._start_new_round(working)
        elif working.machine_state == ERROR:
            working.machine_state = next_state(ERROR, RESET)

        return await self._run(working, utterance, persist=True)

    async def quick_plan(self, utterance: str):
        """
        Single-shot planning against a fresh state.

        Nothing is persisted and no context id is returned, so two identical
        requests produce identical responses.
        """
        state = self.new_state(QUICK_PLAN_SESSION)
        result = await self._run(state, utterance, persist=False)
        return result.response

    async def _run(self, state: ConversationState, utterance: str, persist: bool) -> TurnResult:
        _log = f"[session={state.session_id}] [graph=planning] "
        logger.info(
            f"{_log}Processing turn | round={state.round}, machine_state={state.machine_state}, "
            f"persist={persist}"
        )

        graph_state: PlanningGraphState = {
            "session_id": state.session_id,
            "utterance": utterance.strip(),
            "today": self.clock.today(),
            "now": self.clock.now(),
            "persist": persist,
            "conversation": state,
            "extraction": None,
            "extraction_error": None,
            "rejected": [],
            "missing_fields": [],
            "event": None,
            "response": None,
        }

        final = await self._graph.ainvoke(graph_state)

        logger.info(f"{_log}Turn finished | status={final['response'].status}")
        return TurnResult(response=final["response"], state=final["conversation"])
