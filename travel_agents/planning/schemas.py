"""
Schemas for the planning engine.

Defines the persisted conversation state, the LangGraph state schema used
for a single turn, and API request/response models.
"""

import time
from dataclasses import dataclass
from datetime import date
from typing import TypedDict, List, Optional, Literal, Any

from pydantic import BaseModel, ConfigDict, Field

from travel_agents.shared.contracts import TripInfo, TaskList
from travel_agents.planning.history import TurnHistory


MachineState = Literal["gathering", "complete", "error"]

GATHERING: MachineState = "gathering"
COMPLETE: MachineState = "complete"
ERROR: MachineState = "error"


# =============================================================================
# Conversation State (persisted)
# =============================================================================


class ConversationState(BaseModel):
    """
    Per-session planning state.

    Owned by the conversation store. The planning engine only ever works on
    a copy and hands back the state to persist.
    """

    session_id: str = Field(description="Session / context identifier")
    trip_info: TripInfo = Field(default_factory=TripInfo)
    history: TurnHistory = Field(default_factory=TurnHistory)
    machine_state: MachineState = Field(default=GATHERING)
    round: int = Field(default=1, ge=1, description="Planning round counter")
    turns_in_round: int = Field(default=0, ge=0)
    last_question_field: Optional[str] = Field(
        default=None, description="Field the last input_required question asked for"
    )
    task_list: Optional[TaskList] = Field(
        default=None, description="TaskList produced when the round completed"
    )
    last_touched: float = Field(default_factory=time.time, description="Epoch seconds")

    @classmethod
    def fresh(
        cls,
        session_id: str,
        max_history_turns: int = 10,
        now: Optional[float] = None,
    ) -> "ConversationState":
        """Create an empty gathering state for a session."""
        return cls(
            session_id=session_id,
            history=TurnHistory(max_turns=max_history_turns),
            last_touched=time.time() if now is None else now,
        )


@dataclass
class TurnResult:
    """Outcome of one planning turn: the response and the state to persist."""

    response: Any
    state: ConversationState


# =============================================================================
# LangGraph State Schema
# =============================================================================


class PlanningGraphState(TypedDict, total=False):
    """
    State flowing through the per-turn planning graph.

    ``conversation`` holds the working copy of the ConversationState;
    nodes replace it rather than mutating the caller's object.
    """

    session_id: str
    utterance: str
    today: date
    now: float
    persist: bool

    conversation: ConversationState

    # extract node output
    extraction: Optional[Any]
    extraction_error: Optional[str]

    # merge node output
    rejected: List[Any]
    dropped: List[Any]
    missing_fields: List[str]

    # state machine
    event: Optional[str]
    response: Optional[Any]


# =============================================================================
# API Request/Response Models
# =============================================================================


class TurnRequest(BaseModel):
    """Conversational planning turn."""

    query: str = Field(min_length=1, description="The user's message")
    context_id: Optional[str] = Field(
        default=None, description="Session id; generated when absent"
    )


class QuickPlanRequest(BaseModel):
    """Stateless single-shot plan request. No session id is accepted."""

    model_config = ConfigDict(extra="forbid")

    query: str = Field(min_length=1, description="Self-contained trip request")


class SessionStatusResponse(BaseModel):
    """Response for session status query."""

    session_id: str
    exists: bool
    machine_state: Optional[MachineState] = None
    round: Optional[int] = None
    turns_in_round: Optional[int] = None
    trip_info: Optional[TripInfo] = None
    missing_fields: List[str] = Field(default_factory=list)
