"""
FastAPI endpoints for the planning agent.

Provides the conversational turn endpoint, the stateless quick-plan
endpoint, session inspection, and the agent discovery document.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request

from travel_agents.shared.contracts import (
    CompletedResponse,
    ErrorResponse,
    InputRequiredResponse,
    build_planner_card,
)
from travel_agents.planning.engine import PlanningEngine, build_extractor
from travel_agents.planning.graph.config import load_config_from_env
from travel_agents.planning.schemas import (
    QuickPlanRequest,
    SessionStatusResponse,
    TurnRequest,
)
from travel_agents.planning.service import PlanningService
from travel_agents.sessions.store import InMemoryConversationStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/planner", tags=["planner"])
discovery_router = APIRouter(tags=["discovery"])

PlannerResponseModel = Union[InputRequiredResponse, CompletedResponse, ErrorResponse]

# Process-wide service, built on first use
_service: Optional[PlanningService] = None


def get_planning_service() -> PlanningService:
    """Dependency returning the shared planning service."""
    global _service
    if _service is None:
        config = load_config_from_env()
        engine = PlanningEngine(build_extractor(config), config)
        store = InMemoryConversationStore(default_ttl=config.session_ttl_seconds)
        _service = PlanningService(engine, store)
        logger.info(f"Planning service ready | model={config.model}")
    return _service


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/turn", response_model=PlannerResponseModel)
async def planner_turn(
    request: TurnRequest,
    service: PlanningService = Depends(get_planning_service),
):
    """
    Process one conversational planning turn.

    Starts a new session when no context_id is given; the response always
    echoes the session's context_id.
    """
    _log = f"[session={request.context_id or 'new'}] [graph=planning] [api=turn] "
    logger.info(f"{_log}Turn received | query_len={len(request.query)}")

    try:
        result = await service.handle_turn(request.query, request.context_id)
    except Exception as e:
        logger.exception(f"{_log}Turn failed: {e}")
        raise HTTPException(status_code=500, detail=f"Planning turn failed: {str(e)}")

    logger.info(f"{_log}Turn answered | status={result.response.status}")
    return result.response


@router.post("/plan", response_model=PlannerResponseModel)
async def quick_plan(
    request: QuickPlanRequest,
    service: PlanningService = Depends(get_planning_service),
):
    """
    Plan from a single self-contained request.

    Nothing is stored and no context_id is returned.
    """
    _log = "[session=quick-plan] [graph=planning] [api=plan] "
    logger.info(f"{_log}Quick plan requested | query_len={len(request.query)}")

    try:
        return await service.quick_plan(request.query)
    except Exception as e:
        logger.exception(f"{_log}Quick plan failed: {e}")
        raise HTTPException(status_code=500, detail=f"Quick plan failed: {str(e)}")


@router.get("/session/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    service: PlanningService = Depends(get_planning_service),
):
    """Get the current state of a planning session."""
    state = service.load(session_id)
    if state is None:
        return SessionStatusResponse(session_id=session_id, exists=False)

    return SessionStatusResponse(
        session_id=session_id,
        exists=True,
        machine_state=state.machine_state,
        round=state.round,
        turns_in_round=state.turns_in_round,
        trip_info=state.trip_info,
        missing_fields=state.trip_info.missing_required(),
    )


@router.delete("/session/{session_id}")
async def delete_session(
    session_id: str,
    service: PlanningService = Depends(get_planning_service),
):
    """Forget a planning session."""
    service.delete(session_id)
    logger.info(f"[session={session_id}] [graph=planning] [api=delete] Session deleted")
    return {"session_id": session_id, "deleted": True}


@discovery_router.get("/.well-known/agent.json")
async def agent_card(request: Request):
    """Discovery document for agent directories."""
    card = build_planner_card(base_url=str(request.base_url))
    return card.model_dump(by_alias=True)
