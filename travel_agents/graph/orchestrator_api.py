"""
FastAPI endpoints for the orchestrator.

``/turn`` streams progress as newline-delimited JSON while the round is
dispatched; ``/run`` waits for the whole turn and returns the aggregate.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from travel_agents.planning.planner_api import get_planning_service
from travel_agents.planning.schemas import TurnRequest
from travel_agents.graph.config import load_config_from_env
from travel_agents.graph.orchestrator import (
    Orchestrator,
    OrchestratorTurnResult,
    build_registry,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orchestrator", tags=["orchestrator"])

_orchestrator: Optional[Orchestrator] = None


def get_orchestrator() -> Orchestrator:
    """Dependency returning the shared orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        config = load_config_from_env()
        _orchestrator = Orchestrator(
            planning=get_planning_service(),
            registry=build_registry(config),
            config=config,
        )
    return _orchestrator


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/turn")
async def orchestrator_turn(
    request: TurnRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Run one turn and stream ProgressEvents as NDJSON.

    If the client goes away mid-stream, no further tasks are dispatched.
    """
    _log = f"[session={request.context_id or 'new'}] [graph=orchestrator] [api=turn] "
    logger.info(f"{_log}Streaming turn | query_len={len(request.query)}")

    cancel_event = asyncio.Event()

    async def stream():
        events = orchestrator.handle_turn(request.query, request.context_id, cancel_event)
        try:
            async for event in events:
                yield event.model_dump_json(exclude_none=True) + "\n"
        finally:
            cancel_event.set()
            await events.aclose()

    return StreamingResponse(stream(), media_type="application/x-ndjson")


@router.post("/run", response_model=OrchestratorTurnResult)
async def run_orchestrator(
    request: TurnRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """
    Run one turn to completion.

    Returns the planner's response and, when the round completed, the
    per-task outcomes.
    """
    _log = f"[session={request.context_id or 'new'}] [graph=orchestrator] [api=run] "

    try:
        result = await orchestrator.run_turn(request.query, request.context_id)
    except Exception as e:
        logger.exception(f"{_log}Turn failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Orchestrator turn failed: {str(e)}",
        )

    logger.info(f"{_log}Turn finished | status={result.status}")
    return result
