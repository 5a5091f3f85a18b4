"""
FastAPI application entry point.

Assembles the FastAPI app with the planner and orchestrator routers.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from travel_agents.planning.planner_api import router as planner_router
from travel_agents.planning.planner_api import discovery_router
from travel_agents.graph.orchestrator_api import router as orchestrator_router
from travel_agents.shared.logging.config import setup_logging


# ============================================================================
# Logging configuration (single source of truth for all agents)
# ============================================================================
# TRAVEL_LOG_FORMAT=json switches to one JSON object per line
load_dotenv()
setup_logging(
    level=logging.getLevelName(os.environ.get("TRAVEL_LOG_LEVEL", "INFO").upper()),
    json_format=os.environ.get("TRAVEL_LOG_FORMAT", "text").lower() == "json",
    log_file=os.environ.get("TRAVEL_LOG_FILE") or None,
)


# Create FastAPI app
app = FastAPI(
    title="Travel Agents",
    description="Conversational trip planning and booking-task orchestration built with LangGraph",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(planner_router)
app.include_router(orchestrator_router)
app.include_router(discovery_router)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Travel Agents",
        "version": "0.1.0",
        "agents": {
            "planner": {
                "status": "active",
                "endpoints": "/api/planner",
                "discovery": "/.well-known/agent.json",
            },
            "orchestrator": {
                "status": "active",
                "endpoints": "/api/orchestrator",
            },
            "air_tickets": {"status": "external"},
            "hotels": {"status": "external"},
            "car_rental": {"status": "external"},
        },
    }


@app.get("/health")
async def health():
    """Global health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
