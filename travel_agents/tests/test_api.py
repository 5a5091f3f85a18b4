"""
Tests for the HTTP surface.

The app's service dependencies are overridden with keyword-extractor
instances so no model is called.
"""

import json

import pytest
from fastapi.testclient import TestClient

from travel_agents.main import app
from travel_agents.planning.engine import PlanningEngine
from travel_agents.planning.extraction import KeywordTripInfoExtractor
from travel_agents.planning.graph.config import PlannerConfig
from travel_agents.planning.planner_api import get_planning_service
from travel_agents.planning.service import PlanningService
from travel_agents.registry.client import StaticAgentRegistry
from travel_agents.sessions.store import InMemoryConversationStore
from travel_agents.graph.dispatch import LocalAgentDispatcher
from travel_agents.graph.orchestrator import Orchestrator
from travel_agents.graph.orchestrator_api import get_orchestrator


COMPLETE_TRIP = "Fly from Boston to Rome on 2024-05-10 returning 2024-05-14 for 2 people"


async def _ok(task, context_id):
    return f"{task.agent} booked"


@pytest.fixture
def client(clock):
    engine = PlanningEngine(KeywordTripInfoExtractor(), PlannerConfig(), clock=clock)
    service = PlanningService(engine, InMemoryConversationStore(clock=clock))
    orchestrator = Orchestrator(
        planning=service,
        registry=StaticAgentRegistry({"air_tickets": "local", "hotels": "local"}),
        dispatcher=LocalAgentDispatcher({"air_tickets": _ok, "hotels": _ok}),
    )

    app.dependency_overrides[get_planning_service] = lambda: service
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# TestPlannerApi
# ============================================================================


class TestPlannerApi:
    """Tests for /api/planner."""

    def test_conversation(self, client):
        """Turns continue a session through its context_id."""
        first = client.post("/api/planner/turn", json={"query": "I want to visit Paris"})
        assert first.status_code == 200
        body = first.json()
        assert body["status"] == "input_required"
        assert body["field"] == "origin"
        assert body["tripInfoSoFar"]["destination"] == "Paris"
        context_id = body["context_id"]

        second = client.post(
            "/api/planner/turn", json={"query": "from New York", "context_id": context_id}
        )
        assert second.json()["field"] == "depart_date"

        third = client.post(
            "/api/planner/turn",
            json={"query": "March 15 to March 22", "context_id": context_id},
        )
        body = third.json()
        assert body["status"] == "completed"
        assert body["context_id"] == context_id
        assert [t["type"] for t in body["data"]["tasks"]] == ["airfare", "hotel"]
        assert body["data"]["totalEstimatedTime"] == "23 minutes"

    def test_empty_query_rejected(self, client):
        """An empty query is a validation error."""
        response = client.post("/api/planner/turn", json={"query": ""})
        assert response.status_code == 422

    def test_quick_plan(self, client):
        """Quick plans return no context_id."""
        response = client.post("/api/planner/plan", json={"query": COMPLETE_TRIP})
        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "completed"
        assert body.get("context_id") is None

    def test_quick_plan_rejects_session(self, client):
        """Quick plans do not accept a context_id."""
        response = client.post(
            "/api/planner/plan", json={"query": COMPLETE_TRIP, "context_id": "s1"}
        )
        assert response.status_code == 422

    def test_session_status_and_delete(self, client):
        """Sessions can be inspected and forgotten."""
        client.post("/api/planner/turn", json={"query": "I want to visit Paris", "context_id": "s1"})

        status = client.get("/api/planner/session/s1").json()
        assert status["exists"] is True
        assert status["machine_state"] == "gathering"
        assert status["turns_in_round"] == 1
        assert status["missing_fields"] == ["origin", "depart_date"]

        deleted = client.delete("/api/planner/session/s1").json()
        assert deleted == {"session_id": "s1", "deleted": True}
        assert client.get("/api/planner/session/s1").json()["exists"] is False

    def test_agent_card(self, client):
        """The discovery document advertises the planner."""
        card = client.get("/.well-known/agent.json").json()
        assert card["name"] == "Planner Agent"
        assert card["url"].startswith("http://testserver")
        assert card["skills"][0]["id"] == "travel_planning"

    def test_health(self, client):
        """The health endpoint answers."""
        assert client.get("/health").json() == {"status": "healthy"}


# ============================================================================
# TestOrchestratorApi
# ============================================================================


class TestOrchestratorApi:
    """Tests for /api/orchestrator."""

    def test_run(self, client):
        """/run returns the planner response and the round outcome."""
        response = client.post("/api/orchestrator/run", json={"query": COMPLETE_TRIP})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["planner_response"]["status"] == "completed"
        statuses = body["round"]["statuses"]
        assert {t: s["status"] for t, s in statuses.items()} == {
            "task_1": "succeeded",
            "task_2": "succeeded",
        }
        assert body["events"][-1]["type"] == "final"

    def test_run_input_required(self, client):
        """Incomplete trips come back as input_required with no round."""
        body = client.post(
            "/api/orchestrator/run", json={"query": "I want to visit Paris"}
        ).json()
        assert body["status"] == "input_required"
        assert body["round"] is None

    def test_turn_stream(self, client):
        """/turn streams one JSON event per line."""
        response = client.post(
            "/api/orchestrator/turn", json={"query": COMPLETE_TRIP, "context_id": "s1"}
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")

        events = [json.loads(line) for line in response.text.splitlines() if line]
        types = [e["type"] for e in events]
        assert types[0] == "status"
        assert types[1] == "planning_complete"
        assert types[-1] == "final"
        assert types.count("task_finished") == 2
        assert all(e["context_id"] == "s1" for e in events)
