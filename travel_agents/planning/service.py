"""
Planning service: the planning engine bound to a session store.

Loads the session under its lock, runs the engine on a copy and persists
what the engine returns. A corrupt stored state is discarded and the turn
continues on a fresh session.
"""

import logging
import uuid
from typing import Optional

from travel_agents.shared.errors import StateCorruptionError
from travel_agents.planning.engine import PlanningEngine
from travel_agents.planning.schemas import ConversationState, TurnResult
from travel_agents.sessions.locks import SessionLocks
from travel_agents.sessions.store import ConversationStateStore


logger = logging.getLogger(__name__)


class PlanningService:
    """Session-aware entry point for conversational planning turns."""

    def __init__(
        self,
        engine: PlanningEngine,
        store: ConversationStateStore,
        locks: Optional[SessionLocks] = None,
    ):
        self.engine = engine
        self.store = store
        self.locks = locks or SessionLocks()

    def load(self, session_id: str) -> Optional[ConversationState]:
        """Stored state, or None when absent, expired or corrupt (corrupt is deleted)."""
        try:
            return self.store.get(session_id)
        except StateCorruptionError as e:
            logger.warning(f"[session={session_id}] Discarding corrupt state: {e}")
            self.store.delete(session_id)
            return None

    async def handle_turn(self, query: str, context_id: Optional[str] = None) -> TurnResult:
        """
        Run one conversational turn.

        Args:
            query: The user's message
            context_id: Existing session id, or None to start a new session

        Returns:
            TurnResult whose response carries the (possibly generated) context id
        """
        session_id = context_id or str(uuid.uuid4())

        async with self.locks.hold(session_id):
            state = self.load(session_id) or self.engine.new_state(session_id)
            result = await self.engine.process_turn(state, query)
            self.store.put(
                session_id, result.state, ttl=self.engine.config.session_ttl_seconds
            )

        return result

    async def quick_plan(self, query: str):
        return await self.engine.quick_plan(query)

    def delete(self, session_id: str) -> None:
        self.store.delete(session_id)
