"""Conversation state storage and per-session locking."""

from travel_agents.sessions.store import ConversationStateStore, InMemoryConversationStore
from travel_agents.sessions.locks import SessionLocks

__all__ = ["ConversationStateStore", "InMemoryConversationStore", "SessionLocks"]
