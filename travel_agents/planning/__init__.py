"""
Planning agent.

Gathers trip facts over a multi-turn conversation, asks for what is
missing one question at a time, and emits a TaskList once the trip is
fully specified.
"""

from travel_agents.planning.schemas import ConversationState
from travel_agents.planning.engine import PlanningEngine, build_extractor

__all__ = ["ConversationState", "PlanningEngine", "build_extractor"]
