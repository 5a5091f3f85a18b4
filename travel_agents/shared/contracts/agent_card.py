"""
Agent discovery document.

Static descriptor of the planner's capabilities and endpoint, published
for consumption by agent directories.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AgentSkill(BaseModel):
    """A skill advertised by an agent."""

    id: str
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)


class AgentCard(BaseModel):
    """Discovery document served at /.well-known/agent.json."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    description: str
    url: str
    version: str = "0.1.0"
    capabilities: Dict[str, bool] = Field(default_factory=dict)
    default_input_modes: List[str] = Field(default_factory=lambda: ["text"])
    default_output_modes: List[str] = Field(default_factory=lambda: ["text", "json"])
    skills: List[AgentSkill] = Field(default_factory=list)


def build_planner_card(base_url: str, version: str = "0.1.0") -> AgentCard:
    """
    Build the discovery document for the planning agent.

    Args:
        base_url: Public URL the planner is reachable at
        version: Service version

    Returns:
        AgentCard describing the planner
    """
    return AgentCard(
        name="Planner Agent",
        description=(
            "Travel planning agent that gathers trip details over a conversation "
            "and decomposes them into booking tasks for specialised agents"
        ),
        url=base_url,
        version=version,
        capabilities={
            "streaming": True,
            "pushNotifications": False,
            "stateTransitionHistory": True,
            "sessionManagement": True,
        },
        default_input_modes=["text"],
        default_output_modes=["text", "json"],
        skills=[
            AgentSkill(
                id="travel_planning",
                name="Travel Planning & Task Decomposition",
                description=(
                    "Analyzes travel requests and breaks them down into airfare, "
                    "hotel and car rental tasks"
                ),
                tags=["planning", "travel", "task-decomposition"],
                examples=[
                    "Plan a business trip to Tokyo for next month",
                    "I want to visit Paris from March 15 to March 22",
                    "Two of us flying from Boston to Lisbon on 2025-06-01, need a car",
                ],
            )
        ],
    )
