"""
Capped conversation history.

Keeps the most recent turns verbatim and folds everything older into a
single rolling summary line, so the extractor's input stays the same size
no matter how long a conversation runs.
"""

import time
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


Role = Literal["user", "assistant", "system"]

# Characters of evicted user text carried in the rolling summary
SUMMARY_FACTS_LIMIT = 240


class Turn(BaseModel):
    """A single message in the conversation."""

    role: Role
    content: str
    timestamp: float = Field(default_factory=time.time)


class TurnHistory(BaseModel):
    """
    Ordered turn buffer bounded to ``max_turns`` entries.

    Attributes:
        turns: Most recent turns, oldest first
        max_turns: Capacity of the verbatim buffer
        evicted_count: Number of turns folded into the summary so far
        summary_facts: Latest user text seen among the evicted turns
    """

    turns: List[Turn] = Field(default_factory=list)
    max_turns: int = Field(default=10, ge=1)
    evicted_count: int = Field(default=0, ge=0)
    summary_facts: Optional[str] = None

    def append(self, role: Role, content: str, timestamp: Optional[float] = None) -> None:
        self.turns.append(
            Turn(
                role=role,
                content=content,
                timestamp=time.time() if timestamp is None else timestamp,
            )
        )
        while len(self.turns) > self.max_turns:
            self._evict(self.turns.pop(0))

    def _evict(self, turn: Turn) -> None:
        self.evicted_count += 1
        if turn.role == "user":
            facts = turn.content.strip()
            if self.summary_facts:
                facts = f"{self.summary_facts} | {facts}"
            # Keep the newest text when the summary overflows
            self.summary_facts = facts[-SUMMARY_FACTS_LIMIT:]

    def summary(self) -> Optional[str]:
        """Rolling summary line for evicted turns, or None if nothing was evicted."""
        if not self.evicted_count:
            return None
        line = f"[{self.evicted_count} earlier turns omitted]"
        if self.summary_facts:
            line += f" Earlier user statements: {self.summary_facts}"
        return line

    def for_model(self) -> List[Dict[str, str]]:
        """Render the bounded context as chat messages for the extractor."""
        messages = []
        summary = self.summary()
        if summary:
            messages.append({"role": "system", "content": summary})
        messages.extend({"role": t.role, "content": t.content} for t in self.turns)
        return messages

    def __len__(self) -> int:
        return len(self.turns)
