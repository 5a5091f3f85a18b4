"""
Shared fixtures: a controllable clock and a scripted model client.
"""

from datetime import date, timedelta
from typing import Dict, List, Sequence, Union

import pytest


TODAY = date(2024, 1, 10)
EPOCH = 1_704_844_800.0  # 2024-01-10T00:00:00Z


class FakeClock:
    """Clock whose time only moves when a test advances it."""

    def __init__(self, now: float = EPOCH, today: date = TODAY):
        self._now = now
        self._today = today

    def now(self) -> float:
        return self._now

    def today(self) -> date:
        return self._today

    def advance(self, seconds: float) -> None:
        self._now += seconds
        self._today = self._today + timedelta(days=int(seconds // 86400))


class ScriptedModelClient:
    """
    Model client that replays canned replies.

    Each reply is either the completion text or an exception to raise.
    Once the script runs out the last reply repeats.
    """

    def __init__(self, replies: Sequence[Union[str, Exception]]):
        self.replies = list(replies)
        self.calls: List[List[Dict[str, str]]] = []

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        self.calls.append(messages)
        index = min(len(self.calls), len(self.replies)) - 1
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scripted_client():
    """Factory: scripted_client(reply, ...) -> ScriptedModelClient."""

    def _factory(*replies: Union[str, Exception]) -> ScriptedModelClient:
        return ScriptedModelClient(replies)

    return _factory
