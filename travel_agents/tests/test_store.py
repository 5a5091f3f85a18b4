"""
Tests for the conversation state store and per-session locks.
"""

import asyncio

import pytest

from travel_agents.shared.contracts import TripInfo
from travel_agents.shared.errors import StateCorruptionError
from travel_agents.planning.schemas import ConversationState
from travel_agents.sessions.locks import SessionLocks
from travel_agents.sessions.store import DEFAULT_TTL_SECONDS, InMemoryConversationStore


def _make_state(session_id: str = "s1", **fields) -> ConversationState:
    state = ConversationState.fresh(session_id)
    for name, value in fields.items():
        setattr(state, name, value)
    return state


# ============================================================================
# TestInMemoryConversationStore
# ============================================================================


class TestInMemoryConversationStore:
    """Tests for storage, expiry and corruption handling."""

    def test_put_get_returns_copy(self, clock):
        """Stored states come back equal but never as the same object."""
        store = InMemoryConversationStore(clock=clock)
        state = _make_state(trip_info=TripInfo(origin="Boston"))
        store.put("s1", state)

        loaded = store.get("s1")
        assert loaded == state
        assert loaded is not state

        loaded.trip_info = TripInfo(origin="Chicago")
        assert store.get("s1").trip_info.origin == "Boston"

    def test_missing_session(self, clock):
        """Unknown ids return None."""
        assert InMemoryConversationStore(clock=clock).get("nope") is None

    def test_default_ttl_is_one_day(self, clock):
        """Sessions live for 24 hours of inactivity."""
        store = InMemoryConversationStore(clock=clock)
        store.put("s1", _make_state())

        clock.advance(DEFAULT_TTL_SECONDS - 1)
        assert store.get("s1") is not None
        clock.advance(1)
        assert store.get("s1") is None
        assert not store.exists("s1")

    def test_put_refreshes_expiry(self, clock):
        """Each write restarts the inactivity window."""
        store = InMemoryConversationStore(clock=clock, default_ttl=100)
        store.put("s1", _make_state())
        clock.advance(80)
        store.put("s1", _make_state())
        clock.advance(80)
        assert store.exists("s1")

    def test_explicit_ttl(self, clock):
        """A per-call ttl overrides the default."""
        store = InMemoryConversationStore(clock=clock)
        store.put("s1", _make_state(), ttl=10)
        clock.advance(10)
        assert store.get("s1") is None

    def test_corrupt_payload(self, clock):
        """An undecodable entry raises StateCorruptionError."""
        store = InMemoryConversationStore(clock=clock)
        store._entries["s1"] = ('{"session_id": 42', clock.now() + 60)

        with pytest.raises(StateCorruptionError) as exc:
            store.get("s1")
        assert exc.value.session_id == "s1"

    def test_invalid_state_values(self, clock):
        """Well-formed JSON that breaks the schema is also corruption."""
        store = InMemoryConversationStore(clock=clock)
        store._entries["s1"] = ('{"session_id": "s1", "round": 0}', clock.now() + 60)

        with pytest.raises(StateCorruptionError):
            store.get("s1")

    def test_eviction_at_capacity(self, clock):
        """The entry closest to expiry is evicted first."""
        store = InMemoryConversationStore(clock=clock, max_sessions=2)
        store.put("a", _make_state("a"))
        clock.advance(1)
        store.put("b", _make_state("b"))
        clock.advance(1)
        store.put("c", _make_state("c"))

        assert store.get("a") is None
        assert store.get("b") is not None
        assert store.get("c") is not None
        assert store.active_count == 2

    def test_delete(self, clock):
        """Deleting is idempotent."""
        store = InMemoryConversationStore(clock=clock)
        store.put("s1", _make_state())
        store.delete("s1")
        store.delete("s1")
        assert store.get("s1") is None


# ============================================================================
# TestSessionLocks
# ============================================================================


class TestSessionLocks:
    """Tests for per-session turn serialization."""

    def test_same_session_serialized(self):
        """Two turns on one session never overlap."""
        locks = SessionLocks()
        trace = []

        async def turn(name):
            async with locks.hold("s1"):
                trace.append(f"{name}:start")
                await asyncio.sleep(0.01)
                trace.append(f"{name}:end")

        async def main():
            await asyncio.gather(turn("a"), turn("b"))

        asyncio.run(main())
        assert trace == ["a:start", "a:end", "b:start", "b:end"]
        assert len(locks) == 0

    def test_different_sessions_interleave(self):
        """Turns on different sessions do not wait for each other."""
        locks = SessionLocks()
        trace = []

        async def turn(session_id):
            async with locks.hold(session_id):
                trace.append(f"{session_id}:start")
                await asyncio.sleep(0.01)
                trace.append(f"{session_id}:end")

        async def main():
            await asyncio.gather(turn("s1"), turn("s2"))

        asyncio.run(main())
        assert trace[:2] == ["s1:start", "s2:start"]
        assert len(locks) == 0

    def test_lock_released_on_error(self):
        """An exception inside the turn still releases the lock."""
        locks = SessionLocks()

        async def failing_turn():
            async with locks.hold("s1"):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            asyncio.run(failing_turn())
        assert len(locks) == 0
