"""
Conversation state store.

Keyed, expiring storage for ConversationState. States are kept as JSON
payloads so every read goes through validation and a damaged entry is
reported as StateCorruptionError instead of leaking bad data into the
planning engine. Expiry is enforced here, not by the engine.
"""

import logging
import threading
from typing import Dict, Optional, Protocol, Tuple

from pydantic import ValidationError as PydanticValidationError

from travel_agents.shared.clock import Clock, SystemClock
from travel_agents.shared.errors import StateCorruptionError
from travel_agents.planning.schemas import ConversationState


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 86400.0
DEFAULT_MAX_SESSIONS = 10000


class ConversationStateStore(Protocol):
    def get(self, session_id: str) -> Optional[ConversationState]:
        ...

    def put(self, session_id: str, state: ConversationState, ttl: Optional[float] = None) -> None:
        ...

    def delete(self, session_id: str) -> None:
        ...


class InMemoryConversationStore:
    """
    Thread-safe in-memory store with per-entry expiry.

    Attributes:
        clock: Time source for expiry (inject a fake one in tests)
        default_ttl: Inactivity window applied when put() gets no ttl
        max_sessions: Capacity; the entry closest to expiry is evicted first
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ):
        self.clock = clock or SystemClock()
        self.default_ttl = default_ttl
        self.max_sessions = max_sessions
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[ConversationState]:
        """
        Load a session's state.

        Returns:
            The stored state, or None if absent or expired

        Raises:
            StateCorruptionError: If the stored payload does not validate
        """
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            payload, expires_at = entry
            if self.clock.now() >= expires_at:
                del self._entries[session_id]
                logger.info(f"[session={session_id}] Session expired")
                return None

        try:
            return ConversationState.model_validate_json(payload)
        except PydanticValidationError as e:
            raise StateCorruptionError(session_id, str(e)) from e

    def put(self, session_id: str, state: ConversationState, ttl: Optional[float] = None) -> None:
        payload = state.model_dump_json()
        expires_at = self.clock.now() + (ttl if ttl is not None else self.default_ttl)

        with self._lock:
            self._cleanup_expired()
            if session_id not in self._entries and len(self._entries) >= self.max_sessions:
                oldest = min(self._entries, key=lambda k: self._entries[k][1])
                del self._entries[oldest]
                logger.info(f"[session={oldest}] Evicted, store at capacity ({self.max_sessions})")
            self._entries[session_id] = (payload, expires_at)

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._entries.pop(session_id, None)

    def exists(self, session_id: str) -> bool:
        with self._lock:
            entry = self._entries.get(session_id)
            return entry is not None and self.clock.now() < entry[1]

    def _cleanup_expired(self) -> None:
        now = self.clock.now()
        expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for key in expired:
            del self._entries[key]

    @property
    def active_count(self) -> int:
        now = self.clock.now()
        with self._lock:
            return sum(1 for _, exp in self._entries.values() if now < exp)
