"""
Per-session turn serialization.

Turns for the same session id run one at a time; turns for different
sessions never wait on each other. A lock is dropped from the registry as
soon as nobody holds or waits for it.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class SessionLocks:
    """Registry of asyncio locks keyed by session id, reference counted."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if self._users[session_id] == 0:
                del self._users[session_id]
                del self._locks[session_id]

    def __len__(self) -> int:
        return len(self._locks)
