import asyncio
from contextlib import asynccontextmanager
from typing import Dict


class SessionLocks:
    """In-process mutual exclusion keyed by session id.

    Locks are created on first use and dropped once nobody holds or waits for
    them, so the table only ever contains sessions with work in flight.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str):
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._waiters[session_id] = self._waiters.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[session_id] -= 1
            if self._waiters[session_id] == 0:
                del self._waiters[session_id]
                del self._locks[session_id]

    def __len__(self) -> int:
        return len(self._locks)
