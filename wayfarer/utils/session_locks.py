"""Per page-session locks: the automation driver is a single-writer resource per session."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List

from wayfarer.utils.logger import setup_logger

logger = setup_logger(__name__)


class SessionLocks:
    """Hands out one `asyncio.Lock` per page-session id.

    Conversations bound to the same page session acquire the same lock, so
    their context extractions and tool batches never interleave.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        # holders plus waiters, per session
        self._users: Dict[str, int] = {}

    def get(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        lock = self.get(session_id)
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            if lock.locked():
                logger.debug(f"Waiting for page session '{session_id}' to become free")
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if not self._users[session_id]:
                del self._users[session_id]

    def discard(self, session_id: str) -> bool:
        """Forget the lock of a closed session. Does nothing while anyone holds or waits on it."""
        if self._users.get(session_id):
            return False
        return self._locks.pop(session_id, None) is not None

    def session_ids(self) -> List[str]:
        return list(self._locks)
