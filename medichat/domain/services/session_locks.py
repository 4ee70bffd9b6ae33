"""Per-session locks serializing hand-off and reply mutations."""

from asyncio import Lock
from contextlib import asynccontextmanager
from typing import AsyncIterator


class SessionLockManager:
    """
    Manages locks for session access to prevent race conditions.

    Each entry counts the coroutines holding or waiting for its lock and
    is dropped when the count returns to zero, so a session never has two
    live locks and idle sessions do not accumulate.
    """

    def __init__(self):
        self._locks: dict[str, Lock] = {}
        self._users: dict[str, int] = {}

    @staticmethod
    def key(tenant_id: str, session_id: str) -> str:
        return f"{tenant_id}:{session_id}"

    @asynccontextmanager
    async def hold(self, tenant_id: str, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock for the duration of the block."""
        key = self.key(tenant_id, session_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_held(self, tenant_id: str, session_id: str) -> bool:
        lock = self._locks.get(self.key(tenant_id, session_id))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
