"""
Per-user turn locks.

Turns for the same user run one at a time; different users never contend.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class UserLockRegistry:
    """Hands out one asyncio.Lock per user id."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    @asynccontextmanager
    async def acquire(self, user_id: str) -> AsyncIterator[None]:
        """Hold the user's lock for the duration of the block."""
        async with self.get(user_id):
            yield

    def is_locked(self, user_id: str) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()

    def clear_all(self) -> None:
        """Forget idle locks. Locks currently held are kept."""
        self._locks = {user_id: lock for user_id, lock in self._locks.items() if lock.locked()}
