"""
Context cache with a pluggable backing store.

Resume grounding is cached per ``(user_id, resume_id)`` key. The backend
interface is the single seam for swapping the in-process dict for a shared
store.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


def make_cache_key(user_id: str, resume_id: int | None = None) -> str:
    """
    Serialize a resume context key.

    Args:
        user_id: Owner of the context.
        resume_id: Specific resume, if one was selected.

    Returns:
        "{user_id}:resume:{resume_id}" or "{user_id}".
    """
    if resume_id is not None:
        return f"{user_id}:resume:{resume_id}"
    return user_id


class CacheBackend(ABC):
    """Abstract storage for cached snippet lists."""

    @abstractmethod
    async def get(self, key: str) -> list[str] | None:
        """Get a cached value, or None if absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: list[str]) -> None:
        """Store a value."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a value. Returns True if it existed."""
        ...

    @abstractmethod
    async def keys(self) -> list[str]:
        """List every stored key."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every stored value."""
        ...


class InMemoryCacheBackend(CacheBackend):
    """Unbounded dict backend with no expiry."""

    def __init__(self) -> None:
        self._data: dict[str, list[str]] = {}

    async def get(self, key: str) -> list[str] | None:
        value = self._data.get(key)
        return list(value) if value is not None else None

    async def set(self, key: str, value: list[str]) -> None:
        self._data[key] = list(value)

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def keys(self) -> list[str]:
        return list(self._data)

    async def clear(self) -> None:
        self._data.clear()


class ContextCache:
    """Resume context cache keyed by user and optional resume."""

    def __init__(self, backend: CacheBackend | None = None) -> None:
        """
        Initialize the cache.

        Args:
            backend: Backing store (defaults to an in-process dict).
        """
        self._backend = backend or InMemoryCacheBackend()

    async def get(self, user_id: str, resume_id: int | None = None) -> list[str] | None:
        return await self._backend.get(make_cache_key(user_id, resume_id))

    async def set(self, user_id: str, resume_id: int | None, snippets: list[str]) -> None:
        await self._backend.set(make_cache_key(user_id, resume_id), snippets)

    async def delete(self, user_id: str, resume_id: int | None = None) -> bool:
        return await self._backend.delete(make_cache_key(user_id, resume_id))

    async def clear_user(self, user_id: str) -> int:
        """
        Remove the user's default entry and every per-resume entry.

        Matching is on the exact key or the "{user_id}:" prefix, so clearing
        user "u1" leaves "u10" untouched.

        Args:
            user_id: Owner whose entries are removed.

        Returns:
            Number of entries removed.
        """
        removed = 0
        prefix = f"{user_id}:"
        for key in await self._backend.keys():
            if key == user_id or key.startswith(prefix):
                if await self._backend.delete(key):
                    removed += 1
        if removed:
            logger.debug(f"Cleared {removed} cached context entries for user {user_id}")
        return removed

    async def clear(self) -> None:
        await self._backend.clear()

    async def size(self) -> int:
        return len(await self._backend.keys())
