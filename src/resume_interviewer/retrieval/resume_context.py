"""
Resume grounding context.

Resolves the resume snippets an interview is grounded on, either for an
explicitly selected resume or for the user's primary resume, and caches
them per ``(user_id, resume_id)``.
"""

import logging
from typing import Any, Protocol

from resume_interviewer.config import get_settings
from resume_interviewer.db.schemas import Resume
from resume_interviewer.errors import EmbeddingFetchError, NoPrimaryResume
from resume_interviewer.retrieval.context_cache import ContextCache, make_cache_key
from resume_interviewer.retrieval.vector_store import VectorStoreBase

logger = logging.getLogger(__name__)


class ResumeStore(Protocol):
    """Read access to the user's stored resumes."""

    async def get_primary_resume(self, user_id: str) -> Resume | None: ...


class ResumeContextResolver:
    """
    Fetches and caches resume snippets used to ground interviews.

    Lookups for an explicit or default key degrade to an empty snippet list
    on search failure, and that empty list is cached. The primary-resume path
    is strict: search failures propagate and nothing is cached.
    """

    def __init__(
        self,
        index: VectorStoreBase,
        resume_store: ResumeStore,
        cache: ContextCache | None = None,
        query: str | None = None,
        named_top_k: int | None = None,
        default_top_k: int | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            index: Similarity index over resume chunks.
            resume_store: Lookup for the primary resume.
            cache: Snippet cache (defaults to an in-process cache).
            query: Grounding query (defaults to settings).
            named_top_k: Snippets fetched for a selected resume (defaults to settings).
            default_top_k: Snippets fetched without a resume id (defaults to settings).
        """
        settings = get_settings()
        self._index = index
        self._resume_store = resume_store
        self._cache = cache or ContextCache()
        self._query = query or settings.resume_context_query
        self._named_top_k = named_top_k or settings.resume_snippets_named
        self._default_top_k = default_top_k or settings.resume_snippets_default

    async def _search(self, user_id: str, resume_id: int | None) -> list[str]:
        filter_metadata: dict[str, Any] = {"user_id": user_id}
        top_k = self._default_top_k
        if resume_id is not None:
            filter_metadata["resume_id"] = resume_id
            top_k = self._named_top_k

        try:
            results = await self._index.search(
                self._query,
                top_k=top_k,
                filter_metadata=filter_metadata,
            )
        except Exception as e:
            raise EmbeddingFetchError("Resume similarity search failed", details=str(e)) from e

        return [result.document.content for result in results]

    async def fetch_resume_context(self, user_id: str, resume_id: int | None = None) -> list[str]:
        """
        Get resume snippets, checking the cache first.

        Args:
            user_id: Owner of the resume.
            resume_id: Specific resume to draw from, if any.

        Returns:
            Snippet texts; empty when the search fails.
        """
        key = make_cache_key(user_id, resume_id)
        cached = await self._cache.get(user_id, resume_id)
        if cached is not None:
            logger.debug(f"Using cached resume context for key: {key}")
            return cached

        logger.info(f"Fetching resume context for user {user_id}, resume {resume_id or 'all'}")
        try:
            snippets = await self._search(user_id, resume_id)
        except EmbeddingFetchError as e:
            logger.error(f"{e.message} for key {key}: {e.details}")
            snippets = []

        await self._cache.set(user_id, resume_id, snippets)
        logger.debug(f"Cached {len(snippets)} resume snippets for key: {key}")
        return snippets

    async def fetch_resume_context_as_string(self, user_id: str, resume_id: int | None = None) -> str:
        """Get resume snippets joined by blank lines."""
        return "\n\n".join(await self.fetch_resume_context(user_id, resume_id))

    async def get_primary_resume_id(self, user_id: str) -> int | None:
        """
        Look up the user's primary resume.

        Args:
            user_id: External user identifier.

        Returns:
            The primary resume id, or None if the user has none.
        """
        resume = await self._resume_store.get_primary_resume(user_id)
        return resume.id if resume else None

    async def resolve_primary(self, user_id: str) -> tuple[int, str]:
        """
        Get the primary resume id together with its grounding text.

        Args:
            user_id: External user identifier.

        Returns:
            (resume_id, snippets joined by blank lines).

        Raises:
            NoPrimaryResume: If the user has no primary resume.
            EmbeddingFetchError: If the similarity search fails.
        """
        resume_id = await self.get_primary_resume_id(user_id)
        if resume_id is None:
            raise NoPrimaryResume("No primary resume found", details=f"user_id={user_id}")

        cached = await self._cache.get(user_id, resume_id)
        if cached is None:
            cached = await self._search(user_id, resume_id)
            await self._cache.set(user_id, resume_id, cached)

        return resume_id, "\n\n".join(cached)

    async def fetch_primary_resume_context(self, user_id: str) -> str:
        """Get grounding text for the user's primary resume. See resolve_primary."""
        _, context = await self.resolve_primary(user_id)
        return context

    async def clear_user_cache(self, user_id: str) -> None:
        """Drop every cached entry for a user."""
        removed = await self._cache.clear_user(user_id)
        logger.info(f"Cleared {removed} resume cache entries for user: {user_id}")

    async def clear_resume_cache(self, user_id: str, resume_id: int) -> None:
        """Drop the cached entry for one resume."""
        if await self._cache.delete(user_id, resume_id):
            logger.info(f"Cleared resume cache for user: {user_id}, resume: {resume_id}")

    async def clear_all(self) -> None:
        await self._cache.clear()
        logger.info("Cleared all resume caches")

    async def cache_size(self) -> int:
        return await self._cache.size()
