"""
Tests for resume grounding resolution and caching.
"""

import pytest

from conftest import FakeResumeStore, SpyIndex
from resume_interviewer.errors import EmbeddingFetchError, NoPrimaryResume
from resume_interviewer.retrieval.context_cache import ContextCache, make_cache_key
from resume_interviewer.retrieval.resume_context import ResumeContextResolver


class TestCacheKeys:
    """Tests for cache key serialization."""

    def test_key_with_resume(self) -> None:
        assert make_cache_key("u1", 42) == "u1:resume:42"

    def test_key_without_resume(self) -> None:
        assert make_cache_key("u1") == "u1"


class TestResumeContextResolver:
    """Tests for ResumeContextResolver."""

    @pytest.mark.asyncio
    async def test_second_fetch_hits_cache(
        self,
        resolver: ResumeContextResolver,
        index: SpyIndex,
    ) -> None:
        """Two consecutive fetches for the same key search once."""
        first = await resolver.fetch_resume_context("user-1", 42)
        second = await resolver.fetch_resume_context("user-1", 42)

        assert first == second
        assert len(index.searches) == 1

    @pytest.mark.asyncio
    async def test_search_parameters(self, resolver: ResumeContextResolver, index: SpyIndex) -> None:
        """A named resume asks for 5 snippets filtered by user and resume."""
        await resolver.fetch_resume_context("user-1", 42)
        await resolver.fetch_resume_context("user-1")

        assert index.searches[0] == {
            "query": "help me prepare",
            "top_k": 5,
            "filter": {"user_id": "user-1", "resume_id": 42},
        }
        assert index.searches[1]["top_k"] == 3
        assert index.searches[1]["filter"] == {"user_id": "user-1"}

    @pytest.mark.asyncio
    async def test_search_failure_caches_empty(self, resume_store: FakeResumeStore) -> None:
        index = SpyIndex(fail=True)
        resolver = ResumeContextResolver(index=index, resume_store=resume_store, query="q")

        assert await resolver.fetch_resume_context("user-1", 7) == []
        assert await resolver.fetch_resume_context("user-1", 7) == []
        assert len(index.searches) == 1

    @pytest.mark.asyncio
    async def test_as_string_joins_with_blank_line(self, resume_store: FakeResumeStore) -> None:
        index = SpyIndex(snippets=["Python", "SQL"])
        resolver = ResumeContextResolver(index=index, resume_store=resume_store, query="q")

        assert await resolver.fetch_resume_context_as_string("user-1", 1) == "Python\n\nSQL"

    @pytest.mark.asyncio
    async def test_primary_without_resume_raises(self, resolver: ResumeContextResolver) -> None:
        with pytest.raises(NoPrimaryResume, match="No primary resume found"):
            await resolver.fetch_primary_resume_context("no-resumes")

    @pytest.mark.asyncio
    async def test_primary_context(self, resolver: ResumeContextResolver, index: SpyIndex) -> None:
        context = await resolver.fetch_primary_resume_context("user-1")

        assert context == "Led a team of 5 engineers."
        assert index.searches[0]["filter"] == {"user_id": "user-1", "resume_id": 42}
        assert await resolver.get_primary_resume_id("user-1") == 42

    @pytest.mark.asyncio
    async def test_primary_search_failure_propagates(self, resume_store: FakeResumeStore) -> None:
        """The primary path raises and does not cache the failure."""
        index = SpyIndex(fail=True)
        resolver = ResumeContextResolver(index=index, resume_store=resume_store, query="q")

        with pytest.raises(EmbeddingFetchError):
            await resolver.fetch_primary_resume_context("user-1")
        assert await resolver.cache_size() == 0

    @pytest.mark.asyncio
    async def test_clear_user_cache_leaves_other_users(self, resolver: ResumeContextResolver) -> None:
        """Clearing "u1" removes its entries but not those of "u10"."""
        await resolver.fetch_resume_context("u1")
        await resolver.fetch_resume_context("u1", 3)
        await resolver.fetch_resume_context("u10", 3)

        await resolver.clear_user_cache("u1")

        assert await resolver.cache_size() == 1

    @pytest.mark.asyncio
    async def test_clear_resume_cache(self, resolver: ResumeContextResolver, index: SpyIndex) -> None:
        await resolver.fetch_resume_context("u1", 3)
        await resolver.clear_resume_cache("u1", 3)
        await resolver.fetch_resume_context("u1", 3)

        assert len(index.searches) == 2


class TestContextCache:
    """Tests for ContextCache."""

    @pytest.mark.asyncio
    async def test_returned_lists_are_copies(self) -> None:
        cache = ContextCache()
        await cache.set("u1", None, ["a"])

        value = await cache.get("u1")
        value.append("b")

        assert await cache.get("u1") == ["a"]
