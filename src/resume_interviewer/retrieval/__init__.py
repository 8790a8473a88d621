"""
Retrieval module for vector search and resume grounding.

Provides the in-process embedding store used by conversation memory, the
pgvector adapter for the resume chunk index, and the cached resume context
resolver.
"""

from resume_interviewer.retrieval.context_cache import (
    CacheBackend,
    ContextCache,
    InMemoryCacheBackend,
)
from resume_interviewer.retrieval.pgvector_store import PgVectorStore
from resume_interviewer.retrieval.resume_context import ResumeContextResolver, ResumeStore
from resume_interviewer.retrieval.vector_store import (
    Document,
    SearchResult,
    VectorStore,
    VectorStoreBase,
)

__all__ = [
    "CacheBackend",
    "ContextCache",
    "Document",
    "InMemoryCacheBackend",
    "PgVectorStore",
    "ResumeContextResolver",
    "ResumeStore",
    "SearchResult",
    "VectorStore",
    "VectorStoreBase",
]
