"""
Vector store interface and in-process implementation.

Provides semantic search over short texts: the per-user conversation log
and, through the pgvector adapter, the resume chunk index.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Protocol
from uuid import UUID, uuid4

import numpy as np
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """Anything that can turn a batch of texts into embedding vectors."""

    async def embed(self, texts: list[str]) -> list[list[float]]: ...


class Document(BaseModel):
    """A document stored in the vector store."""

    doc_id: UUID = Field(default_factory=uuid4, description="Unique document identifier")
    content: str = Field(..., description="Document text content")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Document metadata")
    embedding: list[float] | None = Field(default=None, description="Document embedding vector")


class SearchResult(BaseModel):
    """Result of a vector search query."""

    document: Document = Field(..., description="The matched document")
    score: float = Field(..., description="Similarity score")


class VectorStoreBase(ABC):
    """Abstract base class for vector stores."""

    @abstractmethod
    async def add_documents(self, documents: list[Document]) -> list[UUID]:
        """
        Add documents to the vector store.

        Args:
            documents: Documents to add.

        Returns:
            List of document IDs.
        """
        ...

    @abstractmethod
    async def search(
        self,
        query: str,
        top_k: int = 5,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """
        Search for documents similar to the query.

        Args:
            query: Search query text.
            top_k: Number of results to return.
            filter_metadata: Optional metadata filters (all must match).

        Returns:
            List of search results, most similar first.
        """
        ...

    @abstractmethod
    async def delete_document(self, doc_id: UUID) -> bool:
        """
        Delete a document from the vector store.

        Args:
            doc_id: ID of document to delete.

        Returns:
            True if deleted, False if not found.
        """
        ...

    @abstractmethod
    async def count(self) -> int:
        """Get the number of documents in the store."""
        ...


class VectorStore(VectorStoreBase):
    """
    In-process vector store ranked by cosine similarity.

    Documents are embedded on insert; queries are embedded on search.
    Insertion order is preserved for chronological reads.
    """

    def __init__(self, embedder: Embedder) -> None:
        """
        Initialize the vector store.

        Args:
            embedder: Source of embedding vectors for documents and queries.
        """
        self._embedder = embedder
        self._documents: dict[UUID, Document] = {}

    async def add_documents(self, documents: list[Document]) -> list[UUID]:
        """
        Embed and add documents to the store.

        Args:
            documents: Documents to add.

        Returns:
            List of document IDs.
        """
        if not documents:
            return []

        pending = [doc for doc in documents if doc.embedding is None]
        if pending:
            vectors = await self._embedder.embed([doc.content for doc in pending])
            for doc, vector in zip(pending, vectors):
                doc.embedding = vector

        doc_ids = []
        for doc in documents:
            self._documents[doc.doc_id] = doc
            doc_ids.append(doc.doc_id)
        return doc_ids

    async def search(
        self,
        query: str,
        top_k: int = 5,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """
        Search for documents similar to the query.

        Args:
            query: Search query text.
            top_k: Number of results to return.
            filter_metadata: Optional metadata filters (all must match).

        Returns:
            List of search results, most similar first.
        """
        candidates = [
            doc
            for doc in self._documents.values()
            if not filter_metadata
            or all(doc.metadata.get(k) == v for k, v in filter_metadata.items())
        ]
        if not candidates or top_k <= 0:
            return []

        query_vector = np.asarray((await self._embedder.embed([query]))[0], dtype=float)
        matrix = np.asarray([doc.embedding for doc in candidates], dtype=float)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query_vector)
        norms[norms == 0] = 1.0
        scores = matrix @ query_vector / norms

        # Stable sort keeps insertion order among equal scores.
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [
            SearchResult(document=candidates[i], score=float(scores[i]))
            for i in order
        ]

    async def delete_document(self, doc_id: UUID) -> bool:
        """
        Delete a document from the vector store.

        Args:
            doc_id: ID of document to delete.

        Returns:
            True if deleted, False if not found.
        """
        if doc_id in self._documents:
            del self._documents[doc_id]
            return True
        return False

    def list_documents(self, limit: int | None = None) -> list[Document]:
        """
        List documents in insertion order.

        Args:
            limit: Maximum number of documents to return.

        Returns:
            Stored documents, oldest first.
        """
        documents = list(self._documents.values())
        return documents if limit is None else documents[:limit]

    async def clear(self) -> None:
        """Clear all documents from the store."""
        self._documents.clear()

    async def count(self) -> int:
        """
        Get the number of documents in the store.

        Returns:
            Document count.
        """
        return len(self._documents)
