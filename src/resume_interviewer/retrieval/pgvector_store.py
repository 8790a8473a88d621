"""
pgvector adapter for the resume chunk index.

Reads (and, for ingestion tooling, writes) the ``resume_chunks`` table that
the resume upload pipeline populates. Rows carry the chunk ``text``, a
``metadata`` jsonb object (``user_id``, ``resume_id``, ...) and an
``embedding`` vector.
"""

import json
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from resume_interviewer.retrieval.vector_store import (
    Document,
    Embedder,
    SearchResult,
    VectorStoreBase,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "resume_chunks"


def _vector_literal(vector: list[float]) -> str:
    """Format a vector the way pgvector parses it: "[0.1,0.2,...]"."""
    return "[" + ",".join(repr(float(v)) for v in vector) + "]"


class PgVectorStore(VectorStoreBase):
    """
    Similarity search over a pgvector table, ranked by cosine distance.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        embedder: Embedder,
        table_name: str = DEFAULT_TABLE,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            session_factory: Factory for async database sessions.
            embedder: Embedding source for queries and new chunks.
            table_name: Chunk table to query.
        """
        self._session_factory = session_factory
        self._embedder = embedder
        self._table = table_name

    async def add_documents(self, documents: list[Document]) -> list[UUID]:
        """
        Embed and insert chunks.

        ``resume_id`` and ``chunk_index`` are taken from each document's
        metadata.

        Args:
            documents: Chunks to insert.

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

        stmt = text(
            f"INSERT INTO {self._table} (id, resume_id, chunk_index, text, metadata, embedding) "
            "VALUES (:id, :resume_id, :chunk_index, :text, CAST(:metadata AS jsonb), "
            "CAST(:embedding AS vector))"
        )
        async with self._session_factory() as session:
            for doc in documents:
                await session.execute(
                    stmt,
                    {
                        "id": str(doc.doc_id),
                        "resume_id": doc.metadata.get("resume_id"),
                        "chunk_index": doc.metadata.get("chunk_index", 0),
                        "text": doc.content,
                        "metadata": json.dumps(doc.metadata),
                        "embedding": _vector_literal(doc.embedding or []),
                    },
                )
            await session.commit()

        logger.info(f"Inserted {len(documents)} chunks into {self._table}")
        return [doc.doc_id for doc in documents]

    async def search(
        self,
        query: str,
        top_k: int = 5,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """
        Search chunks by cosine similarity to the query.

        Args:
            query: Search query text.
            top_k: Number of results to return.
            filter_metadata: jsonb containment filter on ``metadata``.

        Returns:
            List of search results, most similar first.
        """
        query_vector = (await self._embedder.embed([query]))[0]

        stmt = text(
            f"SELECT id, text, metadata, 1 - (embedding <=> CAST(:embedding AS vector)) AS score "
            f"FROM {self._table} "
            "WHERE metadata @> CAST(:filter AS jsonb) "
            "ORDER BY embedding <=> CAST(:embedding AS vector) "
            "LIMIT :top_k"
        )
        params = {
            "embedding": _vector_literal(query_vector),
            "filter": json.dumps(filter_metadata or {}),
            "top_k": top_k,
        }

        async with self._session_factory() as session:
            rows = (await session.execute(stmt, params)).mappings().all()

        logger.debug(f"pgvector search returned {len(rows)} rows for filter {filter_metadata}")
        return [
            SearchResult(
                document=Document(
                    doc_id=UUID(str(row["id"])),
                    content=row["text"],
                    metadata=row["metadata"] or {},
                ),
                score=float(row["score"]),
            )
            for row in rows
        ]

    async def delete_document(self, doc_id: UUID) -> bool:
        """
        Delete a chunk.

        Args:
            doc_id: ID of chunk to delete.

        Returns:
            True if deleted, False if not found.
        """
        stmt = text(f"DELETE FROM {self._table} WHERE id = :id")
        async with self._session_factory() as session:
            result = await session.execute(stmt, {"id": str(doc_id)})
            await session.commit()
        return result.rowcount > 0

    async def count(self) -> int:
        """Get the number of chunks in the table."""
        async with self._session_factory() as session:
            result = await session.execute(text(f"SELECT COUNT(*) FROM {self._table}"))
            return int(result.scalar_one())
