"""
Conversation memory module.

Keeps a per-user, append-only log of interview turns in an embedding index
so prompts can recall the turns most relevant to the current exchange.
Failures here never abort a turn: they are logged and the memory degrades
to empty.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from resume_interviewer.retrieval.vector_store import Document, Embedder, VectorStore

logger = logging.getLogger(__name__)

# Upper bound for get_all_history
MAX_HISTORY_ENTRIES = 100


class TurnRole(str, Enum):
    """Speaker of a stored turn."""

    USER = "user"
    AI = "ai"


_PREFIXES = {
    TurnRole.USER: "Human: ",
    TurnRole.AI: "AI: ",
}


class ConversationTurn(BaseModel):
    """A single stored turn. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    role: TurnRole = Field(..., description="Who produced the turn")
    content: str = Field(..., description="Prefixed turn text as stored")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the turn was stored",
    )


class ConversationMemory:
    """
    Per-user conversation memory backed by in-process vector stores.

    Each user gets an isolated store, created lazily on first write.
    """

    def __init__(self, embedder: Embedder) -> None:
        """
        Initialize conversation memory.

        Args:
            embedder: Embedding source shared by every per-user store.
        """
        self._embedder = embedder
        self._stores: dict[str, VectorStore] = {}

    def _get_store(self, user_id: str) -> VectorStore:
        if user_id not in self._stores:
            self._stores[user_id] = VectorStore(self._embedder)
            logger.debug(f"Created conversation store for user {user_id}")
        return self._stores[user_id]

    @staticmethod
    def _to_document(text: str, role: TurnRole) -> Document:
        turn = ConversationTurn(role=role, content=f"{_PREFIXES[role]}{text}")
        return Document(
            content=turn.content,
            metadata={"role": turn.role.value, "timestamp": turn.timestamp.isoformat()},
        )

    async def store_turn(self, user_id: str, human_text: str, ai_text: str) -> None:
        """
        Append a human/AI exchange.

        Args:
            user_id: Owner of the memory.
            human_text: What the candidate (or tool marker) said.
            ai_text: What the model produced.
        """
        documents = [
            self._to_document(human_text, TurnRole.USER),
            self._to_document(ai_text, TurnRole.AI),
        ]
        try:
            await self._get_store(user_id).add_documents(documents)
        except Exception as e:
            logger.error(f"Failed to store turn for user {user_id}: {e}")

    async def store_message(self, user_id: str, text: str, role: TurnRole | str) -> None:
        """
        Append a single message.

        Args:
            user_id: Owner of the memory.
            text: Message text.
            role: "user" or "ai".
        """
        try:
            document = self._to_document(text, TurnRole(role))
            await self._get_store(user_id).add_documents([document])
        except Exception as e:
            logger.error(f"Failed to store message for user {user_id}: {e}")

    async def fetch_context(self, user_id: str, query: str, max_results: int = 5) -> str:
        """
        Recall the stored turns most similar to a query.

        Args:
            user_id: Owner of the memory.
            query: Text to rank stored turns against.
            max_results: Maximum number of turns to return.

        Returns:
            Newline-joined turns, most similar first; "" when nothing is stored
            or the lookup fails.
        """
        store = self._stores.get(user_id)
        if store is None or await store.count() == 0:
            return ""

        try:
            results = await store.search(query, top_k=max_results)
        except Exception as e:
            logger.error(f"Failed to fetch context for user {user_id}: {e}")
            return ""

        return "\n".join(result.document.content for result in results)

    def get_turns(self, user_id: str) -> list[ConversationTurn]:
        """
        Get stored turns in the order they were written.

        Args:
            user_id: Owner of the memory.

        Returns:
            Chronological list of turns.
        """
        store = self._stores.get(user_id)
        if store is None:
            return []
        return [
            ConversationTurn(
                role=TurnRole(doc.metadata["role"]),
                content=doc.content,
                timestamp=datetime.fromisoformat(doc.metadata["timestamp"]),
            )
            for doc in store.list_documents()
        ]

    def get_all_history(self, user_id: str) -> list[str]:
        """Get up to MAX_HISTORY_ENTRIES stored turn texts, oldest first."""
        store = self._stores.get(user_id)
        if store is None:
            return []
        return [doc.content for doc in store.list_documents(limit=MAX_HISTORY_ENTRIES)]

    async def has_history(self, user_id: str) -> bool:
        """Check whether anything is stored for a user."""
        store = self._stores.get(user_id)
        return store is not None and await store.count() > 0

    def clear_user_history(self, user_id: str) -> None:
        """Drop every stored turn for a user."""
        if self._stores.pop(user_id, None) is not None:
            logger.info(f"Cleared conversation history for user {user_id}")

    def clear_all(self) -> None:
        """Drop every user's history."""
        self._stores.clear()
        logger.info("Cleared all conversation history")
