"""
Shared fixtures and fakes.

Nothing here touches the network or a database: the LLM, the embedder, the
resume chunk index and the resume store are all in-process fakes.
"""

import asyncio
import re
import zlib
from collections.abc import AsyncIterator
from typing import Any
from uuid import uuid4

import pytest

from resume_interviewer.db.schemas import Resume
from resume_interviewer.memory import ConversationMemory
from resume_interviewer.models.llm_client import LLMClientBase, Message, StreamChunk, ToolCall
from resume_interviewer.orchestrator.interview_controller import InterviewController
from resume_interviewer.orchestrator.session_store import SessionStore
from resume_interviewer.retrieval.resume_context import ResumeContextResolver
from resume_interviewer.retrieval.vector_store import Document, SearchResult, VectorStoreBase

EMBEDDING_DIM = 512


class FakeEmbedder:
    """Deterministic bag-of-words embedder."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[list[str]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail:
            raise RuntimeError("embedding backend unavailable")
        return [self._vector(text) for text in texts]

    @staticmethod
    def _vector(text: str) -> list[float]:
        vector = [0.0] * EMBEDDING_DIM
        for word in re.findall(r"[a-z0-9]+", text.lower()):
            vector[zlib.crc32(word.encode()) % EMBEDDING_DIM] += 1.0
        return vector


def text_chunk(text: str) -> StreamChunk:
    return StreamChunk(text=text)


def tool_chunk(name: str, **arguments: Any) -> StreamChunk:
    return StreamChunk(tool_calls=[ToolCall(name=name, arguments=arguments)])


def start_turn(question: str = "Tell me about a project you led.") -> list[StreamChunk]:
    return [tool_chunk("start_interview", question=question, question_type="behavioral")]


def next_turn(number: int, question: str = "What was the hardest part?") -> list[StreamChunk]:
    return [
        tool_chunk(
            "ask_next_question",
            question=question,
            question_number=number,
            question_type="behavioral",
        )
    ]


def feedback_turn(is_final: bool = True) -> list[StreamChunk]:
    return [
        text_chunk("Thanks for your answers."),
        tool_chunk(
            "generate_feedback",
            confidence_score=7,
            grammar_assessment="Clear and concise",
            content_quality="Good use of STAR",
            improvement_suggestions=["Quantify results"],
            strengths=["Ownership"],
            is_final=is_final,
        ),
    ]


class FakeLLMClient(LLMClientBase):
    """
    Scripted LLM.

    Each stream_chat call replays the next scripted turn. When the script
    runs out, the last turn is repeated.
    """

    def __init__(
        self,
        turns: list[list[StreamChunk]] | None = None,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self.turns = list(turns or [])
        self.delay = delay
        self.error = error
        self.requests: list[list[Message]] = []
        self.embedder = FakeEmbedder()
        self._last: list[StreamChunk] = []

    def script(self, *turns: list[StreamChunk]) -> None:
        self.turns.extend(turns)

    async def stream_chat(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> AsyncIterator[StreamChunk]:
        self.requests.append(list(messages))
        chunks = self.turns.pop(0) if self.turns else self._last
        self._last = chunks

        for chunk in chunks:
            await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            yield chunk

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return await self.embedder.embed(texts)


class SpyIndex(VectorStoreBase):
    """Resume chunk index that records searches."""

    def __init__(self, snippets: list[str] | None = None, fail: bool = False) -> None:
        self.snippets = snippets if snippets is not None else ["Led a team of 5 engineers."]
        self.fail = fail
        self.searches: list[dict[str, Any]] = []

    async def add_documents(self, documents: list[Document]) -> list:
        return [doc.doc_id for doc in documents]

    async def search(
        self,
        query: str,
        top_k: int = 5,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        self.searches.append({"query": query, "top_k": top_k, "filter": filter_metadata})
        if self.fail:
            raise RuntimeError("index unavailable")
        return [
            SearchResult(document=Document(doc_id=uuid4(), content=text), score=1.0)
            for text in self.snippets[:top_k]
        ]

    async def delete_document(self, doc_id) -> bool:
        return False

    async def count(self) -> int:
        return len(self.snippets)


class FakeResumeStore:
    """Resume store backed by a dict of user id to primary resume."""

    def __init__(self, primaries: dict[str, Resume] | None = None) -> None:
        self.primaries = primaries or {}

    async def get_primary_resume(self, user_id: str) -> Resume | None:
        return self.primaries.get(user_id)


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def memory(embedder: FakeEmbedder) -> ConversationMemory:
    return ConversationMemory(embedder=embedder)


@pytest.fixture
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def index() -> SpyIndex:
    return SpyIndex()


@pytest.fixture
def resume_store() -> FakeResumeStore:
    return FakeResumeStore(
        {"user-1": Resume(id=42, user_id=1, title="Backend resume", is_primary=True)}
    )


@pytest.fixture
def resolver(index: SpyIndex, resume_store: FakeResumeStore) -> ResumeContextResolver:
    return ResumeContextResolver(
        index=index,
        resume_store=resume_store,
        query="help me prepare",
        named_top_k=5,
        default_top_k=3,
    )


@pytest.fixture
def sessions(llm: FakeLLMClient) -> SessionStore:
    return SessionStore(llm, temperature=0.7, max_output_tokens=200)


@pytest.fixture
def controller(
    sessions: SessionStore,
    memory: ConversationMemory,
    resolver: ResumeContextResolver,
) -> InterviewController:
    return InterviewController(
        sessions=sessions,
        memory=memory,
        resume_context=resolver,
        turn_timeout=5.0,
    )
