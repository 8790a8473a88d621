"""
Interview controller.

Coordinates a single interview turn end to end: session resolution, memory
recall, prompt construction, streaming the model's reply through the tool
protocol, and assembling the caller-facing response.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from resume_interviewer.config import Settings, get_settings
from resume_interviewer.db.repository import SqlResumeStore, build_engine, build_session_factory
from resume_interviewer.errors import NoActiveSession, StreamProcessingFailed
from resume_interviewer.memory import ConversationMemory
from resume_interviewer.models.chat_session import ChatSession
from resume_interviewer.models.llm_client import LLMClient
from resume_interviewer.orchestrator.job_descriptions import JobDescriptionStore
from resume_interviewer.orchestrator.locks import UserLockRegistry
from resume_interviewer.orchestrator.prompt_builder import build_prompt, format_conversation_history
from resume_interviewer.orchestrator.schemas import (
    STARTING_ACTIONS,
    Action,
    ChatRequest,
    ChatResponse,
    SessionStatus,
    StreamEvent,
)
from resume_interviewer.orchestrator.session_store import SessionStore
from resume_interviewer.orchestrator.stream_processor import (
    StreamCallback,
    StreamProcessingResult,
    ToolProtocolHandler,
    validate_result,
)
from resume_interviewer.orchestrator.tools import (
    AskNextQuestionResult,
    GenerateFeedbackResult,
    StartInterviewResult,
)
from resume_interviewer.retrieval.pgvector_store import PgVectorStore
from resume_interviewer.retrieval.resume_context import ResumeContextResolver

logger = logging.getLogger(__name__)


class InterviewController:
    """
    Top-level orchestration of interview turns.

    All turns for one user run under that user's lock, so session state,
    memory and question numbering stay consistent under concurrent calls.
    """

    def __init__(
        self,
        sessions: SessionStore,
        memory: ConversationMemory,
        resume_context: ResumeContextResolver,
        job_descriptions: JobDescriptionStore | None = None,
        handler: ToolProtocolHandler | None = None,
        locks: UserLockRegistry | None = None,
        turn_timeout: float | None = None,
        context_query: str | None = None,
        context_limit: int | None = None,
        closers: list[Callable[[], Awaitable[None]]] | None = None,
    ) -> None:
        """
        Initialize the controller.

        Args:
            sessions: Per-user chat sessions.
            memory: Per-user conversation memory.
            resume_context: Resume grounding resolver.
            job_descriptions: Per-user job descriptions.
            handler: Stream handler (defaults to one over ``memory``).
            locks: Per-user lock registry.
            turn_timeout: Deadline in seconds for send and drain (defaults to settings).
            context_query: Query used to recall prior turns (defaults to settings).
            context_limit: Maximum recalled turns (defaults to settings).
            closers: Async callables run by close().
        """
        settings = get_settings()
        self._sessions = sessions
        self._memory = memory
        self._resume_context = resume_context
        self._jobs = job_descriptions or JobDescriptionStore()
        self._handler = handler or ToolProtocolHandler(memory)
        self._locks = locks or UserLockRegistry()
        self._turn_timeout = turn_timeout or settings.turn_timeout
        self._context_query = context_query or settings.conversation_context_query
        self._context_limit = context_limit or settings.conversation_context_limit
        self._closers = closers or []

    @property
    def sessions(self) -> SessionStore:
        """Get the session store."""
        return self._sessions

    async def process_chat(
        self,
        user_id: str,
        request: ChatRequest,
        on_chunk: StreamCallback | None = None,
    ) -> ChatResponse:
        """
        Run one interview turn.

        Args:
            user_id: Caller identity.
            request: Turn request.
            on_chunk: Optional async callback receiving stream events.

        Returns:
            The turn response.

        Raises:
            NoActiveSession: If a non-starting action has no session.
            NoPrimaryResume: If a start needs the primary resume and there is none.
            EmptyStreamResult: If the model produced nothing.
            MalformedToolResult: If the tool invocation was invalid.
            StreamProcessingFailed: If the stream failed or the deadline passed.
        """
        async with self._locks.acquire(user_id):
            return await self._process_turn(user_id, request, on_chunk)

    async def _process_turn(
        self,
        user_id: str,
        request: ChatRequest,
        on_chunk: StreamCallback | None,
    ) -> ChatResponse:
        action = request.action
        action_name = action.value if isinstance(action, Action) else str(action)
        logger.info(f"Processing chat turn for user {user_id}: action={action_name}")

        if request.job_description:
            self._jobs.set(user_id, request.job_description)

        session = await self._resolve_session(user_id, request)

        history = await self._memory.fetch_context(user_id, self._context_query, self._context_limit)
        prompt = build_prompt(
            action,
            format_conversation_history(history),
            request.message or "",
            request.question_number,
        )

        if request.message and action not in STARTING_ACTIONS:
            await self._memory.store_message(user_id, request.message, "user")

        result = await self._run_turn(session, prompt, user_id, on_chunk)
        validate_result(result)
        self._number_question(session, result)

        response = self._build_response(result, action_name, user_id)

        if isinstance(result.tool_result, GenerateFeedbackResult) and result.tool_result.is_final:
            self._sessions.delete_session(user_id)
            logger.info(f"Interview complete for user {user_id}")

        return response

    async def _resolve_session(self, user_id: str, request: ChatRequest) -> ChatSession:
        if request.action not in STARTING_ACTIONS:
            session = self._sessions.get_session(user_id)
            if session is None:
                raise NoActiveSession(
                    "No active session found",
                    details="Start an interview before sending answers",
                )
            return session

        if request.resume_id is not None:
            resume_id = request.resume_id
            resume_context = await self._resume_context.fetch_resume_context_as_string(user_id, resume_id)
        else:
            resume_id, resume_context = await self._resume_context.resolve_primary(user_id)

        job_description = self._jobs.get(user_id)

        if request.action == Action.RESTART:
            self._memory.clear_user_history(user_id)
            return self._sessions.restart_session(user_id, resume_context, job_description, resume_id)
        return self._sessions.create_session(user_id, resume_context, job_description, resume_id)

    async def _run_turn(
        self,
        session: ChatSession,
        prompt: str,
        user_id: str,
        on_chunk: StreamCallback | None,
    ) -> StreamProcessingResult:
        async def drive() -> StreamProcessingResult:
            stream = session.send_message_stream(prompt)
            if on_chunk:
                return await self._handler.process_stream_with_callback(stream, user_id, on_chunk)
            return await self._handler.process_stream(stream, user_id)

        try:
            return await asyncio.wait_for(drive(), timeout=self._turn_timeout)
        except asyncio.TimeoutError as e:
            error = StreamProcessingFailed(
                "Turn deadline exceeded",
                details=f"No complete response within {self._turn_timeout}s",
            )
            logger.error(f"{error.message} for user {user_id}")
            if on_chunk:
                await on_chunk(StreamEvent(type="error", error=error.message, details=error.details))
            raise error from e

    @staticmethod
    def _number_question(session: ChatSession, result: StreamProcessingResult) -> None:
        tool_result = result.tool_result
        if isinstance(tool_result, StartInterviewResult):
            session.last_question_number = tool_result.question_number
        elif isinstance(tool_result, AskNextQuestionResult):
            if tool_result.question_number <= session.last_question_number:
                renumbered = session.last_question_number + 1
                logger.debug(f"Renumbering question {tool_result.question_number} to {renumbered}")
                tool_result.question_number = renumbered
            session.last_question_number = tool_result.question_number

    def _build_response(self, result: StreamProcessingResult, action: str, user_id: str) -> ChatResponse:
        response = ChatResponse(
            success=True,
            action=action,
            turn_count=self._sessions.get_session_turn_count(user_id),
        )

        tool_result = result.tool_result
        if isinstance(tool_result, (StartInterviewResult, AskNextQuestionResult)):
            response.type = tool_result.type
            response.data = tool_result.model_dump()
            response.question = tool_result.question
            response.question_number = tool_result.question_number
            response.question_type = tool_result.question_type
            response.reasoning = tool_result.reasoning
        elif isinstance(tool_result, GenerateFeedbackResult):
            response.type = tool_result.type
            response.data = tool_result.model_dump()
            response.feedback = tool_result.model_dump()
            response.is_complete = tool_result.is_final

        if result.full_text:
            response.context = result.full_text

        return response

    async def clear_session(self, user_id: str) -> None:
        """Drop the user's session, memory, resume cache and job description."""
        async with self._locks.acquire(user_id):
            self._sessions.delete_session(user_id)
            self._memory.clear_user_history(user_id)
            await self._resume_context.clear_user_cache(user_id)
            self._jobs.clear(user_id)
        logger.info(f"Cleared interview state for user {user_id}")

    async def get_status(self, user_id: str) -> SessionStatus:
        return SessionStatus(
            has_active_session=self._sessions.has_session(user_id),
            turn_count=self._sessions.get_session_turn_count(user_id),
            has_history=await self._memory.has_history(user_id),
        )

    async def clear_all(self) -> None:
        """Reset every store."""
        self._sessions.clear_all()
        self._memory.clear_all()
        await self._resume_context.clear_all()
        self._jobs.clear_all()
        self._locks.clear_all()
        logger.info("Cleared all interview state")

    async def close(self) -> None:
        """Release external resources."""
        for closer in self._closers:
            await closer()


def build_controller(settings: Settings | None = None) -> InterviewController:
    """
    Compose a controller wired to Ollama and PostgreSQL.

    Args:
        settings: Application settings (defaults to get_settings()).

    Returns:
        A ready controller. Call close() on shutdown.
    """
    settings = settings or get_settings()

    llm_client = LLMClient(
        model=settings.llm_model_name,
        base_url=settings.ollama_base_url,
        embedding_model=settings.embedding_model,
        timeout=settings.llm_timeout,
    )
    engine = build_engine(str(settings.database_url))
    session_factory = build_session_factory(engine)

    memory = ConversationMemory(embedder=llm_client)
    resolver = ResumeContextResolver(
        index=PgVectorStore(session_factory, embedder=llm_client),
        resume_store=SqlResumeStore(session_factory),
        query=settings.resume_context_query,
        named_top_k=settings.resume_snippets_named,
        default_top_k=settings.resume_snippets_default,
    )
    sessions = SessionStore(
        llm_client,
        temperature=settings.llm_temperature,
        max_output_tokens=settings.llm_max_output_tokens,
    )

    logger.info(f"Built interview controller (model={settings.llm_model_name})")
    return InterviewController(
        sessions=sessions,
        memory=memory,
        resume_context=resolver,
        turn_timeout=settings.turn_timeout,
        context_query=settings.conversation_context_query,
        context_limit=settings.conversation_context_limit,
        closers=[llm_client.close, engine.dispose],
    )
