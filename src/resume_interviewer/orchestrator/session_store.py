"""
Per-user chat session registry.

Holds at most one live ChatSession per user. A session exists exactly while
the user has an unfinished interview.
"""

import logging

from resume_interviewer.config import get_settings
from resume_interviewer.models.chat_session import ChatSession
from resume_interviewer.models.llm_client import LLMClientBase
from resume_interviewer.orchestrator.prompt_builder import build_system_prompt
from resume_interviewer.orchestrator.tools import INTERVIEW_TOOLS

logger = logging.getLogger(__name__)


class SessionStore:
    """Maps user ids to their live chat sessions."""

    def __init__(
        self,
        llm_client: LLMClientBase,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            llm_client: Transport shared by every session.
            temperature: Sampling temperature (defaults to settings).
            max_output_tokens: Per-turn output cap (defaults to settings).
        """
        settings = get_settings()
        self._llm_client = llm_client
        self._temperature = settings.llm_temperature if temperature is None else temperature
        self._max_output_tokens = max_output_tokens or settings.llm_max_output_tokens
        self._sessions: dict[str, ChatSession] = {}

    def create_session(
        self,
        user_id: str,
        resume_context: str,
        job_description: str | None = None,
        resume_id: int | None = None,
    ) -> ChatSession:
        """
        Open a new session, replacing any existing one for the user.

        Args:
            user_id: Owner of the session.
            resume_context: Grounding text embedded in the system instruction.
            job_description: Optional role the interview targets.
            resume_id: Resume the interview is grounded on.

        Returns:
            The new session.
        """
        session = ChatSession(
            llm_client=self._llm_client,
            system_instruction=build_system_prompt(resume_context, job_description),
            tools=INTERVIEW_TOOLS,
            resume_id=resume_id,
            temperature=self._temperature,
            max_output_tokens=self._max_output_tokens,
        )
        self._sessions[user_id] = session
        logger.info(f"Created new chat session for user: {user_id}")
        return session

    def get_session(self, user_id: str) -> ChatSession | None:
        return self._sessions.get(user_id)

    def has_session(self, user_id: str) -> bool:
        return user_id in self._sessions

    def delete_session(self, user_id: str) -> None:
        if self._sessions.pop(user_id, None) is not None:
            logger.info(f"Deleted chat session for user: {user_id}")

    def get_or_create_session(
        self,
        user_id: str,
        resume_context: str,
        job_description: str | None = None,
        resume_id: int | None = None,
    ) -> ChatSession:
        """
        Return the user's session, creating one if absent.

        Not used by the interview turn loop, which only opens sessions on
        explicit start or restart.
        """
        existing = self.get_session(user_id)
        if existing is not None:
            return existing
        return self.create_session(user_id, resume_context, job_description, resume_id)

    def restart_session(
        self,
        user_id: str,
        resume_context: str,
        job_description: str | None = None,
        resume_id: int | None = None,
    ) -> ChatSession:
        """Delete the user's session and open a fresh one."""
        self.delete_session(user_id)
        return self.create_session(user_id, resume_context, job_description, resume_id)

    def get_session_turn_count(self, user_id: str) -> int:
        """
        Estimate completed exchanges from the session history.

        Returns:
            History length halved, or 0 when there is no session or the
            history cannot be read.
        """
        session = self.get_session(user_id)
        if session is None:
            return 0

        try:
            return len(session.get_history()) // 2
        except Exception as e:
            logger.error(f"Error getting history for user {user_id}: {e}")
            return 0

    def set_session_resume_id(self, user_id: str, resume_id: int | None) -> None:
        session = self.get_session(user_id)
        if session is not None:
            session.resume_id = resume_id

    def clear_all(self) -> None:
        self._sessions.clear()
        logger.info("Cleared all chat sessions")

    def active_session_count(self) -> int:
        return len(self._sessions)

    def active_user_ids(self) -> list[str]:
        return list(self._sessions)
