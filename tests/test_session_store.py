"""
Tests for the per-user session registry.
"""

import pytest

from conftest import FakeLLMClient, start_turn
from resume_interviewer.orchestrator.session_store import SessionStore
from resume_interviewer.orchestrator.tools import INTERVIEW_TOOLS


class TestSessionStore:
    """Tests for SessionStore."""

    def test_create_session_builds_system_prompt(self, sessions: SessionStore) -> None:
        session = sessions.create_session("u1", "Kubernetes expert", "Platform engineer", resume_id=9)

        assert "Kubernetes expert" in session.system_instruction
        assert "Platform engineer" in session.system_instruction
        assert session.resume_id == 9
        assert session.tools == INTERVIEW_TOOLS
        assert sessions.has_session("u1")

    def test_create_replaces_existing(self, sessions: SessionStore) -> None:
        first = sessions.create_session("u1", "a")
        second = sessions.create_session("u1", "b")

        assert first is not second
        assert sessions.get_session("u1") is second
        assert sessions.active_session_count() == 1

    def test_get_or_create_keeps_existing(self, sessions: SessionStore) -> None:
        first = sessions.get_or_create_session("u1", "a")

        assert sessions.get_or_create_session("u1", "b") is first

    def test_restart_replaces_session(self, sessions: SessionStore) -> None:
        first = sessions.create_session("u1", "a")

        assert sessions.restart_session("u1", "b") is not first

    def test_delete_and_clear(self, sessions: SessionStore) -> None:
        sessions.create_session("u1", "a")
        sessions.create_session("u2", "a")

        sessions.delete_session("u1")
        sessions.delete_session("missing")
        assert sessions.active_user_ids() == ["u2"]

        sessions.clear_all()
        assert sessions.active_session_count() == 0

    def test_set_session_resume_id(self, sessions: SessionStore) -> None:
        sessions.create_session("u1", "a")

        sessions.set_session_resume_id("u1", 11)

        assert sessions.get_session("u1").resume_id == 11

    @pytest.mark.asyncio
    async def test_turn_count_follows_committed_history(
        self,
        sessions: SessionStore,
        llm: FakeLLMClient,
    ) -> None:
        llm.script(start_turn())
        session = sessions.create_session("u1", "a")
        assert sessions.get_session_turn_count("u1") == 0

        async for _ in session.send_message_stream("begin"):
            pass

        assert sessions.get_session_turn_count("u1") == 1
        assert sessions.get_session_turn_count("nobody") == 0

    @pytest.mark.asyncio
    async def test_failed_stream_leaves_history_unchanged(
        self,
        sessions: SessionStore,
        llm: FakeLLMClient,
    ) -> None:
        llm.script(start_turn())
        llm.error = RuntimeError("dropped")
        session = sessions.create_session("u1", "a")

        with pytest.raises(RuntimeError):
            async for _ in session.send_message_stream("begin"):
                pass

        assert session.get_history() == []

    @pytest.mark.asyncio
    async def test_requests_replay_system_and_history(
        self,
        sessions: SessionStore,
        llm: FakeLLMClient,
    ) -> None:
        llm.script(start_turn(), start_turn())
        session = sessions.create_session("u1", "resume text")

        async for _ in session.send_message_stream("one"):
            pass
        async for _ in session.send_message_stream("two"):
            pass

        second = llm.requests[1]
        assert [message.role for message in second] == ["system", "user", "assistant", "user"]
        assert second[2].tool_calls[0].name == "start_interview"
        assert second[-1].content == "two"
