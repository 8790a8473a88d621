"""
Tests for the HTTP API.
"""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import FakeLLMClient, next_turn, start_turn, text_chunk
from resume_interviewer.api import create_app
from resume_interviewer.orchestrator.interview_controller import InterviewController

HEADERS = {"X-User-Id": "user-1"}


@pytest.fixture
def client(controller: InterviewController):
    with TestClient(create_app(controller)) as test_client:
        yield test_client


def _events(body: str) -> list[dict]:
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


class TestChatEndpoint:
    """Tests for POST /api/chat."""

    def test_missing_user_id_is_unauthorized(self, client: TestClient) -> None:
        response = client.post("/api/chat", json={"action": "start"})

        assert response.status_code == 401
        assert response.json() == {"error": "No user ID"}

    def test_continue_without_session_conflicts(self, client: TestClient) -> None:
        response = client.post("/api/chat", json={"action": "continue", "message": "hi"}, headers=HEADERS)

        assert response.status_code == 409
        assert response.json()["error"] == "No active session found"

    def test_missing_primary_resume_is_not_found(self, client: TestClient) -> None:
        response = client.post("/api/chat", json={"action": "start"}, headers={"X-User-Id": "nobody"})

        assert response.status_code == 404
        assert response.json()["error"] == "No primary resume found"

    def test_start_then_answer(self, client: TestClient, llm: FakeLLMClient) -> None:
        llm.script(start_turn("Why backend?"), next_turn(2, "Which database?"))

        started = client.post("/api/chat", json={"action": "start"}, headers=HEADERS)
        answered = client.post(
            "/api/chat",
            json={"message": "I like APIs", "question_number": 1},
            headers=HEADERS,
        )

        assert started.status_code == 200
        body = started.json()
        assert body["success"] is True
        assert body["question"] == "Why backend?"
        assert body["question_number"] == 1
        assert "feedback" not in body

        assert answered.status_code == 200
        assert answered.json()["question_number"] == 2
        assert answered.json()["action"] == "continue"


class TestStreamEndpoint:
    """Tests for POST /api/chat/stream."""

    def test_stream_ends_with_final_event(self, client: TestClient, llm: FakeLLMClient) -> None:
        llm.script([text_chunk("Welcome. "), *start_turn("Walk me through your resume.")])

        response = client.post("/api/chat/stream", json={"action": "start"}, headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _events(response.text)
        assert [event["type"] for event in events] == ["text", "function_call", "complete", "final"]
        assert events[1]["functionName"] == "start_interview"
        assert events[2]["fullText"] == "Welcome. "
        assert events[3]["response"]["question"] == "Walk me through your resume."

    def test_stream_reports_errors_as_events(self, client: TestClient) -> None:
        response = client.post("/api/chat/stream", json={"action": "skip"}, headers=HEADERS)

        events = _events(response.text)
        assert len(events) == 1
        assert events[0]["type"] == "error"
        assert events[0]["error"] == "No active session found"


class TestSessionEndpoints:
    """Tests for clear, status and health."""

    def test_status_clear_and_health(self, client: TestClient, llm: FakeLLMClient) -> None:
        llm.script(start_turn())
        client.post("/api/chat", json={"action": "start"}, headers=HEADERS)

        status = client.get("/api/chat/status", headers=HEADERS).json()
        assert status["has_active_session"] is True
        assert status["turn_count"] == 1
        assert client.get("/health").json() == {"status": "ok", "active_sessions": 1}

        cleared = client.post("/api/chat/clear", headers=HEADERS)
        assert cleared.json() == {"success": True, "message": "Chat session cleared"}

        status = client.get("/api/chat/status", headers=HEADERS).json()
        assert status == {"has_active_session": False, "turn_count": 0, "has_history": False}
