"""
Orchestrator module for managing interview turns and coordination.
"""

from resume_interviewer.orchestrator.interview_controller import InterviewController, build_controller
from resume_interviewer.orchestrator.schemas import (
    Action,
    ChatRequest,
    ChatResponse,
    QuestionType,
    SessionStatus,
    StreamEvent,
)
from resume_interviewer.orchestrator.session_store import SessionStore
from resume_interviewer.orchestrator.stream_processor import StreamProcessingResult, ToolProtocolHandler

__all__ = [
    "Action",
    "ChatRequest",
    "ChatResponse",
    "InterviewController",
    "QuestionType",
    "SessionStatus",
    "SessionStore",
    "StreamEvent",
    "StreamProcessingResult",
    "ToolProtocolHandler",
    "build_controller",
]
