"""
Pydantic schemas for the orchestrator module.

Defines the request, response and event models exchanged with callers of
the interview controller.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class Action(str, Enum):
    """What the caller wants the interviewer to do this turn."""

    START = "start"
    RESTART = "restart"
    CONTINUE = "continue"
    SKIP = "skip"
    FEEDBACK = "feedback"
    END = "end"
    NO_ANSWER = "no_answer"


# Actions that open a new interview
STARTING_ACTIONS = frozenset({Action.START, Action.RESTART})


class QuestionType(str, Enum):
    """Kinds of interview question."""

    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    CLARIFYING = "clarifying"


class ChatRequest(BaseModel):
    """A single interview turn request."""

    message: str | None = Field(default=None, description="Candidate's answer text")
    action: Action | str = Field(
        default=Action.CONTINUE,
        description="Turn action; unrecognized values are treated like 'continue'",
    )
    question_number: int | None = Field(
        default=None,
        description="Number of the question being answered",
    )
    job_description: str | None = Field(
        default=None,
        description="Job description to tailor the interview to",
    )
    resume_id: int | None = Field(
        default=None,
        description="Resume to ground the interview on (defaults to the primary resume)",
    )

    @field_validator("action", mode="before")
    @classmethod
    def _known_action(cls, value: Any) -> Any:
        """Map known action strings onto the enum, keep others verbatim."""
        try:
            return Action(value)
        except ValueError:
            return value


class ChatResponse(BaseModel):
    """Result of a single interview turn."""

    success: bool = Field(..., description="Whether the turn completed")
    action: str = Field(..., description="Echo of the requested action")
    type: str | None = Field(default=None, description="Tool result type, if any")
    data: dict[str, Any] | None = Field(default=None, description="Full tool result payload")
    question: str | None = Field(default=None, description="Question to show the candidate")
    question_number: int | None = Field(default=None, description="Sequential question number")
    question_type: str | None = Field(default=None, description="Kind of question asked")
    reasoning: str | None = Field(default=None, description="Why the question was chosen")
    feedback: dict[str, Any] | None = Field(default=None, description="Feedback payload")
    is_complete: bool | None = Field(default=None, description="Whether the interview ended")
    context: str | None = Field(default=None, description="Free text the model produced")
    turn_count: int = Field(default=0, description="Completed exchanges in the session")


class StreamEvent(BaseModel):
    """An event forwarded to streaming callers while a turn is produced."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["text", "function_call", "complete", "error", "final"] = Field(
        ...,
        description="Event kind",
    )
    content: str | None = Field(default=None, description="Text increment")
    function_name: str | None = Field(
        default=None,
        alias="functionName",
        description="Name of the handled tool invocation",
    )
    function_result: dict[str, Any] | None = Field(
        default=None,
        alias="functionResult",
        description="Built tool result",
    )
    full_text: str | None = Field(
        default=None,
        alias="fullText",
        description="All text produced by the turn",
    )
    error: str | None = Field(default=None, description="Error message")
    details: str | None = Field(default=None, description="Error cause")
    response: ChatResponse | None = Field(
        default=None,
        description="Final turn response (only on 'final' events)",
    )
    timestamp: datetime = Field(default_factory=_now_utc, description="When the event was emitted")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase aliases, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SessionStatus(BaseModel):
    """Interview status for a user."""

    has_active_session: bool = Field(..., description="Whether an interview is in progress")
    turn_count: int = Field(default=0, description="Completed exchanges in the session")
    has_history: bool = Field(default=False, description="Whether conversation memory is non-empty")
