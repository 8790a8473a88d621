"""
Interview tool schema and result builders.

Declares the three functions the interviewer model may call and turns each
invocation's arguments into a typed result. The dispatch table is closed:
names outside ToolName are never built.
"""

from collections.abc import Callable
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from resume_interviewer.errors import MalformedToolResult


class ToolName(str, Enum):
    """Functions the interviewer model may invoke."""

    START_INTERVIEW = "start_interview"
    ASK_NEXT_QUESTION = "ask_next_question"
    GENERATE_FEEDBACK = "generate_feedback"


class StartInterviewResult(BaseModel):
    """Opening question of an interview."""

    type: Literal["start_interview"] = "start_interview"
    question: str = Field(..., description="The first interview question")
    question_type: str = Field(..., description="behavioral, technical or clarifying")
    reasoning: str | None = Field(default=None, description="Why the question fits the resume")
    question_number: int = Field(default=1, description="Always 1 for the opening question")


class AskNextQuestionResult(BaseModel):
    """A follow-up or new question."""

    type: Literal["ask_next_question"] = "ask_next_question"
    question: str = Field(..., description="The follow-up question")
    question_number: int = Field(..., description="Sequential number of this question")
    question_type: str = Field(..., description="behavioral, technical or clarifying")
    reasoning: str | None = Field(default=None, description="Why this question is asked")


class GenerateFeedbackResult(BaseModel):
    """Structured assessment of the candidate's answers."""

    type: Literal["generate_feedback"] = "generate_feedback"
    confidence_score: float = Field(..., description="Overall confidence score from 1-10")
    grammar_assessment: str = Field(..., description="Communication and grammar assessment")
    content_quality: str = Field(..., description="Answer depth and relevance assessment")
    improvement_suggestions: list[str] = Field(..., description="Specific suggestions")
    strengths: list[str] = Field(..., description="What the candidate did well")
    is_final: bool = Field(..., description="Whether this feedback ends the interview")


ToolCallResult = Annotated[
    StartInterviewResult | AskNextQuestionResult | GenerateFeedbackResult,
    Field(discriminator="type"),
]

_result_adapter: TypeAdapter[ToolCallResult] = TypeAdapter(ToolCallResult)


def parse_tool_result(payload: dict[str, Any]) -> ToolCallResult:
    """
    Validate a serialized tool result.

    Raises:
        MalformedToolResult: If the payload has no known type or bad fields.
    """
    try:
        return _result_adapter.validate_python(payload)
    except ValidationError as e:
        raise MalformedToolResult("Tool result failed validation", details=str(e)) from e


def _build(model: type[BaseModel], name: ToolName, arguments: dict[str, Any]) -> Any:
    try:
        return model.model_validate(arguments)
    except ValidationError as e:
        raise MalformedToolResult(
            f"Invalid arguments for {name.value}",
            details=str(e),
        ) from e


def build_start_interview(arguments: dict[str, Any]) -> StartInterviewResult:
    # The opening question is always number 1, whatever the model sent.
    fields = {k: v for k, v in arguments.items() if k not in ("type", "question_number")}
    return _build(StartInterviewResult, ToolName.START_INTERVIEW, fields)


def build_ask_next_question(arguments: dict[str, Any]) -> AskNextQuestionResult:
    fields = {k: v for k, v in arguments.items() if k != "type"}
    return _build(AskNextQuestionResult, ToolName.ASK_NEXT_QUESTION, fields)


def build_generate_feedback(arguments: dict[str, Any]) -> GenerateFeedbackResult:
    fields = {k: v for k, v in arguments.items() if k != "type"}
    return _build(GenerateFeedbackResult, ToolName.GENERATE_FEEDBACK, fields)


RESULT_BUILDERS: dict[ToolName, Callable[[dict[str, Any]], ToolCallResult]] = {
    ToolName.START_INTERVIEW: build_start_interview,
    ToolName.ASK_NEXT_QUESTION: build_ask_next_question,
    ToolName.GENERATE_FEEDBACK: build_generate_feedback,
}


def _function(name: ToolName, description: str, properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name.value,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }


INTERVIEW_TOOLS: list[dict[str, Any]] = [
    _function(
        ToolName.START_INTERVIEW,
        "Start the interview by asking the FIRST question.",
        {
            "question": {
                "type": "string",
                "description": "The first interview question (behavioral or technical)",
            },
            "question_type": {
                "type": "string",
                "description": "Type of question: 'behavioral' or 'technical'",
            },
            "reasoning": {
                "type": "string",
                "description": "Brief explanation of why this question is relevant based on the resume",
            },
        },
        ["question", "question_type"],
    ),
    _function(
        ToolName.ASK_NEXT_QUESTION,
        "Ask the next follow-up interview question based on candidate's previous answers "
        "or can choose to ask a new question.",
        {
            "question": {
                "type": "string",
                "description": "The follow-up question",
            },
            "question_number": {
                "type": "number",
                "description": "The sequential number of this question in the interview",
            },
            "question_type": {
                "type": "string",
                "description": "Type of question: 'behavioral', 'technical', or 'clarifying'",
            },
            "reasoning": {
                "type": "string",
                "description": "Why this follow-up question is being asked",
            },
        },
        ["question", "question_number", "question_type"],
    ),
    _function(
        ToolName.GENERATE_FEEDBACK,
        "Generate interview feedback. Call this when you have gathered enough information "
        "(typically after 3-5 questions) or when explicitly requested.",
        {
            "confidence_score": {
                "type": "number",
                "description": "Overall confidence score from 1-10",
            },
            "grammar_assessment": {
                "type": "string",
                "description": "Assessment of communication and grammar skills",
            },
            "content_quality": {
                "type": "string",
                "description": "Assessment of answer depth and relevance",
            },
            "improvement_suggestions": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Specific suggestions for improvement",
            },
            "strengths": {
                "type": "array",
                "items": {"type": "string"},
                "description": "What the candidate did well",
            },
            "is_final": {
                "type": "boolean",
                "description": "Whether this is the final feedback for the interview",
            },
        },
        [
            "confidence_score",
            "grammar_assessment",
            "content_quality",
            "improvement_suggestions",
            "strengths",
            "is_final",
        ],
    ),
]
