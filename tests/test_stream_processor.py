"""
Tests for the tool protocol handler and result validation.
"""

from collections.abc import AsyncIterator

import pytest

from conftest import text_chunk, tool_chunk
from resume_interviewer.errors import (
    EmptyStreamResult,
    MalformedToolResult,
    StreamProcessingFailed,
)
from resume_interviewer.memory import ConversationMemory
from resume_interviewer.models.llm_client import StreamChunk
from resume_interviewer.orchestrator.schemas import StreamEvent
from resume_interviewer.orchestrator.stream_processor import (
    StreamProcessingResult,
    ToolProtocolHandler,
    extract_metadata,
    validate_result,
)
from resume_interviewer.orchestrator.tools import (
    AskNextQuestionResult,
    GenerateFeedbackResult,
    StartInterviewResult,
    parse_tool_result,
)


async def _stream(*chunks: StreamChunk) -> AsyncIterator[StreamChunk]:
    for chunk in chunks:
        yield chunk


async def _failing_stream() -> AsyncIterator[StreamChunk]:
    yield text_chunk("partial")
    raise RuntimeError("connection reset")


@pytest.fixture
def handler(memory: ConversationMemory) -> ToolProtocolHandler:
    return ToolProtocolHandler(memory)


class TestToolProtocolHandler:
    """Tests for ToolProtocolHandler."""

    @pytest.mark.asyncio
    async def test_accumulates_text_and_builds_result(self, handler: ToolProtocolHandler) -> None:
        result = await handler.process_stream(
            _stream(
                text_chunk("Great, "),
                text_chunk("let's start."),
                tool_chunk("start_interview", question="Why Python?", question_type="technical"),
            ),
            "u1",
        )

        assert result.full_text == "Great, let's start."
        assert isinstance(result.tool_result, StartInterviewResult)
        assert result.tool_result.question_number == 1

    @pytest.mark.asyncio
    async def test_start_interview_always_numbers_one(self, handler: ToolProtocolHandler) -> None:
        result = await handler.process_stream(
            _stream(tool_chunk("start_interview", question="Q", question_type="behavioral", question_number=4)),
            "u1",
        )

        assert result.tool_result.question_number == 1

    @pytest.mark.asyncio
    async def test_handled_call_is_recorded_in_memory(
        self,
        handler: ToolProtocolHandler,
        memory: ConversationMemory,
    ) -> None:
        await handler.process_stream(
            _stream(tool_chunk("start_interview", question="Why Python?", question_type="technical")),
            "u1",
        )

        history = memory.get_all_history("u1")
        assert history[0] == "Human: tool_call:start_interview"
        assert history[1].startswith("AI: ")
        assert "Why Python?" in history[1]

    @pytest.mark.asyncio
    async def test_unknown_tool_is_ignored(
        self,
        handler: ToolProtocolHandler,
        memory: ConversationMemory,
    ) -> None:
        result = await handler.process_stream(
            _stream(text_chunk("Hmm."), tool_chunk("book_meeting", when="tomorrow")),
            "u1",
        )

        assert result.tool_result is None
        assert result.full_text == "Hmm."
        assert not await memory.has_history("u1")

    @pytest.mark.asyncio
    async def test_only_first_tool_call_is_handled(self, handler: ToolProtocolHandler) -> None:
        result = await handler.process_stream(
            _stream(
                tool_chunk("ask_next_question", question="First?", question_number=2, question_type="technical"),
                tool_chunk("ask_next_question", question="Second?", question_number=3, question_type="technical"),
            ),
            "u1",
        )

        assert isinstance(result.tool_result, AskNextQuestionResult)
        assert result.tool_result.question == "First?"

    @pytest.mark.asyncio
    async def test_missing_arguments_raise_malformed(self, handler: ToolProtocolHandler) -> None:
        with pytest.raises(MalformedToolResult):
            await handler.process_stream(
                _stream(tool_chunk("generate_feedback", confidence_score=5)),
                "u1",
            )

    @pytest.mark.asyncio
    async def test_stream_failure_is_wrapped(self, handler: ToolProtocolHandler) -> None:
        with pytest.raises(StreamProcessingFailed) as exc_info:
            await handler.process_stream(_failing_stream(), "u1")

        assert exc_info.value.details == "connection reset"

    @pytest.mark.asyncio
    async def test_callback_events_in_order(self, handler: ToolProtocolHandler) -> None:
        events: list[StreamEvent] = []

        async def on_chunk(event: StreamEvent) -> None:
            events.append(event)

        await handler.process_stream_with_callback(
            _stream(
                text_chunk("Hi"),
                tool_chunk("start_interview", question="Q?", question_type="behavioral"),
            ),
            "u1",
            on_chunk,
        )

        assert [event.type for event in events] == ["text", "function_call", "complete"]
        assert events[0].content == "Hi"
        assert events[1].function_name == "start_interview"
        assert events[1].function_result["question"] == "Q?"
        assert events[2].full_text == "Hi"

    @pytest.mark.asyncio
    async def test_callback_receives_error_before_raise(self, handler: ToolProtocolHandler) -> None:
        events: list[StreamEvent] = []

        async def on_chunk(event: StreamEvent) -> None:
            events.append(event)

        with pytest.raises(StreamProcessingFailed):
            await handler.process_stream_with_callback(_failing_stream(), "u1", on_chunk)

        assert [event.type for event in events] == ["text", "error"]
        assert events[-1].error == "Stream processing failed"


class TestValidateResult:
    """Tests for validate_result."""

    def test_empty_result_raises(self) -> None:
        with pytest.raises(EmptyStreamResult, match="No content received from stream"):
            validate_result(StreamProcessingResult())

    def test_text_only_result_is_valid(self) -> None:
        validate_result(StreamProcessingResult(full_text="Just talking"))

    def test_result_without_type_raises(self) -> None:
        with pytest.raises(MalformedToolResult, match="missing fields: type"):
            validate_result(StreamProcessingResult(tool_result={"question": "Q?"}))

    def test_result_with_unknown_type_raises(self) -> None:
        with pytest.raises(MalformedToolResult):
            validate_result(StreamProcessingResult(tool_result={"type": "dance"}))

    def test_extract_metadata(self) -> None:
        metadata = extract_metadata(
            StreamProcessingResult(full_text="ok", tool_result={"type": "ask_next_question"})
        )

        assert metadata == {
            "has_text": True,
            "has_function_call": True,
            "function_type": "ask_next_question",
        }


class TestParseToolResult:
    """Tests for the discriminated result union."""

    def test_parses_feedback(self) -> None:
        result = parse_tool_result(
            {
                "type": "generate_feedback",
                "confidence_score": 8,
                "grammar_assessment": "Fluent",
                "content_quality": "Specific",
                "improvement_suggestions": [],
                "strengths": ["Clarity"],
                "is_final": True,
            }
        )

        assert isinstance(result, GenerateFeedbackResult)
        assert result.confidence_score == 8.0

    def test_rejects_unknown_type(self) -> None:
        with pytest.raises(MalformedToolResult):
            parse_tool_result({"type": "dance"})
