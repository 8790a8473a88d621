"""
Tool protocol handler.

Consumes a streamed model response, accumulating free text and dispatching
the turn's tool invocation to its result builder. The handled invocation is
recorded in conversation memory so later prompts can recall it.
"""

import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from resume_interviewer.errors import (
    EmptyStreamResult,
    InterviewError,
    MalformedToolResult,
    StreamProcessingFailed,
)
from resume_interviewer.memory import ConversationMemory
from resume_interviewer.models.llm_client import StreamChunk, ToolCall
from resume_interviewer.orchestrator.schemas import StreamEvent
from resume_interviewer.orchestrator.tools import RESULT_BUILDERS, ToolCallResult, ToolName

logger = logging.getLogger(__name__)

StreamCallback = Callable[[StreamEvent], Awaitable[None]]


@dataclass
class StreamProcessingResult:
    """Outcome of draining one response stream."""

    full_text: str = ""
    tool_result: ToolCallResult | BaseModel | dict[str, Any] | None = None


class ToolProtocolHandler:
    """
    Drives a response stream through the interview tool protocol.

    Only the first tool invocation of a turn is dispatched; any later ones
    are logged and dropped.
    """

    def __init__(self, memory: ConversationMemory) -> None:
        """
        Initialize the handler.

        Args:
            memory: Conversation memory that receives handled invocations.
        """
        self._memory = memory

    async def process_stream(
        self,
        stream: AsyncIterator[StreamChunk],
        user_id: str,
    ) -> StreamProcessingResult:
        """
        Drain a stream, collecting text and the turn's tool result.

        Args:
            stream: Response increments from the chat session.
            user_id: Owner of the turn.

        Returns:
            Accumulated text and the built tool result, if any.

        Raises:
            MalformedToolResult: If the invocation's arguments are invalid.
            StreamProcessingFailed: If the stream itself fails.
        """
        return await self._drain(stream, user_id, on_chunk=None)

    async def process_stream_with_callback(
        self,
        stream: AsyncIterator[StreamChunk],
        user_id: str,
        on_chunk: StreamCallback,
    ) -> StreamProcessingResult:
        """
        Drain a stream while forwarding events to a callback.

        Emits a "text" event per text increment, a "function_call" event for
        the handled invocation, then "complete". On failure an "error" event
        is emitted before the exception propagates.

        Args:
            stream: Response increments from the chat session.
            user_id: Owner of the turn.
            on_chunk: Async callback receiving StreamEvent objects.

        Returns:
            Accumulated text and the built tool result, if any.
        """
        try:
            result = await self._drain(stream, user_id, on_chunk=on_chunk)
        except InterviewError as e:
            await on_chunk(StreamEvent(type="error", error=e.message, details=e.details))
            raise

        await on_chunk(StreamEvent(type="complete", full_text=result.full_text))
        return result

    async def _drain(
        self,
        stream: AsyncIterator[StreamChunk],
        user_id: str,
        on_chunk: StreamCallback | None,
    ) -> StreamProcessingResult:
        text_parts: list[str] = []
        tool_result: ToolCallResult | None = None
        handled = False

        try:
            async for chunk in stream:
                if chunk.text:
                    text_parts.append(chunk.text)
                    if on_chunk:
                        await on_chunk(StreamEvent(type="text", content=chunk.text))

                for call in chunk.tool_calls:
                    if handled:
                        logger.warning(f"Ignoring extra tool call {call.name} for user {user_id}")
                        continue
                    handled = True

                    tool_result = await self._process_tool_call(call, user_id)
                    if on_chunk:
                        await on_chunk(
                            StreamEvent(
                                type="function_call",
                                function_name=call.name,
                                function_result=tool_result.model_dump() if tool_result else None,
                            )
                        )
        except InterviewError:
            raise
        except Exception as e:
            logger.error(f"Error processing stream for user {user_id}: {e}")
            raise StreamProcessingFailed("Stream processing failed", details=str(e)) from e

        return StreamProcessingResult(full_text="".join(text_parts), tool_result=tool_result)

    async def _process_tool_call(self, call: ToolCall, user_id: str) -> ToolCallResult | None:
        try:
            name = ToolName(call.name)
        except ValueError:
            logger.warning(f"No handler found for function: {call.name}")
            return None

        result = RESULT_BUILDERS[name](call.arguments)

        await self._memory.store_turn(
            user_id,
            f"tool_call:{name.value}",
            json.dumps(result.model_dump()),
        )
        logger.info(f"Processed function call: {name.value} for user: {user_id}")
        return result


def validate_result(result: StreamProcessingResult) -> None:
    """
    Check that a drained stream produced something usable.

    Raises:
        EmptyStreamResult: If there is neither text nor a tool result.
        MalformedToolResult: If the tool result lacks a known type.
    """
    if not result.full_text and result.tool_result is None:
        raise EmptyStreamResult("No content received from stream")

    if result.tool_result is not None:
        tool_type = _result_type(result.tool_result)
        if tool_type is None:
            raise MalformedToolResult("Function call result missing fields: type")
        if tool_type not in {name.value for name in ToolName}:
            raise MalformedToolResult(f"Function call result has unknown type: {tool_type}")


def extract_metadata(result: StreamProcessingResult) -> dict[str, Any]:
    """Summarize what a drained stream contained."""
    return {
        "has_text": bool(result.full_text),
        "has_function_call": result.tool_result is not None,
        "function_type": _result_type(result.tool_result) if result.tool_result is not None else None,
    }


def _result_type(tool_result: BaseModel | dict[str, Any]) -> str | None:
    if isinstance(tool_result, dict):
        return tool_result.get("type")
    return getattr(tool_result, "type", None)
