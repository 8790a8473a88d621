"""
Chat session handle.

A ChatSession is the per-user dialogue with the model: the system
instruction, the tool schema, and the provider-side turn history that is
replayed on every request.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any

from resume_interviewer.models.llm_client import LLMClientBase, Message, StreamChunk, ToolCall

logger = logging.getLogger(__name__)


class ChatSession:
    """
    A live, stateful dialogue with the LLM.

    History is committed only after a response stream has been fully
    drained, so a failed turn leaves the dialogue as it was.
    """

    def __init__(
        self,
        llm_client: LLMClientBase,
        system_instruction: str,
        tools: list[dict[str, Any]],
        resume_id: int | None = None,
        temperature: float = 0.7,
        max_output_tokens: int | None = None,
    ) -> None:
        """
        Initialize a chat session.

        Args:
            llm_client: Transport used to reach the model.
            system_instruction: One-time system prompt for this interview.
            tools: Function declarations registered for every turn.
            resume_id: Resume the interview is grounded on, if one was chosen.
            temperature: Sampling temperature.
            max_output_tokens: Maximum tokens generated per turn.
        """
        self._llm_client = llm_client
        self._system_instruction = system_instruction
        self._tools = tools
        self._history: list[Message] = []
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self.resume_id = resume_id
        self.last_question_number = 0
        self.created_at = datetime.now(timezone.utc)

    @property
    def system_instruction(self) -> str:
        """Get the system instruction."""
        return self._system_instruction

    @property
    def tools(self) -> list[dict[str, Any]]:
        """Get the registered tool schema."""
        return list(self._tools)

    def get_history(self) -> list[Message]:
        """Get the committed provider-side turn history."""
        return list(self._history)

    async def send_message_stream(self, prompt: str) -> AsyncIterator[StreamChunk]:
        """
        Send a prompt and stream the model's reply.

        Args:
            prompt: Instruction text for this turn.

        Yields:
            StreamChunk increments as they arrive.
        """
        user_message = Message(role="user", content=prompt)
        messages = [
            Message(role="system", content=self._system_instruction),
            *self._history,
            user_message,
        ]

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []

        async for chunk in self._llm_client.stream_chat(
            messages,
            tools=self._tools,
            temperature=self._temperature,
            max_tokens=self._max_output_tokens,
        ):
            text_parts.append(chunk.text)
            tool_calls.extend(chunk.tool_calls)
            yield chunk

        self._history.append(user_message)
        self._history.append(
            Message(
                role="assistant",
                content="".join(text_parts),
                tool_calls=tool_calls or None,
            )
        )
        logger.debug(f"Committed turn; history length is now {len(self._history)}")
