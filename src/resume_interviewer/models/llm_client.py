"""
LLM client abstraction.

Provides a unified interface for talking to a local Ollama server over its
HTTP API: streamed chat completions with tool calling, and embeddings.
"""

import ast
import json
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

import httpx
from pydantic import BaseModel, Field

from resume_interviewer.config import get_settings

logger = logging.getLogger(__name__)

# Default model for Ollama
DEFAULT_OLLAMA_MODEL = "gpt-oss:20b"


class ToolCall(BaseModel):
    """A function invocation emitted by the model."""

    name: str = Field(..., description="Name of the invoked function")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Decoded call arguments")


class Message(BaseModel):
    """A message in a conversation."""

    role: str = Field(..., description="Role of the speaker (system, user, assistant, tool)")
    content: str = Field(default="", description="Message content")
    tool_calls: list[ToolCall] | None = Field(
        default=None,
        description="Function invocations carried by an assistant message",
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the Ollama chat message format."""
        payload: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            payload["tool_calls"] = [
                {"function": {"name": call.name, "arguments": call.arguments}}
                for call in self.tool_calls
            ]
        return payload


class StreamChunk(BaseModel):
    """One increment of a streamed chat response."""

    text: str = Field(default="", description="Free text carried by this increment")
    tool_calls: list[ToolCall] = Field(
        default_factory=list,
        description="Function invocations carried by this increment",
    )
    done: bool = Field(default=False, description="Whether the server marked the stream finished")


class OllamaError(Exception):
    """Exception raised when the Ollama API fails."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LLMClientBase(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    def stream_chat(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a chat completion.

        Args:
            messages: Conversation history, system instruction first.
            tools: Function declarations the model may invoke.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.

        Returns:
            Async iterator of response increments.
        """
        ...

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for a batch of texts.

        Args:
            texts: Texts to embed.

        Returns:
            One embedding vector per input text.
        """
        ...


class LLMClient(LLMClientBase):
    """
    Ollama-based LLM client.

    Talks to the Ollama HTTP API (``/api/chat`` and ``/api/embed``).
    Chat responses are consumed as newline-delimited JSON so callers can
    forward partial output while the model is still generating.
    """

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        embedding_model: str | None = None,
        max_retries: int = 1,
        timeout: int | None = None,
    ) -> None:
        """
        Initialize the Ollama LLM client.

        Args:
            model: Chat model name (defaults to settings, then gpt-oss:20b).
            base_url: Ollama server URL (defaults to settings).
            embedding_model: Embedding model name (defaults to settings).
            max_retries: Number of retries for embedding requests (default 1).
            timeout: Timeout in seconds for HTTP requests (defaults to settings).
        """
        settings = get_settings()
        self._model = model or settings.llm_model_name or DEFAULT_OLLAMA_MODEL
        self._base_url = base_url or settings.ollama_base_url
        self._embedding_model = embedding_model or settings.embedding_model
        self._max_retries = max_retries
        self._timeout = timeout or settings.llm_timeout
        self._client: httpx.AsyncClient | None = None

        logger.info(f"Initialized Ollama LLM client with model: {self._model}")

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
            )
        return self._client

    async def stream_chat(
        self,
        messages: list[Message],
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream a chat completion from Ollama.

        Args:
            messages: Conversation history, system instruction first.
            tools: Function declarations the model may invoke.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.

        Yields:
            StreamChunk for each NDJSON line carrying text or tool calls.

        Raises:
            OllamaError: On HTTP errors or an error line in the stream.
        """
        options: dict[str, Any] = {"temperature": temperature}
        if max_tokens is not None:
            options["num_predict"] = max_tokens

        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [msg.to_wire() for msg in messages],
            "stream": True,
            "options": options,
        }
        if tools:
            payload["tools"] = tools

        client = await self._get_client()
        logger.debug(f"Streaming chat with {len(messages)} messages, {len(tools or [])} tools")

        async with client.stream("POST", "/api/chat", json=payload) as response:
            if response.status_code >= 400:
                body = (await response.aread()).decode("utf-8", errors="replace")
                raise OllamaError(
                    f"Ollama chat returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    body=body,
                )

            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError as e:
                    raise OllamaError(f"Unparseable stream line from Ollama: {e}", body=line) from e

                if "error" in data:
                    raise OllamaError(str(data["error"]), body=line)

                chunk = self._parse_stream_line(data)
                if chunk.text or chunk.tool_calls or chunk.done:
                    yield chunk

    def _parse_stream_line(self, data: dict[str, Any]) -> StreamChunk:
        """Convert one decoded NDJSON line into a StreamChunk."""
        message = data.get("message") or {}
        tool_calls: list[ToolCall] = []

        for raw_call in message.get("tool_calls") or []:
            function = raw_call.get("function") or {}
            name = function.get("name")
            if not name:
                logger.warning(f"Ignoring tool call without a name: {raw_call}")
                continue

            arguments = function.get("arguments") or {}
            if isinstance(arguments, str):
                # Some models emit the arguments as a JSON string.
                parsed = self.parse_json_loose(arguments)
                arguments = parsed if isinstance(parsed, dict) else {}
            tool_calls.append(ToolCall(name=name, arguments=arguments))

        return StreamChunk(
            text=message.get("content") or "",
            tool_calls=tool_calls,
            done=bool(data.get("done")),
        )

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings through Ollama's ``/api/embed`` endpoint.

        Args:
            texts: Texts to embed.

        Returns:
            One embedding vector per input text.

        Raises:
            OllamaError: If the request fails after all retries.
        """
        if not texts:
            return []

        client = await self._get_client()
        payload = {"model": self._embedding_model, "input": texts}
        last_error: Exception | None = None
        attempts = 0

        while attempts <= self._max_retries:
            attempts += 1
            try:
                response = await client.post("/api/embed", json=payload)
                if response.status_code >= 400:
                    last_error = OllamaError(
                        f"Ollama embed returned HTTP {response.status_code}",
                        status_code=response.status_code,
                        body=response.text,
                    )
                    logger.warning(f"Ollama embed failed (attempt {attempts}): {response.status_code}")
                    continue

                embeddings = response.json().get("embeddings") or []
                if len(embeddings) != len(texts):
                    raise OllamaError(
                        f"Expected {len(texts)} embeddings, got {len(embeddings)}",
                        body=response.text,
                    )
                return embeddings

            except httpx.HTTPError as e:
                logger.warning(f"Ollama embed error (attempt {attempts}): {e}")
                last_error = OllamaError(str(e))

        # All retries exhausted
        raise last_error or OllamaError("Ollama embed failed after all retries")

    def _fix_json_string(self, json_str: str) -> str:
        """
        Attempt to fix common JSON issues from LLM output.

        Args:
            json_str: Raw JSON string that may have issues.

        Returns:
            Cleaned JSON string.
        """
        if not json_str:
            return ""

        result = json_str.strip()

        # Strip common fenced blocks.
        result = re.sub(r"^```(?:json)?\s*", "", result, flags=re.IGNORECASE)
        result = re.sub(r"\s*```$", "", result)

        # Normalize curly quotes.
        result = (
            result.replace("“", '"')
            .replace("”", '"')
            .replace("‘", "'")
            .replace("’", "'")
        )

        # Remove trailing commas before closing braces/brackets.
        result = re.sub(r",(\s*[}\]])", r"\1", result)

        # Convert Python literals to JSON literals.
        result = re.sub(r"\bNone\b", "null", result)
        result = re.sub(r"\bTrue\b", "true", result)
        result = re.sub(r"\bFalse\b", "false", result)

        # Quote bare keys right after { or , (e.g. {question: "..."}).
        result = re.sub(
            r"([\{,]\s*)([A-Za-z_][A-Za-z0-9_\-]*)(\s*:)",
            r'\1"\2"\3',
            result,
        )

        if result.count("'") > 0 and result.count('"') == 0:
            result = result.replace("'", '"')

        return result

    def _coerce_to_json_types(self, obj: Any) -> Any:
        """Coerce a Python literal to JSON-safe types.

        Used after the ``ast.literal_eval`` fallback so Python sentinels such
        as ``Ellipsis`` never reach tool result builders.
        """
        if obj is ...:
            return None
        if obj is None or isinstance(obj, (str, int, float, bool)):
            return obj
        if isinstance(obj, dict):
            return {str(k): self._coerce_to_json_types(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple, set)):
            return [self._coerce_to_json_types(v) for v in obj]
        return str(obj)

    def parse_json_loose(self, raw: str) -> dict[str, Any] | list[Any] | None:
        """Parse JSON with best-effort repair.

        Returns a dict/list on success, else None.
        """
        if not raw:
            return None

        cleaned = self._fix_json_string(raw)
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            pass

        # Fallback: parse as a Python literal, then round-trip through json.
        try:
            obj = ast.literal_eval(raw.strip())
        except (ValueError, SyntaxError):
            try:
                obj = ast.literal_eval(cleaned)
            except (ValueError, SyntaxError):
                return None

        if not isinstance(obj, (dict, list, tuple, set)):
            return None

        coerced = self._coerce_to_json_types(obj)
        try:
            return json.loads(json.dumps(coerced))
        except (TypeError, ValueError):
            return None

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
