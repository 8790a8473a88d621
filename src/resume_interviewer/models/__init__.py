"""
Models module for LLM client abstraction.

Provides a unified interface for talking to a local Ollama server, and the
per-user chat session built on top of it.
"""

from resume_interviewer.models.chat_session import ChatSession
from resume_interviewer.models.llm_client import (
    DEFAULT_OLLAMA_MODEL,
    LLMClient,
    LLMClientBase,
    Message,
    OllamaError,
    StreamChunk,
    ToolCall,
)

__all__ = [
    "ChatSession",
    "LLMClient",
    "LLMClientBase",
    "Message",
    "OllamaError",
    "StreamChunk",
    "ToolCall",
    "DEFAULT_OLLAMA_MODEL",
]
