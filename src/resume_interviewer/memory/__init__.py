"""
Memory module for per-user conversation context.

Stores interview turns in an embedding index and recalls the most relevant
ones for each prompt.
"""

from resume_interviewer.memory.conversation_memory import (
    ConversationMemory,
    ConversationTurn,
    TurnRole,
)

__all__ = [
    "ConversationMemory",
    "ConversationTurn",
    "TurnRole",
]
