"""
Conversation memory: a bounded, per-session turn log.
"""

from contextvault.memory.conversation import (
    MAX_TURNS,
    ConversationMemory,
    ConversationSession,
    ConversationState,
    ConversationTurn,
    Role,
)

__all__ = [
    "MAX_TURNS",
    "ConversationMemory",
    "ConversationSession",
    "ConversationState",
    "ConversationTurn",
    "Role",
]
