"""
Conversation module: message schemas and the in-memory conversation store.
"""

from recruiter_call_assistant.conversation.schemas import (
    HistoryMessage,
    Message,
    MessageRole,
    ToolCall,
)
from recruiter_call_assistant.conversation.store import DEFAULT_GREETING, ConversationStore

__all__ = [
    "ConversationStore",
    "DEFAULT_GREETING",
    "HistoryMessage",
    "Message",
    "MessageRole",
    "ToolCall",
]
