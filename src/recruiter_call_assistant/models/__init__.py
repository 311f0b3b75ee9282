"""
Models module for the streaming LLM client abstraction.
"""

from recruiter_call_assistant.models.llm_client import (
    DEFAULT_MODEL,
    ChatMessage,
    LLMClient,
    LLMClientBase,
    ProviderEvent,
    StreamFailed,
    StreamFinished,
    TextDelta,
    ToolCallRequest,
)

__all__ = [
    "ChatMessage",
    "DEFAULT_MODEL",
    "LLMClient",
    "LLMClientBase",
    "ProviderEvent",
    "StreamFailed",
    "StreamFinished",
    "TextDelta",
    "ToolCallRequest",
]
