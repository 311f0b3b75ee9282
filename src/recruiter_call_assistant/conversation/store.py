"""
Conversation store.

Holds the ordered, in-memory list of conversation messages. Insertion order is
both the display order and the order sent to the model. Only the most recent
assistant message may change, and only while its turn is streaming.
"""

import itertools
import logging
from collections.abc import Iterable
from typing import Any

from recruiter_call_assistant.conversation.schemas import (
    HistoryMessage,
    Message,
    MessageRole,
    ToolCall,
)

logger = logging.getLogger(__name__)

DEFAULT_GREETING = (
    "Hello! I'm your AI recruitment assistant. I can help you search candidates, "
    "schedule interviews, analyze resumes, and manage your recruitment pipeline. "
    "How can I assist you today?"
)


class ConversationStore:
    """
    Manages the ordered message list of one conversation.

    The store enforces a single in-flight assistant message: content may only
    be appended to it, tool calls may only be attached to it, and it becomes
    immutable once finalized.
    """

    def __init__(self, greeting: str | None = DEFAULT_GREETING, id_prefix: str = "msg_") -> None:
        """
        Initialize the store.

        Args:
            greeting: Initial assistant message, or None for an empty store.
            id_prefix: Prefix for generated message ids.
        """
        self._greeting = greeting
        self._id_prefix = id_prefix
        self._ids = itertools.count(1)
        self._messages: list[Message] = []
        self._in_flight_id: str | None = None
        if greeting:
            self._messages.append(self._new_message(MessageRole.ASSISTANT, greeting))

    @classmethod
    def from_history(cls, history: Iterable[HistoryMessage | dict[str, Any]]) -> "ConversationStore":
        """Build a store from caller-supplied `{role, content}` history."""
        store = cls(greeting=None)
        for entry in history:
            item = entry if isinstance(entry, HistoryMessage) else HistoryMessage.model_validate(entry)
            store._messages.append(store._new_message(item.role, item.content))
        return store

    @property
    def messages(self) -> list[Message]:
        """Get a snapshot of all messages in order."""
        return [m.model_copy(deep=True) for m in self._messages]

    @property
    def in_flight_id(self) -> str | None:
        """Id of the assistant message currently streaming, if any."""
        return self._in_flight_id

    @property
    def is_streaming(self) -> bool:
        return self._in_flight_id is not None

    def __len__(self) -> int:
        return len(self._messages)

    def get(self, message_id: str) -> Message | None:
        """Return a copy of the message with the given id."""
        for message in self._messages:
            if message.id == message_id:
                return message.model_copy(deep=True)
        return None

    def last(self) -> Message | None:
        return self._messages[-1].model_copy(deep=True) if self._messages else None

    def history(self) -> list[dict[str, str]]:
        """Get conversation history in a format suitable for LLM context."""
        return [m.to_history_entry() for m in self._messages]

    def add_user_message(self, content: str) -> Message:
        """Append a user message and return a copy of it."""
        message = self._new_message(MessageRole.USER, content)
        self._messages.append(message)
        return message.model_copy(deep=True)

    def begin_assistant(self) -> Message:
        """
        Start a streaming assistant message with empty content.

        Raises:
            RuntimeError: If another assistant turn is still in flight.
        """
        if self._in_flight_id is not None:
            raise RuntimeError(f"Assistant turn {self._in_flight_id} is already in flight")
        message = self._new_message(MessageRole.ASSISTANT, "", is_final=False)
        self._messages.append(message)
        self._in_flight_id = message.id
        logger.debug(f"Assistant turn started: {message.id}")
        return message.model_copy(deep=True)

    def append_content(self, message_id: str, text: str) -> None:
        """Append a streamed fragment to the in-flight assistant message."""
        self._require_in_flight(message_id).content += text

    def attach_tool_call(self, message_id: str, call: ToolCall) -> None:
        """Attach a tool call (usually still without a result) to the in-flight message."""
        message = self._require_in_flight(message_id)
        if any(existing.id == call.id for existing in message.tool_calls):
            raise RuntimeError(f"Tool call {call.id} already attached to {message_id}")
        message.tool_calls.append(call.model_copy(deep=True))

    def set_tool_result(
        self,
        message_id: str,
        call_id: str,
        *,
        result: Any = None,
        error: str | None = None,
    ) -> ToolCall:
        """
        Record the outcome of a tool call. A call's outcome is set exactly once.

        Raises:
            KeyError: If the call is not attached to the message.
            RuntimeError: If the call already has a result.
        """
        message = self._require_in_flight(message_id)
        for call in message.tool_calls:
            if call.id == call_id:
                if call.has_result:
                    raise RuntimeError(f"Tool call {call_id} already has a result")
                call.result = result
                call.error = error
                call.completed = True
                return call.model_copy(deep=True)
        raise KeyError(call_id)

    def finalize(self, message_id: str) -> Message:
        """Mark the in-flight assistant message as complete."""
        message = self._require_in_flight(message_id)
        message.is_final = True
        self._in_flight_id = None
        logger.debug(f"Assistant turn finalized: {message_id} ({len(message.content)} chars)")
        return message.model_copy(deep=True)

    def clear(self) -> None:
        """Reset the conversation to its initial greeting."""
        self._messages = []
        self._in_flight_id = None
        if self._greeting:
            self._messages.append(self._new_message(MessageRole.ASSISTANT, self._greeting))

    def _new_message(self, role: MessageRole, content: str, *, is_final: bool = True) -> Message:
        return Message(
            id=f"{self._id_prefix}{next(self._ids)}",
            role=role,
            content=content,
            is_final=is_final,
        )

    def _require_in_flight(self, message_id: str) -> Message:
        if message_id != self._in_flight_id:
            raise RuntimeError(f"Message {message_id} is not the in-flight assistant message")
        # User messages submitted mid-turn may follow the in-flight message.
        for message in reversed(self._messages):
            if message.id == message_id:
                return message
        raise RuntimeError(f"Message {message_id} is missing from the store")
