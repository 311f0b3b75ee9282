"""
Pydantic schemas for the conversation module.

Defines data models for messages and the tool calls attached to them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    """Role of the speaker in a conversation message."""

    USER = "user"
    ASSISTANT = "assistant"


class ToolCall(BaseModel):
    """A tool invocation requested by the model during an assistant turn."""

    id: str = Field(..., description="Provider-assigned tool call identifier")
    name: str = Field(..., description="Name of the requested tool")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Validated tool arguments")
    result: Any = Field(default=None, description="Executor result payload, absent until executed")
    error: str | None = Field(default=None, description="Error text when the tool could not run")
    completed: bool = Field(default=False, description="Set once the outcome is recorded; a None result still counts")

    @property
    def has_result(self) -> bool:
        """Whether the call has been executed (successfully or not)."""
        return self.completed


class Message(BaseModel):
    """A single message in the conversation."""

    id: str = Field(..., description="Unique message identifier")
    role: MessageRole = Field(..., description="Role of the speaker")
    content: str = Field(default="", description="Message text")
    timestamp: datetime = Field(default_factory=_now_utc, description="When the message was created")
    tool_calls: list[ToolCall] = Field(default_factory=list, description="Tool calls made during this turn")
    is_final: bool = Field(default=True, description="False while an assistant turn is streaming")

    def to_history_entry(self) -> dict[str, str]:
        """Return the `{role, content}` shape sent to the turn endpoint."""
        return {"role": self.role.value, "content": self.content}


class HistoryMessage(BaseModel):
    """A `{role, content}` pair as supplied by callers of the turn endpoint."""

    role: MessageRole
    content: str
