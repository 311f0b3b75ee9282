"""Events emitted while an assistant turn streams.

Each event maps onto one JSON object of the turn endpoint's event stream.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TurnStarted:
    message_id: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "start", "messageId": self.message_id}


@dataclass(frozen=True)
class TextStarted:
    message_id: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "text-start", "id": self.message_id}


@dataclass(frozen=True)
class TextAppended:
    message_id: str
    delta: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "text-delta", "id": self.message_id, "delta": self.delta}


@dataclass(frozen=True)
class TextEnded:
    message_id: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "text-end", "id": self.message_id}


@dataclass(frozen=True)
class ToolInputAvailable:
    call_id: str
    tool_name: str
    arguments: dict[str, Any]

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": "tool-input-available",
            "toolCallId": self.call_id,
            "toolName": self.tool_name,
            "input": self.arguments,
        }


@dataclass(frozen=True)
class ToolOutputAvailable:
    call_id: str
    output: Any

    def to_wire(self) -> dict[str, Any]:
        return {"type": "tool-output-available", "toolCallId": self.call_id, "output": self.output}


@dataclass(frozen=True)
class ToolOutputError:
    call_id: str
    error_text: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "tool-output-error", "toolCallId": self.call_id, "errorText": self.error_text}


@dataclass(frozen=True)
class TurnErrored:
    """The turn ended early; `error_text` is user-facing and was appended to the message."""

    error_text: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "error", "errorText": self.error_text}


@dataclass(frozen=True)
class TurnFinished:
    message_id: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "finish"}


TurnEvent = (
    TurnStarted
    | TextStarted
    | TextAppended
    | TextEnded
    | ToolInputAvailable
    | ToolOutputAvailable
    | ToolOutputError
    | TurnErrored
    | TurnFinished
)
