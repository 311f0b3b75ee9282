"""
Agent module: the turn engine and the events it streams.
"""

from recruiter_call_assistant.agent.events import (
    TextAppended,
    TextEnded,
    TextStarted,
    ToolInputAvailable,
    ToolOutputAvailable,
    ToolOutputError,
    TurnErrored,
    TurnEvent,
    TurnFinished,
    TurnStarted,
)
from recruiter_call_assistant.agent.prompts import (
    GENERIC_FAILURE_MESSAGE,
    SYSTEM_PROMPT,
    UNKNOWN_TOOL_MESSAGE,
)
from recruiter_call_assistant.agent.turn_engine import TurnEngine

__all__ = [
    "GENERIC_FAILURE_MESSAGE",
    "SYSTEM_PROMPT",
    "TextAppended",
    "TextEnded",
    "TextStarted",
    "ToolInputAvailable",
    "ToolOutputAvailable",
    "ToolOutputError",
    "TurnEngine",
    "TurnErrored",
    "TurnEvent",
    "TurnFinished",
    "TurnStarted",
    "UNKNOWN_TOOL_MESSAGE",
]
