"""
Tools module: the registry and the recruitment tools the model may call.
"""

from recruiter_call_assistant.tools.recruitment import RECRUITMENT_TOOLS, build_recruitment_registry
from recruiter_call_assistant.tools.registry import (
    DuplicateToolError,
    InvalidArgumentsError,
    ToolDefinition,
    ToolError,
    ToolExecutionError,
    ToolRegistry,
    UnknownToolError,
)

__all__ = [
    "DuplicateToolError",
    "InvalidArgumentsError",
    "RECRUITMENT_TOOLS",
    "ToolDefinition",
    "ToolError",
    "ToolExecutionError",
    "ToolRegistry",
    "UnknownToolError",
    "build_recruitment_registry",
]
