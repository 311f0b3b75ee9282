"""
Tool registry.

Declares the tools the model may call, validates their inputs against a
pydantic input model, and runs their executors.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from recruiter_call_assistant.errors import AssistantError

logger = logging.getLogger(__name__)

ToolExecutor = Callable[[Any], Any | Awaitable[Any]]


class ToolError(AssistantError):
    """Base class for registry errors."""

    def __init__(self, message: str, tool_name: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class DuplicateToolError(ToolError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool already registered: {tool_name}", tool_name)


class UnknownToolError(ToolError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}", tool_name)


class InvalidArgumentsError(ToolError):
    """Arguments failed schema validation. `fields` lists the offending field paths."""

    def __init__(self, tool_name: str, fields: list[str], detail: str = "") -> None:
        message = f"Invalid arguments for {tool_name}: {', '.join(fields) or 'arguments'}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, tool_name)
        self.fields = fields


class ToolExecutionError(ToolError):
    def __init__(self, tool_name: str, cause: Exception) -> None:
        super().__init__(f"Tool {tool_name} failed: {cause}", tool_name)
        self.cause = cause


@dataclass(frozen=True)
class ToolDefinition:
    """A named tool with its input model and executor."""

    name: str
    description: str
    input_model: type[BaseModel]
    executor: ToolExecutor

    def declaration(self) -> dict[str, Any]:
        """OpenAI-style function declaration for this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_model.model_json_schema(),
            },
        }


class ToolRegistry:
    """Bookkeeping for tool definitions. Side effects happen only in executors."""

    def __init__(self, definitions: list[ToolDefinition] | None = None) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: ToolDefinition) -> None:
        if definition.name in self._tools:
            raise DuplicateToolError(definition.name)
        self._tools[definition.name] = definition
        logger.debug(f"Registered tool: {definition.name}")

    def get(self, name: str) -> ToolDefinition:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def declarations(self) -> list[dict[str, Any]]:
        """Declarations for every registered tool, in registration order."""
        return [definition.declaration() for definition in self._tools.values()]

    def validate(self, name: str, raw_arguments: Any) -> BaseModel:
        """
        Validate raw arguments against the tool's input model.

        Validation is strict: JSON strings are not coerced into numbers and
        booleans are not accepted as numbers.

        Raises:
            UnknownToolError: If no tool has this name.
            InvalidArgumentsError: If the arguments do not match the schema.
        """
        definition = self.get(name)
        if not isinstance(raw_arguments, Mapping):
            raise InvalidArgumentsError(name, [], detail="arguments must be an object")
        try:
            return definition.input_model.model_validate(dict(raw_arguments), strict=True)
        except PydanticValidationError as e:
            fields = sorted({".".join(str(part) for part in err["loc"]) or "(root)" for err in e.errors()})
            raise InvalidArgumentsError(name, fields) from e

    async def execute(self, name: str, raw_arguments: Any) -> Any:
        """
        Validate arguments and run the tool's executor.

        Args:
            name: Tool name requested by the model.
            raw_arguments: Unvalidated argument mapping.

        Returns:
            The executor's result, unchanged.

        Raises:
            UnknownToolError: If no tool has this name.
            InvalidArgumentsError: If validation fails; the executor is not called.
            ToolExecutionError: If the executor raises.
        """
        definition = self.get(name)
        arguments = self.validate(name, raw_arguments)

        logger.info(f"Executing tool {name}")
        try:
            result = definition.executor(arguments)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning(f"Tool {name} raised: {e}")
            raise ToolExecutionError(name, e) from e
        return result
