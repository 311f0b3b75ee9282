"""
Agent turn engine.

Drives one assistant turn: sends the conversation to the provider, applies
streamed text to the conversation store in arrival order, dispatches tool
calls through the registry, feeds their results back to the provider, and
repeats until the provider finishes without requesting more tools.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, assert_never

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
from recruiter_call_assistant.config import get_settings
from recruiter_call_assistant.conversation.schemas import Message, ToolCall
from recruiter_call_assistant.conversation.store import ConversationStore
from recruiter_call_assistant.errors import ProviderError
from recruiter_call_assistant.models.llm_client import (
    ChatMessage,
    LLMClientBase,
    StreamFailed,
    StreamFinished,
    TextDelta,
    ToolCallRequest,
)
from recruiter_call_assistant.tools.registry import (
    InvalidArgumentsError,
    ToolError,
    ToolExecutionError,
    ToolRegistry,
    UnknownToolError,
)


class TurnEngine:
    """
    Runs assistant turns against a conversation store.

    The engine is the only writer of the in-flight assistant message. It does
    not cancel turns on its own; callers stop a turn by closing the event
    iterator, which finalizes whatever content has streamed so far.
    """

    def __init__(
        self,
        llm_client: LLMClientBase,
        registry: ToolRegistry,
        *,
        system_prompt: str | None = SYSTEM_PROMPT,
        max_steps: int | None = None,
        temperature: float | None = None,
    ) -> None:
        """
        Initialize the turn engine.

        Args:
            llm_client: Streaming provider client.
            registry: Tools the model may call.
            system_prompt: Prepended to every provider request; None to omit.
            max_steps: Maximum provider round-trips per turn.
            temperature: Sampling temperature.
        """
        settings = get_settings()
        self._logger = logging.getLogger(__name__)
        self._llm_client = llm_client
        self._registry = registry
        self._system_prompt = system_prompt
        self._max_steps = max_steps or settings.agent_max_steps
        self._temperature = settings.llm_temperature if temperature is None else temperature

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def run_turn(self, store: ConversationStore) -> AsyncIterator[TurnEvent]:
        """
        Run one assistant turn, yielding events as the store is updated.

        Every event is yielded after the corresponding store mutation, so a
        consumer always observes the store in a state that includes it.

        Args:
            store: Conversation to extend. Must not have a turn in flight.

        Yields:
            Turn events, starting with TurnStarted and ending with TurnFinished.
        """
        message = store.begin_assistant()
        message_id = message.id
        context = self._build_context(store.messages, exclude_id=message_id)

        self._logger.info(f"Starting assistant turn {message_id} with {len(context)} context messages")
        try:
            yield TurnStarted(message_id)
            async for event in self._run_steps(store, message_id, context):
                yield event
        finally:
            if store.in_flight_id == message_id:
                store.finalize(message_id)

        yield TurnFinished(message_id)

    async def complete_turn(self, store: ConversationStore) -> Message:
        """Run a turn to completion and return the finalized assistant message."""
        message_id = ""
        async for event in self.run_turn(store):
            if isinstance(event, TurnStarted):
                message_id = event.message_id
        message = store.get(message_id)
        if message is None:
            raise RuntimeError(f"Assistant message {message_id or '(none)'} is missing from the store")
        return message

    async def _run_steps(
        self,
        store: ConversationStore,
        message_id: str,
        context: list[ChatMessage],
    ) -> AsyncIterator[TurnEvent]:
        declarations = self._registry.declarations()
        text_open = False

        for step in range(1, self._max_steps + 1):
            step_text = ""
            requests: list[ToolCallRequest] = []
            failure: ProviderError | None = None

            try:
                async for event in self._llm_client.stream_chat(
                    context,
                    tools=declarations or None,
                    temperature=self._temperature,
                ):
                    if isinstance(event, TextDelta):
                        if not text_open:
                            text_open = True
                            yield TextStarted(message_id)
                        store.append_content(message_id, event.text)
                        step_text += event.text
                        yield TextAppended(message_id, event.text)
                    elif isinstance(event, ToolCallRequest):
                        requests.append(event)
                    elif isinstance(event, StreamFinished):
                        self._logger.debug(f"Step {step} finished: {event.finish_reason}")
                    elif isinstance(event, StreamFailed):
                        failure = event.error
                    else:
                        assert_never(event)
            except ProviderError as e:
                failure = e
            except Exception as e:
                self._logger.exception(f"Provider stream raised unexpectedly: {e}")
                failure = ProviderError(str(e))

            if text_open and (failure is not None or requests):
                text_open = False
                yield TextEnded(message_id)

            if failure is not None:
                self._logger.error(f"Turn {message_id} failed at step {step}: {failure}")
                yield self._end_with_message(store, message_id, GENERIC_FAILURE_MESSAGE)
                return

            if not requests:
                break

            context.append(
                ChatMessage(
                    role="assistant",
                    content=step_text or None,
                    tool_calls=[
                        {
                            "id": request.id,
                            "type": "function",
                            "function": {"name": request.name, "arguments": request.arguments_json},
                        }
                        for request in requests
                    ],
                )
            )

            for request in requests:
                try:
                    async for event in self._dispatch_tool(store, message_id, request, context):
                        yield event
                except UnknownToolError as e:
                    self._logger.warning(f"Model requested unknown tool: {e.tool_name}")
                    yield self._end_with_message(store, message_id, UNKNOWN_TOOL_MESSAGE)
                    return
        else:
            self._logger.warning(f"Turn {message_id} reached the step limit ({self._max_steps})")

        if text_open:
            yield TextEnded(message_id)

    async def _dispatch_tool(
        self,
        store: ConversationStore,
        message_id: str,
        request: ToolCallRequest,
        context: list[ChatMessage],
    ) -> AsyncIterator[TurnEvent]:
        """
        Validate and execute one tool call, recording it on the message.

        Raises:
            UnknownToolError: If the requested tool is not registered. Nothing
                is recorded in that case.
        """
        if request.name not in self._registry:
            raise UnknownToolError(request.name)

        raw_arguments: Any
        error: ToolError | None = None
        try:
            raw_arguments = json.loads(request.arguments_json) if request.arguments_json.strip() else {}
        except json.JSONDecodeError:
            raw_arguments = {}
            error = InvalidArgumentsError(request.name, [], detail="arguments are not valid JSON")

        arguments = raw_arguments if isinstance(raw_arguments, dict) else {}
        if error is None:
            try:
                validated = self._registry.validate(request.name, raw_arguments)
                arguments = validated.model_dump(by_alias=True)
            except InvalidArgumentsError as e:
                error = e

        store.attach_tool_call(message_id, ToolCall(id=request.id, name=request.name, arguments=arguments))
        yield ToolInputAvailable(request.id, request.name, arguments)

        result: Any = None
        if error is None:
            try:
                result = await self._registry.execute(request.name, arguments)
            except (InvalidArgumentsError, ToolExecutionError) as e:
                error = e

        if error is not None:
            self._logger.warning(f"Tool call {request.id} ({request.name}) failed: {error}")
            store.set_tool_result(message_id, request.id, error=str(error))
            context.append(
                ChatMessage(role="tool", tool_call_id=request.id, content=json.dumps({"error": str(error)}))
            )
            yield ToolOutputError(request.id, str(error))
            return

        store.set_tool_result(message_id, request.id, result=result)
        context.append(
            ChatMessage(role="tool", tool_call_id=request.id, content=json.dumps(result, default=str))
        )
        yield ToolOutputAvailable(request.id, result)

    def _build_context(self, messages: list[Message], *, exclude_id: str) -> list[ChatMessage]:
        context: list[ChatMessage] = []
        if self._system_prompt:
            context.append(ChatMessage(role="system", content=self._system_prompt))
        for message in messages:
            if message.id == exclude_id:
                continue
            context.append(ChatMessage(role=message.role.value, content=message.content))
        return context

    @staticmethod
    def _end_with_message(store: ConversationStore, message_id: str, text: str) -> TurnErrored:
        # Partial content stays; the explanation trails it.
        current = store.get(message_id)
        separator = "\n\n" if current is not None and current.content else ""
        store.append_content(message_id, separator + text)
        return TurnErrored(text)
