"""
LLM client abstraction.

Provides a streaming interface to an OpenAI-compatible chat completions API.
The stream is surfaced as a sequence of tagged provider events so that the
turn engine can dispatch on them exhaustively.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field

from recruiter_call_assistant.config import get_settings
from recruiter_call_assistant.errors import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4-turbo"


class ChatMessage(BaseModel):
    """A message in the provider conversation (OpenAI wire shape)."""

    role: Literal["system", "user", "assistant", "tool"] = Field(..., description="Role of the speaker")
    content: str | None = Field(default=None, description="Message content")
    tool_calls: list[dict[str, Any]] | None = Field(
        default=None,
        description="Tool calls requested by the assistant in this message",
    )
    tool_call_id: str | None = Field(default=None, description="Call answered by a tool message")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class TextDelta:
    """A fragment of assistant text."""

    text: str
    kind: Literal["text"] = "text"


@dataclass(frozen=True)
class ToolCallRequest:
    """A fully reassembled tool call; `arguments_json` is the raw argument string."""

    id: str
    name: str
    arguments_json: str
    kind: Literal["tool_call"] = "tool_call"


@dataclass(frozen=True)
class StreamFinished:
    """Successful end of one provider response."""

    finish_reason: str = "stop"
    kind: Literal["finished"] = "finished"


@dataclass(frozen=True)
class StreamFailed:
    """Terminal provider failure."""

    error: ProviderError
    kind: Literal["failed"] = "failed"


ProviderEvent = TextDelta | ToolCallRequest | StreamFinished | StreamFailed


class LLMClientBase(ABC):
    """Abstract base class for streaming LLM clients."""

    @abstractmethod
    def stream_chat(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[ProviderEvent]:
        """
        Stream a chat completion.

        Args:
            messages: Conversation history, system prompt first.
            tools: Tool declarations the model may call.
            temperature: Sampling temperature.

        Returns:
            Async iterator of provider events. The last event is always
            StreamFinished or StreamFailed.
        """
        ...

    async def close(self) -> None:
        """Release any held resources."""


class LLMClient(LLMClientBase):
    """
    OpenAI-compatible streaming client over httpx.

    Tool call fragments arrive keyed by `index` across many chunks; they are
    reassembled and emitted once the provider reports `finish_reason ==
    "tool_calls"` or the stream ends.
    """

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            model: Model name (defaults to settings.llm_model_name).
            base_url: API base URL (defaults to settings.openai_base_url).
            api_key: Bearer token (defaults to settings.openai_api_key).
            timeout: Request timeout in seconds.
            http_client: Pre-configured client; the caller keeps ownership.
        """
        settings = get_settings()
        self._model = model or settings.llm_model_name or DEFAULT_MODEL
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self._timeout = timeout or settings.llm_timeout
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self._timeout)

        logger.info(f"Initialized LLM client with model: {self._model}")

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def stream_chat(
        self,
        messages: list[ChatMessage],
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
    ) -> AsyncIterator[ProviderEvent]:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [m.to_payload() for m in messages],
            "stream": True,
            "temperature": temperature,
        }
        if tools:
            payload["tools"] = tools

        # {index: {"id": str, "name": str, "arguments": str}}
        pending: dict[int, dict[str, str]] = {}
        finish_reason = "stop"

        try:
            async with self._client.stream(
                "POST",
                f"{self._base_url}/chat/completions",
                json=payload,
                headers=self._headers(),
            ) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.error(f"LLM request failed with HTTP {response.status_code}: {body[:200]}")
                    yield StreamFailed(
                        ProviderError(
                            f"Provider returned HTTP {response.status_code}",
                            status_code=response.status_code,
                            body=body,
                        )
                    )
                    return

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[5:].strip()
                    if data == "[DONE]":
                        break

                    try:
                        chunk = json.loads(data)
                    except json.JSONDecodeError as e:
                        logger.debug(f"LLM stream: malformed JSON skipped (length={len(data)}): {e}")
                        continue

                    if chunk.get("error"):
                        message = chunk["error"].get("message") if isinstance(chunk["error"], dict) else chunk["error"]
                        yield StreamFailed(ProviderError(str(message), body=chunk))
                        return

                    choices = chunk.get("choices") or [{}]
                    choice = choices[0]
                    delta = choice.get("delta") or {}

                    content = delta.get("content")
                    if content:
                        yield TextDelta(text=content)

                    for tc in delta.get("tool_calls") or []:
                        entry = pending.setdefault(tc.get("index", 0), {"id": "", "name": "", "arguments": ""})
                        function = tc.get("function") or {}
                        if tc.get("id"):
                            entry["id"] = tc["id"]
                        if function.get("name"):
                            entry["name"] = function["name"]
                        if function.get("arguments"):
                            entry["arguments"] += function["arguments"]

                    if choice.get("finish_reason"):
                        finish_reason = choice["finish_reason"]
                        if finish_reason == "tool_calls":
                            for request in self._drain(pending):
                                yield request

        except httpx.HTTPError as e:
            logger.error(f"LLM stream failed: {e}")
            yield StreamFailed(ProviderError(f"Provider request failed: {e}"))
            return

        # Tool calls that were never closed by a finish_reason.
        for request in self._drain(pending):
            yield request
            finish_reason = "tool_calls"

        yield StreamFinished(finish_reason=finish_reason)

    @staticmethod
    def _drain(pending: dict[int, dict[str, str]]) -> list[ToolCallRequest]:
        requests: list[ToolCallRequest] = []
        for idx in sorted(pending):
            entry = pending[idx]
            if not entry["name"]:
                logger.warning(f"Dropping tool call without a name at index {idx}")
                continue
            call_id = entry["id"] or f"call_{idx}"
            logger.info(f"Tool call detected: {entry['name']}({entry['arguments'][:100]})")
            requests.append(ToolCallRequest(id=call_id, name=entry["name"], arguments_json=entry["arguments"]))
        pending.clear()
        return requests

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()
