"""Shared FastAPI dependencies.

Provider clients are created lazily, once per process. Tests swap them out
through `app.dependency_overrides`.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends

from recruiter_call_assistant.agent.turn_engine import TurnEngine
from recruiter_call_assistant.models.llm_client import LLMClient, LLMClientBase
from recruiter_call_assistant.tools.recruitment import build_recruitment_registry
from recruiter_call_assistant.tools.registry import ToolRegistry
from recruiter_call_assistant.voice.tts import OpenAITTS, TTSProvider

logger = logging.getLogger(__name__)


@lru_cache
def get_llm_client() -> LLMClientBase:
    return LLMClient()


@lru_cache
def get_tool_registry() -> ToolRegistry:
    return build_recruitment_registry()


@lru_cache
def get_speech_synthesizer() -> TTSProvider:
    return OpenAITTS()


def get_turn_engine(
    llm_client: LLMClientBase = Depends(get_llm_client),
    registry: ToolRegistry = Depends(get_tool_registry),
) -> TurnEngine:
    return TurnEngine(llm_client, registry)


async def close_clients() -> None:
    """Close provider clients that were created during the app's lifetime."""
    if get_llm_client.cache_info().currsize:
        await get_llm_client().close()
        get_llm_client.cache_clear()
    if get_speech_synthesizer.cache_info().currsize:
        await get_speech_synthesizer().close()
        get_speech_synthesizer.cache_clear()
    logger.debug("Provider clients closed")
