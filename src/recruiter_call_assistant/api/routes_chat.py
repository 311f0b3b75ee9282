from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response, StreamingResponse
from pydantic import ValidationError as PydanticValidationError

from recruiter_call_assistant.agent.events import TurnErrored
from recruiter_call_assistant.agent.prompts import GENERIC_FAILURE_MESSAGE
from recruiter_call_assistant.agent.turn_engine import TurnEngine
from recruiter_call_assistant.api.dependencies import get_turn_engine
from recruiter_call_assistant.api.responses import (
    error_response,
    internal_error_response,
    preflight_response,
)
from recruiter_call_assistant.conversation.store import ConversationStore

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)

STREAM_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST",
    "Access-Control-Allow-Headers": "Content-Type",
    "Cache-Control": "no-cache",
}


def _sse(payload: dict | str) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False, default=str)
    return f"data: {data}\n\n"


async def _event_stream(engine: TurnEngine, store: ConversationStore) -> AsyncIterator[str]:
    try:
        async for event in engine.run_turn(store):
            yield _sse(event.to_wire())
    except Exception:
        # Headers are already sent; report in-band.
        logger.exception("Assistant turn failed while streaming")
        yield _sse(TurnErrored(GENERIC_FAILURE_MESSAGE).to_wire())
    yield _sse("[DONE]")


@router.options("/chat")
async def chat_preflight() -> Response:
    return preflight_response()


@router.post("/chat")
async def chat(request: Request, engine: TurnEngine = Depends(get_turn_engine)) -> Response:
    """Run one assistant turn over the supplied history and stream its events."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    messages = payload.get("messages") if isinstance(payload, dict) else None
    if not isinstance(messages, list):
        return error_response("Messages array is required")

    try:
        store = ConversationStore.from_history(messages)
    except PydanticValidationError as e:
        logger.info(f"Rejected chat request with malformed history: {e.error_count()} errors")
        return error_response("Each message must have a role of 'user' or 'assistant' and string content")
    except Exception as e:
        logger.exception("Error in chat API")
        return internal_error_response(GENERIC_FAILURE_MESSAGE, e)

    logger.info(f"Chat request with {len(store)} history messages")
    return StreamingResponse(
        _event_stream(engine, store),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
