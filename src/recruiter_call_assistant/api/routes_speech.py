from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from recruiter_call_assistant.api.dependencies import get_speech_synthesizer
from recruiter_call_assistant.api.responses import (
    error_response,
    internal_error_response,
    preflight_response,
)
from recruiter_call_assistant.errors import ValidationError
from recruiter_call_assistant.voice.tts import SpeechRequest, TTSProvider

router = APIRouter(prefix="/api", tags=["speech"])
logger = logging.getLogger(__name__)


@router.options("/speech")
async def speech_preflight() -> Response:
    return preflight_response()


@router.post("/speech")
async def speech(request: Request, synthesizer: TTSProvider = Depends(get_speech_synthesizer)) -> Response:
    """Synthesize `{text, voice?, format?, speed?}` and return the raw audio."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        speech_request = SpeechRequest.from_payload(payload)
    except ValidationError as e:
        return error_response(str(e), status_code=e.status_code)

    try:
        audio = await synthesizer.synthesize(speech_request)
    except Exception as e:
        logger.error(f"Error generating speech: {e}")
        return internal_error_response("Failed to generate speech", e)

    return Response(
        content=audio,
        media_type=speech_request.content_type,
        headers={
            "Content-Length": str(len(audio)),
            "Cache-Control": "public, max-age=3600",
            "Content-Disposition": f'inline; filename="speech.{speech_request.format}"',
        },
    )
