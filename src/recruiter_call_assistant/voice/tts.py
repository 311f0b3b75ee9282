"""Text-to-speech.

Synthesis requests are validated here and sent to an OpenAI-compatible
`/audio/speech` endpoint, either directly (server side) or through this
project's own synthesis endpoint (client side).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from recruiter_call_assistant.config import get_settings
from recruiter_call_assistant.errors import ProviderError, ValidationError

logger = logging.getLogger(__name__)

VALID_VOICES: tuple[str, ...] = ("alloy", "echo", "fable", "onyx", "nova", "shimmer")
VALID_FORMATS: tuple[str, ...] = ("mp3", "opus", "aac", "flac")
MIN_SPEED = 0.25
MAX_SPEED = 4.0


def clamp_speed(speed: float) -> float:
    return max(MIN_SPEED, min(MAX_SPEED, speed))


@dataclass(frozen=True)
class SpeechRequest:
    text: str
    voice: str = "alloy"
    format: str = "mp3"
    speed: float = 1.0

    @property
    def content_type(self) -> str:
        return f"audio/{self.format}"

    @classmethod
    def from_payload(cls, payload: Any) -> "SpeechRequest":
        """
        Validate a synthesis request body.

        Text is trimmed and speed is clamped into [0.25, 4.0]; voice and
        format must come from the supported sets.

        Raises:
            ValidationError: If the body is unusable.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        text = payload.get("text")
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Text is required")

        voice = payload.get("voice") or "alloy"
        if voice not in VALID_VOICES:
            raise ValidationError(f"Invalid voice. Must be one of: {', '.join(VALID_VOICES)}")

        fmt = payload.get("format") or "mp3"
        if fmt not in VALID_FORMATS:
            raise ValidationError(f"Invalid format. Must be one of: {', '.join(VALID_FORMATS)}")

        speed = payload.get("speed")
        if speed is None:
            speed = 1.0
        if isinstance(speed, bool) or not isinstance(speed, (int, float)):
            raise ValidationError("Invalid speed. Must be a number")

        return cls(text=text.strip(), voice=voice, format=fmt, speed=clamp_speed(float(speed)))


class TTSProvider:
    async def synthesize(self, request: SpeechRequest) -> bytes:
        raise NotImplementedError

    async def close(self) -> None:
        """Release any held resources."""


class OpenAITTS(TTSProvider):
    """Calls the upstream OpenAI-compatible speech endpoint."""

    def __init__(
        self,
        *,
        model: str | None = None,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self._model = model or settings.tts_model_name
        self._base_url = (base_url or settings.openai_base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.openai_api_key
        self._client = http_client or httpx.AsyncClient(timeout=timeout or settings.tts_timeout)
        self._owns_client = http_client is None

    async def synthesize(self, request: SpeechRequest) -> bytes:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        body = {
            "model": self._model,
            "input": request.text,
            "voice": request.voice,
            "response_format": request.format,
            "speed": request.speed,
        }
        try:
            response = await self._client.post(f"{self._base_url}/audio/speech", json=body, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderError(f"Speech synthesis request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Speech synthesis failed with HTTP {response.status_code}: {response.text[:200]}")
            raise ProviderError(
                f"Speech synthesis returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info(f"[VOICE][TTS] synthesized len={len(request.text)} voice={request.voice} bytes={len(response.content)}")
        return response.content

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class SpeechEndpointClient(TTSProvider):
    """Calls this project's synthesis endpoint (`POST /api/speech`)."""

    def __init__(self, base_url: str, *, http_client: httpx.AsyncClient | None = None, timeout: float = 60.0) -> None:
        self._url = base_url.rstrip("/") + "/api/speech"
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    async def synthesize(self, request: SpeechRequest) -> bytes:
        body = {"text": request.text, "voice": request.voice, "format": request.format, "speed": request.speed}
        try:
            response = await self._client.post(self._url, json=body)
        except httpx.HTTPError as e:
            raise ProviderError(f"Speech request failed: {e}") from e

        if response.status_code >= 400:
            try:
                data = response.json()
            except ValueError:
                data = None
            message = data.get("error") if isinstance(data, dict) else None
            raise ProviderError(
                message or f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
