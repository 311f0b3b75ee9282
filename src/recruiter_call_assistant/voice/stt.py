"""Speech-to-text (offline).

Default implementation uses `faster-whisper` if installed, fed by push-to-talk
microphone capture. It reports one final result per recording.
"""

from __future__ import annotations

import asyncio
import importlib.util
import logging
import math
from dataclasses import dataclass

import numpy as np

from recruiter_call_assistant.errors import PermissionDeniedError
from recruiter_call_assistant.voice.audio_io import AudioIO
from recruiter_call_assistant.voice.capture import RecognitionError, RecognitionResult, RecognitionSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class STTConfig:
    model_size: str = "small"
    # Default to CPU to avoid hard crashes when CUDA/cuDNN aren't present.
    device: str = "cpu"  # cpu|cuda|auto
    compute_type: str | None = None  # e.g. int8, float16
    language: str | None = "en"
    vad_filter: bool = True
    # Results below this are reported as no-speech instead of text.
    max_no_speech_prob: float = 0.9


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    avg_logprob: float | None = None
    no_speech_prob: float | None = None

    @property
    def confidence(self) -> float | None:
        if self.avg_logprob is None:
            return None
        return max(0.0, min(1.0, math.exp(self.avg_logprob)))


class WhisperSTT:
    """faster-whisper wrapper."""

    def __init__(self, config: STTConfig | None = None) -> None:
        self._config = config or STTConfig()
        self._model = None

    @property
    def config(self) -> STTConfig:
        return self._config

    @staticmethod
    def is_installed() -> bool:
        return importlib.util.find_spec("faster_whisper") is not None

    def _load_model(self):
        if self._model is not None:
            return self._model

        try:
            from faster_whisper import WhisperModel  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "faster-whisper is required for STT. Install with: pip install -e '.[voice]'"
            ) from e

        device = self._config.device
        if device == "auto":
            # Be conservative: prefer CPU unless user explicitly requests CUDA.
            device = "cpu"

        kwargs = {}
        if self._config.compute_type:
            kwargs["compute_type"] = self._config.compute_type

        self._model = WhisperModel(self._config.model_size, device=device, **kwargs)
        return self._model

    async def transcribe(self, audio: np.ndarray) -> TranscriptionResult:
        """Transcribe int16 mono (or [samples, 1]) audio at 16 kHz."""
        samples = audio.reshape(-1).astype(np.float32) / 32768.0

        def _run() -> TranscriptionResult:
            model = self._load_model()
            segments, info = model.transcribe(
                samples,
                language=self._config.language,
                vad_filter=self._config.vad_filter,
            )
            segments = list(segments)
            text = " ".join(s.text.strip() for s in segments if s.text).strip()
            avg_logprob = (
                sum(s.avg_logprob for s in segments) / len(segments) if segments else None
            )
            no_speech_prob = max((s.no_speech_prob for s in segments), default=None)
            return TranscriptionResult(text=text, avg_logprob=avg_logprob, no_speech_prob=no_speech_prob)

        return await asyncio.to_thread(_run)


class WhisperRecognizer:
    """Push-to-talk speech recognizer: sounddevice capture + faster-whisper."""

    def __init__(self, audio: AudioIO | None = None, stt: WhisperSTT | None = None) -> None:
        self._audio = audio or AudioIO()
        self._stt = stt or WhisperSTT()
        self._sink: RecognitionSink | None = None

    def is_supported(self) -> bool:
        return WhisperSTT.is_installed() and importlib.util.find_spec("sounddevice") is not None

    async def request_microphone(self) -> None:
        if not await asyncio.to_thread(self._audio.has_input_device):
            raise PermissionDeniedError("Could not access a microphone. Check that one is connected and allowed.")

    async def start(self, sink: RecognitionSink) -> None:
        self._sink = sink
        await self._audio.start_recording(on_level=sink.on_audio_level)

    async def stop(self) -> None:
        sink, self._sink = self._sink, None
        audio = await self._audio.stop_recording()
        if sink is None:
            return
        if audio.size == 0:
            sink.on_error(RecognitionError("no-speech", "No audio was captured"))
            return

        logger.info("[VOICE][STT] transcribing (first run may download the model)")
        try:
            result = await self._stt.transcribe(audio)
        except RuntimeError as e:
            logger.warning(f"Transcription failed: {e}")
            sink.on_error(RecognitionError("transcription-failed", str(e)))
            return

        if not result.text or (
            result.no_speech_prob is not None and result.no_speech_prob >= self._stt.config.max_no_speech_prob
        ):
            sink.on_error(RecognitionError("no-speech", "No speech detected"))
            return

        sink.on_result(RecognitionResult(result.text, is_final=True, confidence=result.confidence))

    def abort(self) -> None:
        self._sink = None
        self._audio.abort_recording()
