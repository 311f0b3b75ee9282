"""Voice capture state machine.

Turns microphone input, as reported by a platform speech recognizer, into a
finalized utterance:

    idle --start()--> recording --stop()--> processing --> idle
    recording/processing --fatal error--> idle

Final recognizer results accumulate in an append-only buffer; interim results
replace a live preview. The visible transcript is buffer + preview.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol

from recruiter_call_assistant.errors import (
    AssistantError,
    PermissionDeniedError,
    UnsupportedPlatformError,
)

logger = logging.getLogger(__name__)

# Recognizer error codes that end the capture cycle.
FATAL_ERROR_CODES = frozenset({"not-allowed", "service-not-allowed", "audio-capture"})


@dataclass(frozen=True)
class RecognitionResult:
    transcript: str
    is_final: bool
    confidence: float | None = None


@dataclass(frozen=True)
class RecognitionError:
    code: str
    message: str = ""

    @property
    def is_fatal(self) -> bool:
        return self.code in FATAL_ERROR_CODES


class RecognitionSink(Protocol):
    def on_result(self, result: RecognitionResult) -> None: ...

    def on_error(self, error: RecognitionError) -> None: ...

    def on_audio_level(self, level: float) -> None: ...


class SpeechRecognizer(Protocol):
    """Platform speech-to-text capability."""

    def is_supported(self) -> bool: ...

    async def request_microphone(self) -> None:
        """Raise PermissionDeniedError if the microphone cannot be used."""
        ...

    async def start(self, sink: RecognitionSink) -> None: ...

    async def stop(self) -> None:
        """Stop listening; pending results are delivered before this returns."""
        ...

    def abort(self) -> None: ...


class CapturePhase(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"


@dataclass(frozen=True)
class RecordingState:
    is_recording: bool = False
    is_processing: bool = False
    audio_level: float = 0.0
    duration: int = 0

    @property
    def phase(self) -> CapturePhase:
        if self.is_recording:
            return CapturePhase.RECORDING
        if self.is_processing:
            return CapturePhase.PROCESSING
        return CapturePhase.IDLE


UtteranceHandler = Callable[[str], Awaitable[None] | None]


class VoiceCaptureStateMachine:
    """
    Owns the recording state and transcript buffers for push-to-talk capture.

    All transitions happen on the asyncio loop; recognizer callbacks are
    expected to be delivered there too.
    """

    def __init__(
        self,
        recognizer: SpeechRecognizer,
        *,
        on_utterance: UtteranceHandler | None = None,
        on_error: Callable[[AssistantError], None] | None = None,
        on_state_change: Callable[[RecordingState], None] | None = None,
        settle_delay: float = 0.5,
        tick_interval: float = 1.0,
    ) -> None:
        self._recognizer = recognizer
        self._on_utterance = on_utterance
        self._on_error = on_error
        self._on_state_change = on_state_change
        self._settle_delay = settle_delay
        self._tick_interval = tick_interval

        self._state = RecordingState()
        self._final_transcript = ""
        self._interim_transcript = ""
        self._cycle = 0
        self._starting = False
        self._ticker: asyncio.Task[None] | None = None
        self._last_error: AssistantError | None = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def phase(self) -> CapturePhase:
        return self._state.phase

    @property
    def final_transcript(self) -> str:
        return self._final_transcript

    @property
    def interim_transcript(self) -> str:
        return self._interim_transcript

    @property
    def current_transcript(self) -> str:
        """Accumulated final text followed by the live interim preview."""
        return self._final_transcript + self._interim_transcript

    @property
    def last_error(self) -> AssistantError | None:
        return self._last_error

    async def start(self) -> None:
        """
        Begin a recording cycle. No-op unless idle.

        Raises:
            UnsupportedPlatformError: If no speech recognizer is available.
            PermissionDeniedError: If the microphone cannot be used.
        """
        if self._starting or self.phase is not CapturePhase.IDLE:
            return

        if not self._recognizer.is_supported():
            raise UnsupportedPlatformError(
                "Speech recognition is not supported here. Install the voice extras "
                "(pip install -e '.[voice]') and make sure a microphone is connected."
            )

        self._starting = True
        try:
            await self._recognizer.request_microphone()

            self._cycle += 1
            self._last_error = None
            self._final_transcript = ""
            self._interim_transcript = ""
            self._set_state(RecordingState(is_recording=True))
            try:
                await self._recognizer.start(self)
            except Exception:
                self._set_state(RecordingState())
                raise
        finally:
            self._starting = False

        if self.phase is CapturePhase.RECORDING:
            self._ticker = asyncio.create_task(self._tick())
            logger.info(f"[VOICE][CAPTURE] recording started cycle={self._cycle}")

    async def stop(self) -> str | None:
        """
        End the recording cycle and emit the utterance, if any.

        Returns:
            The emitted utterance, or None if nothing was said (or the cycle
            failed, or the machine was not recording).
        """
        if self.phase is not CapturePhase.RECORDING:
            return None

        cycle = self._cycle
        self._stop_ticker()
        self._set_state(replace(self._state, is_recording=False, is_processing=True, audio_level=0.0))

        try:
            await self._recognizer.stop()
        except AssistantError as e:
            self._fail(e)
            return None
        except Exception as e:
            logger.exception("[VOICE][CAPTURE] recognizer failed while stopping")
            self._fail(AssistantError(f"Speech recognition failed: {e}"))
            return None

        await asyncio.sleep(self._settle_delay)
        if cycle != self._cycle or self.phase is not CapturePhase.PROCESSING:
            return None

        utterance = self.current_transcript.strip()
        self._final_transcript = ""
        self._interim_transcript = ""
        self._set_state(RecordingState())

        if not utterance:
            logger.info("[VOICE][CAPTURE] stopped with empty transcript")
            return None

        logger.info(f"[VOICE][CAPTURE] utterance chars={len(utterance)}")
        if self._on_utterance is not None:
            outcome = self._on_utterance(utterance)
            if inspect.isawaitable(outcome):
                await outcome
        return utterance

    def on_result(self, result: RecognitionResult) -> None:
        if self.phase is CapturePhase.IDLE:
            return
        if result.is_final:
            self._final_transcript += result.transcript
            self._interim_transcript = ""
        else:
            self._interim_transcript = result.transcript

    def on_error(self, error: RecognitionError) -> None:
        if not error.is_fatal:
            logger.info(f"[VOICE][CAPTURE] recognizer reported {error.code}; still listening")
            return
        if self.phase is CapturePhase.IDLE:
            return

        if error.code in ("not-allowed", "service-not-allowed"):
            exc: AssistantError = PermissionDeniedError(
                "Microphone access was denied. Please allow microphone access and try again."
            )
        else:
            exc = UnsupportedPlatformError(
                "No microphone was found. Please ensure you have a microphone connected."
            )
        self._recognizer.abort()
        self._fail(exc)

    def on_audio_level(self, level: float) -> None:
        if self.phase is not CapturePhase.RECORDING:
            return
        self._set_state(replace(self._state, audio_level=max(0.0, min(1.0, level))))

    def _fail(self, error: AssistantError) -> None:
        logger.warning(f"[VOICE][CAPTURE] capture failed: {error}")
        self._cycle += 1
        self._stop_ticker()
        # Accumulated text is dropped along with the interim preview.
        self._final_transcript = ""
        self._interim_transcript = ""
        self._last_error = error
        self._set_state(RecordingState())
        if self._on_error is not None:
            self._on_error(error)

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            if self.phase is not CapturePhase.RECORDING:
                return
            self._set_state(replace(self._state, duration=self._state.duration + 1))

    def _stop_ticker(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.cancel()

    def _set_state(self, state: RecordingState) -> None:
        self._state = state
        if self._on_state_change is not None:
            self._on_state_change(state)
