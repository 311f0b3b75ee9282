"""Voice subsystem.

mic -> capture state machine -> utterance -> turn engine -> TTS -> speaker

Capture and playback are state machines over injected platform primitives
(speech recognizer, audio output); the sounddevice/faster-whisper
implementations are only needed for the local voice loop.
"""

from recruiter_call_assistant.voice.capture import (
    CapturePhase,
    RecognitionError,
    RecognitionResult,
    RecordingState,
    SpeechRecognizer,
    VoiceCaptureStateMachine,
)
from recruiter_call_assistant.voice.playback import (
    PlaybackState,
    PlaybackStatus,
    SpeechOptions,
    SpeechPlaybackController,
)
from recruiter_call_assistant.voice.tts import (
    VALID_FORMATS,
    VALID_VOICES,
    OpenAITTS,
    SpeechEndpointClient,
    SpeechRequest,
    TTSProvider,
)

__all__ = [
    "CapturePhase",
    "OpenAITTS",
    "PlaybackState",
    "PlaybackStatus",
    "RecognitionError",
    "RecognitionResult",
    "RecordingState",
    "SpeechEndpointClient",
    "SpeechOptions",
    "SpeechPlaybackController",
    "SpeechRecognizer",
    "SpeechRequest",
    "TTSProvider",
    "VALID_FORMATS",
    "VALID_VOICES",
    "VoiceCaptureStateMachine",
]
