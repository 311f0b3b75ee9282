"""Voice session loop (glue layer).

This module orchestrates:
mic -> capture state machine -> conversation store -> turn engine -> TTS -> playback

It intentionally does NOT re-implement capture, turn or playback logic.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from recruiter_call_assistant.agent.events import TextAppended, TurnErrored, TurnStarted
from recruiter_call_assistant.agent.turn_engine import TurnEngine
from recruiter_call_assistant.conversation.store import ConversationStore
from recruiter_call_assistant.errors import AssistantError, PermissionDeniedError, UnsupportedPlatformError
from recruiter_call_assistant.voice.capture import SpeechRecognizer, VoiceCaptureStateMachine
from recruiter_call_assistant.voice.playback import (
    AudioOutput,
    PlaybackState,
    PlaybackStatus,
    SpeechOptions,
    SpeechPlaybackController,
)
from recruiter_call_assistant.voice.speakable import to_speakable_text
from recruiter_call_assistant.voice.tts import TTSProvider

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("q", "quit", "exit")


@dataclass(frozen=True)
class VoiceSessionConfig:
    settle_delay: float = 0.5

    # TTS gating
    tts_enabled: bool = True
    tts_max_chars: int = 600
    voice: str = "alloy"
    speed: float = 1.1
    # soundfile decodes flac everywhere; mp3 needs libsndfile >= 1.1.
    format: str = "flac"


class VoiceSession:
    def __init__(
        self,
        *,
        engine: TurnEngine,
        recognizer: SpeechRecognizer,
        synthesizer: TTSProvider,
        output: AudioOutput,
        store: ConversationStore | None = None,
        config: VoiceSessionConfig | None = None,
    ) -> None:
        self._engine = engine
        self._store = store or ConversationStore()
        self._config = config or VoiceSessionConfig()
        self._capture = VoiceCaptureStateMachine(
            recognizer,
            on_error=self._on_capture_error,
            settle_delay=self._config.settle_delay,
        )
        self._playback = SpeechPlaybackController(
            synthesizer,
            output,
            default_options=SpeechOptions(
                voice=self._config.voice,
                speed=self._config.speed,
                format=self._config.format,
            ),
            on_state_change=self._on_playback_state,
        )

    @property
    def config(self) -> VoiceSessionConfig:
        return self._config

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def capture(self) -> VoiceCaptureStateMachine:
        return self._capture

    @property
    def playback(self) -> SpeechPlaybackController:
        return self._playback

    async def start(self) -> None:
        greeting = self._store.last()
        if greeting is not None:
            await self._speak(greeting.content)

    async def step_from_utterance(self, utterance: str) -> str | None:
        """Run one assistant turn from a finalized utterance and speak the reply."""
        text = (utterance or "").strip()
        if not text:
            return None

        print(f"\n[You] {text}\n", flush=True)
        self._store.add_user_message(text)

        print("[Assistant] ", end="", flush=True)
        message_id = ""
        async for event in self._engine.run_turn(self._store):
            if isinstance(event, TurnStarted):
                message_id = event.message_id
            elif isinstance(event, TextAppended):
                print(event.delta, end="", flush=True)
            elif isinstance(event, TurnErrored):
                print(f"\n{event.error_text}", end="", flush=True)
        print("\n", flush=True)

        reply = self._store.get(message_id)
        if reply is None:
            return None
        await self._speak(reply.content)
        return reply.content

    async def run(self) -> None:
        await self.start()

        while True:
            command = await self._prompt("\n[Voice] Press Enter to talk (q to quit)... ")
            if command.strip().lower() in EXIT_COMMANDS:
                break

            # Talking over the assistant interrupts it.
            self._playback.stop()
            try:
                await self._capture.start()
            except (PermissionDeniedError, UnsupportedPlatformError) as e:
                print(f"\n[Voice] {e}\n", flush=True)
                return

            await self._prompt("[Voice] Recording... press Enter to stop. ")
            print("[Voice] Transcribing (first run may download the model)...", flush=True)
            utterance = await self._capture.stop()
            if utterance is None:
                if self._capture.last_error is None:
                    print("[Voice] I didn't catch anything. Please try again.", flush=True)
                continue

            await self.step_from_utterance(utterance)

        self._playback.stop()

    @staticmethod
    async def _prompt(prompt: str) -> str:
        try:
            return await asyncio.to_thread(input, prompt)
        except EOFError:
            return "q"

    async def _speak(self, text: str) -> None:
        if not self._config.tts_enabled:
            logger.info("[VOICE][TTS] skipped reason=tts_disabled")
            return

        speakable, dbg = to_speakable_text(text, max_chars=self._config.tts_max_chars)
        if speakable is None:
            logger.info(f"[VOICE][TTS] skipped reason={dbg.get('skip_reason')} debug={dbg}")
            return

        excerpt = speakable[:80].replace("\n", " ")
        logger.info(f"[VOICE][TTS] speak len={len(speakable)} sent={dbg.get('sentences')} text=\"{excerpt}\"")
        await self._playback.speak(speakable)

    def _on_capture_error(self, error: AssistantError) -> None:
        print(f"\n[Voice] {error}\n", flush=True)

    def _on_playback_state(self, state: PlaybackState) -> None:
        if state.status is PlaybackStatus.ERROR:
            print(f"\n[Voice] Speech unavailable: {state.error}\n", flush=True)
