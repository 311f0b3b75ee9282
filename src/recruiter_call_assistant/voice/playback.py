"""Speech playback controller.

Turns assistant text into audible output. At most one synthesis request and
at most one loaded clip exist at any time: every `speak()` first cancels the
previous request (aborting its network call) and releases the previous clip.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Protocol

from recruiter_call_assistant.errors import PlaybackError, ProviderError, ValidationError
from recruiter_call_assistant.voice.tts import SpeechRequest, TTSProvider

logger = logging.getLogger(__name__)


class AudioClip(Protocol):
    """A loaded, playable piece of audio owned by the controller."""

    def play(self, on_finished: Callable[[], None], on_error: Callable[[Exception], None]) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> None: ...


class AudioOutput(Protocol):
    def load(self, audio: bytes, fmt: str) -> AudioClip: ...


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ERROR = "error"


@dataclass(frozen=True)
class PlaybackState:
    is_loading: bool = False
    is_playing: bool = False
    is_paused: bool = False
    error: str | None = None

    @property
    def status(self) -> PlaybackStatus:
        if self.error is not None:
            return PlaybackStatus.ERROR
        if self.is_loading:
            return PlaybackStatus.LOADING
        if self.is_playing:
            return PlaybackStatus.PLAYING
        if self.is_paused:
            return PlaybackStatus.PAUSED
        return PlaybackStatus.IDLE


@dataclass(frozen=True)
class SpeechOptions:
    voice: str = "alloy"
    speed: float = 1.0
    format: str = "mp3"


class SpeechPlaybackController:
    """
    Owns the synthesis request and the audio clip for spoken replies.

    Each call to `speak()` gets a new generation number; any work whose
    generation is no longer current is abandoned without touching state.
    """

    def __init__(
        self,
        synthesizer: TTSProvider,
        output: AudioOutput,
        *,
        default_options: SpeechOptions | None = None,
        on_state_change: Callable[[PlaybackState], None] | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._output = output
        self._default_options = default_options or SpeechOptions()
        self._on_state_change = on_state_change

        self._state = PlaybackState()
        self._generation = 0
        self._request: asyncio.Future[bytes] | None = None
        self._clip: AudioClip | None = None
        self._settled = asyncio.Event()
        self._settled.set()

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def has_pending_request(self) -> bool:
        return self._request is not None and not self._request.done()

    async def speak(self, text: str, options: SpeechOptions | None = None) -> None:
        """
        Synthesize `text` and start playing it.

        Returns once playback has started, failed, or been superseded by a
        newer `speak()`/`stop()`. Failures are reported through `state.error`.
        """
        self._cancel_request()
        self._release_clip()
        self._generation += 1
        generation = self._generation
        self._set_state(PlaybackState(is_loading=True))

        opts = options or self._default_options
        try:
            request = SpeechRequest.from_payload(
                {"text": text, "voice": opts.voice, "format": opts.format, "speed": opts.speed}
            )
        except ValidationError as e:
            self._set_state(PlaybackState(error=str(e)))
            return

        task = asyncio.ensure_future(self._synthesizer.synthesize(request))
        self._request = task
        try:
            audio = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info(f"[VOICE][PLAYBACK] request superseded generation={generation}")
                return
            # The caller itself was cancelled.
            self._set_state(PlaybackState())
            raise
        except (ProviderError, PlaybackError) as e:
            if generation == self._generation:
                logger.warning(f"[VOICE][PLAYBACK] synthesis failed: {e}")
                self._set_state(PlaybackState(error=str(e) or "Failed to generate speech"))
            return
        except Exception as e:
            if generation == self._generation:
                logger.exception(f"[VOICE][PLAYBACK] synthesis raised unexpectedly: {e}")
                self._set_state(PlaybackState(error="Failed to generate speech"))
            return
        finally:
            if self._request is task:
                self._request = None

        if generation != self._generation:
            return

        try:
            clip = self._output.load(audio, request.format)
            self._clip = clip
            clip.play(
                on_finished=partial(self._on_clip_finished, clip),
                on_error=partial(self._on_clip_error, clip),
            )
        except Exception as e:
            logger.warning(f"[VOICE][PLAYBACK] could not start audio: {e}")
            self._release_clip()
            self._set_state(PlaybackState(error="Failed to play audio"))
            return

        if self._clip is clip:
            self._set_state(PlaybackState(is_playing=True))

    def stop(self) -> None:
        """Cancel any pending request, halt playback and release the clip."""
        self._generation += 1
        self._cancel_request()
        self._release_clip()
        self._set_state(PlaybackState())

    def pause(self) -> None:
        if self._clip is None or not self._state.is_playing:
            return
        self._clip.pause()
        self._set_state(PlaybackState(is_paused=True))

    def resume(self) -> None:
        if self._clip is None or not self._state.is_paused:
            return
        self._clip.resume()
        self._set_state(PlaybackState(is_playing=True))

    async def wait_until_settled(self) -> PlaybackState:
        """Wait until nothing is loading, playing or paused."""
        await self._settled.wait()
        return self._state

    def _on_clip_finished(self, clip: AudioClip) -> None:
        if clip is not self._clip:
            return
        self._release_clip()
        self._set_state(PlaybackState())

    def _on_clip_error(self, clip: AudioClip, error: Exception) -> None:
        if clip is not self._clip:
            return
        logger.warning(f"[VOICE][PLAYBACK] audio playback error: {error}")
        self._release_clip()
        self._set_state(PlaybackState(error="Failed to play audio"))

    def _cancel_request(self) -> None:
        if self._request is not None and not self._request.done():
            self._request.cancel()
        self._request = None

    def _release_clip(self) -> None:
        clip, self._clip = self._clip, None
        if clip is not None:
            clip.stop()

    def _set_state(self, state: PlaybackState) -> None:
        self._state = state
        if state.status in (PlaybackStatus.IDLE, PlaybackStatus.ERROR):
            self._settled.set()
        else:
            self._settled.clear()
        if self._on_state_change is not None:
            self._on_state_change(state)
