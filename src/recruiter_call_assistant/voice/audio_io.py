"""Audio capture + playback (LLM-agnostic).

This module is intentionally "dumb hardware I/O": it knows nothing about the
conversation, prompts, or LLMs.

It provides:
- push-to-talk microphone capture (start/stop) with a live input level
- decoding of synthesized audio bytes
- pausable speaker playback of a decoded clip

sounddevice callbacks run on PortAudio threads; every notification is handed
back to the asyncio loop that started the stream.
"""

from __future__ import annotations

import asyncio
import io
import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from recruiter_call_assistant.errors import PermissionDeniedError, PlaybackError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioIOConfig:
    sample_rate: int = 16000
    channels: int = 1
    dtype: str = "int16"  # sounddevice dtype for capture
    # RMS (on a -1..1 scale) that maps to a full audio level of 1.0
    full_scale_rms: float = 0.2


def _require_sounddevice():
    try:
        import sounddevice as sd  # type: ignore

        return sd
    except Exception as e:  # pragma: no cover
        raise RuntimeError(
            "sounddevice is required for voice mode. Install Python deps with: pip install -e '.[voice]'. "
            "If you see 'PortAudio library not found', install PortAudio (Debian/Ubuntu: sudo apt-get install portaudio19-dev)."
        ) from e


def rms_level(samples: np.ndarray, full_scale_rms: float = 0.2) -> float:
    """Map a block of samples to a 0..1 audio level."""
    if samples.size == 0:
        return 0.0
    data = samples.astype(np.float32)
    if samples.dtype == np.int16:
        data = data / 32768.0
    rms = float(np.sqrt(np.mean(np.square(data))))
    return max(0.0, min(1.0, rms / full_scale_rms))


class AudioIO:
    """Microphone capture for push-to-talk recording."""

    def __init__(self, config: AudioIOConfig | None = None) -> None:
        self._config = config or AudioIOConfig()
        self._recording_stream = None
        self._recording_frames: list[np.ndarray] = []

    @property
    def config(self) -> AudioIOConfig:
        return self._config

    def has_input_device(self) -> bool:
        try:
            sd = _require_sounddevice()
            sd.query_devices(kind="input")
            return True
        except Exception:
            return False

    async def start_recording(self, on_level: Callable[[float], None] | None = None) -> None:
        """Start mic capture (push-to-talk)."""
        sd = _require_sounddevice()
        loop = asyncio.get_running_loop()
        self._recording_frames = []

        def callback(indata, frames, time, status):  # noqa: ANN001
            if status:
                logger.debug(f"Input status: {status}")
            self._recording_frames.append(indata.copy())
            if on_level is not None:
                loop.call_soon_threadsafe(on_level, rms_level(indata, self._config.full_scale_rms))

        try:
            self._recording_stream = sd.InputStream(
                samplerate=self._config.sample_rate,
                channels=self._config.channels,
                dtype=self._config.dtype,
                callback=callback,
            )
        except sd.PortAudioError as e:
            raise PermissionDeniedError(f"Could not open the microphone: {e}") from e

        await asyncio.to_thread(self._recording_stream.start)

    async def stop_recording(self) -> np.ndarray:
        """Stop mic capture and return audio as int16 numpy array [samples, channels]."""
        if self._recording_stream is None:
            return np.zeros((0, self._config.channels), dtype=np.int16)

        stream = self._recording_stream
        self._recording_stream = None

        await asyncio.to_thread(stream.stop)
        await asyncio.to_thread(stream.close)

        if not self._recording_frames:
            return np.zeros((0, self._config.channels), dtype=np.int16)

        audio = np.concatenate(self._recording_frames, axis=0)
        self._recording_frames = []
        return audio

    def abort_recording(self) -> None:
        stream, self._recording_stream = self._recording_stream, None
        self._recording_frames = []
        if stream is not None:
            stream.abort()
            stream.close()


class SoundDeviceClip:
    """A decoded clip played through a sounddevice output stream."""

    def __init__(self, samples: np.ndarray, sample_rate: int) -> None:
        if samples.ndim == 1:
            samples = samples[:, None]
        self._samples = samples.astype(np.float32, copy=False)
        self._sample_rate = sample_rate
        self._position = 0
        self._stream = None
        self._exhausted = False

    @property
    def duration_s(self) -> float:
        return len(self._samples) / float(self._sample_rate)

    def play(self, on_finished: Callable[[], None], on_error: Callable[[Exception], None]) -> None:
        sd = _require_sounddevice()
        loop = asyncio.get_running_loop()

        def callback(outdata, frames, time, status):  # noqa: ANN001
            if status:
                logger.debug(f"Output status: {status}")
            chunk = self._samples[self._position : self._position + frames]
            outdata[: len(chunk)] = chunk
            if len(chunk) < frames:
                outdata[len(chunk) :] = 0
                self._exhausted = True
                raise sd.CallbackStop
            self._position += frames

        def finished() -> None:
            # Also fires on pause (stream.stop); only report real completion.
            if self._exhausted:
                loop.call_soon_threadsafe(on_finished)

        try:
            self._stream = sd.OutputStream(
                samplerate=self._sample_rate,
                channels=self._samples.shape[1],
                dtype="float32",
                callback=callback,
                finished_callback=finished,
            )
            self._stream.start()
        except Exception as e:
            loop.call_soon(on_error, e)

    def pause(self) -> None:
        if self._stream is not None:
            self._stream.stop()

    def resume(self) -> None:
        if self._stream is not None and not self._exhausted:
            self._stream.start()

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            self._exhausted = False
            stream.abort()
            stream.close()


class SoundDeviceOutput:
    """Decodes synthesized audio with soundfile and plays it with sounddevice."""

    def load(self, audio: bytes, fmt: str) -> SoundDeviceClip:
        try:
            import soundfile as sf  # type: ignore
        except Exception as e:  # pragma: no cover
            raise PlaybackError("soundfile is required for playback. Install with: pip install -e '.[voice]'") from e

        try:
            samples, sample_rate = sf.read(io.BytesIO(audio), dtype="float32")
        except Exception as e:
            raise PlaybackError(f"Could not decode {fmt} audio: {e}") from e
        return SoundDeviceClip(samples, sample_rate)
