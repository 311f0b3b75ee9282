#!/usr/bin/env python

import argparse
import asyncio
import os

from recruiter_call_assistant.agent.turn_engine import TurnEngine
from recruiter_call_assistant.config import get_settings
from recruiter_call_assistant.main import setup_logging
from recruiter_call_assistant.models.llm_client import LLMClient
from recruiter_call_assistant.tools.recruitment import build_recruitment_registry
from recruiter_call_assistant.voice.audio_io import AudioIO, AudioIOConfig, SoundDeviceOutput
from recruiter_call_assistant.voice.stt import STTConfig, WhisperRecognizer, WhisperSTT
from recruiter_call_assistant.voice.tts import (
    VALID_FORMATS,
    VALID_VOICES,
    OpenAITTS,
    SpeechEndpointClient,
    TTSProvider,
)
from recruiter_call_assistant.voice.voice_session import VoiceSession, VoiceSessionConfig


def _flag(v: str) -> bool:
    return (v or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Talk to the recruitment assistant (push-to-talk)")

    p.add_argument(
        "--server-url",
        default=os.getenv("RCA_SERVER_URL") or None,
        help="Synthesize through a running API server instead of calling the provider directly "
        "(default: RCA_SERVER_URL)",
    )
    p.add_argument("--sample-rate", type=int, default=16000)

    # TTS
    p.add_argument(
        "--tts-enabled",
        default=os.getenv("VOICE_TTS_ENABLED", "true"),
        help="Speak assistant replies (default: VOICE_TTS_ENABLED or true)",
    )
    p.add_argument(
        "--tts-max-chars",
        type=int,
        default=int(os.getenv("VOICE_TTS_MAX_CHARS", "600") or "600"),
        help="Max chars to speak per reply (default: VOICE_TTS_MAX_CHARS or 600)",
    )
    p.add_argument(
        "--voice",
        default=os.getenv("RCA_TTS_VOICE", "alloy"),
        choices=VALID_VOICES,
        help="Synthesis voice (default: RCA_TTS_VOICE or 'alloy')",
    )
    p.add_argument(
        "--speed",
        type=float,
        default=float(os.getenv("RCA_TTS_SPEED", "1.1") or "1.1"),
        help="Speech speed, clamped to 0.25-4.0 (default: RCA_TTS_SPEED or 1.1)",
    )
    p.add_argument(
        "--format",
        default=os.getenv("RCA_TTS_FORMAT", "flac"),
        choices=VALID_FORMATS,
        help="Audio format requested from synthesis (default: RCA_TTS_FORMAT or 'flac')",
    )

    # STT
    p.add_argument(
        "--stt-model",
        default=os.getenv("RCA_STT_MODEL", "small"),
        help="faster-whisper model size (default: RCA_STT_MODEL or 'small')",
    )
    p.add_argument(
        "--stt-device",
        default=os.getenv("RCA_STT_DEVICE", "cpu"),
        choices=["cpu", "cuda", "auto"],
        help="STT device (default: RCA_STT_DEVICE or 'cpu')",
    )

    return p


def _build_synthesizer(args) -> TTSProvider:
    if args.server_url:
        return SpeechEndpointClient(args.server_url)
    return OpenAITTS()


async def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    llm_client = LLMClient(model=settings.llm_model_name, timeout=settings.llm_timeout)
    engine = TurnEngine(llm_client, build_recruitment_registry())

    audio = AudioIO(AudioIOConfig(sample_rate=args.sample_rate))
    stt = WhisperSTT(STTConfig(model_size=args.stt_model, device=args.stt_device))
    synthesizer = _build_synthesizer(args)

    session = VoiceSession(
        engine=engine,
        recognizer=WhisperRecognizer(audio, stt),
        synthesizer=synthesizer,
        output=SoundDeviceOutput(),
        config=VoiceSessionConfig(
            settle_delay=settings.speech_settle_delay,
            tts_enabled=_flag(args.tts_enabled),
            tts_max_chars=int(args.tts_max_chars),
            voice=args.voice,
            speed=float(args.speed),
            format=args.format,
        ),
    )

    try:
        await session.run()
    finally:
        await synthesizer.close()
        await llm_client.close()


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        raise SystemExit(0)
