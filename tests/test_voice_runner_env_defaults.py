from recruiter_call_assistant.voice.tts import OpenAITTS, SpeechEndpointClient


def test_voice_runner_env_defaults_are_used(monkeypatch):
    monkeypatch.delenv("RCA_SERVER_URL", raising=False)
    monkeypatch.setenv("RCA_TTS_VOICE", "nova")
    monkeypatch.setenv("RCA_TTS_SPEED", "1.25")
    monkeypatch.setenv("RCA_TTS_FORMAT", "opus")
    monkeypatch.setenv("RCA_STT_MODEL", "base")
    monkeypatch.setenv("RCA_STT_DEVICE", "cpu")
    monkeypatch.setenv("VOICE_TTS_ENABLED", "false")

    from scripts.voice_assistant import build_parser

    args = build_parser().parse_args([])
    assert args.voice == "nova"
    assert args.speed == 1.25
    assert args.format == "opus"
    assert args.stt_model == "base"
    assert args.stt_device == "cpu"
    assert args.tts_enabled == "false"
    assert args.server_url is None


def test_voice_runner_uses_speech_endpoint_when_server_given(monkeypatch):
    monkeypatch.setenv("RCA_SERVER_URL", "http://localhost:3002")

    from scripts import voice_assistant

    args = voice_assistant.build_parser().parse_args([])
    assert isinstance(voice_assistant._build_synthesizer(args), SpeechEndpointClient)

    args = voice_assistant.build_parser().parse_args(["--server-url", ""])
    assert isinstance(voice_assistant._build_synthesizer(args), OpenAITTS)
