import asyncio

import pytest

from recruiter_call_assistant.errors import PermissionDeniedError, UnsupportedPlatformError
from recruiter_call_assistant.voice.capture import (
    CapturePhase,
    RecognitionError,
    RecognitionResult,
    VoiceCaptureStateMachine,
)


class FakeRecognizer:
    def __init__(self, *, supported=True, deny=False, on_stop=(), stop_raises=None):
        self.supported = supported
        self.stop_raises = stop_raises
        self.deny = deny
        self.on_stop = list(on_stop)
        self.sink = None
        self.starts = 0
        self.stops = 0
        self.aborts = 0

    def is_supported(self):
        return self.supported

    async def request_microphone(self):
        if self.deny:
            raise PermissionDeniedError("Microphone access was denied.")

    async def start(self, sink):
        self.sink = sink
        self.starts += 1

    async def stop(self):
        self.stops += 1
        if self.stop_raises is not None:
            raise self.stop_raises
        # Late results arrive before stop() returns.
        for result in self.on_stop:
            self.sink.on_result(result)

    def abort(self):
        self.aborts += 1


def _machine(recognizer, **kwargs):
    kwargs.setdefault("settle_delay", 0)
    return VoiceCaptureStateMachine(recognizer, **kwargs)


@pytest.mark.asyncio
async def test_interim_text_is_not_double_counted():
    recognizer = FakeRecognizer()
    utterances = []
    machine = _machine(recognizer, on_utterance=utterances.append)

    await machine.start()
    assert machine.phase is CapturePhase.RECORDING

    recognizer.sink.on_result(RecognitionResult("Find", is_final=True))
    recognizer.sink.on_result(RecognitionResult(" react dev", is_final=False))
    assert machine.current_transcript == "Find react dev"
    recognizer.sink.on_result(RecognitionResult(" React developers", is_final=True))

    utterance = await machine.stop()

    assert utterance == "Find React developers"
    assert utterances == ["Find React developers"]
    assert machine.phase is CapturePhase.IDLE
    assert machine.current_transcript == ""


@pytest.mark.asyncio
async def test_results_delivered_during_stop_are_included():
    recognizer = FakeRecognizer(on_stop=[RecognitionResult(" in Berlin", is_final=True)])
    machine = _machine(recognizer)

    await machine.start()
    recognizer.sink.on_result(RecognitionResult("Senior engineers", is_final=True))

    assert await machine.stop() == "Senior engineers in Berlin"


@pytest.mark.asyncio
async def test_trailing_interim_is_emitted_on_stop():
    recognizer = FakeRecognizer()
    machine = _machine(recognizer)

    await machine.start()
    recognizer.sink.on_result(RecognitionResult("Schedule an interview", is_final=False))

    assert await machine.stop() == "Schedule an interview"


@pytest.mark.asyncio
async def test_async_utterance_handler_is_awaited():
    recognizer = FakeRecognizer()
    received = []

    async def handle(text):
        await asyncio.sleep(0)
        received.append(text)

    machine = _machine(recognizer, on_utterance=handle)
    await machine.start()
    recognizer.sink.on_result(RecognitionResult("hello", is_final=True))
    await machine.stop()

    assert received == ["hello"]


@pytest.mark.asyncio
async def test_empty_cycle_emits_nothing():
    recognizer = FakeRecognizer()
    utterances = []
    machine = _machine(recognizer, on_utterance=utterances.append)

    await machine.start()
    recognizer.sink.on_result(RecognitionResult("   ", is_final=True))

    assert await machine.stop() is None
    assert utterances == []
    assert machine.phase is CapturePhase.IDLE


@pytest.mark.asyncio
async def test_start_while_recording_and_stop_while_idle_are_noops():
    recognizer = FakeRecognizer()
    machine = _machine(recognizer)

    assert await machine.stop() is None
    assert recognizer.stops == 0

    await machine.start()
    await machine.start()
    assert recognizer.starts == 1
    await machine.stop()


@pytest.mark.asyncio
async def test_unsupported_platform():
    machine = _machine(FakeRecognizer(supported=False))

    with pytest.raises(UnsupportedPlatformError):
        await machine.start()
    assert machine.phase is CapturePhase.IDLE


@pytest.mark.asyncio
async def test_permission_denied_keeps_machine_idle():
    recognizer = FakeRecognizer(deny=True)
    machine = _machine(recognizer)

    with pytest.raises(PermissionDeniedError):
        await machine.start()

    assert machine.phase is CapturePhase.IDLE
    assert recognizer.starts == 0


@pytest.mark.asyncio
async def test_transient_errors_keep_recording():
    recognizer = FakeRecognizer()
    machine = _machine(recognizer)

    await machine.start()
    recognizer.sink.on_error(RecognitionError("no-speech"))
    recognizer.sink.on_error(RecognitionError("network"))

    assert machine.phase is CapturePhase.RECORDING
    await machine.stop()


@pytest.mark.asyncio
async def test_fatal_error_discards_transcript():
    recognizer = FakeRecognizer()
    errors = []
    utterances = []
    machine = _machine(recognizer, on_error=errors.append, on_utterance=utterances.append)

    await machine.start()
    recognizer.sink.on_result(RecognitionResult("Find", is_final=True))
    recognizer.sink.on_result(RecognitionResult(" react", is_final=False))
    recognizer.sink.on_error(RecognitionError("not-allowed"))

    assert machine.phase is CapturePhase.IDLE
    assert machine.current_transcript == ""
    assert recognizer.aborts == 1
    assert len(errors) == 1 and isinstance(errors[0], PermissionDeniedError)
    assert machine.last_error is errors[0]

    # A late result from the aborted cycle is ignored.
    recognizer.sink.on_result(RecognitionResult("late", is_final=True))
    assert await machine.stop() is None
    assert utterances == []


@pytest.mark.asyncio
async def test_missing_microphone_is_reported_as_unsupported():
    recognizer = FakeRecognizer()
    errors = []
    machine = _machine(recognizer, on_error=errors.append)

    await machine.start()
    recognizer.sink.on_error(RecognitionError("audio-capture"))

    assert isinstance(errors[0], UnsupportedPlatformError)


@pytest.mark.asyncio
async def test_duration_ticks_and_audio_level_is_clamped():
    recognizer = FakeRecognizer()
    states = []
    machine = _machine(recognizer, tick_interval=0.01, on_state_change=states.append)

    await machine.start()
    recognizer.sink.on_audio_level(3.0)
    assert machine.state.audio_level == 1.0
    await asyncio.sleep(0.05)
    assert machine.state.duration >= 1

    await machine.stop()
    duration = machine.state.duration
    await asyncio.sleep(0.03)

    assert machine.state.duration == duration == 0
    assert any(s.is_processing for s in states)
    assert machine.state.audio_level == 0.0


@pytest.mark.asyncio
async def test_recognizer_crash_on_stop_returns_to_idle():
    recognizer = FakeRecognizer(stop_raises=OSError("PortAudio device vanished"))
    errors = []
    machine = _machine(recognizer, on_error=errors.append)

    await machine.start()
    recognizer.sink.on_result(RecognitionResult("Find React", is_final=True))

    assert await machine.stop() is None
    assert machine.phase is CapturePhase.IDLE
    assert machine.current_transcript == ""
    assert "PortAudio device vanished" in str(errors[0])
    assert machine.last_error is errors[0]

    # The next cycle works normally.
    recognizer.stop_raises = None
    await machine.start()
    assert machine.phase is CapturePhase.RECORDING
    assert recognizer.starts == 2
