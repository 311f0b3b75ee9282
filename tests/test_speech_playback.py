import asyncio

import pytest

from recruiter_call_assistant.errors import PlaybackError, ProviderError
from recruiter_call_assistant.voice.playback import (
    PlaybackStatus,
    SpeechOptions,
    SpeechPlaybackController,
)
from recruiter_call_assistant.voice.tts import TTSProvider


class GatedSynth(TTSProvider):
    """Each request waits until the test releases it."""

    def __init__(self):
        self.requests = []
        self.cancelled = []
        self.gates: dict[str, asyncio.Event] = {}
        self.fail_with: Exception | None = None

    async def synthesize(self, request):
        self.requests.append(request)
        gate = self.gates.setdefault(request.text, asyncio.Event())
        try:
            await gate.wait()
        except asyncio.CancelledError:
            self.cancelled.append(request.text)
            raise
        if self.fail_with is not None:
            raise self.fail_with
        return request.text.encode("utf-8")

    def release(self, text):
        self.gates.setdefault(text, asyncio.Event()).set()


class FakeClip:
    def __init__(self, audio):
        self.audio = audio
        self.playing = False
        self.paused = False
        self.stopped = False
        self.on_finished = None
        self.on_error = None

    def play(self, on_finished, on_error):
        self.playing = True
        self.on_finished = on_finished
        self.on_error = on_error

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def stop(self):
        self.stopped = True
        self.playing = False


class FakeOutput:
    def __init__(self, *, broken=False):
        self.clips = []
        self.broken = broken

    def load(self, audio, fmt):
        if self.broken:
            raise PlaybackError("cannot decode")
        clip = FakeClip(audio)
        self.clips.append(clip)
        return clip


async def _until_requested(synth, count):
    while len(synth.requests) < count:
        await asyncio.sleep(0)


def _controller(synth=None, output=None):
    states = []
    controller = SpeechPlaybackController(
        synth or GatedSynth(),
        output or FakeOutput(),
        on_state_change=states.append,
    )
    return controller, states


@pytest.mark.asyncio
async def test_newer_speak_cancels_older_request():
    synth = GatedSynth()
    output = FakeOutput()
    controller, states = _controller(synth, output)

    first = asyncio.create_task(controller.speak("A"))
    await _until_requested(synth, 1)
    assert controller.state.is_loading

    second = asyncio.create_task(controller.speak("B"))
    await _until_requested(synth, 2)
    synth.release("A")
    synth.release("B")
    await asyncio.gather(first, second)

    assert synth.cancelled == ["A"]
    assert [clip.audio for clip in output.clips] == [b"B"]
    assert controller.state.status is PlaybackStatus.PLAYING
    # Never reached playing for A: only one playing state was ever published.
    assert sum(1 for s in states if s.is_playing) == 1


@pytest.mark.asyncio
async def test_speak_releases_previous_clip():
    synth = GatedSynth()
    output = FakeOutput()
    controller, _ = _controller(synth, output)

    synth.release("A")
    synth.release("B")
    await controller.speak("A")
    await controller.speak("B")

    assert output.clips[0].stopped is True
    assert output.clips[1].playing is True


@pytest.mark.asyncio
async def test_clip_finishing_returns_to_idle():
    synth = GatedSynth()
    output = FakeOutput()
    controller, _ = _controller(synth, output)

    synth.release("Hi")
    await controller.speak("Hi")
    output.clips[0].on_finished()

    assert controller.state.status is PlaybackStatus.IDLE
    assert (await controller.wait_until_settled()).status is PlaybackStatus.IDLE


@pytest.mark.asyncio
async def test_stop_cancels_pending_request():
    synth = GatedSynth()
    controller, _ = _controller(synth)

    task = asyncio.create_task(controller.speak("A"))
    await _until_requested(synth, 1)
    controller.stop()
    await task

    assert synth.cancelled == ["A"]
    assert controller.state.status is PlaybackStatus.IDLE
    assert not controller.has_pending_request


@pytest.mark.asyncio
async def test_pause_and_resume():
    synth = GatedSynth()
    output = FakeOutput()
    controller, _ = _controller(synth, output)

    controller.pause()
    assert controller.state.status is PlaybackStatus.IDLE

    synth.release("Hi")
    await controller.speak("Hi")
    controller.pause()
    assert controller.state.status is PlaybackStatus.PAUSED
    assert output.clips[0].paused is True

    controller.resume()
    assert controller.state.status is PlaybackStatus.PLAYING
    assert output.clips[0].paused is False


@pytest.mark.asyncio
async def test_synthesis_failure_sets_error():
    synth = GatedSynth()
    synth.fail_with = ProviderError("Failed to generate speech")
    controller, _ = _controller(synth)

    synth.release("Hi")
    await controller.speak("Hi")

    assert controller.state.status is PlaybackStatus.ERROR
    assert controller.state.error == "Failed to generate speech"
    assert controller.state.is_playing is False


@pytest.mark.asyncio
async def test_undecodable_audio_sets_error():
    synth = GatedSynth()
    controller, _ = _controller(synth, FakeOutput(broken=True))

    synth.release("Hi")
    await controller.speak("Hi")

    assert controller.state.error == "Failed to play audio"


@pytest.mark.asyncio
async def test_invalid_text_never_reaches_synthesizer():
    synth = GatedSynth()
    controller, _ = _controller(synth)

    await controller.speak("   ")

    assert synth.requests == []
    assert controller.state.status is PlaybackStatus.ERROR


@pytest.mark.asyncio
async def test_options_are_validated_and_clamped():
    synth = GatedSynth()
    controller, _ = _controller(synth)

    synth.release("Hi")
    await controller.speak("Hi", SpeechOptions(voice="nova", speed=9.0, format="opus"))

    request = synth.requests[0]
    assert (request.voice, request.speed, request.format) == ("nova", 4.0, "opus")


class ExplodingOutput:
    def load(self, audio, fmt):
        raise RuntimeError("soundfile: unknown format")


@pytest.mark.asyncio
async def test_unexpected_synthesis_failure_sets_error():
    synth = GatedSynth()
    synth.fail_with = ValueError("boom")
    controller, _ = _controller(synth)

    synth.release("Hi")
    await controller.speak("Hi")

    assert controller.state.status is PlaybackStatus.ERROR
    assert controller.state.error == "Failed to generate speech"
    assert controller.state.is_playing is False
    assert (await controller.wait_until_settled()).status is PlaybackStatus.ERROR


@pytest.mark.asyncio
async def test_unexpected_output_failure_sets_error():
    synth = GatedSynth()
    controller, _ = _controller(synth, ExplodingOutput())

    synth.release("Hi")
    await controller.speak("Hi")

    assert controller.state.error == "Failed to play audio"
    assert (await controller.wait_until_settled()).status is PlaybackStatus.ERROR
