import json

import pytest

from recruiter_call_assistant.agent import (
    GENERIC_FAILURE_MESSAGE,
    UNKNOWN_TOOL_MESSAGE,
    TextAppended,
    TextEnded,
    TextStarted,
    ToolInputAvailable,
    ToolOutputAvailable,
    ToolOutputError,
    TurnEngine,
    TurnErrored,
    TurnFinished,
    TurnStarted,
)
from recruiter_call_assistant.conversation import ConversationStore
from recruiter_call_assistant.errors import ProviderError
from recruiter_call_assistant.models.llm_client import (
    LLMClientBase,
    StreamFailed,
    StreamFinished,
    TextDelta,
    ToolCallRequest,
)
from recruiter_call_assistant.tools.recruitment import build_recruitment_registry


class ScriptedLLM(LLMClientBase):
    """Replays one scripted event list per provider request."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.requests = []

    async def stream_chat(self, messages, tools=None, temperature=0.7):
        self.requests.append({"messages": list(messages), "tools": tools})
        for event in self._responses.pop(0):
            yield event


def _text(*fragments):
    return [*(TextDelta(f) for f in fragments), StreamFinished()]


async def _run(engine, store):
    return [event async for event in engine.run_turn(store)]


def _store(prompt="Find React developers"):
    store = ConversationStore()
    store.add_user_message(prompt)
    return store


@pytest.mark.asyncio
@pytest.mark.parametrize("fragments", [("Hel", "lo wor", "ld"), ("Hello world",)])
async def test_fragments_reassemble_in_order(fragments):
    engine = TurnEngine(ScriptedLLM(_text(*fragments)), build_recruitment_registry())
    store = _store()

    message = await engine.complete_turn(store)

    assert message.content == "Hello world"
    assert message.is_final is True
    assert not store.is_streaming


@pytest.mark.asyncio
async def test_event_order_and_context():
    llm = ScriptedLLM(_text("Hi"))
    engine = TurnEngine(llm, build_recruitment_registry(), system_prompt="Be brief.")
    store = _store()

    events = await _run(engine, store)

    assert [type(e) for e in events] == [TurnStarted, TextStarted, TextAppended, TextEnded, TurnFinished]
    sent = llm.requests[0]["messages"]
    assert sent[0].role == "system" and sent[0].content == "Be brief."
    # Greeting + user message; the in-flight message is not sent.
    assert [m.role for m in sent[1:]] == ["assistant", "user"]
    assert {t["function"]["name"] for t in llm.requests[0]["tools"]} >= {"searchCandidates"}


@pytest.mark.asyncio
async def test_tool_call_then_follow_up_text():
    llm = ScriptedLLM(
        [
            TextDelta("Let me search. "),
            ToolCallRequest("call_1", "searchCandidates", json.dumps({"skills": ["React"], "experience": 3})),
            StreamFinished("tool_calls"),
        ],
        _text("I found 2 candidates."),
    )
    engine = TurnEngine(llm, build_recruitment_registry())
    store = _store()

    events = await _run(engine, store)
    message = store.last()

    assert message.content == "Let me search. I found 2 candidates."
    assert len(message.tool_calls) == 1
    call = message.tool_calls[0]
    assert call.name == "searchCandidates"
    assert call.arguments["skills"] == ["React"]
    assert call.result["totalFound"] == 2

    kinds = [type(e) for e in events]
    assert kinds.index(ToolInputAvailable) < kinds.index(ToolOutputAvailable)

    follow_up = llm.requests[1]["messages"]
    assert follow_up[-2].role == "assistant"
    assert follow_up[-2].tool_calls[0]["id"] == "call_1"
    assert follow_up[-1].role == "tool"
    assert follow_up[-1].tool_call_id == "call_1"
    assert json.loads(follow_up[-1].content)["totalFound"] == 2


@pytest.mark.asyncio
async def test_unknown_tool_ends_turn_with_explanation():
    llm = ScriptedLLM(
        [ToolCallRequest("call_1", "doSomethingUnknown", "{}"), StreamFinished("tool_calls")],
    )
    engine = TurnEngine(llm, build_recruitment_registry())
    store = _store()

    events = await _run(engine, store)
    message = store.last()

    assert message.content == UNKNOWN_TOOL_MESSAGE
    assert message.tool_calls == []
    assert message.is_final is True
    assert TurnErrored(UNKNOWN_TOOL_MESSAGE) in events
    assert isinstance(events[-1], TurnFinished)
    assert len(llm.requests) == 1


@pytest.mark.asyncio
async def test_invalid_tool_arguments_are_reported_back_to_model():
    llm = ScriptedLLM(
        [ToolCallRequest("call_1", "searchCandidates", json.dumps({"skills": "React"})), StreamFinished("tool_calls")],
        _text("Could you tell me the years of experience?"),
    )
    engine = TurnEngine(llm, build_recruitment_registry())
    store = _store()

    events = await _run(engine, store)
    call = store.last().tool_calls[0]

    assert call.result is None
    assert "experience" in call.error
    assert any(isinstance(e, ToolOutputError) for e in events)
    assert "error" in json.loads(llm.requests[1]["messages"][-1].content)
    assert store.last().content == "Could you tell me the years of experience?"


@pytest.mark.asyncio
async def test_mid_stream_failure_keeps_partial_content():
    llm = ScriptedLLM(
        [TextDelta("Searching the "), StreamFailed(ProviderError("connection reset"))],
    )
    engine = TurnEngine(llm, build_recruitment_registry())
    store = _store()

    events = await _run(engine, store)
    message = store.last()

    assert message.content == f"Searching the \n\n{GENERIC_FAILURE_MESSAGE}"
    assert message.is_final is True
    assert TurnErrored(GENERIC_FAILURE_MESSAGE) in events
    assert isinstance(events[-1], TurnFinished)


@pytest.mark.asyncio
async def test_failure_before_any_text():
    engine = TurnEngine(ScriptedLLM([StreamFailed(ProviderError("HTTP 500"))]), build_recruitment_registry())
    store = _store()

    message = await engine.complete_turn(store)

    assert message.content == GENERIC_FAILURE_MESSAGE


@pytest.mark.asyncio
async def test_step_limit_stops_tool_loops():
    llm = ScriptedLLM(
        *[[ToolCallRequest(f"call_{i}", "getInterviewPipeline", "{}"), StreamFinished("tool_calls")] for i in range(3)]
    )
    engine = TurnEngine(llm, build_recruitment_registry(), max_steps=2)
    store = _store()

    message = await engine.complete_turn(store)

    assert len(llm.requests) == 2
    assert message.is_final is True


@pytest.mark.asyncio
async def test_concurrent_turn_is_rejected():
    engine = TurnEngine(ScriptedLLM(_text("a"), _text("b")), build_recruitment_registry())
    store = _store()

    first = engine.run_turn(store)
    assert isinstance(await first.__anext__(), TurnStarted)

    with pytest.raises(RuntimeError):
        await engine.complete_turn(store)

    await first.aclose()
    assert not store.is_streaming


class ForgetfulStore(ConversationStore):
    def get(self, message_id):
        return None


@pytest.mark.asyncio
async def test_complete_turn_raises_when_message_is_missing():
    engine = TurnEngine(ScriptedLLM(_text("Hi")), build_recruitment_registry())
    store = ForgetfulStore()
    store.add_user_message("hello")

    with pytest.raises(RuntimeError, match="missing from the store"):
        await engine.complete_turn(store)
