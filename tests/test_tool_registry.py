import pytest
from pydantic import BaseModel

from recruiter_call_assistant.tools.recruitment import (
    RECRUITMENT_TOOLS,
    ScheduleInterviewInput,
    build_recruitment_registry,
)
from recruiter_call_assistant.tools.registry import (
    DuplicateToolError,
    InvalidArgumentsError,
    ToolDefinition,
    ToolExecutionError,
    ToolRegistry,
    UnknownToolError,
)


class EchoInput(BaseModel):
    name: str
    count: int


def _recording_registry(result=None, *, raises: Exception | None = None):
    calls: list[EchoInput] = []

    def executor(args: EchoInput):
        calls.append(args)
        if raises is not None:
            raise raises
        return result if result is not None else {"echo": args.name, "count": args.count}

    registry = ToolRegistry([ToolDefinition("echo", "Echo the input", EchoInput, executor)])
    return registry, calls


@pytest.mark.asyncio
async def test_execute_returns_executor_result_unchanged():
    payload = {"nested": [1, 2, {"a": None}]}
    registry, calls = _recording_registry(result=payload)

    result = await registry.execute("echo", {"name": "x", "count": 2})

    assert result is payload
    assert len(calls) == 1
    assert calls[0].count == 2


@pytest.mark.asyncio
async def test_execute_awaits_async_executors():
    async def executor(args: EchoInput):
        return args.name.upper()

    registry = ToolRegistry([ToolDefinition("echo", "Echo", EchoInput, executor)])
    assert await registry.execute("echo", {"name": "abc", "count": 1}) == "ABC"


@pytest.mark.asyncio
async def test_unknown_tool_fails():
    registry, calls = _recording_registry()

    with pytest.raises(UnknownToolError) as exc:
        await registry.execute("doSomethingUnknown", {})

    assert exc.value.tool_name == "doSomethingUnknown"
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "arguments, bad_fields",
    [
        ({"name": "x"}, ["count"]),
        ({"name": "x", "count": "many"}, ["count"]),
        ({}, ["count", "name"]),
        ({"name": "x", "count": "3"}, ["count"]),
        ({"name": "x", "count": True}, ["count"]),
        ({"name": 7, "count": 1}, ["name"]),
    ],
)
async def test_invalid_arguments_never_reach_executor(arguments, bad_fields):
    registry, calls = _recording_registry()

    with pytest.raises(InvalidArgumentsError) as exc:
        await registry.execute("echo", arguments)

    assert exc.value.fields == bad_fields
    assert calls == []


@pytest.mark.asyncio
async def test_non_object_arguments_are_rejected():
    registry, calls = _recording_registry()

    with pytest.raises(InvalidArgumentsError) as exc:
        await registry.execute("echo", ["x", 1])

    assert exc.value.fields == []
    assert calls == []


@pytest.mark.asyncio
async def test_executor_failure_is_wrapped():
    boom = ValueError("backend down")
    registry, calls = _recording_registry(raises=boom)

    with pytest.raises(ToolExecutionError) as exc:
        await registry.execute("echo", {"name": "x", "count": 1})

    assert exc.value.cause is boom
    assert exc.value.__cause__ is boom
    assert len(calls) == 1


def test_duplicate_registration_is_rejected():
    registry, _ = _recording_registry()
    with pytest.raises(DuplicateToolError):
        registry.register(ToolDefinition("echo", "again", EchoInput, lambda args: None))


def test_recruitment_declarations_use_wire_field_names():
    registry = build_recruitment_registry()

    assert registry.names == [
        "searchCandidates",
        "scheduleInterview",
        "parseResume",
        "getInterviewPipeline",
    ]
    declarations = {d["function"]["name"]: d for d in registry.declarations()}
    schedule = declarations["scheduleInterview"]["function"]["parameters"]
    assert {"candidateId", "candidateName", "datetime", "type"} <= set(schedule["required"])
    assert "duration" not in schedule["required"]
    assert len(RECRUITMENT_TOOLS) == 4


@pytest.mark.asyncio
async def test_schedule_interview_defaults_and_aliases():
    registry = build_recruitment_registry()

    validated = registry.validate(
        "scheduleInterview",
        {"candidateId": "1", "candidateName": "John Doe", "datetime": "2025-01-15T10:00", "type": "video"},
    )
    assert isinstance(validated, ScheduleInterviewInput)
    assert validated.duration == 60

    result = await registry.execute(
        "scheduleInterview",
        {"candidateId": "1", "candidateName": "John Doe", "datetime": "2025-01-15T10:00", "type": "video"},
    )
    assert result["success"] is True


@pytest.mark.asyncio
async def test_schedule_interview_rejects_unknown_type():
    registry = build_recruitment_registry()

    with pytest.raises(InvalidArgumentsError) as exc:
        await registry.execute(
            "scheduleInterview",
            {"candidateId": "1", "candidateName": "J", "datetime": "tomorrow", "type": "carrier-pigeon"},
        )
    assert exc.value.fields == ["type"]


@pytest.mark.asyncio
async def test_pipeline_filters_by_status():
    registry = build_recruitment_registry()

    everything = await registry.execute("getInterviewPipeline", {})
    completed = await registry.execute("getInterviewPipeline", {"status": "completed"})

    assert everything["totalInterviews"] == 2
    assert everything["byStatus"]["scheduled"] == 2
    assert completed["pipeline"] == []
    assert completed["totalInterviews"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("experience", ["3", True, None])
async def test_search_candidates_rejects_wrongly_typed_experience(experience):
    registry = build_recruitment_registry()

    with pytest.raises(InvalidArgumentsError) as exc:
        await registry.execute("searchCandidates", {"skills": ["React"], "experience": experience})
    assert exc.value.fields == ["experience"]


@pytest.mark.asyncio
async def test_search_candidates_accepts_integer_experience():
    registry = build_recruitment_registry()

    result = await registry.execute("searchCandidates", {"skills": ["React"], "experience": 3})

    assert result["searchCriteria"]["experience"] == 3
