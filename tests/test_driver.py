import asyncio

from hivelang import execute_hivelang_event, execute_hivelang_program, run_hivelang_program
from hivelang.config import EngineConfig
from hivelang.runtime.context import ExecutionContext, ExecutionMetadata

from stubs import BlockingMemory, BlockingTool, RecordingMemory, RecordingTool


TEST_BOT = (
    "bot Test\n"
    '  on input when input contains "quiz"\n'
    '    say "Quiz mode"\n'
    "  end\n"
    "  on input\n"
    '    say "Default"\n'
    "  end\n"
    "end\n"
)


def _context(memory=None):
    return ExecutionContext(
        metadata=ExecutionMetadata(bot_id="bot-1", run_id="run-1", user_id="user-1"),
        shared_memory=memory if memory is not None else RecordingMemory(),
    )


def _run(source, input=None, tools=None, memory=None, **kwargs):
    return run_hivelang_program(source, input, tools or [], _context(memory), **kwargs)


def _handler(body, guard=""):
    when = f" when {guard}" if guard else ""
    return f"bot B\n  on input{when}\n{body}\n  end\nend\n"


def test_end_to_end_handler_selection():
    quiz = _run(TEST_BOT, {"input": "let's quiz"})
    assert (quiz.success, quiz.output, quiz.status) == (True, "Quiz mode", "completed")
    assert quiz.handler_index == 0
    default = _run(TEST_BOT, {"input": "hello"})
    assert (default.success, default.output) == (True, "Default")
    assert default.handler_index == 1


def test_string_input_is_normalised():
    result = _run(TEST_BOT, "QUIZ time")
    assert result.output == "Quiz mode"
    assert result.variables["input"] == {"input": "QUIZ time"}


def test_determinism():
    tool = RecordingTool("crm.lookup", output="Ada", data={"plan": "pro"})
    source = _handler(
        '    call crm.lookup with { id: input.id } as customer\n'
        '    say "{customer.output} is on {customer.plan}"'
    )
    first = _run(source, {"id": 1}, [tool])
    second = _run(source, {"id": 1}, [tool])
    assert first.output == second.output == "Ada is on pro"
    assert first.to_dict(include_timing=False) == second.to_dict(include_timing=False)


def test_fail_fast_on_tool_error():
    tool = RecordingTool("email.send", success=False, output="bad creds")
    after = RecordingTool("audit.log")
    source = _handler(
        '    say "sending"\n'
        '    call email.send with { to: "a@b.c" }\n'
        '    call audit.log with { event: "sent" }\n'
        '    say "done"'
    )
    result = _run(source, {}, [tool, after])
    assert result.success is False
    assert result.status == "failed"
    assert result.error_kind == "ToolExecutionError"
    assert "bad creds" in result.error
    assert "(line 4" in result.error
    assert [step.kind for step in result.steps] == ["say", "call"]
    assert [step.outcome for step in result.steps] == ["ok", "error"]
    assert after.calls == []
    assert result.output == "sending"


def test_loop_ordering():
    source = _handler('    set $items = [1,2,3]\n    loop $x in $items\n      say "{x}"\n    end')
    result = _run(source)
    assert result.output == "1\n2\n3"
    assert "x" not in result.variables


def test_memory_round_trip():
    memory = RecordingMemory()
    result = _run(_handler('    remember "k" as "v"'), memory=memory)
    assert result.success
    assert memory.calls == [("set", "k", "v")]

    memory.calls.clear()
    result = _run(_handler('    recall "k"\n    say "got {result}"'), memory=memory)
    assert memory.calls == [("get", "k")]
    assert result.output == "got v"
    assert result.variables["result"] == "v"


def test_syntax_rejection_touches_nothing():
    tool = RecordingTool("email.send")
    memory = RecordingMemory()
    result = _run('bot Test\n  on input\n    call email.send with { to: "x" }\n  end\n', {}, [tool], memory)
    assert result.success is False
    assert result.error_kind == "ParseError"
    assert result.error.startswith("ParseError: ")
    assert result.steps == ()
    assert tool.calls == []
    assert memory.calls == []


def test_lex_error_result():
    result = _run('bot T\n  on input\n    say "open\n  end\nend')
    assert result.error_kind == "LexError"
    assert result.steps == ()


def test_no_handler_matched():
    source = _handler('    say "only quiz"', guard='input contains "quiz"')
    result = _run(source, "hello")
    assert result.success is False
    assert result.error_kind == "NoHandlerMatched"
    assert result.error.startswith("NoHandlerMatched: ")


def test_synthesized_fallback_is_empty_success():
    source = _handler('    say "only quiz"', guard='input contains "quiz"')
    result = _run(source, "hello", config=EngineConfig(synthesize_fallback=True))
    assert result.success is True
    assert result.status == "empty_output"
    assert result.handler_index is None


def test_empty_output_status():
    result = _run(_handler("    set $x = 1"))
    assert result.success is True
    assert result.output == ""
    assert result.status == "empty_output"


def test_multiple_bots():
    source = TEST_BOT + 'bot Other\n  on input\n    say "other"\n  end\nend\n'
    rejected = _run(source, "hi")
    assert rejected.error_kind == "MultipleBotsUnsupported"
    relaxed = _run(source, "hi", config=EngineConfig(require_single_bot=False))
    assert relaxed.output == "Default"
    chosen = _run(source, "hi", bot_name="Other")
    assert chosen.output == "other"


def test_guard_type_error_is_a_runtime_failure():
    result = _run(_handler('    say "x"', guard="input"), "hi")
    assert result.error_kind == "TypeError"
    assert result.steps == ()


def test_named_events():
    source = (
        "bot B\n"
        "  on input\n"
        '    say "chat"\n'
        "  end\n"
        '  on schedule when input.kind == "daily"\n'
        '    say "daily digest"\n'
        "  end\n"
        "end\n"
    )
    result = asyncio.run(execute_hivelang_event(source, "schedule", {"kind": "daily"}, [], _context()))
    assert result.output == "daily digest"
    assert result.event == "schedule"
    missing = asyncio.run(execute_hivelang_event(source, "webhook", {}, [], _context()))
    assert missing.error_kind == "NoHandlerMatched"


def test_initial_variables_and_transcript():
    tool = RecordingTool("crm.note")
    source = _handler('    say "Hi {name}"\n    call crm.note with { text: name, email: "a@b.c" }')
    result = _run(source, {}, [tool], initial_variables={"name": "Ada"})
    assert result.output == "Hi Ada"
    assert list(result.transcript) == [
        {"type": "say", "payload": "Hi Ada"},
        {"type": "call", "tool": "crm.note", "args": {"text": "Ada", "email": "[REDACTED]"}},
    ]
    assert tool.calls == [{"text": "Ada", "email": "a@b.c"}]


def test_step_summaries_are_redacted():
    result = _run(_handler('    say "secret plan"'))
    assert result.steps[0].summary == {"text": "[REDACTED]"}


def test_on_step_streams_records():
    seen = []
    source = _handler('    say "a"\n    say "b"')
    result = _run(source, on_step=lambda step: seen.append((step.index, step.outcome)))
    assert seen == [(0, "ok"), (1, "ok")]
    assert len(result.steps) == 2


def test_tool_timeout_surfaces_as_timeout_error():
    slow = RecordingTool("slow.tool", delay=1.0)
    result = _run(_handler("    call slow.tool with {}"), {}, [slow], config=EngineConfig(tool_timeout_seconds=0.05))
    assert result.error_kind == "TimeoutError"
    assert result.steps[0].outcome == "error"


def test_overall_deadline():
    slow = RecordingTool("slow.tool", delay=1.0)
    config = EngineConfig(tool_timeout_seconds=5.0, execution_timeout_seconds=0.05)
    result = _run(_handler("    call slow.tool with {}"), {}, [slow], config=config)
    assert result.error_kind == "TimeoutError"
    assert "Execution exceeded" in result.error


def test_cancellation_before_start():
    async def scenario():
        event = asyncio.Event()
        event.set()
        return await execute_hivelang_program(
            _handler('    say "never"'), {}, [], _context(), cancel_event=event
        )

    result = asyncio.run(scenario())
    assert result.error_kind == "CancelledError"
    assert result.steps == ()
    assert result.output == ""


def test_cancellation_during_tool_call():
    async def scenario():
        event = asyncio.Event()
        slow = RecordingTool("slow.tool", delay=5.0)
        asyncio.get_running_loop().call_later(0.02, event.set)
        return await execute_hivelang_program(
            _handler('    say "start"\n    call slow.tool with {}\n    say "never"'),
            {},
            [slow],
            _context(),
            cancel_event=event,
        )

    result = asyncio.run(scenario())
    assert result.error_kind == "CancelledError"
    assert [step.outcome for step in result.steps] == ["ok", "cancelled"]
    assert result.output == "start"


def test_host_metadata_with_camel_case_keys():
    memory = RecordingMemory()
    metadata = ExecutionMetadata.from_dict({"botId": "b-7", "userId": "u-3", "runId": "r-1", "unknown": "x"})
    assert metadata.to_dict()["botId"] == "b-7"
    source = "bot B\n  memory user\n    var name: string\n  end\n  on input\n    say \"hi {name}\"\n  end\nend\n"
    result = run_hivelang_program(source, "hi", [], ExecutionContext(metadata=metadata, shared_memory=memory))
    assert result.run_id == "r-1"
    assert result.output == "hi "
    assert memory.calls == [("get", "user:u-3:name")]


def test_blocking_sync_tool_hits_tool_timeout():
    blocking = BlockingTool("slow.sync", delay=0.5)
    result = _run(
        _handler('    call slow.sync with {}\n    say "never"'),
        {},
        [blocking],
        config=EngineConfig(tool_timeout_seconds=0.05),
    )
    assert result.success is False
    assert result.error_kind == "TimeoutError"
    assert "tool 'slow.sync' timed out" in result.error
    assert result.output == ""
    assert [step.kind for step in result.steps] == ["call"]


def test_blocking_sync_tool_hits_overall_deadline():
    blocking = BlockingTool("slow.sync", delay=0.5)
    config = EngineConfig(tool_timeout_seconds=5.0, execution_timeout_seconds=0.05)
    result = _run(_handler("    call slow.sync with {}"), {}, [blocking], config=config)
    assert result.error_kind == "TimeoutError"
    assert "Execution exceeded" in result.error


def test_cancellation_during_blocking_sync_tool():
    async def scenario():
        event = asyncio.Event()
        asyncio.get_running_loop().call_later(0.02, event.set)
        return await execute_hivelang_program(
            _handler('    call slow.sync with {}\n    say "never"'),
            {},
            [BlockingTool("slow.sync", delay=0.5)],
            _context(),
            cancel_event=event,
        )

    result = asyncio.run(scenario())
    assert result.error_kind == "CancelledError"
    assert [step.outcome for step in result.steps] == ["cancelled"]


def test_blocking_memory_backend_is_bounded():
    memory = BlockingMemory(delay=0.5)
    head = "  memory session\n    var count: number\n  end\n"
    source = f"bot B\n{head}  on input\n    say \"hi\"\n  end\nend\n"
    result = _run(source, memory=memory, config=EngineConfig(tool_timeout_seconds=0.05))
    assert result.error_kind == "TimeoutError"
    assert "memory get 'session:bot-1:count'" in result.error


def test_result_is_detached_from_live_state():
    streamed = []
    result = _run(_handler('    say "a"'), on_step=streamed.append)
    assert isinstance(result.steps, tuple)
    assert result.steps[0] is not streamed[0]
    streamed[0].outcome = "error"
    streamed[0].summary["text"] = "changed"
    assert result.steps[0].outcome == "ok"
    assert result.steps[0].summary == {"text": "[REDACTED]"}
