import asyncio
import logging
import threading

import pytest

from hivelang.engine.control import ExecutionControl
from hivelang.errors import (
    ExecutionCancelledError,
    ExecutionTimeoutError,
    ToolExecutionError,
    UnknownToolError,
)
from hivelang.runtime.context import ExecutionContext
from hivelang.tools import register_after_tool_call, register_before_tool_call
from hivelang.tools.dispatcher import ToolDispatcher
from hivelang.tools.registry import ToolDescriptor, build_registry

from stubs import BlockingTool, RecordingTool


def _dispatcher(*tools, timeout=1.0, control=None, level="info"):
    return ToolDispatcher(
        build_registry(tools),
        ExecutionContext(),
        control or ExecutionControl(),
        timeout_seconds=timeout,
        logging_level=level,
    )


def test_invoke_returns_normalised_result():
    stub = RecordingTool("crm.lookup", output="found", data={"id": 7})
    dispatcher = _dispatcher(stub)
    result = asyncio.run(dispatcher.invoke(dispatcher.require("crm.lookup"), {"email": "a@b.c"}))
    assert result.output == "found"
    assert result.data == {"id": 7}
    assert stub.calls == [{"email": "a@b.c"}]


def test_unknown_tool():
    dispatcher = _dispatcher(RecordingTool("a.b"))
    with pytest.raises(UnknownToolError) as excinfo:
        dispatcher.require("c.d")
    assert "Registered tools: a.b" in excinfo.value.message


def test_failed_result_raises_with_output():
    dispatcher = _dispatcher(RecordingTool("email.send", success=False, output="bad creds"))
    with pytest.raises(ToolExecutionError) as excinfo:
        asyncio.run(dispatcher.invoke(dispatcher.require("email.send"), {}))
    assert excinfo.value.output == "bad creds"
    assert "bad creds" in excinfo.value.describe()


def test_exceptions_are_wrapped():
    dispatcher = _dispatcher(RecordingTool("x.y", raises=RuntimeError("boom")))
    with pytest.raises(ToolExecutionError) as excinfo:
        asyncio.run(dispatcher.invoke(dispatcher.require("x.y"), {}))
    assert "RuntimeError: boom" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_per_call_timeout():
    dispatcher = _dispatcher(RecordingTool("slow.tool", delay=1.0), timeout=0.05)
    with pytest.raises(ExecutionTimeoutError) as excinfo:
        asyncio.run(dispatcher.invoke(dispatcher.require("slow.tool"), {}))
    assert "timed out after 0.05s" in excinfo.value.message


def test_cancellation_interrupts_tool():
    async def scenario():
        event = asyncio.Event()
        control = ExecutionControl(cancel_event=event)
        dispatcher = _dispatcher(RecordingTool("slow.tool", delay=5.0), control=control)
        asyncio.get_running_loop().call_later(0.02, event.set)
        await dispatcher.invoke(dispatcher.require("slow.tool"), {})

    with pytest.raises(ExecutionCancelledError):
        asyncio.run(scenario())


def test_interceptors_and_logging(caplog):
    seen = []
    register_before_tool_call(lambda tool, payload: seen.append(("before", payload["tool"])))
    register_after_tool_call(lambda tool, payload: seen.append(("after", payload["ok"])))
    dispatcher = _dispatcher(RecordingTool("bad.tool", success=False, output="nope"))
    with caplog.at_level(logging.INFO, logger="hivelang.tools"):
        with pytest.raises(ToolExecutionError):
            asyncio.run(dispatcher.invoke(dispatcher.require("bad.tool"), {}))
    assert seen == [("before", "bad.tool"), ("after", False)]
    assert any("Tool bad.tool failed" in record.getMessage() for record in caplog.records)


def test_interceptor_errors_are_ignored():
    def broken(tool, payload):
        raise ValueError("interceptor bug")

    register_before_tool_call(broken)
    dispatcher = _dispatcher(RecordingTool("ok.tool"))
    result = asyncio.run(dispatcher.invoke(dispatcher.require("ok.tool"), {}))
    assert result.success is True


def test_blocking_sync_tool_times_out():
    dispatcher = _dispatcher(BlockingTool("slow.sync", delay=0.5), timeout=0.05)
    with pytest.raises(ExecutionTimeoutError) as excinfo:
        asyncio.run(dispatcher.invoke(dispatcher.require("slow.sync"), {}))
    assert "tool 'slow.sync' timed out after 0.05s" in excinfo.value.message


def test_sync_tools_run_off_the_event_loop():
    loop_threads = []

    def handler(input, context):
        loop_threads.append(threading.get_ident())
        return {"success": True, "output": "ok"}

    async def scenario():
        dispatcher = _dispatcher(ToolDescriptor(name="t.sync", capability="t.sync", handler=handler))
        await dispatcher.invoke(dispatcher.require("t.sync"), {})
        return threading.get_ident()

    loop_thread = asyncio.run(scenario())
    assert loop_threads and loop_threads[0] != loop_thread


def test_descriptor_with_async_handler():
    async def handler(input, context):
        await asyncio.sleep(0)
        return {"success": True, "output": f"hi {input['name']}"}

    dispatcher = _dispatcher(ToolDescriptor(name="t.async", capability="t.async", handler=handler))
    result = asyncio.run(dispatcher.invoke(dispatcher.require("t.async"), {"name": "Ada"}))
    assert result.output == "hi Ada"


def test_tool_cancelling_itself_is_a_tool_error():
    dispatcher = _dispatcher(RecordingTool("odd.tool", raises=asyncio.CancelledError()))
    with pytest.raises(ToolExecutionError) as excinfo:
        asyncio.run(dispatcher.invoke(dispatcher.require("odd.tool"), {}))
    assert "cancelled from inside" in excinfo.value.message
