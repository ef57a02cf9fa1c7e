import logging

from hivelang.observability.logging_utils import redact_event, redact_metadata, redact_prompt
from hivelang.tools.observability import (
    after_tool_call,
    before_tool_call,
    register_after_tool_call,
    register_before_tool_call,
)

from stubs import RecordingTool


def test_prompt_redaction_default():
    assert redact_prompt("secret prompt") == "[REDACTED]"
    assert redact_prompt("") == ""


def test_prompt_redaction_disabled(monkeypatch):
    monkeypatch.setenv("HIVELANG_LOG_REDACT_PROMPTS", "false")
    assert redact_prompt("secret prompt") == "secret prompt"


def test_metadata_redaction():
    redacted = redact_metadata({"email": "user@example.com", "Password": "x", "other": "ok"})
    assert redacted == {"email": "[REDACTED]", "Password": "[REDACTED]", "other": "ok"}


def test_metadata_redaction_disabled(monkeypatch):
    monkeypatch.setenv("HIVELANG_LOG_REDACT_METADATA", "0")
    assert redact_metadata({"token": "abc"}) == {"token": "abc"}


def test_redact_event_combines_prompt_and_metadata(monkeypatch):
    event = {"prompt": "hello", "args": {"token": "abc", "x": "y"}, "count": 3}
    cleaned = redact_event(event)
    assert cleaned == {"prompt": "[REDACTED]", "args": {"token": "[REDACTED]", "x": "y"}, "count": 3}
    assert event["args"]["token"] == "abc"
    monkeypatch.setenv("HIVELANG_LOG_REDACT_PROMPTS", "false")
    assert redact_event(event)["prompt"] == "hello"


def test_debug_tool_logging_redacts_args(caplog):
    tool = RecordingTool("email.send")
    with caplog.at_level(logging.DEBUG, logger="hivelang.tools"):
        before_tool_call(tool, {"tool": "email.send", "run_id": "r1", "args": {"to": "a@b.c", "subject": "hi"}}, "debug")
    message = caplog.records[0].getMessage()
    assert "email.send" in message and "[REDACTED]" in message
    assert "a@b.c" not in message


def test_info_tool_logging_warns_on_failure(caplog):
    tool = RecordingTool("email.send")
    with caplog.at_level(logging.INFO, logger="hivelang.tools"):
        before_tool_call(tool, {"tool": "email.send", "run_id": "r1", "args": {}}, "info")
        after_tool_call(tool, {"tool": "email.send", "ok": False, "error": "bad creds"}, "info")
    assert [record.levelno for record in caplog.records] == [logging.INFO, logging.WARNING]
    assert "bad creds" in caplog.records[-1].getMessage()


def test_quiet_tool_logging_only_reports_failures(caplog):
    tool = RecordingTool("crm.lookup")
    with caplog.at_level(logging.DEBUG, logger="hivelang.tools"):
        before_tool_call(tool, {"tool": "crm.lookup", "args": {"id": 1}}, "quiet")
        after_tool_call(tool, {"tool": "crm.lookup", "ok": True}, "quiet")
    assert caplog.records == []
    with caplog.at_level(logging.DEBUG, logger="hivelang.tools"):
        after_tool_call(tool, {"tool": "crm.lookup", "ok": False, "error": "down"}, "quiet")
    assert caplog.records[-1].levelno == logging.ERROR


def test_interceptors_see_calls():
    seen = []
    register_before_tool_call(lambda tool, request: seen.append(("before", tool.name, request["args"])))
    register_after_tool_call(lambda tool, response: seen.append(("after", tool.name, response["ok"])))
    tool = RecordingTool("crm.lookup")
    before_tool_call(tool, {"tool": "crm.lookup", "args": {"id": 1}}, "quiet")
    after_tool_call(tool, {"tool": "crm.lookup", "ok": True}, "quiet")
    assert seen == [("before", "crm.lookup", {"id": 1}), ("after", "crm.lookup", True)]
