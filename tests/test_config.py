from hivelang.config import (
    DEFAULT_AI_TOOLS,
    DEFAULT_EXECUTION_TIMEOUT_SECONDS,
    DEFAULT_TOOL_TIMEOUT_SECONDS,
    EngineConfig,
    load_config,
)


def test_defaults_without_environment():
    config = load_config({})
    assert config == EngineConfig()
    assert config.tool_timeout_seconds == DEFAULT_TOOL_TIMEOUT_SECONDS
    assert config.execution_timeout_seconds == DEFAULT_EXECUTION_TIMEOUT_SECONDS
    assert config.ai_tools == DEFAULT_AI_TOOLS
    assert config.require_single_bot is True
    assert config.synthesize_fallback is False


def test_environment_overrides():
    config = load_config(
        {
            "HIVELANG_TOOL_TIMEOUT_SECONDS": "2.5",
            "HIVELANG_EXECUTION_TIMEOUT_SECONDS": "10",
            "HIVELANG_REQUIRE_SINGLE_BOT": "false",
            "HIVELANG_SYNTHESIZE_FALLBACK": "yes",
            "HIVELANG_AI_TOOLS": "llm.chat, ai.respond",
            "HIVELANG_DEFAULT_MODEL": "small",
            "HIVELANG_TOOL_LOGGING": " DEBUG ",
        }
    )
    assert config.tool_timeout_seconds == 2.5
    assert config.execution_timeout_seconds == 10.0
    assert config.require_single_bot is False
    assert config.synthesize_fallback is True
    assert config.ai_tools == ("llm.chat", "ai.respond")
    assert config.default_model == "small"
    assert config.tool_logging == "debug"


def test_invalid_numbers_fall_back():
    config = load_config({"HIVELANG_TOOL_TIMEOUT_SECONDS": "soon", "HIVELANG_EXECUTION_TIMEOUT_SECONDS": "-1"})
    assert config.tool_timeout_seconds == DEFAULT_TOOL_TIMEOUT_SECONDS
    assert config.execution_timeout_seconds == DEFAULT_EXECUTION_TIMEOUT_SECONDS


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("HIVELANG_DEFAULT_MODEL", "house")
    assert load_config().default_model == "house"
