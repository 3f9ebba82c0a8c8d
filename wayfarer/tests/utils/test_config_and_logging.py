# wayfarer/tests/utils/test_config_and_logging.py
"""
Tests for config loading, structured logging and the conversation log sinks.
"""
import json
import logging

import pytest

from wayfarer.schemas.runtime import AgentRuntimeConfig
from wayfarer.utils import config as config_module
from wayfarer.utils.log_sinks import (
    ConversationIdFilter,
    JsonlFileHandler,
    conversation_id_context,
)
from wayfarer.utils.logger import StructuredLoggerAdapter, setup_logger


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WAYFARER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("WAYFARER_INTER_TOOL_DELAY", raising=False)
    yield tmp_path
    config_module.reload_config()


def test_missing_config_file_yields_empty_dict(isolated_config):
    assert config_module.reload_config() == {}
    assert AgentRuntimeConfig.from_config(config_module.get_config()) == AgentRuntimeConfig()


def test_config_file_is_read_and_cached(isolated_config):
    (isolated_config / "config.yaml").write_text(
        "agent:\n  inter_tool_delay_s: 0.1\n  conversation_max_age_hours: 2\n"
    )
    cfg = config_module.reload_config()
    assert cfg["agent"]["inter_tool_delay_s"] == 0.1
    assert config_module.get_config() is cfg

    runtime = AgentRuntimeConfig.from_config(cfg)
    assert runtime.inter_tool_delay_s == 0.1
    assert runtime.conversation_max_age_hours == 2
    assert runtime.wait_poll_interval_ms == 100


def test_environment_overrides(isolated_config, monkeypatch):
    (isolated_config / "config.yaml").write_text("logging:\n  level: info\n")
    monkeypatch.setenv("WAYFARER_LOG_LEVEL", "debug")
    monkeypatch.setenv("WAYFARER_INTER_TOOL_DELAY", "0")

    cfg = config_module.reload_config()

    assert cfg["logging"]["level"] == "debug"
    assert cfg["agent"]["inter_tool_delay_s"] == 0.0


def test_bad_env_delay_is_ignored(isolated_config, monkeypatch):
    monkeypatch.setenv("WAYFARER_INTER_TOOL_DELAY", "soon")
    assert "agent" not in config_module.reload_config()


def test_invalid_yaml_yields_empty_dict(isolated_config):
    (isolated_config / "config.yaml").write_text("agent: [unclosed\n")
    assert config_module.reload_config() == {}


def test_setup_logger_returns_structured_adapter():
    logger = setup_logger("wayfarer.tests.sample")
    assert isinstance(logger, StructuredLoggerAdapter)
    assert logger.logger.name == "wayfarer.tests.sample"


def test_adapter_nests_extra():
    adapter = StructuredLoggerAdapter(logging.getLogger("x"), {})
    msg, kwargs = adapter.process("hello", {"extra": {"tool": "click"}})
    assert msg == "hello"
    assert kwargs["extra"] == {"extra_data": {"tool": "click"}}


def test_conversation_id_filter_reads_contextvar():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    token = conversation_id_context.set("conv-42")
    try:
        ConversationIdFilter().filter(record)
    finally:
        conversation_id_context.reset(token)
    assert record.conversation_id == "conv-42"


def test_jsonl_handler_writes_one_file_per_conversation(tmp_path):
    handler = JsonlFileHandler(logs_dir=str(tmp_path / "logs"))
    handler.setFormatter(logging.Formatter('{"message": "%(message)s"}'))

    outside = logging.LogRecord("x", logging.INFO, __file__, 1, "no conversation", None, None)
    handler.handle(outside)

    token = conversation_id_context.set("abc")
    try:
        inside = logging.LogRecord("x", logging.INFO, __file__, 1, "in turn", None, None)
        handler.handle(inside)
    finally:
        conversation_id_context.reset(token)

    files = list((tmp_path / "logs").iterdir())
    assert [f.name for f in files] == ["abc.jsonl"]
    lines = files[0].read_text().splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["in turn"]
