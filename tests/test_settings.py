import logging

from mindsculpt.logging_config import setup_logging
from mindsculpt.settings import build_config


def test_env_defaults(monkeypatch):
    for key in ("MINDSCULPT_LLM_MODEL", "MINDSCULPT_STORAGE_PATH", "MINDSCULPT_PROMPT_MEMORY_LIMIT"):
        monkeypatch.delenv(key, raising=False)
    config = build_config()
    assert config.llm.model == "gpt-4o"
    assert config.llm.max_retries == 2
    assert config.storage.path == "mindsculpt.sqlite"
    assert config.storage.agent_id == "default_agent"
    assert config.prompt.memory_limit == 5


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MINDSCULPT_LLM_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("MINDSCULPT_PROMPT_IMPORTANCE_THRESHOLD", "0.7")
    config = build_config()
    assert config.llm.model == "gpt-4o-mini"
    assert config.prompt.importance_threshold == 0.7


def test_yaml_overlay(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_MINDSCULPT_KEY", "sk-test")
    monkeypatch.delenv("MINDSCULPT_LLM_MODEL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        "llm:\n"
        "  api_key: ${TEST_MINDSCULPT_KEY}\n"
        "  temperature: 0.1\n"
        "storage:\n"
        "  path: ':memory:'\n"
        "  agent_id: aria\n"
        "log_level: DEBUG\n",
        encoding="utf-8",
    )
    config = build_config(str(path))
    assert config.llm.api_key == "sk-test"
    assert config.llm.temperature == 0.1
    assert config.llm.model == "gpt-4o"
    assert config.storage.path == ":memory:"
    assert config.storage.agent_id == "aria"
    assert config.log_level == "DEBUG"


def test_setup_logging_sets_level():
    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING
    setup_logging("INFO")
