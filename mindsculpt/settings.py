import os
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from mindsculpt.config import MindSculptConfig


def _load_yaml(path: str) -> dict[str, Any]:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Config YAML must be a mapping")
    return data


def _overlay(base, updates: dict[str, Any], keys: list[str]):
    values = {}
    for key in keys:
        if key in updates:
            values[key] = _resolve_value(updates[key])
    return replace(base, **values) if values else base


def _resolve_value(value: Any) -> Any:
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            env_key = value[2:-1]
            return os.getenv(env_key, "")
        if value.startswith("$"):
            env_key = value[1:]
            return os.getenv(env_key, "")
    return value


def build_config(config_path: str | None = None) -> MindSculptConfig:
    """Load configuration from the environment, overlaid by an optional YAML file."""
    env_config = MindSculptConfig.from_env()
    if not config_path:
        return env_config

    raw = _load_yaml(config_path)
    llm = _overlay(
        env_config.llm,
        raw.get("llm", {}),
        ["model", "api_key", "base_url", "timeout_s", "max_retries", "temperature", "max_tokens"],
    )
    storage = _overlay(env_config.storage, raw.get("storage", {}), ["path", "agent_id"])
    prompt = _overlay(
        env_config.prompt, raw.get("prompt", {}), ["importance_threshold", "memory_limit"]
    )
    log_level = _resolve_value(raw.get("log_level", env_config.log_level))
    return MindSculptConfig(llm=llm, storage=storage, prompt=prompt, log_level=log_level)
