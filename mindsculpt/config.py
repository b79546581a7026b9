import os
from dataclasses import dataclass


def _get_env(key: str, default: str | None = None) -> str | None:
    value = os.getenv(key, default)
    if value is None or value == "":
        return default
    return value


def _get_env_str(key: str, default: str) -> str:
    return _get_env(key, default) or default


def _get_env_int(key: str, default: int) -> int:
    raw = _get_env(key, str(default))
    return int(raw) if raw is not None else default


def _get_env_float(key: str, default: float) -> float:
    raw = _get_env(key, str(default))
    return float(raw) if raw is not None else default


@dataclass(frozen=True)
class LLMConfig:
    model: str = "gpt-4o"
    api_key: str | None = None
    base_url: str | None = None
    timeout_s: int = 30
    max_retries: int = 2
    temperature: float = 0.3
    max_tokens: int = 500

    @classmethod
    def from_env(cls) -> "LLMConfig":
        return cls(
            model=_get_env_str("MINDSCULPT_LLM_MODEL", "gpt-4o"),
            api_key=_get_env("OPENAI_API_KEY"),
            base_url=_get_env("OPENAI_BASE_URL"),
            timeout_s=_get_env_int("MINDSCULPT_LLM_TIMEOUT_S", 30),
            max_retries=_get_env_int("MINDSCULPT_LLM_MAX_RETRIES", 2),
            temperature=_get_env_float("MINDSCULPT_LLM_TEMPERATURE", 0.3),
            max_tokens=_get_env_int("MINDSCULPT_LLM_MAX_TOKENS", 500),
        )


@dataclass(frozen=True)
class StorageConfig:
    path: str = "mindsculpt.sqlite"
    agent_id: str = "default_agent"

    @classmethod
    def from_env(cls) -> "StorageConfig":
        return cls(
            path=_get_env_str("MINDSCULPT_STORAGE_PATH", "mindsculpt.sqlite"),
            agent_id=_get_env_str("MINDSCULPT_AGENT_ID", "default_agent"),
        )


@dataclass(frozen=True)
class PromptConfig:
    importance_threshold: float = 0.5
    memory_limit: int = 5

    @classmethod
    def from_env(cls) -> "PromptConfig":
        return cls(
            importance_threshold=_get_env_float("MINDSCULPT_PROMPT_IMPORTANCE_THRESHOLD", 0.5),
            memory_limit=_get_env_int("MINDSCULPT_PROMPT_MEMORY_LIMIT", 5),
        )


@dataclass(frozen=True)
class MindSculptConfig:
    llm: LLMConfig
    storage: StorageConfig
    prompt: PromptConfig
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "MindSculptConfig":
        return cls(
            llm=LLMConfig.from_env(),
            storage=StorageConfig.from_env(),
            prompt=PromptConfig.from_env(),
            log_level=_get_env_str("MINDSCULPT_LOG_LEVEL", "INFO"),
        )
