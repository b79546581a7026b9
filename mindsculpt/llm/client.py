import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from mindsculpt.config import LLMConfig

logger = logging.getLogger(__name__)


def extract_json(text: str) -> Any:
    """Parse JSON from a model reply: bare, inside a code fence, or embedded in prose."""
    raw = (text or "").strip()
    if not raw:
        raise ValueError("Empty LLM response")
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass

    fenced = re.search(r"```(?:json)?\s*(\{.*?\}|\[.*?\])\s*```", raw, re.DOTALL)
    if fenced:
        return json.loads(fenced.group(1))

    match = re.search(r"(\{.*\}|\[.*\])", raw, re.DOTALL)
    if match:
        return json.loads(match.group(1))

    raise ValueError(f"Failed to parse JSON from LLM response: {raw[:200]}")


def _is_html(text: str) -> bool:
    return text.lstrip().startswith("<!DOCTYPE html")


class CompletionProvider(ABC):
    """Request/response text completion used by the classifier and the runtime."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        ...

    async def chat(self, messages: Sequence[Mapping[str, str]]) -> str:
        return await self.complete("\n\n".join(str(message["content"]) for message in messages))


@dataclass
class LLMClient(CompletionProvider):
    config: LLMConfig

    def __post_init__(self) -> None:
        self._client = AsyncOpenAI(
            api_key=self.config.api_key,
            base_url=self.config.base_url,
            timeout=self.config.timeout_s,
        )

    def _response_content(self, response: Any) -> str:
        if isinstance(response, str):
            return response
        if isinstance(response, dict):
            choices = response.get("choices") or []
            if choices:
                message = choices[0].get("message", {}) or {}
                return message.get("content") or ""
            return response.get("output_text") or ""
        choices = getattr(response, "choices", None)
        if choices:
            message = getattr(choices[0], "message", None)
            if message is not None:
                return message.content or ""
        output_text = getattr(response, "output_text", None)
        return output_text or ""

    async def _chat_completion(self, messages: list[dict[str, str]]) -> str:
        logger.debug("Dispatching chat request with %d messages", len(messages))
        response = await self._client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        content = self._response_content(response)
        if _is_html(content):
            raise ValueError(
                "LLM endpoint returned HTML instead of a completion. "
                "Check OPENAI_BASE_URL and OPENAI_API_KEY."
            )
        return content

    async def complete(self, prompt: str) -> str:
        messages = [{"role": "user", "content": prompt}]
        return await self._with_retry(lambda: self._chat_completion(messages))

    async def chat(self, messages: Sequence[Mapping[str, str]]) -> str:
        payload = [{"role": str(m["role"]), "content": str(m["content"])} for m in messages]
        return await self._with_retry(lambda: self._chat_completion(payload))

    async def _with_retry(self, fn: Callable[[], Awaitable[str]]) -> str:
        retries = max(int(self.config.max_retries), 1)
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(retries),
            wait=wait_exponential(min=1, max=4),
            reraise=True,
        ):
            with attempt:
                return await fn()
        raise RuntimeError("Retry loop finished without a result")
