import asyncio
from typing import Any, Callable, Mapping, Sequence, Union

import pytest

from mindsculpt.graph.store import MemoryGraphStore
from mindsculpt.llm.client import CompletionProvider
from mindsculpt.personality.manager import PersonalityManager
from mindsculpt.storage import (
    InMemoryKeyValueStore,
    MemorySnapshotStorage,
    PersonalitySnapshotStorage,
)

Reply = Union[str, Callable[[str], str]]


class FakeCompletion(CompletionProvider):
    def __init__(self, reply: Reply = "", chat_reply: str = "Nice to see you.", error: Exception | None = None):
        self.reply = reply
        self.chat_reply = chat_reply
        self.error = error
        self.prompts: list[str] = []
        self.chats: list[list[dict[str, str]]] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply(prompt) if callable(self.reply) else self.reply

    async def chat(self, messages: Sequence[Mapping[str, str]]) -> str:
        self.chats.append([dict(message) for message in messages])
        return self.chat_reply


class FlakyKeyValueStore(InMemoryKeyValueStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    async def set(self, key: str, value: bytes) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        await super().set(key, value)


def run(coro: Any) -> Any:
    return asyncio.run(coro)


@pytest.fixture
def kv():
    return FlakyKeyValueStore()


@pytest.fixture
def store(kv):
    return MemoryGraphStore(MemorySnapshotStorage(kv, "test_agent"))


@pytest.fixture
def personality(kv):
    return PersonalityManager(PersonalitySnapshotStorage(kv, "test_agent"))
