from __future__ import annotations

import logging
from typing import Any, Mapping

from mindsculpt.config import MindSculptConfig
from mindsculpt.graph.store import MemoryGraphStore
from mindsculpt.llm.classifier import ClassificationService
from mindsculpt.llm.client import CompletionProvider, LLMClient
from mindsculpt.memory.pipeline import MemoryPipeline
from mindsculpt.personality.manager import PersonalityManager
from mindsculpt.prompting.builder import PromptBuilder, as_chat_messages
from mindsculpt.retrieval.search import SearchCriteria
from mindsculpt.storage import (
    InMemoryKeyValueStore,
    KeyValueStore,
    MemorySnapshotStorage,
    PersonalitySnapshotStorage,
    SQLiteKeyValueStore,
)

logger = logging.getLogger(__name__)


def _build_kv(config: MindSculptConfig) -> KeyValueStore:
    if config.storage.path == ":memory:":
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(config.storage.path)


class MindSculptRuntime:
    """One agent's memory, personality and prompt machinery wired from config."""

    def __init__(
        self,
        config: MindSculptConfig,
        completion: CompletionProvider | None = None,
        kv: KeyValueStore | None = None,
    ) -> None:
        self.config = config
        self.kv = kv if kv is not None else _build_kv(config)
        agent_id = config.storage.agent_id
        self.store = MemoryGraphStore(MemorySnapshotStorage(self.kv, agent_id))
        self.personality = PersonalityManager(PersonalitySnapshotStorage(self.kv, agent_id))
        self.completion = completion if completion is not None else LLMClient(config.llm)
        self.classifier = ClassificationService(self.completion)
        self.pipeline = MemoryPipeline(store=self.store, classifier=self.classifier)
        self.prompts = PromptBuilder(
            self.store,
            self.personality,
            default_criteria=SearchCriteria(
                importance_threshold=config.prompt.importance_threshold,
                limit=config.prompt.memory_limit,
            ),
        )
        logger.info("Runtime ready for agent %s (storage=%s)", agent_id, config.storage.path)

    @classmethod
    def from_env(cls) -> "MindSculptRuntime":
        return cls(MindSculptConfig.from_env())

    async def respond(
        self,
        user_message: str,
        context: str = "",
        metadata: Mapping[str, Any] | None = None,
    ) -> str:
        prompt = await self.prompts.build(user_message, context)
        reply = await self.completion.chat(as_chat_messages(prompt))
        await self.pipeline.record_interaction(user_message, reply, metadata)
        return reply

    def close(self) -> None:
        if isinstance(self.kv, SQLiteKeyValueStore):
            self.kv.close()
