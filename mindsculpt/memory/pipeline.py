from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from mindsculpt.errors import MemoryNotFoundError
from mindsculpt.graph.store import MemoryGraphStore
from mindsculpt.llm.classifier import ClassificationService, NarrativeClassification
from mindsculpt.memory.models import Conversation, Memory, MemoryDraft

logger = logging.getLogger(__name__)


@dataclass
class MemoryPipeline:
    """Classifies interactions and records them in the memory store."""

    store: MemoryGraphStore
    classifier: ClassificationService

    async def record_interaction(
        self,
        user_message: str,
        agent_response: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Memory:
        classification = await self.classifier.classify(agent_response, user_message)
        conversation = Conversation(
            agent_messages=[agent_response],
            user_messages=[user_message],
        )
        draft = MemoryDraft.from_classification(
            user_message,
            classification,
            conversation=conversation,
            metadata=metadata,
        )
        memory = await self.store.create(draft)
        return await self._apply_links(memory, classification)

    async def record_text(self, text: str, metadata: Mapping[str, Any] | None = None) -> Memory:
        classification = await self.classifier.classify(text)
        draft = MemoryDraft.from_classification(text, classification, metadata=metadata)
        memory = await self.store.create(draft)
        return await self._apply_links(memory, classification)

    async def _apply_links(self, memory: Memory, classification: NarrativeClassification) -> Memory:
        linked = False
        for target_id in dict.fromkeys(classification.suggested_links):
            if target_id == memory.id:
                continue
            try:
                await self.store.link(memory.id, target_id)
            except MemoryNotFoundError:
                logger.warning("Skipping suggested link from %s to unknown memory %s", memory.id, target_id)
                continue
            linked = True
        if not linked:
            return memory
        refreshed = await self.store.get_all()
        for candidate in refreshed:
            if candidate.id == memory.id:
                return candidate
        return memory
