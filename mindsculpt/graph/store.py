from __future__ import annotations

import asyncio
import copy
import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Union

from mindsculpt.errors import MemoryNotFoundError, PersistenceError
from mindsculpt.memory.models import (
    EMOTION_RANGE,
    IMPORTANCE_RANGE,
    Conversation,
    Memory,
    MemoryDraft,
    MemoryEdge,
    MemoryEventType,
    MemoryGraph,
    MemoryPatch,
    MemoryUpdateEvent,
)
from mindsculpt.retrieval.search import SearchCriteria, filter_memories
from mindsculpt.storage import MemoryStorageProvider
from mindsculpt.utils import clamp, generate_glimpse_id, generate_memory_id, utc_now

logger = logging.getLogger(__name__)

MemoryListener = Callable[[MemoryUpdateEvent], Union[None, Awaitable[None]]]


class MemoryGraphStore:
    """Owns memory records and the symmetric link relation between them.

    Every mutation writes the full node collection to ``storage`` before it
    returns. If that write fails the in-memory state is restored to what it
    was before the call and :class:`PersistenceError` is raised.

    The store does no locking: callers serialize mutating calls themselves.
    Records handed out are copies, so the store API is the only way to
    change what is stored.
    """

    def __init__(self, storage: MemoryStorageProvider) -> None:
        self.storage = storage
        self._memories: dict[str, Memory] = {}
        self._listeners: list[MemoryListener] = []
        self._loaded = False
        self._load_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def load(self) -> None:
        """Read the stored snapshot once; concurrent and later calls reuse it."""
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            try:
                memories = await self.storage.load()
            except Exception as exc:
                raise PersistenceError("Failed to load memories") from exc
            self._memories = {memory.id: memory for memory in memories}
            self._loaded = True
        logger.info("Loaded %d memories", len(self._memories))

    async def flush(self) -> None:
        await self._ensure_loaded()
        await self._commit(self._snapshot())

    async def _ensure_loaded(self) -> None:
        if not self._loaded:
            await self.load()

    def _snapshot(self) -> dict[str, Memory]:
        return {memory_id: memory.copy() for memory_id, memory in self._memories.items()}

    async def _commit(self, previous: dict[str, Memory]) -> None:
        try:
            await self.storage.save(list(self._memories.values()))
        except Exception as exc:
            self._memories = previous
            raise PersistenceError("Failed to save memories; change rolled back") from exc

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def subscribe(self, listener: MemoryListener) -> Callable[[], None]:
        """Register ``listener`` for memory update events; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def _emit(
        self, event_type: MemoryEventType, memory: Memory, linked_to: list[str] | None = None
    ) -> None:
        event = MemoryUpdateEvent(type=event_type, memory=memory.copy(), linked_to=linked_to)
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Memory listener failed on %s event", event_type.value)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def _new_id(self) -> str:
        memory_id = generate_memory_id()
        while memory_id in self._memories:
            memory_id = generate_memory_id()
        return memory_id

    def _new_glimpse_id(self) -> str:
        taken = {memory.glimpse_id for memory in self._memories.values()}
        glimpse_id = generate_glimpse_id()
        while glimpse_id in taken:
            glimpse_id = generate_glimpse_id()
        return glimpse_id

    def _require(self, memory_id: str) -> Memory:
        memory = self._memories.get(memory_id)
        if memory is None:
            raise MemoryNotFoundError(memory_id)
        return memory

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def create(self, draft: MemoryDraft | Mapping[str, Any]) -> Memory:
        await self._ensure_loaded()
        if not isinstance(draft, MemoryDraft):
            draft = MemoryDraft.from_payload(draft)
        source = copy.deepcopy(draft)

        memory = Memory(
            id=self._new_id(),
            glimpse_id=self._new_glimpse_id(),
            text=source.text,
            created_at=utc_now(),
            observation=source.observation or "",
            conversation=source.conversation or Conversation(),
            context=source.context,
            importance=clamp(source.importance, *IMPORTANCE_RANGE),
            emotion_score=clamp(source.emotion_score, *EMOTION_RANGE),
            last_accessed=source.last_accessed,
            metadata=source.metadata,
        )

        previous = self._snapshot()
        self._memories[memory.id] = memory
        for target_id in dict.fromkeys(source.linked_memories):
            target = self._memories.get(target_id)
            if target is None or target_id == memory.id:
                logger.warning("Dropping link from new memory %s to unknown id %s", memory.id, target_id)
                continue
            memory.linked_memories.append(target_id)
            if memory.id not in target.linked_memories:
                target.linked_memories.append(memory.id)
        await self._commit(previous)

        logger.debug("Created memory %s (%s)", memory.id, memory.glimpse_id)
        await self._emit(MemoryEventType.CREATE, memory)
        return memory.copy()

    async def update(self, memory_id: str, patch: MemoryPatch | Mapping[str, Any]) -> Memory:
        await self._ensure_loaded()
        if not isinstance(patch, MemoryPatch):
            patch = MemoryPatch.from_mapping(patch)
        existing = self._require(memory_id)

        updated = patch.apply(existing)
        updated.importance = clamp(updated.importance, *IMPORTANCE_RANGE)
        updated.emotion_score = clamp(updated.emotion_score, *EMOTION_RANGE)

        previous = self._snapshot()
        self._memories[memory_id] = updated
        await self._commit(previous)

        await self._emit(MemoryEventType.UPDATE, updated)
        return updated.copy()

    async def delete(self, memory_id: str) -> None:
        await self._ensure_loaded()
        removed = self._require(memory_id)

        previous = self._snapshot()
        del self._memories[memory_id]
        for memory in self._memories.values():
            if memory_id in memory.linked_memories:
                memory.linked_memories = [
                    link_id for link_id in memory.linked_memories if link_id != memory_id
                ]
        await self._commit(previous)

        await self._emit(MemoryEventType.DELETE, removed)

    async def link(self, source_id: str, target_id: str) -> None:
        await self._ensure_loaded()
        source = self._require(source_id)
        target = self._require(target_id)
        if source_id == target_id:
            raise ValueError(f"Memory {source_id} cannot link to itself")

        previous = self._snapshot()
        if target_id not in source.linked_memories:
            source.linked_memories.append(target_id)
        if source_id not in target.linked_memories:
            target.linked_memories.append(source_id)
        await self._commit(previous)

        await self._emit(MemoryEventType.LINK, self._memories[source_id], linked_to=[target_id])

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def get(self, memory_id: str) -> Memory | None:
        """Return the memory or ``None``; a hit records and persists the access time."""
        await self._ensure_loaded()
        memory = self._memories.get(memory_id)
        if memory is None:
            return None

        previous = self._snapshot()
        memory.last_accessed = utc_now()
        await self._commit(previous)
        return self._memories[memory_id].copy()

    async def get_all(self) -> list[Memory]:
        await self._ensure_loaded()
        return [memory.copy() for memory in self._memories.values()]

    async def search(self, criteria: SearchCriteria | None = None) -> list[Memory]:
        await self._ensure_loaded()
        criteria = criteria or SearchCriteria()
        records = criteria.memories if criteria.memories is not None else self._memories.values()
        return [memory.copy() for memory in filter_memories(records, criteria)]

    async def graph(self) -> MemoryGraph:
        await self._ensure_loaded()
        edges: list[MemoryEdge] = []
        seen: set[frozenset[str]] = set()
        for memory in self._memories.values():
            for linked_id in memory.linked_memories:
                pair = frozenset((memory.id, linked_id))
                if pair in seen:
                    continue
                seen.add(pair)
                edges.append(MemoryEdge(source=memory.id, target=linked_id))
        return MemoryGraph(nodes=await self.get_all(), edges=edges)
