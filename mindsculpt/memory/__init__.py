from mindsculpt.memory.models import (
    Conversation,
    Memory,
    MemoryContext,
    MemoryDraft,
    MemoryEventType,
    MemoryGraph,
    MemoryPatch,
    MemoryUpdateEvent,
)

__all__ = [
    "Conversation",
    "Memory",
    "MemoryContext",
    "MemoryDraft",
    "MemoryEventType",
    "MemoryGraph",
    "MemoryPatch",
    "MemoryUpdateEvent",
]
