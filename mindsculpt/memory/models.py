from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from mindsculpt.utils import to_datetime, to_iso

if TYPE_CHECKING:
    from mindsculpt.llm.classifier import NarrativeClassification

logger = logging.getLogger(__name__)

IMPORTANCE_RANGE = (0.0, 1.0)
EMOTION_RANGE = (-1.0, 1.0)

# Fields a caller may change through update().
MUTABLE_FIELDS = frozenset(
    {
        "text",
        "observation",
        "conversation",
        "context",
        "importance",
        "emotion_score",
        "last_accessed",
        "metadata",
    }
)
# Fields fixed at creation; update() always restores them from the stored record.
FROZEN_FIELDS = frozenset({"id", "glimpse_id", "created_at"})
# Only link() and delete() may change these.
LINK_MANAGED_FIELDS = frozenset({"linked_memories"})

_CONTEXT_FIELDS = ("focus_area", "user_state", "scene_details", "interaction_type")


def _coerce_text(name: str, value: Any) -> str:
    if value is None:
        raise ValueError(f"'{name}' cannot be null")
    return value if isinstance(value, str) else str(value)


def _coerce_score(name: str, value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise ValueError(f"'{name}' must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, OverflowError) as exc:
        raise ValueError(f"'{name}' must be a number, got {value!r}") from exc


@dataclass
class Conversation:
    agent_messages: list[str] = field(default_factory=list)
    user_messages: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "agent_messages": list(self.agent_messages),
            "user_messages": list(self.user_messages),
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any] | None) -> "Conversation":
        data = data or {}
        return cls(
            agent_messages=[str(item) for item in data.get("agent_messages") or []],
            user_messages=[str(item) for item in data.get("user_messages") or []],
        )


@dataclass
class MemoryContext:
    focus_area: str = "general"
    user_state: str = ""
    scene_details: str = ""
    interaction_type: str = "general"
    # Open extension map; flattened next to the named fields in payloads.
    extra: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload = dict(self.extra)
        payload.update(
            {
                "focus_area": self.focus_area,
                "user_state": self.user_state,
                "scene_details": self.scene_details,
                "interaction_type": self.interaction_type,
            }
        )
        return payload

    @classmethod
    def from_payload(cls, data: Mapping[str, Any] | None) -> "MemoryContext":
        data = dict(data or {})
        extra = {key: value for key, value in data.items() if key not in _CONTEXT_FIELDS}
        return cls(
            focus_area=str(data.get("focus_area") or "general"),
            user_state=str(data.get("user_state") or ""),
            scene_details=str(data.get("scene_details") or ""),
            interaction_type=str(data.get("interaction_type") or "general"),
            extra=extra,
        )


@dataclass
class Memory:
    """A remembered interaction. Build new ones through MemoryGraphStore.create."""

    id: str
    glimpse_id: str
    text: str
    created_at: datetime
    observation: str = ""
    conversation: Conversation = field(default_factory=Conversation)
    context: MemoryContext = field(default_factory=MemoryContext)
    importance: float = 0.5
    emotion_score: float = 0.0
    linked_memories: list[str] = field(default_factory=list)
    last_accessed: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "Memory":
        return copy.deepcopy(self)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "glimpse_id": self.glimpse_id,
            "text": self.text,
            "observation": self.observation,
            "conversation": self.conversation.to_payload(),
            "context": self.context.to_payload(),
            "importance": self.importance,
            "emotion_score": self.emotion_score,
            "linked_memories": list(self.linked_memories),
            "created_at": to_iso(self.created_at),
            "metadata": copy.deepcopy(self.metadata),
        }
        if self.last_accessed is not None:
            payload["last_accessed"] = to_iso(self.last_accessed)
        return payload

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "Memory":
        created_at = to_datetime(data["created_at"])
        if created_at is None:
            raise ValueError(f"Memory {data.get('id')!r} has no created_at")
        return cls(
            id=str(data["id"]),
            glimpse_id=str(data["glimpse_id"]),
            text=str(data.get("text") or ""),
            created_at=created_at,
            observation=str(data.get("observation") or ""),
            conversation=Conversation.from_payload(data.get("conversation")),
            context=MemoryContext.from_payload(data.get("context")),
            importance=float(data.get("importance", 0.5)),
            emotion_score=float(data.get("emotion_score", 0.0)),
            linked_memories=[str(item) for item in data.get("linked_memories") or []],
            last_accessed=to_datetime(data.get("last_accessed")),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class MemoryDraft:
    """Caller-supplied partial memory; the store fills in identity and timestamps."""

    text: str
    observation: str = ""
    conversation: Conversation | None = None
    context: MemoryContext = field(default_factory=MemoryContext)
    importance: float = 0.5
    emotion_score: float = 0.0
    linked_memories: list[str] = field(default_factory=list)
    last_accessed: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "MemoryDraft":
        if "text" not in data:
            raise ValueError("A memory draft requires 'text'")
        ignored = FROZEN_FIELDS.intersection(data)
        if ignored:
            logger.debug("Ignoring store-assigned fields in draft: %s", sorted(ignored))
        conversation = data.get("conversation")
        return cls(
            text=_coerce_text("text", data["text"]),
            observation=str(data.get("observation") or ""),
            conversation=Conversation.from_payload(conversation) if conversation else None,
            context=MemoryContext.from_payload(data.get("context")),
            importance=_coerce_score("importance", data.get("importance", 0.5)),
            emotion_score=_coerce_score("emotion_score", data.get("emotion_score", 0.0)),
            linked_memories=[str(item) for item in data.get("linked_memories") or []],
            last_accessed=to_datetime(data.get("last_accessed")),
            metadata=dict(data.get("metadata") or {}),
        )

    @classmethod
    def from_classification(
        cls,
        text: str,
        classification: "NarrativeClassification",
        *,
        conversation: Conversation | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> "MemoryDraft":
        context = MemoryContext(
            focus_area=classification.focus_area,
            user_state=classification.user_state or "",
            scene_details=classification.scene_details or "",
            interaction_type=classification.interaction_type,
        )
        return cls(
            text=text,
            observation=classification.observation,
            conversation=conversation,
            context=context,
            importance=classification.importance,
            emotion_score=classification.emotion_score,
            metadata=dict(metadata or {}),
        )


@dataclass(frozen=True)
class MemoryPatch:
    """Validated set of changes for MemoryGraphStore.update."""

    changes: Mapping[str, Any]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "MemoryPatch":
        unknown = set(data) - MUTABLE_FIELDS - FROZEN_FIELDS - LINK_MANAGED_FIELDS
        if unknown:
            raise ValueError(f"Unknown memory fields: {sorted(unknown)}")
        ignored = (FROZEN_FIELDS | LINK_MANAGED_FIELDS).intersection(data)
        if ignored:
            logger.debug("Ignoring non-updatable memory fields: %s", sorted(ignored))
        return cls({key: value for key, value in data.items() if key in MUTABLE_FIELDS})

    @classmethod
    def of(cls, **changes: Any) -> "MemoryPatch":
        return cls.from_mapping(changes)

    def apply(self, memory: Memory) -> Memory:
        updated = memory.copy()
        for name, value in self.changes.items():
            if name == "conversation":
                value = value if isinstance(value, Conversation) else Conversation.from_payload(value)
            elif name == "context":
                value = value if isinstance(value, MemoryContext) else MemoryContext.from_payload(value)
            elif name == "last_accessed":
                value = to_datetime(value)
            elif name == "metadata":
                value = dict(value or {})
            elif name in ("importance", "emotion_score"):
                value = _coerce_score(name, value)
            else:
                value = _coerce_text(name, value)
            setattr(updated, name, copy.deepcopy(value))
        return updated


class MemoryEventType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LINK = "link"


@dataclass(frozen=True)
class MemoryUpdateEvent:
    type: MemoryEventType
    memory: Memory
    linked_to: list[str] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value, "memory": self.memory.to_payload()}
        if self.linked_to is not None:
            payload["linked_to"] = list(self.linked_to)
        return payload


@dataclass(frozen=True)
class MemoryEdge:
    source: str
    target: str
    weight: float = 1.0


@dataclass
class MemoryGraph:
    nodes: list[Memory]
    edges: list[MemoryEdge]

    def to_payload(self) -> dict[str, Any]:
        return {
            "nodes": [node.to_payload() for node in self.nodes],
            "edges": [
                {"from": edge.source, "to": edge.target, "weight": edge.weight}
                for edge in self.edges
            ],
        }
