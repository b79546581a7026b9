from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

from mindsculpt.memory.models import Memory
from mindsculpt.utils import to_datetime

if TYPE_CHECKING:
    from mindsculpt.personality.models import AgentPersonality


@dataclass(frozen=True)
class SearchCriteria:
    """Optional, AND-combined relevance filters plus a result limit.

    ``memories`` restricts the search to an explicit collection instead of the
    store's live nodes. ``personality`` is only read by the prompt builder,
    which skips its own personality lookup when it is set.
    """

    query: str | None = None
    importance_threshold: float | None = None
    emotion_threshold: float | None = None
    focus_area: str | None = None
    limit: int | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    memories: Sequence[Memory] | None = None
    personality: "AgentPersonality | None" = None

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be zero or positive")
        # Naive bounds are read as UTC so they compare with stored timestamps.
        for name in ("from_date", "to_date"):
            object.__setattr__(self, name, to_datetime(getattr(self, name)))

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "SearchCriteria":
        def _optional_float(key: str) -> float | None:
            value = data.get(key)
            return float(value) if value is not None else None

        limit = data.get("limit")
        return cls(
            query=data.get("query") or None,
            importance_threshold=_optional_float("importance_threshold"),
            emotion_threshold=_optional_float("emotion_threshold"),
            focus_area=data.get("focus_area") or None,
            limit=int(limit) if limit is not None else None,
            from_date=to_datetime(data.get("from_date")),
            to_date=to_datetime(data.get("to_date")),
        )


def _matches_query(memory: Memory, query: str) -> bool:
    return (
        query in memory.text.lower()
        or query in memory.context.focus_area.lower()
        or (bool(memory.observation) and query in memory.observation.lower())
    )


def filter_memories(records: Iterable[Memory], criteria: SearchCriteria) -> list[Memory]:
    """Filter, sort by importance (descending, stable) and truncate ``records``."""
    results = list(records)

    if criteria.query:
        query = criteria.query.lower()
        results = [memory for memory in results if _matches_query(memory, query)]

    if criteria.importance_threshold is not None:
        results = [m for m in results if m.importance >= criteria.importance_threshold]

    # Lower bound on a signed score: strongly negative memories cannot be selected here.
    if criteria.emotion_threshold is not None:
        results = [m for m in results if m.emotion_score >= criteria.emotion_threshold]

    if criteria.focus_area:
        results = [m for m in results if m.context.focus_area == criteria.focus_area]

    if criteria.from_date is not None:
        results = [m for m in results if m.created_at >= criteria.from_date]

    if criteria.to_date is not None:
        results = [m for m in results if m.created_at <= criteria.to_date]

    results.sort(key=lambda memory: memory.importance, reverse=True)

    # A zero limit means unlimited.
    if criteria.limit:
        results = results[: criteria.limit]
    return results
