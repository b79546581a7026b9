from __future__ import annotations

import asyncio
import copy
import logging
from numbers import Real
from typing import Any, Mapping

from mindsculpt.errors import PersistenceError, TraitValidationError
from mindsculpt.personality.models import DEFAULT_PERSONALITY, AgentPersonality
from mindsculpt.storage import PersonalityStorageProvider

logger = logging.getLogger(__name__)

_PERSONALITY_FIELDS = frozenset({"agent", "traits", "values", "communication"})
_COMMUNICATION_FIELDS = frozenset({"style", "tone", "patterns"})


def _deep_merge(base: dict[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _check_trait(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TraitValidationError(name, value)
    if not 0.0 <= float(value) <= 1.0:
        raise TraitValidationError(name, value)
    return float(value)


class PersonalityManager:
    """Holds the agent's single personality profile.

    The profile is loaded lazily; when nothing is stored yet the default
    profile is adopted and persisted. Trait writes outside [0, 1] are
    rejected, never clamped.
    """

    def __init__(
        self,
        storage: PersonalityStorageProvider,
        default: AgentPersonality = DEFAULT_PERSONALITY,
    ) -> None:
        self.storage = storage
        self.default = default
        self._personality: AgentPersonality | None = None
        self._load_lock = asyncio.Lock()

    async def _ensure_loaded(self) -> AgentPersonality:
        if self._personality is not None:
            return self._personality
        async with self._load_lock:
            if self._personality is None:
                await self._load()
        return self._personality

    async def _load(self) -> None:
        try:
            stored = await self.storage.load()
        except Exception as exc:
            raise PersistenceError("Failed to load personality") from exc
        if stored is not None:
            self._personality = stored
            return

        logger.info("No stored personality; initialising '%s'", self.default.agent.name)
        self._personality = self.default.copy()
        await self._commit(None)

    async def _commit(self, previous: AgentPersonality | None) -> None:
        try:
            await self.storage.save(self._personality)
        except Exception as exc:
            self._personality = previous
            raise PersistenceError("Failed to save personality; change rolled back") from exc

    async def get(self) -> AgentPersonality:
        return (await self._ensure_loaded()).copy()

    async def update(self, changes: Mapping[str, Any]) -> AgentPersonality:
        """Deep-merge ``changes`` into the profile; the agent id never changes."""
        current = await self._ensure_loaded()
        unknown = set(changes) - _PERSONALITY_FIELDS
        if unknown:
            raise ValueError(f"Unknown personality fields: {sorted(unknown)}")

        merged = _deep_merge(current.to_payload(), changes)
        if not isinstance(merged.get("agent"), dict) or not isinstance(merged.get("traits"), dict):
            raise ValueError("'agent' and 'traits' must be mappings")
        merged["agent"]["id"] = current.agent.id
        merged["traits"] = {
            str(name): _check_trait(str(name), value) for name, value in merged["traits"].items()
        }
        merged["values"] = list(dict.fromkeys(str(item) for item in merged.get("values") or []))
        updated = AgentPersonality.from_payload(merged)

        previous = current.copy()
        self._personality = updated
        await self._commit(previous)
        return updated.copy()

    async def update_trait(self, name: str, value: float) -> AgentPersonality:
        current = await self._ensure_loaded()
        checked = _check_trait(name, value)

        previous = current.copy()
        current.traits[name] = checked
        await self._commit(previous)
        return current.copy()

    async def add_value(self, value: str) -> AgentPersonality:
        current = await self._ensure_loaded()
        if value not in current.values:
            previous = current.copy()
            current.values.append(value)
            await self._commit(previous)
        return current.copy()

    async def remove_value(self, value: str) -> AgentPersonality:
        current = await self._ensure_loaded()
        previous = current.copy()
        current.values = [item for item in current.values if item != value]
        await self._commit(previous)
        return current.copy()

    async def update_communication_style(self, changes: Mapping[str, Any]) -> AgentPersonality:
        current = await self._ensure_loaded()
        unknown = set(changes) - _COMMUNICATION_FIELDS
        if unknown:
            raise ValueError(f"Unknown communication fields: {sorted(unknown)}")

        previous = current.copy()
        communication = current.communication
        if "style" in changes:
            communication.style = str(changes["style"])
        if "tone" in changes:
            communication.tone = str(changes["tone"])
        if "patterns" in changes:
            communication.patterns = [str(item) for item in changes["patterns"] or []]
        await self._commit(previous)
        return current.copy()
