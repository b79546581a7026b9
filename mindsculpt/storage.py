"""Snapshot persistence over a namespaced key-value byte medium.

Memories are stored as one JSON array and the personality as one JSON object,
each under an agent-scoped key. Every save replaces the whole value.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

from mindsculpt.memory.models import Memory
from mindsculpt.personality.models import AgentPersonality

logger = logging.getLogger(__name__)

MEMORY_KEY_PREFIX = "mindsculpt_memories_"
PERSONALITY_KEY_PREFIX = "mindsculpt_personality_"


class KeyValueStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        ...


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    data: dict[str, bytes] = field(default_factory=dict)

    async def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.data[key] = bytes(value)


class SQLiteKeyValueStore(KeyValueStore):
    """Single-table SQLite medium; blocking calls run in a worker thread."""

    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._lock = threading.Lock()
        with self._lock:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS snapshots ("
                "key TEXT PRIMARY KEY, "
                "value BLOB NOT NULL, "
                "updated_at TEXT NOT NULL"
                ")"
            )
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _get_sync(self, key: str) -> bytes | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM snapshots WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return bytes(row[0])

    def _set_sync(self, key: str, value: bytes) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO snapshots (key, value, updated_at) VALUES (?, ?, ?)",
                (key, sqlite3.Binary(value), now),
            )
            self._conn.commit()

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._set_sync, key, value)


class MemoryStorageProvider(ABC):
    @abstractmethod
    async def load(self) -> list[Memory]:
        ...

    @abstractmethod
    async def save(self, memories: Sequence[Memory]) -> None:
        ...


class PersonalityStorageProvider(ABC):
    @abstractmethod
    async def load(self) -> AgentPersonality | None:
        ...

    @abstractmethod
    async def save(self, personality: AgentPersonality) -> None:
        ...


@dataclass
class MemorySnapshotStorage(MemoryStorageProvider):
    kv: KeyValueStore
    agent_id: str = "default_agent"

    @property
    def key(self) -> str:
        return f"{MEMORY_KEY_PREFIX}{self.agent_id}"

    async def load(self) -> list[Memory]:
        raw = await self.kv.get(self.key)
        if raw is None:
            return []
        payload = json.loads(raw.decode("utf-8"))
        if not isinstance(payload, list):
            raise ValueError(f"Snapshot under {self.key} is not a JSON array")
        return [Memory.from_payload(item) for item in payload]

    async def save(self, memories: Sequence[Memory]) -> None:
        data = json.dumps([memory.to_payload() for memory in memories], ensure_ascii=False)
        logger.debug("Saving %d memories under %s", len(memories), self.key)
        await self.kv.set(self.key, data.encode("utf-8"))


@dataclass
class PersonalitySnapshotStorage(PersonalityStorageProvider):
    kv: KeyValueStore
    agent_id: str = "default_agent"

    @property
    def key(self) -> str:
        return f"{PERSONALITY_KEY_PREFIX}{self.agent_id}"

    async def load(self) -> AgentPersonality | None:
        raw = await self.kv.get(self.key)
        if raw is None:
            return None
        payload = json.loads(raw.decode("utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Snapshot under {self.key} is not a JSON object")
        return AgentPersonality.from_payload(payload)

    async def save(self, personality: AgentPersonality) -> None:
        data = json.dumps(personality.to_payload(), ensure_ascii=False)
        logger.debug("Saving personality under %s", self.key)
        await self.kv.set(self.key, data.encode("utf-8"))
