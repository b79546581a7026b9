from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass
class AgentIdentity:
    id: str
    name: str
    description: str = ""
    gender: str = ""

    def to_payload(self) -> dict[str, Any]:
        payload = {"id": self.id, "name": self.name, "description": self.description}
        if self.gender:
            payload["gender"] = self.gender
        return payload


@dataclass
class CommunicationStyle:
    style: str = ""
    tone: str = ""
    patterns: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {"style": self.style, "tone": self.tone, "patterns": list(self.patterns)}

    @classmethod
    def from_payload(cls, data: Mapping[str, Any] | None) -> "CommunicationStyle":
        data = data or {}
        return cls(
            style=str(data.get("style") or ""),
            tone=str(data.get("tone") or ""),
            patterns=[str(item) for item in data.get("patterns") or []],
        )


@dataclass
class AgentPersonality:
    agent: AgentIdentity
    traits: dict[str, float] = field(default_factory=dict)
    values: list[str] = field(default_factory=list)
    communication: CommunicationStyle = field(default_factory=CommunicationStyle)

    def copy(self) -> "AgentPersonality":
        return copy.deepcopy(self)

    def to_payload(self) -> dict[str, Any]:
        return {
            "agent": self.agent.to_payload(),
            "traits": dict(self.traits),
            "values": list(self.values),
            "communication": self.communication.to_payload(),
        }

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "AgentPersonality":
        agent = data.get("agent") or {}
        if "id" not in agent:
            raise ValueError("Personality payload requires agent.id")
        return cls(
            agent=AgentIdentity(
                id=str(agent["id"]),
                name=str(agent.get("name") or ""),
                description=str(agent.get("description") or ""),
                gender=str(agent.get("gender") or ""),
            ),
            traits={str(name): float(value) for name, value in (data.get("traits") or {}).items()},
            values=[str(item) for item in data.get("values") or []],
            communication=CommunicationStyle.from_payload(data.get("communication")),
        )


DEFAULT_PERSONALITY = AgentPersonality(
    agent=AgentIdentity(
        id="default_agent",
        name="Aria Frost",
        description=(
            "A graceful and perceptive AI companion with a knack for empathy, "
            "curiosity, and problem-solving."
        ),
        gender="female",
    ),
    traits={"empathy": 0.8, "humor": 0.6, "curiosity": 0.9},
    values=["learning", "emotional_support", "problem_solving"],
    communication=CommunicationStyle(
        style="friendly",
        tone="warm",
        patterns=[
            "asks reflective questions",
            "provides examples",
            "encourages collaboration",
        ],
    ),
)
