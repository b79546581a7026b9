from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Protocol, Sequence

from mindsculpt.memory.models import Memory
from mindsculpt.personality.models import AgentPersonality
from mindsculpt.retrieval.search import SearchCriteria
from mindsculpt.utils import format_number

_PLACEHOLDER = re.compile(r"\{(personality|context)\}")


class MemoryProvider(Protocol):
    async def search(self, criteria: SearchCriteria) -> list[Memory]:
        ...


class PersonalityProvider(Protocol):
    async def get(self) -> AgentPersonality:
        ...


@dataclass(frozen=True)
class PromptTemplate:
    system: str
    context: str
    memory_prefix: str
    memory_suffix: str
    personality_prefix: str
    personality_suffix: str


DEFAULT_TEMPLATE = PromptTemplate(
    system=(
        "You are an AI assistant with a persistent memory and personality.\n"
        "1. NEVER greet the user if ANY previous interaction exists in Relevant Memories\n"
        "2. ALWAYS check memories before responding\n"
        "3. If memories contain ANY greeting, respond without new greeting\n"
        "\n"
        "Your Personality:\n"
        "{personality}\n"
        "\n"
        "Current Context:\n"
        "{context}"
    ),
    context="CONVERSATION HISTORY:\n{context}",
    memory_prefix="\nRELEVANT MEMORIES:\n",
    memory_suffix="\nEND MEMORIES\n",
    personality_prefix="\nPERSONALITY TRAITS:\n",
    personality_suffix="",
)

DEFAULT_CRITERIA = SearchCriteria(importance_threshold=0.5, limit=5)


def _substitute(template: str, values: dict[str, str]) -> str:
    """Replace the first occurrence of each placeholder; inserted text is never rescanned."""
    used: set[str] = set()

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in values or name in used:
            return match.group(0)
        used.add(name)
        return values[name]

    return _PLACEHOLDER.sub(_replace, template)


def as_chat_messages(prompt: Sequence[str]) -> list[dict[str, str]]:
    """Map a ``[system, context, user]`` prompt onto chat roles."""
    system, context, user = prompt
    return [
        {"role": "system", "content": system},
        {"role": "system", "content": context},
        {"role": "user", "content": user},
    ]


class PromptBuilder:
    """Assembles the ``[system, context, user]`` prompt from memories and personality."""

    def __init__(
        self,
        memory_provider: MemoryProvider,
        personality_provider: PersonalityProvider,
        template: PromptTemplate = DEFAULT_TEMPLATE,
        default_criteria: SearchCriteria = DEFAULT_CRITERIA,
    ) -> None:
        self.memory_provider = memory_provider
        self.personality_provider = personality_provider
        self.template = template
        self.default_criteria = default_criteria

    @staticmethod
    def format_memory(memory: Memory) -> str:
        date = memory.created_at.astimezone().strftime("%x")
        return (
            f"- {date}: {memory.text} "
            f"(Importance: {format_number(memory.importance)}, "
            f"Emotional: {format_number(memory.emotion_score)})"
        )

    @staticmethod
    def format_personality(personality: AgentPersonality) -> str:
        traits = "\n".join(
            f"- {name}: {format_number(value)}" for name, value in personality.traits.items()
        )
        values = ", ".join(personality.values) if personality.values else "No values defined"
        communication = personality.communication
        lines = [
            f"Name: {personality.agent.name or 'undefined'}",
            f"Description: {personality.agent.description or 'undefined'}",
            "Traits:",
            traits or "No traits defined",
            f"Values: {values}",
            "Communication:",
            f"- Style: {communication.style or 'undefined'}",
            f"- Tone: {communication.tone or 'undefined'}",
            f"- Patterns: {', '.join(communication.patterns) or 'undefined'}",
        ]
        return "\n".join(lines)

    async def build(
        self,
        user_message: str,
        context: str = "",
        criteria: SearchCriteria | None = None,
    ) -> list[str]:
        criteria = criteria or self.default_criteria
        if criteria.personality is not None:
            memories = await self.memory_provider.search(criteria)
            personality = criteria.personality
        else:
            memories, personality = await asyncio.gather(
                self.memory_provider.search(criteria),
                self.personality_provider.get(),
            )

        personality_block = self.format_personality(personality)
        system_message = _substitute(
            self.template.system, {"personality": personality_block, "context": context}
        )

        memories_text = ""
        if memories:
            memories_text = (
                self.template.memory_prefix
                + "\n"
                + "\n".join(self.format_memory(memory) for memory in memories)
                + self.template.memory_suffix
            )
        personality_text = (
            self.template.personality_prefix
            + "\n"
            + personality_block
            + self.template.personality_suffix
        )
        context_message = (
            _substitute(self.template.context, {"context": context})
            + memories_text
            + personality_text
        )
        return [system_message, context_message, user_message]
