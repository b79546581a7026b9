from mindsculpt.personality.models import (
    DEFAULT_PERSONALITY,
    AgentIdentity,
    AgentPersonality,
    CommunicationStyle,
)

__all__ = [
    "AgentIdentity",
    "AgentPersonality",
    "CommunicationStyle",
    "DEFAULT_PERSONALITY",
]
