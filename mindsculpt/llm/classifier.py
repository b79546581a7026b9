from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from mindsculpt.llm.client import CompletionProvider, extract_json
from mindsculpt.llm.prompts import classification_prompt, similarity_prompt
from mindsculpt.memory.models import EMOTION_RANGE, IMPORTANCE_RANGE
from mindsculpt.utils import clamp, parse_leading_float

logger = logging.getLogger(__name__)

DEFAULT_OBSERVATION = "User and AI engaged in conversation."
DEFAULT_USER_STATE = "Neutral, engaging in conversation"
DEFAULT_SCENE_DETAILS = (
    "The interaction is at an early stage, with no specific context established yet."
)
DEFAULT_FOCUS_AREA = "general"
DEFAULT_INTERACTION_TYPE = "general"
DEFAULT_IMPORTANCE = 0.5
DEFAULT_EMOTION_SCORE = 0.0


@dataclass
class NarrativeClassification:
    observation: str = ""
    importance: float = DEFAULT_IMPORTANCE
    emotion_score: float = DEFAULT_EMOTION_SCORE
    focus_area: str = DEFAULT_FOCUS_AREA
    interaction_type: str = DEFAULT_INTERACTION_TYPE
    suggested_links: list[str] = field(default_factory=list)
    user_state: str | None = None
    scene_details: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "observation": self.observation,
            "user_state": self.user_state,
            "scene_details": self.scene_details,
            "importance": self.importance,
            "emotion_score": self.emotion_score,
            "focus_area": self.focus_area,
            "interaction_type": self.interaction_type,
            "suggested_links": list(self.suggested_links),
        }


def default_classification() -> NarrativeClassification:
    return NarrativeClassification()


class RawDocument:
    """An untrusted JSON object from a model reply.

    Nothing about its shape is assumed: each accessor takes the value only
    when it is usable and otherwise returns the caller's default.
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    @classmethod
    def parse(cls, text: str) -> "RawDocument":
        parsed = extract_json(text)
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
        return cls(parsed)

    def text(self, key: str, default: str) -> str:
        value = self._data.get(key)
        if not value:
            return default
        return value if isinstance(value, str) else str(value)

    def number(self, key: str, default: float) -> float:
        value = self._data.get(key)
        if not value or isinstance(value, bool):
            return default
        if isinstance(value, (int, float)):
            try:
                number = float(value)
            except OverflowError:
                number = math.inf if value > 0 else -math.inf
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                return default
        else:
            return default
        return default if math.isnan(number) else number

    def string_list(self, key: str) -> list[str]:
        value = self._data.get(key)
        if not isinstance(value, list):
            return []
        return [item if isinstance(item, str) else str(item) for item in value]


class ClassificationService:
    """Turns model output about an interaction into a bounded classification.

    The completion provider is untrusted: transport errors, unparseable text
    and out-of-range numbers are all absorbed here, so ``classify`` and
    ``similarity`` never raise.
    """

    def __init__(self, completion: CompletionProvider) -> None:
        self.completion = completion

    async def classify(self, text: str, user_context: str | None = None) -> NarrativeClassification:
        prompt = classification_prompt(text, user_context)
        try:
            response = await self.completion.complete(prompt)
        except Exception as exc:
            logger.warning("Classification request failed; using default classification: %s", exc)
            return default_classification()
        try:
            return self._normalize(RawDocument.parse(response))
        except (ValueError, TypeError, OverflowError, RecursionError) as exc:
            logger.warning("Classification reply unusable; using default classification: %s", exc)
            return default_classification()

    @staticmethod
    def _normalize(document: RawDocument) -> NarrativeClassification:
        return NarrativeClassification(
            observation=document.text("observation", DEFAULT_OBSERVATION),
            user_state=document.text("user_state", DEFAULT_USER_STATE),
            scene_details=document.text("scene_details", DEFAULT_SCENE_DETAILS),
            importance=clamp(document.number("importance", DEFAULT_IMPORTANCE), *IMPORTANCE_RANGE),
            emotion_score=clamp(
                document.number("emotion_score", DEFAULT_EMOTION_SCORE), *EMOTION_RANGE
            ),
            focus_area=document.text("focus_area", DEFAULT_FOCUS_AREA),
            interaction_type=document.text("interaction_type", DEFAULT_INTERACTION_TYPE),
            suggested_links=document.string_list("suggested_links"),
        )

    async def classify_batch(self, texts: Iterable[str]) -> list[NarrativeClassification]:
        results = await asyncio.gather(*(self.classify(text) for text in texts))
        return list(results)

    async def similarity(self, text_a: str, text_b: str) -> float:
        try:
            response = await self.completion.complete(similarity_prompt(text_a, text_b))
        except Exception as exc:
            logger.warning("Similarity request failed; returning 0: %s", exc)
            return 0.0
        value = parse_leading_float(response)
        if value is None:
            logger.warning("Similarity reply is not a number; returning 0: %r", response[:100])
            return 0.0
        return clamp(value, 0.0, 1.0)
