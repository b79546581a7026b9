from mindsculpt.llm.classifier import (
    ClassificationService,
    NarrativeClassification,
    RawDocument,
    default_classification,
)
from mindsculpt.llm.client import CompletionProvider, LLMClient, extract_json

__all__ = [
    "ClassificationService",
    "CompletionProvider",
    "LLMClient",
    "NarrativeClassification",
    "RawDocument",
    "default_classification",
    "extract_json",
]
