"""Model capabilities consumed by the engine."""

from __future__ import annotations

from stormweaver.llm.client import ChatMessage, GenerativeModel, OpenAIGenerativeModel
from stormweaver.llm.embeddings import Embedding, EmbeddingModel, OpenAIEmbeddingModel

__all__ = [
    "ChatMessage",
    "Embedding",
    "EmbeddingModel",
    "GenerativeModel",
    "OpenAIEmbeddingModel",
    "OpenAIGenerativeModel",
]
