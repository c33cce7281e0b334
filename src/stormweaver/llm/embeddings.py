"""Embedding capability and its OpenAI implementation."""

from __future__ import annotations

import asyncio
from typing import Protocol, Sequence

from openai import AsyncOpenAI

from stormweaver.config import Settings
from stormweaver.errors import EmbeddingError
from stormweaver.logging import get_logger

logger = get_logger(__name__)

Embedding = list[float]


class EmbeddingModel(Protocol):
    """Vector embedding of text."""

    async def embed(self, text: str) -> Embedding:
        """Embed one text; raise ``EmbeddingError`` on failure."""

    async def embed_many(self, texts: Sequence[str]) -> list[Embedding]:
        """Embed several texts in one call, preserving order."""


class OpenAIEmbeddingModel:
    """EmbeddingModel backed by the OpenAI embeddings endpoint."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: AsyncOpenAI | None = None,
        max_concurrent: int | None = None,
    ) -> None:
        self._settings = settings
        if client is None:
            if not settings.openai_api_key:
                raise ValueError(
                    "Missing STORMWEAVER_OPENAI_API_KEY. "
                    "Set it in environment variables or a .env file."
                )
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=settings.llm_max_retries,
            )
        self._client = client
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.llm_max_concurrent)

    @property
    def model_id(self) -> str:
        return self._settings.openai_embedding_model

    async def embed(self, text: str) -> Embedding:
        [vector] = await self.embed_many([text])
        return vector

    async def embed_many(self, texts: Sequence[str]) -> list[Embedding]:
        if not texts:
            return []
        # the endpoint rejects empty strings
        inputs = [t if t.strip() else " " for t in texts]
        try:
            async with self._semaphore:
                resp = await self._client.embeddings.create(
                    model=self._settings.openai_embedding_model,
                    input=inputs,
                    timeout=self._settings.openai_timeout_s,
                )
        except Exception as e:
            raise EmbeddingError(f"embedding request failed: {e}") from e

        data = sorted(resp.data, key=lambda d: d.index)
        if len(data) != len(inputs):
            raise EmbeddingError(f"expected {len(inputs)} embeddings, got {len(data)}")
        logger.debug("Embedded texts", extra={"count": len(inputs), "model": self.model_id})
        return [list(d.embedding) for d in data]
