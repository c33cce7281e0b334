"""Semantic near-duplicate detection over embedding vectors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

DEFAULT_DEDUPE_THRESHOLD = 0.85


@dataclass(frozen=True)
class SimilarPassage:
    text: str
    similarity: float


@dataclass(frozen=True)
class DedupeResult:
    """Outcome of a similarity check against the existing corpus."""

    similar: list[SimilarPassage] = field(default_factory=list)

    @property
    def should(self) -> bool:
        return bool(self.similar)

    @property
    def max_similarity(self) -> float:
        return max((p.similarity for p in self.similar), default=0.0)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors; 0.0 when either has zero norm."""

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise ValueError(f"vector dimensions differ: {va.shape} vs {vb.shape}")
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def similarities(candidate: Sequence[float], existing: Sequence[Sequence[float]]) -> list[float]:
    """Cosine similarity of ``candidate`` against every row of ``existing``."""

    if not existing:
        return []
    matrix = np.asarray(existing, dtype=float)
    vec = np.asarray(candidate, dtype=float)
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(vec)
    dots = matrix @ vec
    with np.errstate(divide="ignore", invalid="ignore"):
        sims = np.where(norms > 0, dots / norms, 0.0)
    return [float(s) for s in sims]


def should_dedupe(
    candidate_embedding: Sequence[float],
    existing: Sequence[str],
    existing_embeddings: Sequence[Sequence[float]],
    threshold: float = DEFAULT_DEDUPE_THRESHOLD,
) -> DedupeResult:
    """Decide whether a candidate is too similar to any existing passage.

    ``existing`` and ``existing_embeddings`` are index-aligned. A passage is flagged when
    its similarity is greater than or equal to ``threshold``.
    """

    if len(existing) != len(existing_embeddings):
        raise ValueError("existing passages and embeddings are not aligned")

    scores = similarities(candidate_embedding, existing_embeddings)
    similar = [
        SimilarPassage(text=text, similarity=score)
        for text, score in zip(existing, scores)
        if score >= threshold
    ]
    similar.sort(key=lambda p: p.similarity, reverse=True)
    return DedupeResult(similar=similar)
