"""Hierarchical section-generation engine."""

from __future__ import annotations

from stormweaver.engine.dedupe import DedupeResult, SimilarPassage, cosine_similarity, should_dedupe
from stormweaver.engine.postprocess import POSTPROCESSORS, ensure_budget, ensure_unique, postprocess
from stormweaver.engine.sections import generate_article, generate_section
from stormweaver.engine.state import GenerationOptions, GenerationState
from stormweaver.engine.tokens import count_section_tokens, estimate_content_tokens, estimate_token_count

__all__ = [
    "POSTPROCESSORS",
    "DedupeResult",
    "GenerationOptions",
    "GenerationState",
    "SimilarPassage",
    "cosine_similarity",
    "count_section_tokens",
    "ensure_budget",
    "ensure_unique",
    "estimate_content_tokens",
    "estimate_token_count",
    "generate_article",
    "generate_section",
    "postprocess",
    "should_dedupe",
]
