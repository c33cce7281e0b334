"""Pipeline orchestration."""

from __future__ import annotations

from stormweaver.orchestrator.pipeline import (
    answer_questions,
    draft_outline,
    generate_answers,
    generate_perspectives,
    generate_questions,
    pair_questions,
    refine_outline,
    storm,
)

__all__ = [
    "answer_questions",
    "draft_outline",
    "generate_answers",
    "generate_perspectives",
    "generate_questions",
    "pair_questions",
    "refine_outline",
    "storm",
]
