"""Token estimation.

A cheap word-count approximation: ``ceil(words * 1.3)``. It is deterministic and needs no
tokenizer, and is only ever compared against budgets with a tolerance band.
"""

from __future__ import annotations

from typing import Any, Sequence

from stormweaver.models.article import ArticleSection, content_to_text, join_content

# 1.3 tokens per word, kept as a fraction so the ceiling is exact
_TOKENS_NUM = 13
_TOKENS_DEN = 10


def estimate_token_count(text: str) -> int:
    """Approximate the token count of ``text``."""

    if not text or not text.strip():
        return 0
    words = len(text.split())
    return -(-words * _TOKENS_NUM // _TOKENS_DEN)


def estimate_content_tokens(content: Sequence[Any]) -> int:
    """Approximate the token count of a section's joined content blocks."""

    return estimate_token_count(join_content(content))


def count_section_tokens(section: ArticleSection) -> int:
    """Tokens of a section's own title, description and blocks, excluding children."""

    total = sum(estimate_token_count(content_to_text(block)) for block in section.content)
    total += estimate_token_count(section.title)
    total += estimate_token_count(section.description)
    return total
