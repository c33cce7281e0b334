"""Tests for token estimation."""

from __future__ import annotations

from stormweaver.engine.tokens import count_section_tokens, estimate_content_tokens, estimate_token_count
from stormweaver.models.article import ArticleSection, InsightBlock


def test_estimate_empty_text_is_zero() -> None:
    """Empty and whitespace-only text count as zero tokens."""

    assert estimate_token_count("") == 0
    assert estimate_token_count("  \n\t ") == 0


def test_estimate_rounds_up() -> None:
    """Counts are ceil(words * 1.3), with no float drift on exact multiples."""

    assert estimate_token_count("a b c") == 4
    assert estimate_token_count("one") == 2
    assert estimate_token_count(" ".join(["w"] * 10)) == 13
    assert estimate_token_count(" ".join(["w"] * 100)) == 130


def test_estimate_content_joins_blocks() -> None:
    """Blocks are joined with newlines before counting."""

    assert estimate_content_tokens(["a b", "c"]) == estimate_token_count("a b\nc") == 4
    assert estimate_content_tokens([]) == 0


def test_count_section_tokens_ignores_children() -> None:
    """Only the section's own title, description and blocks are counted."""

    child = ArticleSection(title="child title", description="child", content=["x y z"])
    section = ArticleSection(
        title="Intro",
        description="short intro",
        content=["a b c", InsightBlock(title="Note", content="d e")],
        children=[child],
    )
    expected = (
        estimate_token_count("a b c")
        + estimate_token_count("Note\nd e")
        + estimate_token_count("Intro")
        + estimate_token_count("short intro")
    )
    assert count_section_tokens(section) == expected
