"""Pydantic models used across the project."""

from __future__ import annotations

from stormweaver.models.article import (
    Article,
    ArticleSection,
    ContentBlock,
    ImageBlock,
    InsightBlock,
    RichSectionDraft,
    SectionDraft,
    TextBlock,
    content_to_text,
    join_content,
)
from stormweaver.models.outline import Outline, OutlineItem
from stormweaver.models.research import (
    Answer,
    Answers,
    Perspective,
    PerspectiveQuestions,
    Perspectives,
    QAPair,
    Question,
    Questions,
    StormResult,
)
from stormweaver.models.search import ParsedDocument, SearchResult

__all__ = [
    "Answer",
    "Answers",
    "Article",
    "ArticleSection",
    "ContentBlock",
    "ImageBlock",
    "InsightBlock",
    "Outline",
    "OutlineItem",
    "Perspective",
    "ParsedDocument",
    "PerspectiveQuestions",
    "Perspectives",
    "QAPair",
    "Question",
    "Questions",
    "RichSectionDraft",
    "SearchResult",
    "SectionDraft",
    "StormResult",
    "TextBlock",
    "content_to_text",
    "join_content",
]
