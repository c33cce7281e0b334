"""Article models.

A section's ``content`` is a list of content blocks. The engine never looks inside a
block: it only needs :func:`content_to_text` for similarity and token checks. Plain
paragraph strings are the default; the tagged blocks below are the rich variant.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Sequence, Union

from pydantic import BaseModel, Field


class TextBlock(BaseModel):
    """A paragraph of text."""

    type: Literal["text"] = "text"
    text: str = Field(description="The text content (paragraph)")

    def __str__(self) -> str:
        return self.text


class ImageBlock(BaseModel):
    """An image placeholder described by its caption."""

    type: Literal["image"] = "image"
    caption: str = Field(description="The caption for the image")

    def __str__(self) -> str:
        return self.caption


class InsightBlock(BaseModel):
    """A highlighted insight."""

    type: Literal["insight"] = "insight"
    title: str = Field(description="The title of the insight")
    content: str = Field(description="The insight content")

    def __str__(self) -> str:
        return f"{self.title}\n{self.content}"


RichBlock = Annotated[Union[TextBlock, ImageBlock, InsightBlock], Field(discriminator="type")]
ContentBlock = Union[str, RichBlock]


def content_to_text(block: Any) -> str:
    """Stringify one content block."""

    if isinstance(block, str):
        return block
    if isinstance(block, BaseModel):
        return str(block)
    return json.dumps(block, ensure_ascii=False)


def join_content(content: Sequence[Any]) -> str:
    """Join the blocks of one section into a single text."""

    return "\n".join(content_to_text(block) for block in content)


class SectionDraft(BaseModel):
    """Structured output requested from the model for one section (paragraph strings)."""

    title: str = Field(description="The title of the article section")
    description: str = Field(description="The description of the article section")
    content: list[str] = Field(description="The content of the section, one paragraph per item")


class RichSectionDraft(BaseModel):
    """Structured output for one section with tagged text/image/insight blocks."""

    title: str = Field(description="The title of the article section")
    description: str = Field(description="The description of the article section")
    content: list[RichBlock] = Field(description="The content blocks of the section")


class ArticleSection(BaseModel):
    """One generated section and its subsections."""

    title: str
    description: str
    content: list[ContentBlock] = Field(default_factory=list)
    children: list[ArticleSection] = Field(default_factory=list)
    token_budget: int | None = None
    # -1 until the budget step has measured the content
    actual_token_count: int = Field(default=-1, ge=-1)

    def without_children(self) -> ArticleSection:
        return self.model_copy(update={"children": []})

    def iter_sections(self):
        """This section and every descendant, pre-order."""
        yield self
        for child in self.children:
            yield from child.iter_sections()


class Article(BaseModel):
    """The generated article."""

    title: str
    description: str
    sections: list[ArticleSection] = Field(default_factory=list)

    def count_sections(self) -> int:
        return sum(1 for section in self.sections for _ in section.iter_sections())

    def total_tokens(self) -> int:
        """Sum of measured token counts over every section; unmeasured sections count as 0."""
        return sum(max(s.actual_token_count, 0) for section in self.sections for s in section.iter_sections())
