"""Outline models.

The outline is the input tree of the section generator: every node carries the guidance
for one section and the token budget of that section's own content.
"""

from __future__ import annotations

from typing import Iterator

from pydantic import AliasChoices, BaseModel, Field

from stormweaver.errors import MalformedOutlineError


class OutlineItem(BaseModel):
    """One node of the outline tree."""

    title: str = Field(description="The title of the article section")
    description: str = Field(description="The description of the article section")
    guidelines: str = Field(default="", description="The guidelines of the article section")
    token_budget: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("token_budget", "tokenBudget"),
        description="The target number of tokens for this section's own content",
    )
    items: list[OutlineItem] = Field(default_factory=list, description="The sub-sections of the article section")

    def prompt_view(self) -> dict:
        """Serializable view used in prompts."""
        return self.model_dump(mode="json")


class Outline(BaseModel):
    """The outline of an article."""

    title: str = Field(description="The title of the article")
    description: str = Field(description="The description of the article")
    items: list[OutlineItem] = Field(default_factory=list, description="The outline of the article")

    def iter_items(self) -> Iterator[OutlineItem]:
        """Walk every node pre-order, depth-first, left to right."""

        stack = list(reversed(self.items))
        while stack:
            item = stack.pop()
            yield item
            stack.extend(reversed(item.items))

    def count_items(self) -> int:
        return sum(1 for _ in self.iter_items())

    def validate_tree(self) -> None:
        """Reject trees where a node is reachable twice.

        Outlines parsed from JSON are always trees; outlines assembled in code can share a
        subtree or contain a cycle, which the recursive generator cannot handle.

        Raises:
            MalformedOutlineError: A node appears more than once.
        """

        seen: set[int] = set()
        stack = list(self.items)
        while stack:
            item = stack.pop()
            if id(item) in seen:
                raise MalformedOutlineError(f"outline node {item.title!r} appears more than once")
            seen.add(id(item))
            stack.extend(item.items)
