"""Run options and the generation state threaded through the section walk.

``GenerationState`` is a frozen value. Every update returns a new state, so a state handed
to one branch of the recursion can never be changed by another branch; callers fold the
returned state back in explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Sequence

from pydantic import BaseModel

from stormweaver.config import Settings
from stormweaver.engine.dedupe import DEFAULT_DEDUPE_THRESHOLD
from stormweaver.llm.client import GenerativeModel
from stormweaver.llm.embeddings import Embedding, EmbeddingModel
from stormweaver.models.article import ArticleSection, SectionDraft
from stormweaver.models.outline import Outline, OutlineItem


@dataclass(frozen=True)
class GenerationOptions:
    """Immutable options for one run."""

    model: GenerativeModel
    topic: str
    embedding_model: EmbeddingModel | None = None
    outline: Outline | None = None

    k: int = 3
    dedupe_threshold: float = DEFAULT_DEDUPE_THRESHOLD
    max_attempts: int = 3
    max_steps: int = 10
    token_tolerance: float = 0.1
    use_research_tools: bool = False

    # structured output for one section; swap in RichSectionDraft for tagged blocks
    section_schema: type[BaseModel] = SectionDraft

    def __post_init__(self) -> None:
        if self.k < 1:
            raise ValueError("k must be >= 1")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.max_steps < 1:
            raise ValueError("max_steps must be >= 1")
        if not 0.0 < self.dedupe_threshold <= 1.0:
            raise ValueError("dedupe_threshold must be in (0, 1]")
        if not 0.0 <= self.token_tolerance < 1.0:
            raise ValueError("token_tolerance must be in [0, 1)")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        model: GenerativeModel,
        topic: str,
        embedding_model: EmbeddingModel | None = None,
        **overrides: Any,
    ) -> GenerationOptions:
        """Build options with defaults taken from settings."""

        values: dict[str, Any] = {
            "k": settings.context_k,
            "dedupe_threshold": settings.dedupe_threshold,
            "max_attempts": settings.max_attempts,
            "max_steps": settings.max_steps,
            "token_tolerance": settings.token_tolerance,
            "use_research_tools": settings.use_research_tools,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(model=model, topic=topic, embedding_model=embedding_model, **values)


@dataclass(frozen=True)
class GenerationState:
    """What the generator may see at one position of the tree walk.

    Attributes:
        topic: The article topic, fixed for the run.
        current_outline_item: The node being generated.
        sections: Completed sections visible as context (ancestors and earlier siblings).
        contents: Joined text of every accepted section, in generation order.
        embeddings: Embeddings index-aligned with ``contents``.
    """

    topic: str
    current_outline_item: OutlineItem | None = None
    sections: tuple[ArticleSection, ...] = ()
    contents: tuple[str, ...] = ()
    embeddings: tuple[Embedding, ...] = field(default=(), repr=False)

    def __post_init__(self) -> None:
        if len(self.contents) != len(self.embeddings):
            raise ValueError("contents and embeddings must stay index-aligned")

    def last_k(self, k: int) -> tuple[ArticleSection, ...]:
        return self.sections[-k:] if k > 0 else ()

    def at(self, outline_item: OutlineItem) -> GenerationState:
        return replace(self, current_outline_item=outline_item)

    def with_sections(self, sections: Sequence[ArticleSection]) -> GenerationState:
        return replace(self, sections=tuple(sections))

    def append_section(self, section: ArticleSection) -> GenerationState:
        return replace(self, sections=self.sections + (section,))

    def record(self, text: str, embedding: Embedding) -> GenerationState:
        """Add one accepted passage and its embedding to the dedup corpus."""

        return replace(
            self,
            contents=self.contents + (text,),
            embeddings=self.embeddings + (embedding,),
        )

    def with_corpus_of(self, other: GenerationState) -> GenerationState:
        """Take the dedup corpus of ``other`` (which extends this one)."""

        return replace(self, contents=other.contents, embeddings=other.embeddings)
