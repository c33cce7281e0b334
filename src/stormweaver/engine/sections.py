"""Recursive section generation.

The outline is walked pre-order, depth-first and left to right, one node at a time. Every
call receives a ``GenerationState`` scoped to what that node may see: its ancestors and
earlier siblings as prompt context, and every earlier node as the dedup corpus. Calls
return the new state instead of mutating the one they were given.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

from stormweaver.engine.postprocess import postprocess
from stormweaver.engine.prompting import build_section_prompt
from stormweaver.engine.state import GenerationOptions, GenerationState
from stormweaver.engine.tokens import estimate_content_tokens
from stormweaver.logging import current_run_id, get_logger, run_context, step_context
from stormweaver.models.article import Article, ArticleSection
from stormweaver.models.outline import Outline, OutlineItem

logger = get_logger(__name__)


async def generate_section(
    options: GenerationOptions, state: GenerationState, outline_item: OutlineItem
) -> tuple[ArticleSection, GenerationState]:
    """Generate one section and, recursively, its subsections.

    Args:
        options: Run options.
        state: State scoped to this node's position in the tree.
        outline_item: The node to generate.

    Returns:
        The assembled section (children in outline order) and a state whose ``sections``
        are the input sections plus that section, and whose corpus holds everything
        accepted in this subtree.

    Raises:
        GenerationError: The initial draft of any node could not be generated.
    """

    with step_context(outline_item.title):
        return await _generate_section(options, state, outline_item)


async def _generate_section(
    options: GenerationOptions, state: GenerationState, outline_item: OutlineItem
) -> tuple[ArticleSection, GenerationState]:
    state = state.at(outline_item)
    prompt = build_section_prompt(options.topic, outline_item, state.last_k(options.k))
    draft: Any = await options.model.generate_object(prompt, options.section_schema)

    state, content = await postprocess(options, state, list(draft.content))
    section = ArticleSection(
        title=draft.title,
        description=draft.description,
        content=content,
        token_budget=outline_item.token_budget,
        actual_token_count=estimate_content_tokens(content),
    )
    logger.info(
        "Section generated",
        extra={
            "section": section.title,
            "tokens": section.actual_token_count,
            "token_budget": section.token_budget,
            "children": len(outline_item.items),
        },
    )

    children: list[ArticleSection] = []
    running = state
    for child_item in outline_item.items:
        child_state = running.with_sections([*state.sections, section.without_children(), *children])
        child, child_result = await generate_section(options, child_state, child_item)
        children.append(child)
        running = running.with_corpus_of(child_result)

    assembled = section.model_copy(update={"children": children})
    return assembled, running.with_sections([*state.sections, assembled])


async def generate_article(options: GenerationOptions, outline: Outline, *, run_id: str | None = None) -> Article:
    """Generate the full article for ``outline``.

    Top-level items are generated in order, threading one state through all of them.
    Generation errors propagate and abort the run.

    Raises:
        MalformedOutlineError: The outline is not a tree.
    """

    outline.validate_tree()
    run_id = run_id or current_run_id()
    if run_id == "-":
        run_id = uuid.uuid4().hex[:12]

    with run_context(run_id=run_id, step="article"):
        start = time.monotonic()
        logger.info(
            "Generating article",
            extra={"title": outline.title, "outline_items": outline.count_items(), "k": options.k},
        )

        state = GenerationState(topic=options.topic)
        sections: list[ArticleSection] = []
        for item in outline.items:
            section, state = await generate_section(options, state, item)
            sections.append(section)

        article = Article(title=outline.title, description=outline.description, sections=sections)
        logger.info(
            "Article generated",
            extra={
                "sections": article.count_sections(),
                "tokens": article.total_tokens(),
                "corpus_size": len(state.contents),
                "elapsed_s": round(time.monotonic() - start, 2),
            },
        )
    return article
