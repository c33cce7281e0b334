"""Deduplication step: regenerate a section while it is too close to earlier content."""

from __future__ import annotations

from typing import Any, Sequence

from stormweaver.engine.dedupe import DedupeResult, should_dedupe
from stormweaver.engine.prompting import build_section_prompt
from stormweaver.engine.state import GenerationOptions, GenerationState
from stormweaver.logging import current_step, get_logger, log_exception
from stormweaver.models.article import join_content
from stormweaver.prompts import SIMILAR_PASSAGES_SUFFIX

logger = get_logger(__name__)


def _format_passages(result: DedupeResult) -> str:
    return "\n\n".join(f"- (similarity {p.similarity:.2f}) {p.text}" for p in result.similar)


async def _regenerate(
    options: GenerationOptions, state: GenerationState, result: DedupeResult
) -> list[Any]:
    item = state.current_outline_item
    if item is None:
        raise ValueError("generation state has no current outline item to regenerate")

    prompt = build_section_prompt(options.topic, item, state.last_k(options.k))
    prompt = f"{prompt}\n\n{SIMILAR_PASSAGES_SUFFIX.format(passages=_format_passages(result))}"
    draft = await options.model.generate_object(prompt, options.section_schema)
    return list(draft.content)


async def ensure_unique(
    options: GenerationOptions, state: GenerationState, content: Sequence[Any]
) -> tuple[GenerationState, list[Any]]:
    """Make ``content`` dissimilar enough from everything generated before it.

    Each attempt embeds the joined content once and compares it with the corpus in
    ``state``. Content is regenerated while any stored passage scores at or above the
    threshold, for at most ``max_attempts`` generative calls in total (the initial draft
    included). The last attempt is accepted without a further check. The accepted text and
    its embedding are appended to the corpus of the returned state.

    Embedding failures are logged and the content passes through unrecorded. A failed
    regeneration is logged and the current content is accepted.
    """

    current = list(content)
    embedder = options.embedding_model
    if embedder is None:
        logger.debug("No embedding model configured, skipping dedup")
        return state, current

    attempt = 1
    while True:
        text = join_content(current)
        try:
            embedding = await embedder.embed(text)
        except Exception:
            log_exception(logger, "Embedding failed, keeping content", section=current_step(), attempt=attempt)
            return state, current

        if not state.contents:
            return state.record(text, embedding), current

        result = should_dedupe(embedding, state.contents, state.embeddings, options.dedupe_threshold)
        if not result.should:
            return state.record(text, embedding), current
        if attempt >= options.max_attempts:
            logger.warning(
                "Accepting similar content after max attempts",
                extra={"attempts": attempt, "max_similarity": result.max_similarity},
            )
            return state.record(text, embedding), current

        logger.info(
            "Content too similar to earlier sections, regenerating",
            extra={
                "attempt": attempt,
                "max_attempts": options.max_attempts,
                "max_similarity": round(result.max_similarity, 4),
                "similar_count": len(result.similar),
            },
        )
        try:
            current = await _regenerate(options, state, result)
        except Exception:
            log_exception(logger, "Regeneration failed, keeping current content", section=current_step())
            return state.record(text, embedding), current
        attempt += 1
