"""Token-budget step: expand or condense a section toward its budget."""

from __future__ import annotations

import re
from typing import Any, Sequence

from stormweaver.engine.state import GenerationOptions, GenerationState
from stormweaver.engine.tokens import estimate_token_count
from stormweaver.logging import current_step, get_logger, log_exception
from stormweaver.models.article import join_content
from stormweaver.prompts import CONDENSE_PROMPT, CONDENSE_SYSTEM_PROMPT, EXPAND_PROMPT, EXPAND_SYSTEM_PROMPT
from stormweaver.utils.tags import strip_code_fence

logger = get_logger(__name__)

_BLANK_LINE_RE = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> list[str]:
    """Split model output into blocks on blank lines, falling back to single newlines."""

    body = strip_code_fence(text or "")
    paragraphs = [p.strip() for p in _BLANK_LINE_RE.split(body) if p.strip()]
    if len(paragraphs) > 1:
        return paragraphs
    return [line.strip() for line in body.splitlines() if line.strip()]


async def ensure_budget(
    options: GenerationOptions,
    state: GenerationState,
    content: Sequence[Any],
    token_budget: int | None = None,
    *,
    skip_adjustment: bool = False,
) -> tuple[GenerationState, list[Any]]:
    """Bring ``content`` within ``token_tolerance`` of its budget.

    The budget defaults to the one on ``state.current_outline_item``. Without a budget the
    content is returned unchanged. Content below the tolerance band is expanded and content
    above it condensed, with a single free-text call. An empty answer or a failed call
    keeps the original content.

    Args:
        options: Run options.
        state: Current generation state; returned unchanged.
        content: Content blocks of the section.
        token_budget: Explicit budget, overriding the outline item's.
        skip_adjustment: Only measure and log, never call the model.
    """

    current = list(content)
    if token_budget is None and state.current_outline_item is not None:
        token_budget = state.current_outline_item.token_budget
    if token_budget is None:
        return state, current

    text = join_content(current)
    current_tokens = estimate_token_count(text)
    tolerance = options.token_tolerance * token_budget
    if token_budget - tolerance <= current_tokens <= token_budget + tolerance:
        logger.debug(
            "Section within token budget",
            extra={"tokens": current_tokens, "token_budget": token_budget},
        )
        return state, current

    expand = current_tokens < token_budget - tolerance
    action = "expand" if expand else "condense"
    if skip_adjustment:
        logger.info(
            "Section outside token budget, adjustment skipped",
            extra={"tokens": current_tokens, "token_budget": token_budget, "action": action},
        )
        return state, current

    template, system = (EXPAND_PROMPT, EXPAND_SYSTEM_PROMPT) if expand else (CONDENSE_PROMPT, CONDENSE_SYSTEM_PROMPT)
    prompt = template.format(target_tokens=token_budget, current_tokens=current_tokens, content=text)
    try:
        adjusted = await options.model.generate_text(prompt, system=system)
    except Exception:
        log_exception(logger, "Budget adjustment failed, keeping content", section=current_step(), action=action)
        return state, current

    blocks = split_paragraphs(adjusted)
    if not blocks:
        logger.warning("Budget adjustment returned no content, keeping original", extra={"action": action})
        return state, current

    logger.info(
        "Adjusted section length",
        extra={
            "action": action,
            "token_budget": token_budget,
            "tokens_before": current_tokens,
            "tokens_after": estimate_token_count(join_content(blocks)),
        },
    )
    return state, blocks
