"""Postprocessing pipeline applied to every drafted section.

Stages run in a fixed order, each receiving the previous stage's ``(state, content)``.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Sequence

from stormweaver.engine.postprocess.budget import ensure_budget, split_paragraphs
from stormweaver.engine.postprocess.unique import ensure_unique
from stormweaver.engine.state import GenerationOptions, GenerationState

Postprocessor = Callable[
    [GenerationOptions, GenerationState, Sequence[Any]],
    Awaitable[tuple[GenerationState, list[Any]]],
]

POSTPROCESSORS: tuple[Postprocessor, ...] = (ensure_unique, ensure_budget)


async def postprocess(
    options: GenerationOptions,
    state: GenerationState,
    content: Sequence[Any],
    processors: Sequence[Postprocessor] = POSTPROCESSORS,
) -> tuple[GenerationState, list[Any]]:
    result = list(content)
    for processor in processors:
        state, result = await processor(options, state, result)
    return state, result


__all__ = [
    "POSTPROCESSORS",
    "Postprocessor",
    "ensure_budget",
    "ensure_unique",
    "postprocess",
    "split_paragraphs",
]
