"""The research-then-write pipeline.

Draft an outline, collect perspectives, ask questions from every perspective, answer them
(optionally with web research tools), refine the outline with the answers, and finally
generate the article section by section.
"""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from typing import Sequence

from pydantic import ValidationError

from stormweaver.config import Settings, load_settings
from stormweaver.engine.sections import generate_article
from stormweaver.engine.state import GenerationOptions
from stormweaver.errors import GenerationError
from stormweaver.llm.client import GenerativeModel
from stormweaver.logging import get_logger, run_context, set_step
from stormweaver.models.outline import Outline
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
from stormweaver.prompts import (
    ANSWERS_PROMPT,
    ANSWERS_WITH_TOOLS_SUFFIX,
    FINAL_OUTLINE_PROMPT,
    OUTLINE_PROMPT,
    PERSPECTIVES_PROMPT,
    QUESTIONS_PROMPT,
)
from stormweaver.tools.registry import ToolRegistry
from stormweaver.tools.research import create_research_tools
from stormweaver.utils.tags import extract_json_object

logger = get_logger(__name__)


def _dump(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, indent=2)


async def draft_outline(model: GenerativeModel, topic: str) -> Outline:
    outline = await model.generate_object(OUTLINE_PROMPT.format(topic=topic), Outline)
    logger.info("Draft outline generated", extra={"title": outline.title, "sections": len(outline.items)})
    return outline


async def generate_perspectives(model: GenerativeModel, topic: str) -> list[Perspective]:
    result = await model.generate_object(PERSPECTIVES_PROMPT.format(topic=topic), Perspectives)
    logger.info("Perspectives generated", extra={"count": len(result.perspectives)})
    return result.perspectives


async def generate_questions(
    model: GenerativeModel, topic: str, perspectives: Sequence[Perspective]
) -> list[PerspectiveQuestions]:
    """Ask questions from every perspective concurrently."""

    async def _for(perspective: Perspective) -> PerspectiveQuestions:
        prompt = QUESTIONS_PROMPT.format(topic=topic, perspective=_dump(perspective.model_dump()))
        result = await model.generate_object(prompt, Questions)
        logger.info(
            "Questions generated for perspective",
            extra={"perspective": perspective.title, "count": len(result.questions)},
        )
        return PerspectiveQuestions(perspective=perspective, questions=result.questions)

    return list(await asyncio.gather(*(_for(p) for p in perspectives)))


async def answer_questions(
    model: GenerativeModel,
    topic: str,
    questions: Sequence[Question],
    *,
    tools: ToolRegistry | None = None,
    max_steps: int = 10,
) -> list[Answer]:
    """Answer one question set, letting the model call ``tools`` when given.

    Raises:
        GenerationError: The model failed, or its final answer is not an ``Answers`` object.
    """

    prompt = ANSWERS_PROMPT.format(topic=topic, questions=_dump([q.model_dump() for q in questions]))
    if not tools:
        return (await model.generate_object(prompt, Answers)).answers

    raw = await model.generate_text(prompt + ANSWERS_WITH_TOOLS_SUFFIX, tools=tools, max_steps=max_steps)
    data = extract_json_object(raw)
    if data is None:
        raise GenerationError("research answer is not a JSON object")
    try:
        return Answers.model_validate(data).answers
    except ValidationError as e:
        raise GenerationError(f"research answer does not match Answers: {e}") from e


async def generate_answers(
    model: GenerativeModel,
    topic: str,
    questions: Sequence[PerspectiveQuestions],
    *,
    tools: ToolRegistry | None = None,
    max_steps: int = 10,
) -> list[list[Answer]]:
    """Answer every question set concurrently; results keep the question-set order."""

    async def _for(group: PerspectiveQuestions) -> list[Answer]:
        answers = await answer_questions(model, topic, group.questions, tools=tools, max_steps=max_steps)
        logger.info("Answers generated for question set", extra={"perspective": group.perspective.title, "count": len(answers)})
        return answers

    return list(await asyncio.gather(*(_for(g) for g in questions)))


def pair_questions(questions: Sequence[PerspectiveQuestions], answers: Sequence[Sequence[Answer]]) -> list[list[QAPair]]:
    """Zip question sets with their answers by position; missing answers stay ``None``."""

    pairs: list[list[QAPair]] = []
    for group, group_answers in zip(questions, answers):
        pairs.append(
            [
                QAPair(question=q, answer=group_answers[j] if j < len(group_answers) else None)
                for j, q in enumerate(group.questions)
            ]
        )
    return pairs


async def refine_outline(
    model: GenerativeModel, topic: str, draft: Outline, qa_pairs: Sequence[Sequence[QAPair]]
) -> Outline:
    prompt = FINAL_OUTLINE_PROMPT.format(
        topic=topic,
        draft_outline=_dump(draft.model_dump(mode="json")),
        qa_pairs=_dump([[p.model_dump() for p in group] for group in qa_pairs]),
    )
    outline = await model.generate_object(prompt, Outline)
    logger.info("Refined outline generated", extra={"title": outline.title, "sections": len(outline.items)})
    return outline


async def storm(
    options: GenerationOptions,
    *,
    settings: Settings | None = None,
    tools: ToolRegistry | None = None,
    run_id: str | None = None,
) -> StormResult:
    """Run the whole pipeline for ``options.topic``.

    A draft outline is generated and later refined only when ``options.outline`` is not
    set; a supplied outline is used as is. With ``use_research_tools`` and no ``tools``,
    web research tools are built from ``settings``.

    Raises:
        GenerationError: Any generation step failed.
    """

    model = options.model
    topic = options.topic
    run_id = run_id or uuid.uuid4().hex[:12]

    with run_context(run_id=run_id, step="outline"):
        start = time.monotonic()
        logger.info("Starting storm process", extra={"topic": topic})

        outline = options.outline
        refine = outline is None
        if outline is None:
            outline = await draft_outline(model, topic)
        else:
            logger.info("Outline provided", extra={"title": outline.title, "sections": len(outline.items)})

        set_step("research")
        perspectives = await generate_perspectives(model, topic)
        questions = await generate_questions(model, topic, perspectives)

        if options.use_research_tools and tools is None:
            tools = create_research_tools(settings or load_settings(), model=model)
        answers = await generate_answers(
            model,
            topic,
            questions,
            tools=tools if options.use_research_tools else None,
            max_steps=options.max_steps,
        )
        qa_pairs = pair_questions(questions, answers)
        logger.info("Q&A pairs created", extra={"total_pairs": sum(len(g) for g in qa_pairs)})

        if refine:
            set_step("outline")
            outline = await refine_outline(model, topic, outline, qa_pairs)

        article = await generate_article(options, outline, run_id=run_id)
        logger.info(
            "Storm process complete",
            extra={"sections": article.count_sections(), "elapsed_s": round(time.monotonic() - start, 2)},
        )

    return StormResult(
        article=article,
        outline=outline,
        perspectives=perspectives,
        questions=questions,
        answers=answers,
        qa_pairs=qa_pairs,
    )
