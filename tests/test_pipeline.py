"""Tests for the research-then-write pipeline."""

from __future__ import annotations

import asyncio
import json

import pytest
from fakes import FakeEmbeddingModel, FakeGenerativeModel, section_responder

from stormweaver.engine.state import GenerationOptions
from stormweaver.errors import GenerationError
from stormweaver.models.outline import Outline
from stormweaver.models.research import (
    Answer,
    Answers,
    Perspective,
    PerspectiveQuestions,
    Perspectives,
    Question,
    Questions,
)
from stormweaver.orchestrator.pipeline import answer_questions, pair_questions, storm
from stormweaver.tools.registry import ToolRegistry

DRAFT = {"title": "Draft", "description": "draft", "items": [{"title": "Old", "description": "old"}]}
REFINED = {
    "title": "Refined",
    "description": "refined",
    "items": [
        {"title": "Intro", "description": "intro", "tokenBudget": 200, "items": [{"title": "Background", "description": "bg"}]},
        {"title": "Outlook", "description": "outlook"},
    ],
}
PERSPECTIVES = {
    "perspectives": [
        {"title": "History", "description": "h", "guidelines": "g"},
        {"title": "Ethics", "description": "e", "guidelines": "g"},
    ]
}


def _questions(prefix: str, n: int) -> dict:
    return {"questions": [{"objective": "o", "question": f"{prefix} q{i}"} for i in range(n)]}


def _answers(n: int) -> dict:
    return {"answers": [{"evidence": "e", "answer": f"a{i}"} for i in range(n)]}


async def _noop() -> str:
    return ""


def _model(*, outline_scripted: bool = True, texts: list | None = None) -> FakeGenerativeModel:
    objects: dict[type, list] = {
        Perspectives: [PERSPECTIVES],
        Questions: [_questions("history", 2), _questions("ethics", 1)],
        Answers: [_answers(2), _answers(1)],
    }
    if outline_scripted:
        objects[Outline] = [DRAFT, REFINED]
    return FakeGenerativeModel(objects=objects, on_object=section_responder(), texts=texts)


def test_storm_drafts_and_refines_outline() -> None:
    """Without an outline the draft is refined with the Q&A before writing."""

    model = _model()
    options = GenerationOptions(model=model, topic="Storms", embedding_model=FakeEmbeddingModel())

    result = asyncio.run(storm(options))

    outline_calls = [prompt for prompt, schema in model.object_calls if schema is Outline]
    assert len(outline_calls) == 2
    assert '"Draft"' in outline_calls[1]
    assert "history q1" in outline_calls[1]

    assert result.outline.title == "Refined"
    assert [s.title for s in result.article.sections] == ["Intro", "Outlook"]
    assert [c.title for c in result.article.sections[0].children] == ["Background"]
    assert [p.title for p in result.perspectives] == ["History", "Ethics"]
    assert [[p.answer.answer for p in group] for group in result.qa_pairs] == [["a0", "a1"], ["a0"]]


def test_storm_uses_supplied_outline() -> None:
    """A supplied outline is neither drafted nor refined."""

    model = _model(outline_scripted=False)
    outline = Outline.model_validate(REFINED)
    options = GenerationOptions(model=model, topic="Storms", outline=outline)

    result = asyncio.run(storm(options))

    assert not [s for _, s in model.object_calls if s is Outline]
    assert result.outline == outline
    assert result.article.count_sections() == 3


def test_storm_with_research_tools_answers_through_text() -> None:
    """With research tools, answers come from the tool-calling text loop."""

    replies = [json.dumps(_answers(2)), "```json\n" + json.dumps(_answers(1)) + "\n```"]
    model = _model(texts=replies)
    tools = ToolRegistry()
    tools.register_function("noop", _noop, "Does nothing")
    options = GenerationOptions(model=model, topic="Storms", use_research_tools=True, max_steps=4)

    result = asyncio.run(storm(options, tools=tools))

    research_calls = [call for call in model.text_calls if call["tools"] is not None]
    assert [call["max_steps"] for call in research_calls] == [4, 4]
    assert all(call["tools"] is tools for call in research_calls)
    assert not [s for _, s in model.object_calls if s is Answers]
    assert [len(group) for group in result.answers] == [2, 1]


def test_answer_questions_rejects_unparsable_research_output() -> None:
    registry = ToolRegistry()
    registry.register_function("noop", _noop, "Does nothing")
    model = FakeGenerativeModel(texts=["I could not find anything."])

    with pytest.raises(GenerationError):
        asyncio.run(answer_questions(model, "t", [Question(objective="o", question="q")], tools=registry))


def test_pair_questions_keeps_missing_answers() -> None:
    """Questions without an answer at their position are paired with None."""

    group = PerspectiveQuestions(
        perspective=Perspective(title="p", description="d", guidelines="g"),
        questions=[Question(objective="o", question="q1"), Question(objective="o", question="q2")],
    )
    pairs = pair_questions([group], [[Answer(evidence="e", answer="a1")]])

    assert pairs[0][0].answer is not None
    assert pairs[0][1].answer is None


def test_storm_propagates_generation_failure() -> None:
    model = FakeGenerativeModel(objects={Outline: [GenerationError("provider down")]})
    with pytest.raises(GenerationError):
        asyncio.run(storm(GenerationOptions(model=model, topic="Storms")))
