"""Tests for the token-budget postprocessing step."""

from __future__ import annotations

import asyncio

from fakes import FakeGenerativeModel

from stormweaver.engine.postprocess.budget import ensure_budget, split_paragraphs
from stormweaver.engine.state import GenerationOptions, GenerationState
from stormweaver.engine.tokens import estimate_content_tokens
from stormweaver.errors import GenerationError
from stormweaver.models.outline import OutlineItem
from stormweaver.prompts import CONDENSE_SYSTEM_PROMPT, EXPAND_SYSTEM_PROMPT


def _words(n: int, word: str = "word") -> str:
    return " ".join([word] * n)


def _state(budget: int | None = 100) -> GenerationState:
    return GenerationState(topic="t").at(OutlineItem(title="Intro", description="d", token_budget=budget))


def _options(model: FakeGenerativeModel, **kwargs) -> GenerationOptions:
    return GenerationOptions(model=model, topic="t", **kwargs)


def test_within_tolerance_is_noop() -> None:
    """Content inside [budget - 10%, budget + 10%] is returned untouched."""

    model = FakeGenerativeModel()
    content = [_words(70)]  # 91 tokens
    state = _state()

    new_state, result = asyncio.run(ensure_budget(_options(model), state, content))

    assert new_state is state
    assert result == content
    assert model.text_calls == []


def test_short_content_is_expanded_into_tolerance() -> None:
    """A ~50-token draft for a 100-token budget is expanded once."""

    expanded = f"{_words(40, 'alpha')}\n\n{_words(37, 'beta')}"
    model = FakeGenerativeModel(texts=[expanded])
    content = [_words(38)]  # 50 tokens

    _, result = asyncio.run(ensure_budget(_options(model), _state(), content))

    assert len(model.text_calls) == 1
    assert model.text_calls[0]["system"] == EXPAND_SYSTEM_PROMPT
    assert "approximately 100 tokens" in model.text_calls[0]["prompt"]
    assert result == [_words(40, "alpha"), _words(37, "beta")]
    assert 90 <= estimate_content_tokens(result) <= 110


def test_adjusted_content_is_stable() -> None:
    """Running the step again on in-band output changes nothing."""

    expanded = f"{_words(40, 'alpha')}\n\n{_words(37, 'beta')}"
    model = FakeGenerativeModel(texts=[expanded])
    options = _options(model)

    state, once = asyncio.run(ensure_budget(options, _state(), [_words(38)]))
    _, twice = asyncio.run(ensure_budget(options, state, once))

    assert twice == once
    assert len(model.text_calls) == 1


def test_long_content_is_condensed() -> None:
    model = FakeGenerativeModel(texts=[_words(75, "short")])
    content = [_words(100), _words(100)]  # 260 tokens

    _, result = asyncio.run(ensure_budget(_options(model), _state(), content))

    assert model.text_calls[0]["system"] == CONDENSE_SYSTEM_PROMPT
    assert result == [_words(75, "short")]


def test_adjustment_failure_keeps_original() -> None:
    """A failing model call or an empty answer falls back to the original content."""

    content = [_words(38)]
    for scripted in (GenerationError("boom"), "   \n  "):
        model = FakeGenerativeModel(texts=[scripted])
        _, result = asyncio.run(ensure_budget(_options(model), _state(), content))
        assert result == content
        assert len(model.text_calls) == 1


def test_no_budget_is_noop() -> None:
    model = FakeGenerativeModel()
    _, result = asyncio.run(ensure_budget(_options(model), _state(budget=None), [_words(500)]))

    assert result == [_words(500)]
    assert model.text_calls == []


def test_explicit_budget_and_skip_adjustment() -> None:
    """An explicit budget overrides the outline item's; skip_adjustment only measures."""

    model = FakeGenerativeModel()
    content = [_words(70)]
    _, result = asyncio.run(ensure_budget(_options(model), _state(), content, 500, skip_adjustment=True))

    assert result == content
    assert model.text_calls == []


def test_custom_tolerance() -> None:
    """A wider tolerance accepts content the default would adjust."""

    model = FakeGenerativeModel()
    content = [_words(55)]  # 72 tokens
    _, result = asyncio.run(ensure_budget(_options(model, token_tolerance=0.3), _state(), content))

    assert result == content
    assert model.text_calls == []


def test_split_paragraphs() -> None:
    """Blank lines split paragraphs; single newlines are the fallback; fences are removed."""

    assert split_paragraphs("one\n\n  \ntwo\nstill two") == ["one", "two\nstill two"]
    assert split_paragraphs("first\nsecond") == ["first", "second"]
    assert split_paragraphs("```\nfenced\n\nbody\n```") == ["fenced", "body"]
    assert split_paragraphs("") == []
