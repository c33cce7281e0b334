"""In-memory stand-ins for the model capabilities."""

from __future__ import annotations

import re
from collections import deque
from typing import Any, Callable

from stormweaver.errors import EmbeddingError, GenerationError
from stormweaver.models.article import SectionDraft

_TITLE_RE = re.compile(r'"title": "([^"]*)"')


def outline_title(prompt: str) -> str:
    """Title of the outline item a section prompt was built for (its first title field)."""

    m = _TITLE_RE.search(prompt)
    assert m is not None, "prompt carries no outline item"
    return m.group(1)


def section_responder(contents: dict[str, Any] | None = None) -> Callable[[str, type], Any]:
    """Answer section prompts with a draft titled after the outline item.

    ``contents`` maps a title to its paragraphs, to a list of paragraph lists served in turn
    (the last one repeats), or to an exception to raise. Unlisted titles get ``"<title> text"``.
    """

    served: dict[str, int] = {}

    def respond(prompt: str, schema: type) -> Any:
        title = outline_title(prompt)
        value = (contents or {}).get(title, [f"{title} text"])
        if isinstance(value, Exception):
            raise value
        if value and isinstance(value[0], list):
            i = served.get(title, 0)
            served[title] = i + 1
            value = value[min(i, len(value) - 1)]
        return SectionDraft(title=title, description=f"About {title}", content=list(value))

    return respond


class FakeGenerativeModel:
    """Scripted GenerativeModel that records every call.

    ``objects`` maps a schema to the instances (or dicts, or exceptions) returned in order;
    schemas without a script fall through to ``on_object``. ``texts`` are returned by
    ``generate_text`` in order; an exception entry is raised instead.
    """

    def __init__(
        self,
        *,
        objects: dict[type, list[Any]] | None = None,
        on_object: Callable[[str, type], Any] | None = None,
        texts: list[Any] | None = None,
    ) -> None:
        self._objects = {schema: deque(values) for schema, values in (objects or {}).items()}
        self._on_object = on_object
        self._texts = deque(texts or [])
        self.object_calls: list[tuple[str, type]] = []
        self.text_calls: list[dict[str, Any]] = []

    def prompts_for(self, title: str) -> list[str]:
        return [prompt for prompt, _ in self.object_calls if _TITLE_RE.search(prompt) and outline_title(prompt) == title]

    async def generate_object(self, prompt: str, schema: type, *, system: str | None = None) -> Any:
        self.object_calls.append((prompt, schema))
        queue = self._objects.get(schema)
        if queue:
            result = queue.popleft()
        elif self._on_object is not None:
            result = self._on_object(prompt, schema)
        else:
            raise GenerationError(f"no scripted {schema.__name__}")
        if isinstance(result, Exception):
            raise result
        if isinstance(result, dict):
            return schema.model_validate(result)
        return result

    async def generate_text(
        self,
        prompt: str,
        *,
        system: str | None = None,
        tools: Any = None,
        max_steps: int = 1,
    ) -> str:
        self.text_calls.append({"prompt": prompt, "system": system, "tools": tools, "max_steps": max_steps})
        if not self._texts:
            raise GenerationError("no scripted text")
        result = self._texts.popleft()
        if isinstance(result, Exception):
            raise result
        return result


class FakeEmbeddingModel:
    """EmbeddingModel returning fixed vectors.

    Texts listed in ``vectors`` get that vector; any other text gets a fresh one-hot vector,
    so unlisted texts are mutually orthogonal.
    """

    def __init__(self, vectors: dict[str, list[float]] | None = None, *, dim: int = 64, fail: bool = False) -> None:
        self._vectors = dict(vectors or {})
        self._dim = dim
        self._fail = fail
        self._next = 0
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self._fail:
            raise EmbeddingError("embedding backend down")
        if text not in self._vectors:
            vector = [0.0] * self._dim
            vector[self._next % self._dim] = 1.0
            self._next += 1
            self._vectors[text] = vector
        return list(self._vectors[text])

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(t) for t in texts]
