"""Minimal prompt template with required-field checking."""

from __future__ import annotations

import string
import textwrap
from dataclasses import dataclass, field
from typing import Any

from stormweaver.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PromptTemplate:
    """A ``str.format`` template that refuses to render with missing fields."""

    text: str
    fields: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        text = textwrap.dedent(self.text).strip()
        names = {name for _, name, _, _ in string.Formatter().parse(text) if name}
        object.__setattr__(self, "text", text)
        object.__setattr__(self, "fields", frozenset(names))

    def format(self, **params: Any) -> str:
        missing = self.fields - params.keys()
        if missing:
            raise ValueError(f"missing prompt parameters: {', '.join(sorted(missing))}")
        rendered = self.text.format(**params)
        logger.debug("Formatted prompt:\n%s", rendered)
        return rendered
