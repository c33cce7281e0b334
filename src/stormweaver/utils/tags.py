"""JSON extraction helpers for noisy model output.

Models asked for a JSON object sometimes wrap it in a markdown fence or add a sentence
before it. These helpers pull the object out without raising.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

from stormweaver.logging import get_logger

logger = get_logger(__name__)

_FENCE_JSON_RE = re.compile(r"```json\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_FENCE_ANY_RE = re.compile(r"```\s*\n?(.*?)\n?```", re.DOTALL)


def strip_code_fence(text: str) -> str:
    """Return the body of the first markdown code fence, or the text unchanged."""

    if not text:
        return text
    m = _FENCE_JSON_RE.search(text) or _FENCE_ANY_RE.search(text)
    if m:
        return m.group(1).strip()
    return text.strip()


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Extract one JSON object from text, or ``None``.

    Strategies, strictest first:
        1. the body of a markdown code fence;
        2. the whole text, when it looks like an object;
        3. the span between the first ``{`` and the last ``}``.
    """

    if not text:
        return None

    cleaned = text.strip()

    m = _FENCE_JSON_RE.search(cleaned) or _FENCE_ANY_RE.search(cleaned)
    if m:
        inner = m.group(1).strip()
        if inner.startswith("{") and inner.endswith("}"):
            try:
                return json.loads(inner)
            except json.JSONDecodeError:
                logger.debug("extract_json_object: markdown-fenced JSON parse failed")

    if cleaned.startswith("{") and cleaned.endswith("}"):
        try:
            return json.loads(cleaned)
        except json.JSONDecodeError:
            logger.debug("extract_json_object: whole-text JSON parse failed")

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        try:
            obj = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError:
            logger.debug("extract_json_object: brace-span JSON parse failed")
        else:
            if isinstance(obj, dict):
                return obj

    return None
