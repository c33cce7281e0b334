"""Section prompt construction."""

from __future__ import annotations

import json
from typing import Sequence

from stormweaver.models.article import ArticleSection
from stormweaver.models.outline import OutlineItem
from stormweaver.prompts import ARTICLE_SECTION_PROMPT


def format_recent_sections(sections: Sequence[ArticleSection]) -> str:
    if not sections:
        return "(none yet)"
    return json.dumps([s.model_dump(mode="json") for s in sections], ensure_ascii=False, indent=2)


def build_section_prompt(topic: str, outline_item: OutlineItem, recent_sections: Sequence[ArticleSection]) -> str:
    """Render the prompt for one section.

    Only ``recent_sections`` are shown as context; callers pass the last ``k`` sections of
    the generation state.
    """

    return ARTICLE_SECTION_PROMPT.format(
        topic=topic,
        outline_item=json.dumps(outline_item.prompt_view(), ensure_ascii=False, indent=2),
        recent_sections=format_recent_sections(recent_sections),
    )
