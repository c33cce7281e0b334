from __future__ import annotations

from stormweaver.prompts.storm import (
    ANSWERS_PROMPT,
    ANSWERS_WITH_TOOLS_SUFFIX,
    ARTICLE_SECTION_PROMPT,
    CONDENSE_PROMPT,
    CONDENSE_SYSTEM_PROMPT,
    EXPAND_PROMPT,
    EXPAND_SYSTEM_PROMPT,
    FINAL_OUTLINE_PROMPT,
    OUTLINE_PROMPT,
    PAGE_SUMMARY_PROMPT,
    PERSPECTIVES_PROMPT,
    QUESTIONS_PROMPT,
    RESEARCH_SYSTEM_PROMPT,
    SEARCH_RESULTS_PROMPT,
    SIMILAR_PASSAGES_SUFFIX,
)
from stormweaver.prompts.template import PromptTemplate

__all__ = [
    "ANSWERS_PROMPT",
    "ANSWERS_WITH_TOOLS_SUFFIX",
    "ARTICLE_SECTION_PROMPT",
    "CONDENSE_PROMPT",
    "CONDENSE_SYSTEM_PROMPT",
    "EXPAND_PROMPT",
    "EXPAND_SYSTEM_PROMPT",
    "FINAL_OUTLINE_PROMPT",
    "OUTLINE_PROMPT",
    "PAGE_SUMMARY_PROMPT",
    "PERSPECTIVES_PROMPT",
    "PromptTemplate",
    "QUESTIONS_PROMPT",
    "RESEARCH_SYSTEM_PROMPT",
    "SEARCH_RESULTS_PROMPT",
    "SIMILAR_PASSAGES_SUFFIX",
]
