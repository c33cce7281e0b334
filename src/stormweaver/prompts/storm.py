from __future__ import annotations

from stormweaver.prompts.template import PromptTemplate

OUTLINE_PROMPT = PromptTemplate(
    """
    You are an expert content strategist tasked with creating a comprehensive outline for an article.

    TOPIC: {topic}

    Create a well-structured outline with the following elements:
    1. A compelling title that accurately reflects the topic and will engage readers
    2. A concise description summarizing what the article will cover
    3. 3-5 main sections, each with:
       - A clear heading
       - A brief description of what this section will cover
       - Guidelines for the writer of this section
       - A token budget for the section's own text (typically 200-600)
       - 1-3 subsections where appropriate

    The outline should have a logical flow, starting with introductory concepts and progressing to more complex ones.
    Ensure the outline is comprehensive enough to create a complete article that provides real value to readers.
    """
)

PERSPECTIVES_PROMPT = PromptTemplate(
    """
    Based on the article topic: {topic}

    Generate a list of diverse perspectives to enrich the article.

    For each perspective, provide:
    1. A title (e.g., "Historical Perspective", "Technical Viewpoint", "Ethical Considerations")
    2. A brief description explaining this perspective's relevance to the topic
    3. Guidelines on what aspects to explore from this perspective

    Include 3-5 distinct perspectives that will add depth and breadth to the article.
    Avoid overly similar perspectives or those with limited relevance to the main topic.
    """
)

QUESTIONS_PROMPT = PromptTemplate(
    """
    Based on the following perspective regarding {topic}:

    {perspective}

    Generate 3-5 thought-provoking questions that will help explore this perspective deeply.

    For each question:
    1. Make it specific rather than general
    2. Ensure it directly relates to the perspective
    3. Frame it to elicit insightful and substantive answers
    4. Avoid questions with simple yes/no answers
    """
)

ANSWERS_PROMPT = PromptTemplate(
    """
    Based on the topic: {topic}

    Provide insightful, well-researched answers to the following questions, in the same order:

    {questions}

    For each answer:
    1. Provide substantive content (150-250 words per answer)
    2. Include specific examples, data points, or evidence where relevant
    3. Consider different angles or viewpoints within the answer
    4. Conclude with an insight that could be incorporated into the article

    Avoid vague generalizations or unsubstantiated claims.
    """
)

ANSWERS_WITH_TOOLS_SUFFIX = (
    "\n\nYou may use the available tools to research the questions before answering. "
    "When you are done, reply with ONLY a raw JSON object of the form "
    '{"answers": [{"evidence": "...", "answer": "..."}]}.'
)

FINAL_OUTLINE_PROMPT = PromptTemplate(
    """
    Based on the topic: {topic}

    You are tasked with refining an article outline based on additional research and insights.

    INITIAL DRAFT OUTLINE:
    {draft_outline}

    RESEARCH INSIGHTS (Q&A):
    {qa_pairs}

    Using the initial outline as a foundation and the Q&A insights as enrichment:
    1. Create a more refined and comprehensive outline
    2. Incorporate the most valuable insights from the Q&A
    3. Restructure sections if needed to create better flow
    4. Add or modify sections to address important aspects revealed in the research
    5. Keep a token budget on every section
    """
)

ARTICLE_SECTION_PROMPT = PromptTemplate(
    """
    Based on the topic: {topic}

    Generate a high-quality article section based on the following outline item:

    {outline_item}

    The most recently written sections, for continuity (do not repeat them):

    {recent_sections}

    Write this section to be:
    1. Informative and substantive, with specific examples and evidence
    2. Well-structured with clear paragraphs and transitions
    3. Engaging and readable for the target audience
    4. Connected to the overall article theme

    If this section has subsections, it should serve as an introduction to those topics.
    Only write this section's own content, not its subsections.
    """
)

SIMILAR_PASSAGES_SUFFIX = PromptTemplate(
    """
    Your previous draft of this section was too similar to content that already exists in the article.
    Cover different ground than these passages:

    {passages}
    """
)

EXPAND_SYSTEM_PROMPT = (
    "You are an expert content expander. You will be given content that needs to be expanded to meet "
    "a token budget. Maintain the original tone and style while adding relevant details, examples, "
    "or elaborations."
)

EXPAND_PROMPT = PromptTemplate(
    """
    Expand the following content to approximately {target_tokens} tokens while maintaining quality and relevance.
    Current content has approximately {current_tokens} tokens.

    Content:
    {content}

    Provide only the expanded content as your response, separating paragraphs with a blank line.
    """
)

CONDENSE_SYSTEM_PROMPT = (
    "You are an expert content editor. You will be given content that needs to be condensed to meet "
    "a token budget. Preserve the most important information while making the content more concise."
)

CONDENSE_PROMPT = PromptTemplate(
    """
    Condense the following content to approximately {target_tokens} tokens while preserving the key information.
    Current content has approximately {current_tokens} tokens.

    Content:
    {content}

    Provide only the condensed content as your response, separating paragraphs with a blank line.
    """
)

RESEARCH_SYSTEM_PROMPT = (
    "You are a research assistant. Summarize the provided material strictly in a query-relevant way. "
    "Focus on facts, definitions, mechanisms, and key claims. "
    "If the material is not relevant, say 'NOT RELEVANT'."
)

SEARCH_RESULTS_PROMPT = PromptTemplate(
    """
    Query: {query}

    Evaluate the following web search results and summarize what they say about the query:

    {results}
    """
)

PAGE_SUMMARY_PROMPT = PromptTemplate(
    """
    Summarize the following web page content in 150-250 words.

    URL: {url}
    Title: {title}

    {content}
    """
)
