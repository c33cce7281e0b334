"""Research tools offered to the model while answering questions.

Both tools go through one ``SerialTaskQueue``, so however many answer calls run
concurrently, only one search or page fetch is in flight at a time. Failures are returned
to the model as a message instead of raising into the tool loop.
"""

from __future__ import annotations

from stormweaver.config import Settings
from stormweaver.core.queue import SerialTaskQueue
from stormweaver.llm.client import GenerativeModel
from stormweaver.logging import get_logger
from stormweaver.prompts import PAGE_SUMMARY_PROMPT, RESEARCH_SYSTEM_PROMPT, SEARCH_RESULTS_PROMPT
from stormweaver.tools.registry import ToolRegistry
from stormweaver.tools.web_page import PageFetcher, PageParser
from stormweaver.tools.web_search import WebSearchProvider, get_search_provider

logger = get_logger(__name__)


class ResearchTools:
    """Web search and page reading, serialized through a queue."""

    def __init__(
        self,
        settings: Settings,
        *,
        queue: SerialTaskQueue | None = None,
        model: GenerativeModel | None = None,
        provider: WebSearchProvider | None = None,
        fetcher: PageFetcher | None = None,
        parser: PageParser | None = None,
    ) -> None:
        self._max_results = settings.search_max_results
        self._queue = queue or SerialTaskQueue()
        self._model = model
        self._provider = provider or get_search_provider(settings)
        self._fetcher = fetcher or PageFetcher(settings)
        self._parser = parser or PageParser(max_chars=settings.page_max_chars)

    @property
    def queue(self) -> SerialTaskQueue:
        return self._queue

    async def search_web(self, query: str) -> str:
        return await self._queue.enqueue(lambda: self._search(query))

    async def get_page(self, url: str) -> str:
        return await self._queue.enqueue(lambda: self._get_page(url))

    async def _search(self, query: str) -> str:
        logger.info("Searching the web", extra={"query": query})
        try:
            results = await self._provider.search(query, max_results=self._max_results)
            if not results:
                return f'No results found for "{query}".'
            text = "\n\n".join(r.as_text() for r in results)
            if self._model is None:
                return text
            return await self._model.generate_text(
                SEARCH_RESULTS_PROMPT.format(query=query, results=text), system=RESEARCH_SYSTEM_PROMPT
            )
        except Exception as e:
            logger.warning("Search tool failed", extra={"query": query, "error": str(e)})
            return f'I encountered an error while trying to search for "{query}". {e}'

    async def _get_page(self, url: str) -> str:
        logger.info("Getting page content", extra={"url": url})
        try:
            page = await self._fetcher.fetch(url)
            doc = self._parser.parse(page)
            if self._model is None:
                return doc.text
            return await self._model.generate_text(
                PAGE_SUMMARY_PROMPT.format(url=url, title=doc.title or "", content=doc.text),
                system=RESEARCH_SYSTEM_PROMPT,
            )
        except Exception as e:
            logger.warning("Page tool failed", extra={"url": url, "error": str(e)})
            return f'I encountered an error while trying to fetch content from "{url}". {e}'

    def registry(self) -> ToolRegistry:
        registry = ToolRegistry()
        registry.register_function(
            "search_web",
            self.search_web,
            "Search the web for a query. Only one query can be passed at a time.",
            schema={
                "type": "object",
                "properties": {"query": {"type": "string", "description": "The query to search for"}},
                "required": ["query"],
            },
        )
        registry.register_function(
            "get_page",
            self.get_page,
            "Get the readable content of a web page. Only one URL can be passed at a time.",
            schema={
                "type": "object",
                "properties": {"url": {"type": "string", "description": "The URL of the page to read"}},
                "required": ["url"],
            },
        )
        return registry


def create_research_tools(
    settings: Settings,
    *,
    queue: SerialTaskQueue | None = None,
    model: GenerativeModel | None = None,
) -> ToolRegistry:
    """Build the research tool registry for one run."""

    return ResearchTools(settings, queue=queue, model=model).registry()
