"""Tests for the web research tools."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from fakes import FakeGenerativeModel

from stormweaver.config import Settings
from stormweaver.models.search import SearchResult
from stormweaver.prompts import RESEARCH_SYSTEM_PROMPT
from stormweaver.tools.research import ResearchTools
from stormweaver.tools.web_page import PageFetcher, PageParser
from stormweaver.tools.web_search import (
    DuckDuckGoSearchProvider,
    TavilySearchProvider,
    WebSearchError,
    get_search_provider,
)

PAGE = """
<html><head><title>Storm surges</title></head>
<body>
<nav>Home | About</nav>
<article>
<h1>Storm surges</h1>
<p>Storm surge is the abnormal rise of water generated by a storm, over and above the predicted tides.</p>
<p>It is often the greatest threat to life and property from a hurricane.</p>
</article>
</body></html>
"""


class FakeSearchProvider:
    source_name = "fake"

    def __init__(self, fail: bool = False) -> None:
        self._fail = fail
        self.active = 0
        self.max_active = 0

    async def search(self, query: str, *, max_results: int) -> list[SearchResult]:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        if self._fail:
            raise WebSearchError("rate limited")
        return [SearchResult(title=f"About {query}", snippet="snippet", url="https://example.com/a", source="fake", rank=1)]


def _page_fetcher(settings: Settings) -> PageFetcher:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/missing":
            return httpx.Response(404)
        return httpx.Response(200, text=PAGE, headers={"content-type": "text/html"})

    return PageFetcher(settings, transport=httpx.MockTransport(handler))


def _tools(provider: FakeSearchProvider, model: FakeGenerativeModel | None = None) -> ResearchTools:
    settings = Settings()
    return ResearchTools(settings, model=model, provider=provider, fetcher=_page_fetcher(settings))


def test_search_returns_results_text() -> None:
    result = asyncio.run(_tools(FakeSearchProvider()).search_web("storm surge"))

    assert "About storm surge" in result
    assert "https://example.com/a" in result


def test_search_is_summarized_with_a_model() -> None:
    model = FakeGenerativeModel(texts=["summary of results"])

    result = asyncio.run(_tools(FakeSearchProvider(), model).search_web("storm surge"))

    assert result == "summary of results"
    assert model.text_calls[0]["system"] == RESEARCH_SYSTEM_PROMPT
    assert "About storm surge" in model.text_calls[0]["prompt"]


def test_search_failure_becomes_message() -> None:
    result = asyncio.run(_tools(FakeSearchProvider(fail=True)).search_web("storm surge"))

    assert result.startswith('I encountered an error while trying to search for "storm surge"')


def test_concurrent_calls_are_serialized() -> None:
    """Tool calls from concurrent answers never overlap."""

    provider = FakeSearchProvider()
    tools = _tools(provider)

    async def main() -> list[str]:
        return await asyncio.gather(*(tools.search_web(f"q{i}") for i in range(4)))

    results = asyncio.run(main())
    assert len(results) == 4
    assert provider.max_active == 1


def test_get_page_returns_readable_text() -> None:
    tools = _tools(FakeSearchProvider())

    text = asyncio.run(tools.get_page("https://example.com/storm"))
    assert "abnormal rise of water" in text
    assert "<p>" not in text

    missing = asyncio.run(tools.get_page("https://example.com/missing"))
    assert missing.startswith("I encountered an error while trying to fetch content")


def test_registry_exposes_both_tools() -> None:
    registry = _tools(FakeSearchProvider()).registry()

    assert sorted(t["function"]["name"] for t in registry.openai_tools()) == ["get_page", "search_web"]
    result = asyncio.run(registry.execute("search_web", {"query": "tides"}))
    assert "About tides" in result.as_message()


def test_page_parser_truncates() -> None:
    doc = PageParser(max_chars=1000).parse_html("https://example.com/", "<p>" + "word " * 1000 + "</p>")
    assert doc.text.endswith("[TRUNCATED]")
    assert len(doc.text) <= 1000 + len("\n\n[TRUNCATED]")


def test_tavily_retries_transient_errors() -> None:
    statuses = [503, 200]
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        status = statuses.pop(0)
        if status != 200:
            return httpx.Response(status)
        return httpx.Response(
            200,
            json={"results": [{"url": "https://example.com/t", "title": "T", "content": "c"}, {"title": "no url"}]},
        )

    provider = TavilySearchProvider(api_key="k", retry_backoff_s=0.0, transport=httpx.MockTransport(handler))
    results = asyncio.run(provider.search("tides", max_results=3))

    assert [r.title for r in results] == ["T"]
    assert results[0].snippet == "c"
    assert len(seen) == 2
    assert seen[0]["max_results"] == 3


def test_tavily_client_error_is_not_retried() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(401)

    provider = TavilySearchProvider(api_key="bad", retry_backoff_s=0.0, transport=httpx.MockTransport(handler))
    with pytest.raises(WebSearchError):
        asyncio.run(provider.search("tides", max_results=3))
    assert len(calls) == 1


def test_get_search_provider() -> None:
    assert isinstance(get_search_provider(Settings(search_provider="duckduckgo")), DuckDuckGoSearchProvider)
    assert isinstance(get_search_provider(Settings(search_provider="tavily", tavily_api_key="k")), TavilySearchProvider)
    with pytest.raises(ValueError):
        get_search_provider(Settings(search_provider="tavily", tavily_api_key=None))
