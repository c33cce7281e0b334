"""Web search providers used by the research tools."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from duckduckgo_search import DDGS
from pydantic import ValidationError

from stormweaver.config import Settings
from stormweaver.errors import StormweaverError
from stormweaver.logging import get_logger
from stormweaver.models.search import SearchResult

logger = get_logger(__name__)

_TRANSIENT_STATUS = {429, 500, 502, 503, 504}


class WebSearchError(StormweaverError):
    pass


class WebSearchProvider(Protocol):
    """Search provider interface."""

    source_name: str

    async def search(self, query: str, *, max_results: int) -> list[SearchResult]:
        """Search the web; raise ``WebSearchError`` when the provider is unavailable."""


def _to_results(items: list[Any], *, source: str, url_key: str, snippet_key: str) -> list[SearchResult]:
    results: list[SearchResult] = []
    for i, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            continue
        url = item.get(url_key) or item.get("url")
        if not url:
            continue
        try:
            results.append(
                SearchResult(
                    title=item.get("title"),
                    snippet=item.get(snippet_key) or item.get("snippet"),
                    url=url,
                    source=source,
                    rank=i,
                )
            )
        except ValidationError:
            # unparsable URL
            continue
    return results


@dataclass(frozen=True)
class TavilySearchProvider:
    """Tavily API search provider.

    Transient statuses (429, 5xx) and transport errors are retried with capped exponential
    backoff; a 429 ``retry-after`` header takes precedence over the computed delay.
    """

    api_key: str
    base_url: str = "https://api.tavily.com"
    search_depth: str = "basic"
    timeout_s: float = 30.0
    max_retries: int = 3
    retry_backoff_s: float = 0.75
    retry_max_backoff_s: float = 8.0
    source_name: str = "tavily"
    transport: httpx.AsyncBaseTransport | None = None

    def _delay(self, attempt: int, resp: httpx.Response | None) -> float:
        if resp is not None and resp.status_code == 429:
            try:
                return float(resp.headers["retry-after"])
            except (KeyError, ValueError):
                pass
        return min(self.retry_max_backoff_s, self.retry_backoff_s * (2**attempt))

    async def _post(self, client: httpx.AsyncClient, query: str, max_results: int) -> httpx.Response:
        return await client.post(
            f"{self.base_url.rstrip('/')}/search",
            json={
                "api_key": self.api_key,
                "query": query,
                "max_results": max_results,
                "search_depth": self.search_depth,
                "include_answer": False,
                "include_raw_content": False,
                "include_images": False,
            },
        )

    async def search(self, query: str, *, max_results: int) -> list[SearchResult]:
        started = time.monotonic()
        error: str = "no attempt made"

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_s), follow_redirects=True, transport=self.transport
        ) as client:
            for attempt in range(self.max_retries + 1):
                resp: httpx.Response | None = None
                try:
                    resp = await self._post(client, query, max_results)
                except (httpx.TimeoutException, httpx.RequestError) as e:
                    error = f"{type(e).__name__}: {e}"
                else:
                    if resp.status_code not in _TRANSIENT_STATUS:
                        return self._parse(resp, query, attempt, started)
                    error = f"transient status {resp.status_code}"

                if attempt >= self.max_retries:
                    break
                delay = self._delay(attempt, resp)
                logger.warning(
                    "Tavily search retry",
                    extra={"attempt": attempt, "max_retries": self.max_retries, "sleep_s": delay, "error": error},
                )
                await asyncio.sleep(delay)

        logger.error(
            "Tavily search failed",
            extra={"query_len": len(query), "elapsed_ms": int((time.monotonic() - started) * 1000), "error": error},
        )
        raise WebSearchError(f"Tavily search failed: {error}")

    def _parse(self, resp: httpx.Response, query: str, attempt: int, started: float) -> list[SearchResult]:
        if resp.is_error:
            raise WebSearchError(f"Tavily search rejected with status {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise WebSearchError("tavily response is not JSON") from e
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise WebSearchError("tavily response missing results list")

        results = _to_results(data["results"], source=self.source_name, url_key="url", snippet_key="content")
        logger.info(
            "Tavily search ok",
            extra={
                "query_len": len(query),
                "attempt": attempt,
                "result_count": len(results),
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return results


@dataclass(frozen=True)
class DuckDuckGoSearchProvider:
    """DuckDuckGo search provider (no API key needed)."""

    source_name: str = "duckduckgo"

    def _search_sync(self, query: str, max_results: int) -> list[SearchResult]:
        with DDGS() as ddgs:
            items = list(ddgs.text(query, max_results=max_results))
        return _to_results(items, source=self.source_name, url_key="href", snippet_key="body")

    async def search(self, query: str, *, max_results: int) -> list[SearchResult]:
        try:
            return await asyncio.to_thread(self._search_sync, query, max_results)
        except Exception as e:
            raise WebSearchError(f"DuckDuckGo search failed: {e}") from e


def get_search_provider(settings: Settings) -> WebSearchProvider:
    """Create the search provider selected in settings."""

    if settings.search_provider == "tavily":
        if not settings.tavily_api_key:
            raise ValueError(
                "Missing STORMWEAVER_TAVILY_API_KEY while search_provider=tavily. "
                "Set it in environment variables or .env."
            )
        return TavilySearchProvider(
            api_key=settings.tavily_api_key,
            base_url=settings.tavily_api_base_url,
            search_depth=settings.tavily_search_depth,
            timeout_s=settings.tavily_timeout_s,
            max_retries=settings.tavily_max_retries,
            retry_backoff_s=settings.tavily_retry_backoff_s,
            retry_max_backoff_s=settings.tavily_retry_max_backoff_s,
        )

    return DuckDuckGoSearchProvider()
