"""Fetch a web page and reduce it to readable text."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup
from readability import Document

from stormweaver.config import Settings
from stormweaver.logging import get_logger
from stormweaver.models.search import ParsedDocument

logger = get_logger(__name__)


@dataclass(frozen=True)
class FetchedPage:
    """Fetched page payload."""

    url: str
    content: bytes
    content_type: str | None


class PageFetcher:
    """Fetch pages over HTTP."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._timeout = httpx.Timeout(settings.http_timeout_s)
        self._headers = {"User-Agent": settings.http_user_agent}
        self._transport = transport

    async def fetch(self, url: str) -> FetchedPage:
        """Fetch a URL; raises ``httpx.HTTPError`` on transport or status errors."""

        async with httpx.AsyncClient(
            timeout=self._timeout,
            headers=self._headers,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()
        return FetchedPage(url=str(resp.url), content=resp.content, content_type=resp.headers.get("content-type"))


class PageParser:
    """Parse fetched HTML pages into cleaned text."""

    def __init__(self, max_chars: int = 25_000) -> None:
        self._max_chars = max_chars

    def parse_html(self, url: str, html: str, *, content_type: str | None = None) -> ParsedDocument:
        try:
            doc = Document(html)
            title = doc.short_title() or None
            soup = BeautifulSoup(doc.summary(html_partial=True), "lxml")
            text = soup.get_text("\n", strip=True)
        except Exception as e:
            # readability gives up on some markup; fall back to the whole body
            logger.warning("Readability failed, using full page text", extra={"url": url, "error": str(e)})
            soup = BeautifulSoup(html, "lxml")
            title = soup.title.get_text(strip=True) if soup.title else None
            text = soup.get_text("\n", strip=True)

        text = "\n".join(line.strip() for line in text.splitlines() if line.strip())
        if len(text) > self._max_chars:
            text = text[: self._max_chars] + "\n\n[TRUNCATED]"
        return ParsedDocument(url=url, title=title, text=text, content_type=content_type)

    def parse(self, page: FetchedPage) -> ParsedDocument:
        html = page.content.decode("utf-8", errors="replace")
        return self.parse_html(page.url, html, content_type=page.content_type)
