"""Web research models."""

from __future__ import annotations

from pydantic import BaseModel, HttpUrl


class SearchResult(BaseModel):
    """A single web search result item."""

    title: str | None = None
    snippet: str | None = None
    url: HttpUrl
    source: str
    rank: int

    def as_text(self) -> str:
        return f"[{self.rank}] {self.title or ''}\n{self.url}\n{self.snippet or ''}".strip()


class ParsedDocument(BaseModel):
    """A cleaned, readable representation of a fetched web page."""

    url: HttpUrl
    title: str | None = None
    text: str
    content_type: str | None = None
