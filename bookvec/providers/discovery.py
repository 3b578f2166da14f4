"""
External book discovery sources.

Three tiers, tried in order by MultiTierSearchAggregator:
1. AIRankedDiscovery - asks a generative search model for a JSON book list
2. StructuredBookSearch - Google Books style volume search
3. PlaceholderDiscovery - fixed example candidates built from the query
"""

import logging
from typing import Any, Optional

import httpx

from ..config import DiscoveryConfig
from ..errors import BookvecError, ParseFailure, check_response, transport_failure
from ..types import ExternalCandidate, Outcome
from .base import ChatProvider, extract_json_object, request_headers
from .llm import system_prompt

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "未知作者"

DISCOVERY_PROMPT = """請搜尋與以下查詢最相關的書籍，依相關程度排序，最多{limit}本：

查詢：{query}

只以JSON格式回答，不要加入其他說明：
{{"books": [{{"title": "書名", "author": "作者", "description": "簡介", "publishYear": "出版年份", "isbn": "ISBN"}}]}}"""


def _text(value: Any) -> str:
    """Coerce a loosely typed JSON field to a stripped string."""
    if value is None:
        return ""
    return str(value).strip()


# -----------------------------------------------------------------------------
# Tier 1
# -----------------------------------------------------------------------------

class AIRankedDiscovery:
    """
    Discovery through a generative search model.

    The model is asked for ``{"books": [...]}``; the JSON object is pulled
    out of whatever prose surrounds it. An unparseable answer yields an
    empty list so the next tier is tried.
    """

    name = "ai"

    def __init__(self, chat: ChatProvider, config: Optional[DiscoveryConfig] = None):
        self.chat = chat
        self.config = config or DiscoveryConfig()

    def _filters(self) -> dict[str, Any]:
        extra: dict[str, Any] = {}
        if self.config.ai_domain_filter:
            extra["search_domain_filter"] = list(self.config.ai_domain_filter)
        if self.config.ai_recency_filter:
            extra["search_recency_filter"] = self.config.ai_recency_filter
        return extra

    async def search(self, query: str) -> Outcome[list[ExternalCandidate]]:
        outcome = await self.chat.complete(
            system_prompt("書籍推薦助手"),
            DISCOVERY_PROMPT.format(query=query, limit=self.config.max_candidates),
            max_tokens=self.config.ai_max_tokens,
            temperature=self.config.ai_temperature,
            top_p=self.config.ai_top_p,
            extra=self._filters(),
        )
        if not outcome.ok:
            return Outcome(value=[], failure=outcome.failure)
        try:
            return Outcome.success(self.parse(outcome.value))
        except ParseFailure as e:
            logger.warning("AI discovery response unusable: %s", e)
            return e.to_outcome([])

    def parse(self, text: str) -> list[ExternalCandidate]:
        """Candidates from a model answer; raises ParseFailure if there is no book list."""
        data = extract_json_object(text)
        if data is None:
            raise ParseFailure("no JSON object in response")
        books = data.get("books")
        if not isinstance(books, list):
            raise ParseFailure("JSON object has no 'books' list")

        candidates = []
        for book in books:
            if not isinstance(book, dict):
                continue
            title = _text(book.get("title"))
            if not title:
                continue
            candidates.append(ExternalCandidate(
                title=title,
                description=_text(book.get("description")),
                author=_text(book.get("author")) or UNKNOWN_AUTHOR,
                isbn=_text(book.get("isbn")),
                publish_year=_text(book.get("publishYear")),
                source=self.name,
            ))
        return candidates[:self.config.max_candidates]


# -----------------------------------------------------------------------------
# Tier 2
# -----------------------------------------------------------------------------

class StructuredBookSearch:
    """
    Keyword search against a Google Books style ``volumes`` endpoint.

    Optional API key: GOOGLE_BOOKS_API_KEY (name configurable). The key is
    sent as a query parameter of each request only.
    """

    name = "structured"

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or DiscoveryConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.search_timeout)

    def _params(self, query: str) -> dict[str, Any]:
        params: dict[str, Any] = {
            "q": query,
            "maxResults": self.config.search_max_results,
        }
        if self.config.search_lang_restrict:
            params["langRestrict"] = self.config.search_lang_restrict
        api_key = self.config.resolve_search_api_key()
        if api_key:
            params["key"] = api_key
        return params

    async def search(self, query: str) -> Outcome[list[ExternalCandidate]]:
        try:
            return Outcome.success(await self._request(query))
        except BookvecError as e:
            logger.warning("Structured book search unavailable: %s", e)
            return e.to_outcome([])

    async def _request(self, query: str) -> list[ExternalCandidate]:
        try:
            response = await self._client.get(
                self.config.search_url,
                params=self._params(query),
                headers=request_headers(),
                timeout=self.config.search_timeout,
            )
        except httpx.HTTPError as e:
            raise transport_failure(e, "Book search") from e
        check_response(response, "Book search")
        try:
            data = response.json()
        except ValueError as e:
            raise ParseFailure(f"Book search returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ParseFailure("Book search returned a non-object body")
        return self.parse(data)

    def parse(self, data: dict[str, Any]) -> list[ExternalCandidate]:
        """Candidates from a volumes response; volumes without a title are skipped."""
        items = data.get("items") or []
        if not isinstance(items, list):
            raise ParseFailure("'items' is not a list")
        candidates = []
        for entry in items:
            info = entry.get("volumeInfo") if isinstance(entry, dict) else None
            if not isinstance(info, dict):
                continue
            title = _text(info.get("title"))
            if not title:
                continue
            candidates.append(ExternalCandidate(
                title=title,
                description=_text(info.get("description")),
                author=self._authors(info),
                isbn=self._isbn(info),
                publish_year=_text(info.get("publishedDate")),
                cover_image=self._cover(info),
                source=self.name,
            ))
        return candidates

    @staticmethod
    def _authors(info: dict) -> str:
        authors = info.get("authors")
        if not isinstance(authors, list):
            return UNKNOWN_AUTHOR
        names = [_text(a) for a in authors if _text(a)]
        return ", ".join(names) or UNKNOWN_AUTHOR

    @staticmethod
    def _isbn(info: dict) -> str:
        identifiers = info.get("industryIdentifiers")
        if not isinstance(identifiers, list):
            return ""
        for ident in identifiers:
            if isinstance(ident, dict) and ident.get("type") in ("ISBN_13", "ISBN_10"):
                return _text(ident.get("identifier"))
        return ""

    @staticmethod
    def _cover(info: dict) -> str:
        links = info.get("imageLinks")
        if not isinstance(links, dict):
            return ""
        if "thumbnail" in links:
            return _text(links["thumbnail"])
        if "smallThumbnail" in links:
            return _text(links["smallThumbnail"])
        return ""

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# -----------------------------------------------------------------------------
# Tier 3
# -----------------------------------------------------------------------------

class PlaceholderDiscovery:
    """Example candidates seeded with the query text. Never fails."""

    name = "placeholder"

    def candidates(self, query: str) -> list[ExternalCandidate]:
        return [
            ExternalCandidate(
                title=f"關於「{query}」的書籍範例 1",
                description="這是一本關於您搜尋主題的範例書籍。包含豐富的內容和實用的知識。",
                author="範例作者",
                publish_year="2023",
                isbn="9780000000000",
                source=self.name,
            ),
            ExternalCandidate(
                title=f"「{query}」進階指南",
                description="深入探討相關主題的進階指南，適合想要深入了解的讀者。",
                author="專業作者",
                publish_year="2024",
                isbn="9780000000001",
                source=self.name,
            ),
        ]

    async def search(self, query: str) -> Outcome[list[ExternalCandidate]]:
        return Outcome.success(self.candidates(query))

