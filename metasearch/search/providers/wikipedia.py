"""Wikipedia search via the MediaWiki API; degrades to a link on any failure."""

import re
from datetime import UTC, datetime

import httpx

from metasearch.contracts.meta_search_v1 import ProviderId, ProviderOutcome, ResultSource, SearchResultItem
from metasearch.core.config import config
from metasearch.core.logger import logger
from metasearch.search.errors import ProviderError
from metasearch.search.providers.base import ProviderAdapter, deep_link_result, encode_query
from metasearch.search.quota import QuotaLedger

_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(text: str) -> str:
    return _TAG_RE.sub("", text or "")


def article_url(title: str) -> str:
    return f"https://en.wikipedia.org/wiki/{encode_query(title.replace(' ', '_'))}"


class WikipediaAdapter(ProviderAdapter):
    """Real search call. Failures never surface: the outcome stays success=True
    with a single "search on Wikipedia" link instead of hits.
    """

    def __init__(
        self,
        ledger: QuotaLedger,
        client: httpx.AsyncClient | None = None,
        api_url: str | None = None,
        limit: int | None = None,
        timeout: float = 10.0,
    ):
        self._ledger = ledger
        self._client = client
        self._api_url = api_url or config.wikipedia_api_url
        self._limit = limit if limit is not None else config.wikipedia_result_limit
        self._timeout = timeout

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.WIKIPEDIA

    async def _fetch(self, text: str) -> dict:
        params = {
            "action": "query",
            "list": "search",
            "srsearch": text,
            "format": "json",
            "origin": "*",
            "srlimit": str(self._limit),
        }
        headers = {"Accept": "application/json"}
        if self._client is not None:
            response = await self._client.get(self._api_url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(
                self._api_url,
                params=params,
                headers=headers,
                follow_redirects=True,
            )
            response.raise_for_status()
            return response.json()

    async def search(self, text: str) -> list[SearchResultItem]:
        try:
            data = await self._fetch(text)
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(self.provider_id.value, f"Wikipedia API error: {e}") from e

        hits = (data.get("query") or {}).get("search") if isinstance(data, dict) else None
        if not isinstance(hits, list):
            raise ProviderError(self.provider_id.value, "Wikipedia API returned no search block")

        now = datetime.now(UTC)
        results = [
            SearchResultItem(
                id=f"wiki_{i}",
                title=hit.get("title", ""),
                url=article_url(hit.get("title", "")),
                snippet=strip_html(hit.get("snippet", "")),
                source=ResultSource.WIKIPEDIA,
                timestamp=now,
                metadata={
                    "pageId": hit.get("pageid"),
                    "size": hit.get("size"),
                    "wordCount": hit.get("wordcount"),
                },
            )
            for i, hit in enumerate(hits)
        ]
        self._ledger.consume(ProviderId.WIKIPEDIA)
        return results

    def fallback_result(self, text: str) -> SearchResultItem:
        return deep_link_result(
            "wiki_fallback",
            ResultSource.WIKIPEDIA,
            title=f'Search "{text}" on Wikipedia',
            url=f"https://en.wikipedia.org/wiki/Special:Search?search={encode_query(text)}",
            snippet=f'Click to search for "{text}" directly on Wikipedia.',
        )

    async def query(self, text: str) -> tuple[list[SearchResultItem], ProviderOutcome]:
        try:
            results = await self.search(text)
        except Exception as e:
            logger.warning(f"Wikipedia search failed, returning search link: {e}")
            results = [self.fallback_result(text)]
        return results, ProviderOutcome.ok(len(results))
