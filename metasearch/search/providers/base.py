"""Provider adapter interface shared by every search source.

The Aggregator only ever calls query(): it returns results plus an outcome and
never raises. Subclasses implement search(), which may raise freely.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

from metasearch.contracts.meta_search_v1 import ProviderId, ProviderOutcome, ResultSource, SearchResultItem
from metasearch.core.logger import logger


def deep_link_result(
    result_id: str,
    source: ResultSource,
    title: str,
    url: str,
    snippet: str,
    metadata: dict[str, Any] | None = None,
) -> SearchResultItem:
    """Synthetic single result that links to the provider's own search page."""
    return SearchResultItem(
        id=result_id,
        title=title,
        url=url,
        snippet=snippet,
        source=source,
        timestamp=datetime.now(UTC),
        metadata={"fallback": True, **(metadata or {})},
    )


def encode_query(text: str) -> str:
    return quote(text, safe="!~*'()")


class ProviderAdapter(ABC):
    """Base for all search providers."""

    @property
    @abstractmethod
    def provider_id(self) -> ProviderId:
        """Provider this adapter reports under."""

    @abstractmethod
    async def search(self, text: str) -> list[SearchResultItem]:
        """Run the provider search. May raise."""

    async def query(self, text: str) -> tuple[list[SearchResultItem], ProviderOutcome]:
        """Failure-isolating entry point: an exception becomes an empty list plus an error."""
        try:
            results = await self.search(text)
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning(f"{self.provider_id.value} search failed: {reason}")
            return [], ProviderOutcome.fail(reason)
        return results, ProviderOutcome.ok(len(results))
