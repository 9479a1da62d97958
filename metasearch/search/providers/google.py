"""Google (quota-gated) with a Bing link-through once the monthly quota is spent."""

from metasearch.contracts.meta_search_v1 import ProviderId, ResultSource, SearchResultItem
from metasearch.core.logger import logger
from metasearch.search.providers.base import ProviderAdapter, deep_link_result, encode_query
from metasearch.search.quota import QuotaLedger


class BingAlternativeAdapter(ProviderAdapter):
    """Stand-in for Google. Reports under google; items carry source google-fallback."""

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.GOOGLE

    async def search(self, text: str) -> list[SearchResultItem]:
        return [
            deep_link_result(
                "bing_alternative",
                ResultSource.GOOGLE_FALLBACK,
                title=f'Search "{text}" on Bing (Alternative)',
                url=f"https://www.bing.com/search?q={encode_query(text)}",
                snippet=(
                    f'Alternative search results for "{text}" from Bing. '
                    "Used when Google API limit is reached."
                ),
                metadata={"type": "web", "alternative": "bing", "rank": 1},
            )
        ]


class GoogleAdapter(ProviderAdapter):
    def __init__(self, ledger: QuotaLedger, alternative: ProviderAdapter | None = None):
        self._ledger = ledger
        self._alternative = alternative or BingAlternativeAdapter()

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.GOOGLE

    async def search(self, text: str) -> list[SearchResultItem]:
        if not self._ledger.try_consume(ProviderId.GOOGLE):
            logger.info("Google monthly quota exhausted, using alternative provider")
            return await self._alternative.search(text)
        return [
            deep_link_result(
                "google_fallback",
                ResultSource.GOOGLE,
                title=f'Search "{text}" on Google',
                url=f"https://www.google.com/search?q={encode_query(text)}",
                snippet=f'Comprehensive search results for "{text}" on Google. Click to open in a new tab.',
                metadata={"type": "web", "rank": 1},
            )
        ]
