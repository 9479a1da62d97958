"""Brave Search: link-through only (the API needs a key and blocks browsers)."""

from metasearch.contracts.meta_search_v1 import ProviderId, ResultSource, SearchResultItem
from metasearch.search.providers.base import ProviderAdapter, deep_link_result, encode_query
from metasearch.search.quota import QuotaLedger


class BraveAdapter(ProviderAdapter):
    def __init__(self, ledger: QuotaLedger):
        self._ledger = ledger

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.BRAVE

    async def search(self, text: str) -> list[SearchResultItem]:
        # Counted although no request is made; usage stats track invocations.
        self._ledger.consume(ProviderId.BRAVE)
        return [
            deep_link_result(
                "brave_fallback",
                ResultSource.BRAVE,
                title=f'Search "{text}" on Brave Search',
                url=f"https://search.brave.com/search?q={encode_query(text)}",
                snippet=(
                    f'Privacy-focused, independent search for "{text}" on Brave Search. '
                    "No tracking, no profiling."
                ),
                metadata={"type": "web", "privacy": "enhanced"},
            )
        ]
