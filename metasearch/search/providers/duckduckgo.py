"""DuckDuckGo: link-through only (no usable public results API)."""

from metasearch.contracts.meta_search_v1 import ProviderId, ResultSource, SearchResultItem
from metasearch.search.providers.base import ProviderAdapter, deep_link_result, encode_query
from metasearch.search.quota import QuotaLedger


class DuckDuckGoAdapter(ProviderAdapter):
    def __init__(self, ledger: QuotaLedger):
        self._ledger = ledger

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.DUCKDUCKGO

    async def search(self, text: str) -> list[SearchResultItem]:
        # Counted although no request is made; usage stats track invocations.
        self._ledger.consume(ProviderId.DUCKDUCKGO)
        return [
            deep_link_result(
                "ddg_fallback",
                ResultSource.DUCKDUCKGO,
                title=f'Search "{text}" on DuckDuckGo',
                url=f"https://duckduckgo.com/?q={encode_query(text)}",
                snippet=f'Privacy-focused search for "{text}" on DuckDuckGo. Click to open in a new tab.',
                metadata={"privacy": "enhanced"},
            )
        ]
