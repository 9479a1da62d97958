"""Search providers and the ordered registry the Aggregator dispatches from."""

import httpx

from metasearch.search.providers.base import ProviderAdapter, deep_link_result
from metasearch.search.providers.brave import BraveAdapter
from metasearch.search.providers.duckduckgo import DuckDuckGoAdapter
from metasearch.search.providers.google import BingAlternativeAdapter, GoogleAdapter
from metasearch.search.providers.wikipedia import WikipediaAdapter
from metasearch.search.quota import QuotaLedger


def build_default_providers(
    ledger: QuotaLedger,
    client: httpx.AsyncClient | None = None,
) -> list[ProviderAdapter]:
    """Registry in dispatch order; pre-rerank results follow this order."""
    return [
        WikipediaAdapter(ledger, client=client),
        DuckDuckGoAdapter(ledger),
        BraveAdapter(ledger),
        GoogleAdapter(ledger),
    ]


__all__ = [
    "ProviderAdapter",
    "deep_link_result",
    "WikipediaAdapter",
    "BraveAdapter",
    "DuckDuckGoAdapter",
    "GoogleAdapter",
    "BingAlternativeAdapter",
    "build_default_providers",
]
