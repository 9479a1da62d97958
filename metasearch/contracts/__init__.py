"""Meta search contract v1: shared types for results, provider outcomes, and quota snapshots."""

from metasearch.contracts.meta_search_v1 import (
    EmbeddingMatch,
    MetaSearchResponse,
    ProviderId,
    ProviderOutcome,
    ProviderUsage,
    ResultSource,
    SearchResultItem,
    VectorSearchResult,
)

__all__ = [
    "EmbeddingMatch",
    "MetaSearchResponse",
    "ProviderId",
    "ProviderOutcome",
    "ProviderUsage",
    "ResultSource",
    "SearchResultItem",
    "VectorSearchResult",
]
