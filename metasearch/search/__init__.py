"""Meta search: provider fan-out, quota ledger, and semantic ranking."""

from metasearch.search.aggregator import AggregationResult, Aggregator
from metasearch.search.embeddings import EmbeddingEngine
from metasearch.search.errors import MetaSearchError, PreconditionError, ProviderError, RerankError
from metasearch.search.quota import QuotaLedger
from metasearch.search.rerank import SemanticReranker, cosine_similarity
from metasearch.search.service import MetaSearchService

__all__ = [
    "AggregationResult",
    "Aggregator",
    "EmbeddingEngine",
    "MetaSearchError",
    "MetaSearchService",
    "PreconditionError",
    "ProviderError",
    "QuotaLedger",
    "RerankError",
    "SemanticReranker",
    "cosine_similarity",
]
