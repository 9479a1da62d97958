"""Semantic ranking: reorders merged results by embedding similarity to the query."""

import logging
import time
from collections.abc import Sequence

import numpy as np

from metasearch.contracts.meta_search_v1 import EmbeddingMatch, SearchResultItem, VectorSearchResult
from metasearch.search.embeddings import EmbeddingEngine
from metasearch.search.errors import RerankError

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 when lengths differ or either norm is zero."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        return 0.0
    denominator = np.linalg.norm(va) * np.linalg.norm(vb)
    if denominator == 0:
        return 0.0
    return float(np.dot(va, vb) / denominator)


class SemanticReranker:
    """Scores documents against a query with an EmbeddingEngine."""

    def __init__(self, engine: EmbeddingEngine):
        self._engine = engine

    def _score(self, query: str, documents: Sequence[str]) -> tuple[np.ndarray, list[EmbeddingMatch]]:
        query_embedding = self._engine.embed(query)
        matches = [
            EmbeddingMatch(
                index=i,
                text=doc,
                similarity=cosine_similarity(query_embedding, self._engine.embed(doc)),
            )
            for i, doc in enumerate(documents)
        ]
        return query_embedding, matches

    def semantic_search(self, query: str, documents: Sequence[str], top_k: int = 10) -> VectorSearchResult:
        """Top-k documents by similarity, highest first. Ties keep input order."""
        start = time.perf_counter()
        query_embedding, matches = self._score(query, documents)
        matches.sort(key=lambda m: -m.similarity)
        return VectorSearchResult(
            query=query,
            results=matches[: max(0, top_k)],
            query_embedding=query_embedding.tolist(),
            processing_time=(time.perf_counter() - start) * 1000,
        )

    def find_similar_texts(
        self,
        target: str,
        candidates: Sequence[str],
        threshold: float = 0.7,
    ) -> list[EmbeddingMatch]:
        """Candidates with similarity >= threshold, highest first."""
        _, matches = self._score(target, candidates)
        similar = [m for m in matches if m.similarity >= threshold]
        similar.sort(key=lambda m: -m.similarity)
        return similar

    def rerank(self, query: str, results: list[SearchResultItem]) -> list[SearchResultItem]:
        """Attach similarity to every result and return them reordered (nothing dropped).

        Raises RerankError on any failure so the caller can keep the
        original order instead.
        """
        if not results:
            return []
        try:
            documents = [r.document_text() for r in results]
            ranked = self.semantic_search(query, documents, top_k=len(documents))
            for match in ranked.results:
                results[match.index].similarity = min(1.0, max(0.0, match.similarity))
            reordered = [results[m.index] for m in ranked.results]
        except Exception as e:
            raise RerankError(f"semantic ranking failed: {e}") from e
        if len(reordered) != len(results):
            raise RerankError(f"ranking returned {len(reordered)} of {len(results)} results")
        logger.debug("Reranked %s results for %r", len(reordered), query[:80])
        return reordered
