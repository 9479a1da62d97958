"""Meta search service: aggregate, optionally rerank, and assemble the response."""

import time

import httpx

from metasearch.contracts.meta_search_v1 import MetaSearchResponse, ProviderId, ProviderUsage
from metasearch.core.config import Config, config
from metasearch.core.logger import logger
from metasearch.search.aggregator import Aggregator
from metasearch.search.embeddings import EmbeddingEngine
from metasearch.search.errors import PreconditionError, RerankError
from metasearch.search.providers import build_default_providers
from metasearch.search.quota import QuotaLedger
from metasearch.search.rerank import SemanticReranker


class MetaSearchService:
    """Entry point used by the UI layer and the CLI.

    All collaborators are injected; from_config() wires the defaults. Once the
    query passes the non-empty check a response is always returned: provider
    failures show up in `sources` and a ranking failure only skips ranking.
    """

    def __init__(
        self,
        aggregator: Aggregator,
        reranker: SemanticReranker,
        ledger: QuotaLedger,
        max_results: int = 0,
    ):
        self._aggregator = aggregator
        self._reranker = reranker
        self._ledger = ledger
        self._max_results = max(0, max_results)

    @classmethod
    def from_config(cls, cfg: Config | None = None, client: httpx.AsyncClient | None = None) -> "MetaSearchService":
        cfg = cfg or config
        ledger = QuotaLedger(
            path=cfg.quota_file,
            limits={ProviderId.GOOGLE: cfg.google_monthly_limit},
        )
        engine = EmbeddingEngine(
            dimension=cfg.embedding_dimension,
            ttl_seconds=cfg.embedding_cache_ttl_seconds,
            max_entries=cfg.embedding_cache_max_entries,
        )
        known = {p.value for p in ProviderId}
        enabled = [ProviderId(s) for s in cfg.enabled_sources if s in known]
        aggregator = Aggregator(
            build_default_providers(ledger, client=client),
            ledger,
            timeout=cfg.search_timeout_seconds,
            enabled=enabled,
        )
        return cls(aggregator, SemanticReranker(engine), ledger, max_results=cfg.max_results)

    @property
    def ledger(self) -> QuotaLedger:
        return self._ledger

    async def search(self, query: str, use_ai: bool = True) -> MetaSearchResponse:
        text = (query or "").strip()
        if not text:
            raise PreconditionError("Search query cannot be empty")

        start = time.perf_counter()
        logger.search_started(
            text,
            use_ai,
            [p.provider_id.value for p in self._aggregator.providers if self._aggregator.is_enabled(p.provider_id)],
        )
        aggregated = await self._aggregator.run(text)
        results = aggregated.results

        ai_enhanced = False
        if use_ai and results:
            try:
                results = self._reranker.rerank(text, results)
                ai_enhanced = True
            except RerankError as e:
                logger.rerank_skipped(str(e))
                for item in results:
                    item.similarity = None

        if self._max_results:
            results = results[: self._max_results]

        elapsed = time.perf_counter() - start
        logger.search_finished(text, len(results), ai_enhanced, elapsed)
        return MetaSearchResponse(
            query=text,
            results=results,
            sources=aggregated.sources,
            total_results=len(results),
            processing_time=elapsed * 1000,
            ai_enhanced=ai_enhanced,
        )

    def get_usage_stats(self) -> dict[ProviderId, ProviderUsage]:
        return self._ledger.snapshot()

    def reset_google_usage(self) -> None:
        self._ledger.reset(ProviderId.GOOGLE)
        logger.info("Google usage reset")

    def can_use_google(self) -> bool:
        return self._ledger.can_use(ProviderId.GOOGLE)
