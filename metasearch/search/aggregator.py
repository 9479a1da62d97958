"""Concurrent provider fan-out with an overall deadline."""

import asyncio
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from metasearch.contracts.meta_search_v1 import ProviderId, ProviderOutcome, SearchResultItem
from metasearch.core.logger import logger
from metasearch.search.providers.base import ProviderAdapter
from metasearch.search.quota import QuotaLedger

QUOTA_EXCEEDED = "Monthly limit exceeded"
SOURCE_DISABLED = "Source disabled"
TIMEOUT = "timeout"


@dataclass
class AggregationResult:
    results: list[SearchResultItem] = field(default_factory=list)
    sources: dict[ProviderId, ProviderOutcome] = field(default_factory=dict)


class Aggregator:
    """Dispatches every enabled provider at once and joins them all.

    Results are flattened in registry order, not completion order. A
    provider still running when the deadline passes is cancelled and
    reported as a timeout; the others keep their results.
    """

    def __init__(
        self,
        providers: Sequence[ProviderAdapter],
        ledger: QuotaLedger,
        timeout: float | None = None,
        enabled: Iterable[ProviderId] | None = None,
    ):
        self._providers = list(providers)
        self._ledger = ledger
        self._timeout = timeout
        self._enabled = set(enabled) if enabled is not None else None

    @property
    def providers(self) -> list[ProviderAdapter]:
        return list(self._providers)

    def is_enabled(self, provider: ProviderId) -> bool:
        return self._enabled is None or provider in self._enabled

    async def _run_provider(
        self, provider: ProviderAdapter, text: str
    ) -> tuple[list[SearchResultItem], ProviderOutcome]:
        start = time.monotonic()
        try:
            results, outcome = await provider.query(text)
        except asyncio.CancelledError:
            logger.provider_result(
                provider.provider_id.value, 0, False,
                duration_seconds=time.monotonic() - start, error=TIMEOUT,
            )
            raise
        logger.provider_result(
            provider.provider_id.value,
            outcome.count,
            outcome.success,
            duration_seconds=time.monotonic() - start,
            error=outcome.error,
        )
        return results, outcome

    async def run(self, text: str) -> AggregationResult:
        sources: dict[ProviderId, ProviderOutcome] = {}
        dispatched: list[tuple[ProviderAdapter, asyncio.Task]] = []

        for provider in self._providers:
            pid = provider.provider_id
            if not self.is_enabled(pid):
                sources[pid] = ProviderOutcome.fail(SOURCE_DISABLED)
                continue
            if not self._ledger.can_use(pid):
                sources[pid] = ProviderOutcome.fail(QUOTA_EXCEEDED)
                continue
            task = asyncio.create_task(self._run_provider(provider, text), name=f"provider:{pid.value}")
            dispatched.append((provider, task))

        done: set[asyncio.Task] = set()
        if dispatched:
            done, pending = await asyncio.wait([t for _, t in dispatched], timeout=self._timeout)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        results: list[SearchResultItem] = []
        for provider, task in dispatched:
            pid = provider.provider_id
            if task not in done or task.cancelled():
                sources[pid] = ProviderOutcome.fail(TIMEOUT)
                continue
            try:
                items, outcome = task.result()
            except Exception as e:
                logger.warning(f"Provider {pid.value} broke its no-raise contract: {e}")
                sources[pid] = ProviderOutcome.fail(str(e) or type(e).__name__)
                continue
            sources[pid] = outcome
            results.extend(items)

        ordered = {pid: sources.get(pid, ProviderOutcome.fail(SOURCE_DISABLED)) for pid in ProviderId}
        return AggregationResult(results=results, sources=ordered)
