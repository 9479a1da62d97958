"""Error taxonomy for the meta search pipeline.

Only PreconditionError reaches callers of MetaSearchService.search(); the
others are absorbed into per-provider outcomes or a skipped rerank.
"""


class MetaSearchError(Exception):
    """Base for all meta search errors."""


class PreconditionError(MetaSearchError, ValueError):
    """Caller supplied input that can never be searched (e.g. an empty query)."""


class ProviderError(MetaSearchError):
    """One provider failed; converted to an outcome at the adapter boundary."""

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider


class RerankError(MetaSearchError):
    """Embedding or similarity computation failed; ranking is skipped."""
