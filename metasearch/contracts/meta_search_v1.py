"""Meta search contract v1.

Defines the canonical types for:
  - Provider identity (ProviderId, ResultSource)
  - Result payload (SearchResultItem, ProviderOutcome, MetaSearchResponse)
  - Quota ledger snapshot (ProviderUsage)
  - Semantic search output (EmbeddingMatch, VectorSearchResult)

JSON produced from these models uses camelCase keys (totalResults,
processingTime, aiEnhanced, resetDate, ...) so the presentation layer can
consume it unchanged.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Provider identity
# ---------------------------------------------------------------------------


class ProviderId(StrEnum):
    """One external search source. Dispatch order follows declaration order."""

    WIKIPEDIA = "wikipedia"
    BRAVE = "brave"
    DUCKDUCKGO = "duckduckgo"
    GOOGLE = "google"


class ResultSource(StrEnum):
    """Literal origin of a result item.

    Differs from ProviderId only for the Bing-branded alternative that stands
    in for Google once its quota is exhausted; display labeling is left to
    the presentation layer.
    """

    WIKIPEDIA = "wikipedia"
    BRAVE = "brave"
    DUCKDUCKGO = "duckduckgo"
    GOOGLE = "google"
    GOOGLE_FALLBACK = "google-fallback"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Result payload
# ---------------------------------------------------------------------------


class SearchResultItem(_CamelModel):
    """One result owned by a single search call."""

    id: str = Field(description="Identifier unique within the provider's contribution")
    title: str = Field(default="")
    url: str = Field(default="")
    snippet: str = Field(default="", description="Plain text, HTML stripped")
    source: ResultSource
    timestamp: datetime
    similarity: float | None = Field(
        default=None,
        ge=0,
        le=1,
        description="Query similarity assigned by semantic ranking",
    )
    thumbnail: str | None = Field(default=None)
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific extras (pageId, fallback, privacy, alternative, ...)",
    )

    def document_text(self) -> str:
        """Text used to embed this result for ranking."""
        return f"{self.title} {self.snippet}"


class ProviderOutcome(_CamelModel):
    """What one provider contributed to one search call."""

    count: int = Field(default=0, ge=0)
    success: bool = Field(default=False)
    error: str | None = Field(default=None)

    @classmethod
    def ok(cls, count: int) -> "ProviderOutcome":
        return cls(count=count, success=True)

    @classmethod
    def fail(cls, error: str) -> "ProviderOutcome":
        return cls(count=0, success=False, error=error or "unknown error")


class MetaSearchResponse(_CamelModel):
    """Final object returned by MetaSearchService.search()."""

    query: str
    results: list[SearchResultItem] = Field(default_factory=list)
    sources: dict[ProviderId, ProviderOutcome] = Field(
        default_factory=dict,
        description="One outcome per provider, keyed by provider id",
    )
    total_results: int = Field(default=0, ge=0)
    processing_time: float = Field(default=0.0, ge=0, description="Wall-clock duration in ms")
    ai_enhanced: bool = Field(
        default=False,
        description="True only when semantic ranking was requested and applied",
    )

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Quota ledger snapshot
# ---------------------------------------------------------------------------


class ProviderUsage(_CamelModel):
    """Persisted usage for one provider; limit fields are set only for the gated provider."""

    used: int = Field(default=0, ge=0)
    limit: int | None = Field(default=None, ge=0)
    reset_date: date | None = Field(default=None, description="First day of the current billing month")
    remaining: int | None = Field(default=None, ge=0)

    @field_validator("reset_date", mode="before")
    @classmethod
    def _accept_datetime_strings(cls, value: Any) -> Any:
        # Older snapshots stored a full ISO timestamp of local midnight, often in UTC.
        if isinstance(value, str) and "T" in value:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        if isinstance(value, datetime):
            if value.tzinfo is not None:
                value = value.astimezone()
            return value.date()
        return value

    @property
    def gated(self) -> bool:
        return self.limit is not None


# ---------------------------------------------------------------------------
# Semantic search output
# ---------------------------------------------------------------------------


class EmbeddingMatch(_CamelModel):
    """One scored document from semantic_search / find_similar_texts."""

    index: int = Field(ge=0, description="Position of the document in the input list")
    text: str
    similarity: float


class VectorSearchResult(_CamelModel):
    query: str
    results: list[EmbeddingMatch] = Field(default_factory=list)
    query_embedding: list[float] = Field(default_factory=list)
    processing_time: float = Field(default=0.0, ge=0, description="Duration in ms")
