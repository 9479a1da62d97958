"""Deterministic text embeddings with a TTL cache.

Not a learned model: each word hashes to a slot that receives a
position-weighted count, and its characters spill small values into the
following slots. Good enough to rank a few dozen search results by overlap
with the query, and identical across runs and machines.
"""

import logging
import struct
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_DIMENSION = 384
DEFAULT_TTL_SECONDS = 24 * 60 * 60


def normalize_text(text: str) -> str:
    return (text or "").strip().lower()


def _utf16_units(text: str) -> tuple[int, ...]:
    raw = text.encode("utf-16-le")
    return struct.unpack(f"<{len(raw) // 2}H", raw)


def string_hash(text: str) -> int:
    """Signed 32-bit base-31 polynomial hash over UTF-16 code units."""
    h = 0
    for unit in _utf16_units(text):
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def compute_embedding(normalized: str, dimension: int = DEFAULT_DIMENSION) -> np.ndarray:
    """Embed already-normalized text. Empty text yields the zero vector."""
    vector = np.zeros(dimension, dtype=np.float64)
    for i, word in enumerate(normalized.split()):
        position = abs(string_hash(word)) % dimension
        vector[position] += 1.0 / (i + 1)
        for j, unit in enumerate(_utf16_units(word)):
            vector[(position + j) % dimension] += unit / 10000.0
    norm = np.linalg.norm(vector)
    if norm > 0:
        vector /= norm
    return vector


@dataclass
class EmbeddingCacheEntry:
    vector: np.ndarray
    inserted_at: float


class EmbeddingEngine:
    """Cache-backed embed(). Stale entries are recomputed on access, never swept.

    max_entries=0 leaves the cache unbounded; otherwise the oldest insertion
    is dropped to make room. Concurrent misses for the same key may both
    compute; the later write wins with an identical vector.
    """

    def __init__(
        self,
        dimension: int = DEFAULT_DIMENSION,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        self._ttl = ttl_seconds
        self._max_entries = max(0, max_entries)
        self._clock = clock
        self._cache: dict[str, EmbeddingCacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _is_valid(self, entry: EmbeddingCacheEntry, now: float) -> bool:
        return now - entry.inserted_at < self._ttl

    def embed(self, text: str) -> np.ndarray:
        key = normalize_text(text)
        now = self._clock()
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None and self._is_valid(entry, now):
                self.hits += 1
                return entry.vector
            self.misses += 1

        vector = compute_embedding(key, self.dimension)
        vector.flags.writeable = False

        with self._lock:
            self._cache.pop(key, None)
            if self._max_entries and len(self._cache) >= self._max_entries:
                oldest = next(iter(self._cache))
                del self._cache[oldest]
            self._cache[key] = EmbeddingCacheEntry(vector=vector, inserted_at=now)
        return vector

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self.hits = 0
            self.misses = 0
        logger.debug("Embedding cache cleared")

    def cache_size(self) -> int:
        return len(self._cache)

    def cache_stats(self) -> dict[str, int | str]:
        size = len(self._cache)
        # 8 bytes per float64 component
        memory_kb = round(size * self.dimension * 8 / 1024)
        return {
            "size": size,
            "memory_usage": f"{memory_kb} KB",
            "hits": self.hits,
            "misses": self.misses,
        }
