import numpy as np
import pytest
from hypothesis import assume, given
from hypothesis import strategies as st

from metasearch.search.embeddings import (
    EmbeddingEngine,
    compute_embedding,
    normalize_text,
    string_hash,
)


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance_hours(self, hours: float) -> None:
        self.value += hours * 3600


def test_string_hash_matches_32bit_base31_polynomial():
    assert string_hash("") == 0
    assert string_hash("a") == 97
    assert string_hash("abc") == 96354
    assert string_hash("hello") == 99162322
    # wraps into the negative int32 range
    assert string_hash("polygenelubricants") == -2147483648


def test_embed_is_deterministic_and_case_insensitive():
    engine = EmbeddingEngine()
    first = engine.embed("Hello World")
    second = engine.embed("Hello World")
    assert np.array_equal(first, second)
    assert np.array_equal(engine.embed("hello world"), first)
    assert np.array_equal(EmbeddingEngine().embed("  HELLO world "), first)


def test_embed_has_configured_dimension():
    assert EmbeddingEngine().embed("openai").shape == (384,)
    assert EmbeddingEngine(dimension=64).embed("openai").shape == (64,)


def test_empty_text_is_zero_vector():
    engine = EmbeddingEngine()
    assert not engine.embed("").any()
    assert not engine.embed("   \t\n").any()


def test_single_character_lands_on_its_hash_slot():
    vector = compute_embedding("a")
    assert vector[97] == pytest.approx(1.0)
    assert np.count_nonzero(vector) == 1


def test_earlier_words_weigh_more():
    vector = compute_embedding("a b", dimension=1000)
    # "a" -> slot 97 with weight 1, "b" -> slot 98 with weight 1/2
    assert vector[97] > vector[98] > 0


@pytest.mark.property
@given(st.text(min_size=1, max_size=200))
def test_embedding_is_unit_length_for_non_empty_text(text):
    assume(normalize_text(text).split())
    vector = compute_embedding(normalize_text(text))
    assert float(np.linalg.norm(vector)) == pytest.approx(1.0, abs=1e-9)


def test_cached_vector_is_reused_within_ttl():
    clock = FakeClock()
    engine = EmbeddingEngine(clock=clock)
    first = engine.embed("openai")
    clock.advance_hours(23)
    assert engine.embed("OpenAI") is first
    assert engine.hits == 1
    assert engine.misses == 1


def test_stale_entry_is_recomputed_after_ttl():
    clock = FakeClock()
    engine = EmbeddingEngine(clock=clock)
    first = engine.embed("openai")
    clock.advance_hours(25)
    second = engine.embed("openai")
    assert second is not first
    assert np.array_equal(second, first)
    assert engine.misses == 2
    assert engine.cache_size() == 1


def test_cached_vectors_are_read_only():
    vector = EmbeddingEngine().embed("openai")
    with pytest.raises(ValueError):
        vector[0] = 5.0


def test_clear_cache_and_stats():
    engine = EmbeddingEngine()
    engine.embed("one")
    engine.embed("two")
    stats = engine.cache_stats()
    assert stats["size"] == 2
    assert stats["memory_usage"] == "6 KB"

    engine.clear_cache()
    assert engine.cache_stats()["size"] == 0
    assert engine.cache_stats()["memory_usage"] == "0 KB"


def test_bounded_cache_drops_oldest_entry():
    engine = EmbeddingEngine(max_entries=2)
    engine.embed("one")
    engine.embed("two")
    engine.embed("three")
    assert engine.cache_size() == 2
    engine.embed("two")
    assert engine.hits == 1


def test_rejects_non_positive_dimension():
    with pytest.raises(ValueError):
        EmbeddingEngine(dimension=0)
