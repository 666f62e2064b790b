"""Tests for tokenization, BM25 sparse vectors and the rate limiter."""

import asyncio
import time

import pytest

from chunkgraph.utils.rate_limiter import RateLimiter
from chunkgraph.utils.sparse_vectors import SparseVectorizer
from chunkgraph.utils.text import jaccard, tokenize, word_set


class TestTokenize:
    def test_splits_camel_and_snake_case(self):
        assert tokenize("getUserName parse_config") == ["get", "user", "name", "parse", "config"]

    def test_splits_dotted_and_kebab_names(self):
        assert tokenize("os.path.join my-widget") == ["os", "path", "join", "my", "widget"]

    def test_drops_stop_words_numbers_and_single_chars(self):
        assert tokenize("return x if the value is 42") == ["value"]

    def test_punctuation_is_stripped(self):
        assert tokenize("render(view); // done!") == ["render", "view", "done"]


class TestJaccard:
    def test_identical_sets(self):
        assert jaccard(frozenset({"a", "b"}), frozenset({"a", "b"})) == 1.0

    def test_disjoint_and_empty(self):
        assert jaccard(frozenset({"a"}), frozenset({"b"})) == 0.0
        assert jaccard(frozenset(), frozenset()) == 0.0

    def test_word_set_is_case_insensitive(self):
        assert word_set("Foo foo BAR") == frozenset({"foo", "bar"})


class TestSparseVectorizer:
    @pytest.fixture
    def vectorizer(self) -> SparseVectorizer:
        return SparseVectorizer().fit(
            [
                "def parse config file",
                "def render template view",
                "def parse template string",
            ]
        )

    def test_rare_terms_outweigh_common_terms(self, vectorizer):
        vector = vectorizer.transform("def parse config")

        assert vector["config"] > vector["parse"] > vector["def"]

    def test_single_document_corpus_has_nonzero_weights(self):
        vectorizer = SparseVectorizer().fit(["lonely widget"])

        vector = vectorizer.transform("lonely widget")
        assert vector
        assert all(weight > 0 for weight in vector.values())

    def test_terms_are_sorted_and_deterministic(self, vectorizer):
        first = vectorizer.transform("view template render parse")
        second = vectorizer.transform("view template render parse")

        assert first == second
        assert list(first) == sorted(first)

    def test_empty_text(self, vectorizer):
        assert vectorizer.transform("") == {}

    def test_score_prefers_matching_documents(self, vectorizer):
        config_doc = vectorizer.transform("def parse config file")
        view_doc = vectorizer.transform("def render template view")

        assert vectorizer.score("config", config_doc) > vectorizer.score("config", view_doc)

    def test_corpus_statistics(self, vectorizer):
        assert vectorizer.document_count == 3
        assert vectorizer.vocabulary_size == 8


class TestRateLimiter:
    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValueError):
            RateLimiter(0)

    @pytest.mark.asyncio
    async def test_allows_burst_up_to_limit(self):
        limiter = RateLimiter(max_requests=3, period=60.0)

        start = time.monotonic()
        for _ in range(3):
            await limiter.acquire()

        assert time.monotonic() - start < 0.5
        assert limiter.in_flight_window == 3

    @pytest.mark.asyncio
    async def test_waits_for_window_to_slide(self):
        limiter = RateLimiter(max_requests=2, period=0.2)

        start = time.monotonic()
        await asyncio.gather(*(limiter.acquire() for _ in range(3)))

        assert time.monotonic() - start >= 0.15
