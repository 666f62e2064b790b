"""Tests for batched dense-vector generation and its fallbacks."""

import pytest

from chunkgraph.services.embedding_service import EmbeddingService
from tests.fixtures.fake_providers import FakeEmbeddingProvider

TEXTS = ["alpha", "beta", "gamma", "delta", "epsilon"]


class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_batches_preserve_input_order(self):
        provider = FakeEmbeddingProvider(dims=4, batch_size=2)
        service = EmbeddingService(provider)

        vectors = await service.embed_texts(TEXTS)

        assert [len(batch) for batch in provider.calls] == [2, 2, 1]
        assert vectors == [provider._vector(text) for text in TEXTS]
        assert service.failed_batches == 0

    @pytest.mark.asyncio
    async def test_failed_batch_falls_back_to_zero_vectors(self):
        provider = FakeEmbeddingProvider(dims=4, batch_size=2, fail_on_calls={1})
        service = EmbeddingService(provider, max_concurrency=1)

        vectors = await service.embed_texts(TEXTS)

        assert len(vectors) == len(TEXTS)
        assert vectors[2] == [0.0] * 4
        assert vectors[3] == [0.0] * 4
        assert vectors[0] == provider._vector("alpha")
        assert vectors[4] == provider._vector("epsilon")
        assert service.failed_batches == 1

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_zero_vectors(self):
        provider = FakeEmbeddingProvider(dims=3, delay=0.5)
        service = EmbeddingService(provider, timeout=0.05)

        vectors = await service.embed_texts(["slow"])

        assert vectors == [[0.0, 0.0, 0.0]]
        assert service.failed_batches == 1

    @pytest.mark.asyncio
    async def test_malformed_vectors_are_replaced(self):
        provider = FakeEmbeddingProvider(dims=3)
        service = EmbeddingService(provider, dims=4)

        vectors = await service.embed_texts(["wrong size"])

        assert vectors == [[0.0] * 4]
        assert service.failed_batches == 1

    @pytest.mark.asyncio
    async def test_without_provider_yields_zero_vectors(self):
        service = EmbeddingService(None, dims=2)

        vectors = await service.embed_texts(["a", "b"])

        assert vectors == [[0.0, 0.0], [0.0, 0.0]]

    def test_dims_required_without_provider(self):
        with pytest.raises(ValueError):
            EmbeddingService(None)

    @pytest.mark.asyncio
    async def test_empty_input(self):
        provider = FakeEmbeddingProvider()
        service = EmbeddingService(provider)

        assert await service.embed_texts([]) == []
        assert provider.calls == []
