"""Tests for the OpenAI embedding and chat providers using stubbed clients."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest

from chunkgraph.core.config.embedding_config import EmbeddingConfig
from chunkgraph.interfaces.llm_provider import CompletionOptions
from chunkgraph.providers.embeddings.openai_provider import OpenAIEmbeddingProvider
from chunkgraph.providers.llm.openai_llm_provider import OpenAILLMProvider

REQUEST = httpx.Request("POST", "https://api.openai.test/v1/embeddings")


def _connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=REQUEST)


def _embedding_response(vectors: dict[int, list[float]], tokens: int = 7):
    return SimpleNamespace(
        data=[SimpleNamespace(index=i, embedding=v) for i, v in vectors.items()],
        usage=SimpleNamespace(total_tokens=tokens),
    )


def _embedding_client(create: AsyncMock):
    return SimpleNamespace(embeddings=SimpleNamespace(create=create))


def _chat_response(content: str, prompt_tokens: int = 10, completion_tokens: int = 5):
    return SimpleNamespace(
        choices=[
            SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")
        ],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


@pytest.fixture
def embedding_config() -> EmbeddingConfig:
    return EmbeddingConfig(api_key="sk-test", dims=2, max_retries=3)


class TestOpenAIEmbeddingProvider:
    @pytest.mark.asyncio
    async def test_vectors_are_returned_in_input_order(self, embedding_config):
        create = AsyncMock(return_value=_embedding_response({1: [0.3, 0.4], 0: [0.1, 0.2]}))
        provider = OpenAIEmbeddingProvider(embedding_config, client=_embedding_client(create))

        vectors = await provider.embed(["first", "second"])

        assert vectors == [[0.1, 0.2], [0.3, 0.4]]
        create.assert_awaited_once_with(
            model="text-embedding-3-small", input=["first", "second"], dimensions=2
        )
        assert provider.get_usage_stats() == {"requests_made": 1, "tokens_used": 7}

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self, embedding_config):
        create = AsyncMock(
            side_effect=[_connection_error(), _embedding_response({0: [1.0, 0.0]})]
        )
        provider = OpenAIEmbeddingProvider(embedding_config, client=_embedding_client(create))

        with patch("asyncio.sleep", new=AsyncMock()) as sleep:
            vectors = await provider.embed(["retry me"])

        assert vectors == [[1.0, 0.0]]
        assert create.await_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, embedding_config):
        create = AsyncMock(side_effect=_connection_error())
        provider = OpenAIEmbeddingProvider(embedding_config, client=_embedding_client(create))

        with patch("asyncio.sleep", new=AsyncMock()):
            with pytest.raises(RuntimeError, match="after 3 attempts"):
                await provider.embed(["never"])

        assert create.await_count == 3

    @pytest.mark.asyncio
    async def test_non_retryable_error_is_raised_immediately(self, embedding_config):
        create = AsyncMock(side_effect=openai.APIError("bad request", REQUEST, body=None))
        provider = OpenAIEmbeddingProvider(embedding_config, client=_embedding_client(create))

        with pytest.raises(RuntimeError, match="Embedding request failed"):
            await provider.embed(["bad"])

        assert create.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_input_skips_request(self, embedding_config):
        create = AsyncMock()
        provider = OpenAIEmbeddingProvider(embedding_config, client=_embedding_client(create))

        assert await provider.embed([]) == []
        create.assert_not_awaited()

    def test_properties_come_from_config(self, embedding_config):
        provider = OpenAIEmbeddingProvider(
            embedding_config, client=_embedding_client(AsyncMock())
        )

        assert provider.name == "openai"
        assert provider.dims == 2
        assert provider.batch_size == 100


class TestOpenAILLMProvider:
    @pytest.mark.asyncio
    async def test_complete_returns_content_and_tracks_usage(self):
        create = AsyncMock(return_value=_chat_response("a summary"))
        client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
        provider = OpenAILLMProvider(model="gpt-test", client=client)

        response = await provider.complete(
            [{"role": "user", "content": "summarize"}],
            CompletionOptions(max_completion_tokens=64, temperature=0.2),
        )

        assert response.content == "a summary"
        assert response.tokens_used == 15
        assert response.finish_reason == "stop"
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-test"
        assert kwargs["max_completion_tokens"] == 64
        assert kwargs["temperature"] == 0.2
        assert provider.get_usage_stats() == {
            "requests_made": 1,
            "total_tokens": 15,
            "prompt_tokens": 10,
            "completion_tokens": 5,
        }

    @pytest.mark.asyncio
    async def test_retries_then_fails(self):
        create = AsyncMock(side_effect=_connection_error())
        client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
        provider = OpenAILLMProvider(max_retries=2, client=client)

        with patch("asyncio.sleep", new=AsyncMock()):
            with pytest.raises(RuntimeError, match="after 2 attempts"):
                await provider.complete([{"role": "user", "content": "hi"}])

        assert create.await_count == 2
        assert provider.get_usage_stats()["requests_made"] == 0
