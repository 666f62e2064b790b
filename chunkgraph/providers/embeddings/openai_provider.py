"""OpenAI embedding provider for chunkgraph dense vectors."""

import asyncio
import random

import openai
from loguru import logger
from openai import AsyncOpenAI

from chunkgraph.core.config.embedding_config import EmbeddingConfig
from chunkgraph.interfaces.embedding_provider import EmbeddingProvider
from chunkgraph.utils.rate_limiter import RateLimiter

_RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embedding provider backed by the OpenAI (or compatible) embeddings API."""

    def __init__(
        self,
        config: EmbeddingConfig,
        client: AsyncOpenAI | None = None,
        rate_limiter: RateLimiter | None = None,
    ):
        """Initialize the provider.

        Args:
            config: Embedding configuration (model, dims, throughput limits)
            client: Pre-built client, mainly for tests; built from config otherwise
            rate_limiter: Shared limiter; one per provider is created otherwise
        """
        self._config = config
        if client is None:
            api_key = config.api_key.get_secret_value() if config.api_key else None
            client = AsyncOpenAI(
                api_key=api_key,
                base_url=config.base_url,
                timeout=config.timeout,
                max_retries=0,  # retries handled below
            )
        self._client = client
        self._rate_limiter = rate_limiter or RateLimiter(config.requests_per_minute)

        self._requests_made = 0
        self._tokens_used = 0

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._config.model

    @property
    def dims(self) -> int:
        return self._config.dims

    @property
    def batch_size(self) -> int:
        return self._config.batch_size

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed ``texts``, retrying transient failures with exponential backoff.

        Raises:
            RuntimeError: When the request still fails after ``max_retries``
        """
        if not texts:
            return []

        max_retries = self._config.max_retries
        last_error: Exception | None = None
        for attempt in range(max_retries):
            await self._rate_limiter.acquire()
            try:
                response = await self._client.embeddings.create(
                    model=self._config.model,
                    input=texts,
                    dimensions=self._config.dims,
                )
            except _RETRYABLE_ERRORS as e:
                last_error = e
                if attempt < max_retries - 1:
                    delay = min(60, (2**attempt) + random.uniform(0, 1))
                    logger.warning(
                        f"[Embed] {type(e).__name__} on attempt {attempt + 1}, "
                        f"retrying in {delay:.2f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error(f"[Embed] {type(e).__name__} after {max_retries} attempts")
                break
            except openai.APIError as e:
                raise RuntimeError(f"Embedding request failed: {e}") from e

            self._requests_made += 1
            if response.usage is not None:
                self._tokens_used += response.usage.total_tokens
            ordered = sorted(response.data, key=lambda item: item.index)
            return [list(item.embedding) for item in ordered]

        raise RuntimeError(
            f"Embedding request failed after {max_retries} attempts"
        ) from last_error

    def get_usage_stats(self) -> dict[str, int]:
        return {"requests_made": self._requests_made, "tokens_used": self._tokens_used}
