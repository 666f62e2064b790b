"""Dense-vector generation with batching, bounded concurrency and fallbacks.

# FILE_CONTEXT: The only network-bound step of indexing
# CONCURRENCY_MODEL:
#   - Texts are split into provider-sized batches
#   - At most ``max_concurrency`` batches are in flight (asyncio.Semaphore)
#   - Each call is bounded by asyncio.wait_for(timeout)
# ERROR_POLICY: A failed batch is logged and replaced by zero vectors; indexing
#   never stops because the embedding provider is unavailable
"""

import asyncio

from loguru import logger
from rich.progress import Progress, TaskID

from chunkgraph.interfaces.embedding_provider import EmbeddingProvider


class EmbeddingService:
    """Embed many texts through an EmbeddingProvider."""

    def __init__(
        self,
        provider: EmbeddingProvider | None,
        dims: int | None = None,
        max_concurrency: int = 4,
        timeout: float = 30.0,
        batch_size: int | None = None,
        progress: Progress | None = None,
    ):
        """Initialize the service.

        Args:
            provider: Embedding provider; None yields zero vectors only
            dims: Vector length; defaults to the provider's dims
            max_concurrency: Batches allowed in flight at once
            timeout: Seconds to wait for a single batch
            batch_size: Texts per request; defaults to the provider's batch size
            progress: Optional Rich Progress instance for an embedding bar
        """
        if provider is None and dims is None:
            raise ValueError("dims is required when no embedding provider is configured")
        self._provider = provider
        self._dims = dims if dims is not None else provider.dims  # type: ignore[union-attr]
        self._max_concurrency = max(1, max_concurrency)
        self._timeout = timeout
        self._batch_size = batch_size or (provider.batch_size if provider else 100)
        self.progress = progress
        self._failed_batches = 0

    @property
    def dims(self) -> int:
        return self._dims

    @property
    def failed_batches(self) -> int:
        return self._failed_batches

    def zero_vector(self) -> list[float]:
        return [0.0] * self._dims

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per text, in input order."""
        if not texts:
            return []
        if self._provider is None:
            return [self.zero_vector() for _ in texts]

        batches = [
            texts[i : i + self._batch_size] for i in range(0, len(texts), self._batch_size)
        ]
        semaphore = asyncio.Semaphore(self._max_concurrency)

        task_id: TaskID | None = None
        if self.progress:
            task_id = self.progress.add_task(
                "  └─ Generating embeddings", total=len(texts), speed="", info=""
            )

        async def _run(index: int, batch: list[str]) -> list[list[float]]:
            async with semaphore:
                vectors = await self._embed_batch(index, batch)
            if task_id is not None and self.progress:
                self.progress.advance(task_id, len(batch))
            return vectors

        results = await asyncio.gather(
            *(_run(index, batch) for index, batch in enumerate(batches))
        )

        vectors = [vector for batch_vectors in results for vector in batch_vectors]
        logger.info(
            f"[Embed] {len(texts)} texts in {len(batches)} batches, "
            f"{self._failed_batches} batches fell back to zero vectors"
        )
        return vectors

    async def _embed_batch(self, index: int, batch: list[str]) -> list[list[float]]:
        assert self._provider is not None
        try:
            vectors = await asyncio.wait_for(
                self._provider.embed(batch), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[Embed] Batch {index} timed out after {self._timeout}s, using zero vectors"
            )
            self._failed_batches += 1
            return [self.zero_vector() for _ in batch]
        except Exception as e:
            logger.warning(f"[Embed] Batch {index} failed, using zero vectors: {e}")
            self._failed_batches += 1
            return [self.zero_vector() for _ in batch]

        if len(vectors) != len(batch) or any(len(v) != self._dims for v in vectors):
            logger.warning(
                f"[Embed] Batch {index} returned malformed vectors, using zero vectors"
            )
            self._failed_batches += 1
            return [self.zero_vector() for _ in batch]
        return [list(v) for v in vectors]
