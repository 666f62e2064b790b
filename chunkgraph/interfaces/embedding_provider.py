"""Embedding provider interface."""

from abc import ABC, abstractmethod


class EmbeddingProvider(ABC):
    """Abstract interface for remote dense-vector providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name."""

    @property
    @abstractmethod
    def dims(self) -> int:
        """Dimensionality of returned vectors."""

    @property
    def batch_size(self) -> int:
        """Preferred number of texts per request."""
        return 100

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts, one vector per input in input order.

        May raise on rate-limit, timeout or network failures; callers decide
        how to degrade.
        """
