"""LLM provider interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class LLMResponse:
    content: str
    tokens_used: int = 0
    model: str = ""
    finish_reason: str | None = None


@dataclass
class CompletionOptions:
    max_completion_tokens: int = 1024
    temperature: float | None = None
    timeout: float | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class LLMProvider(ABC):
    """Abstract interface for text-generation providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name."""

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        options: CompletionOptions | None = None,
    ) -> LLMResponse:
        """Generate a completion for a chat-style message list."""

    def estimate_tokens(self, text: str) -> int:
        """Rough token estimate (~4 chars per token)."""
        return len(text) // 4

    def get_usage_stats(self) -> dict[str, Any]:
        return {}
