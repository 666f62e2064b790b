"""Embedding client configuration for chunkgraph."""

import os
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator


class EmbeddingConfig(BaseModel):
    """Configuration of the remote embedding collaborator.

    The client built from this config is constructed once and passed
    explicitly to the services that need it.
    """

    provider: Literal["openai"] = Field(
        default="openai", description="Embedding provider to use"
    )
    model: str = Field(
        default="text-embedding-3-small", description="Embedding model name"
    )
    api_key: SecretStr | None = Field(default=None, description="API key")
    base_url: str | None = Field(
        default=None, description="Override for OpenAI-compatible endpoints"
    )
    dims: int = Field(default=1536, gt=0, description="Embedding dimensionality")

    # Throughput controls
    batch_size: int = Field(default=100, gt=0, description="Texts per request")
    max_concurrency: int = Field(
        default=4, gt=0, description="Concurrent in-flight requests"
    )
    requests_per_minute: int = Field(
        default=3000, gt=0, description="Client-side request rate limit"
    )
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout (s)")
    max_retries: int = Field(default=3, ge=1, description="Attempts per request")

    @field_validator("base_url")
    def validate_base_url(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid base_url: {v}. Must start with http:// or https://")
        return v

    def is_configured(self) -> bool:
        return self.api_key is not None or self.base_url is not None

    @classmethod
    def load_from_env(cls) -> dict[str, Any]:
        """Load embedding config from environment variables."""
        config: dict[str, Any] = {}
        if api_key := (
            os.getenv("CHUNKGRAPH_EMBEDDING__API_KEY") or os.getenv("OPENAI_API_KEY")
        ):
            config["api_key"] = api_key
        if model := os.getenv("CHUNKGRAPH_EMBEDDING__MODEL"):
            config["model"] = model
        if base_url := os.getenv("CHUNKGRAPH_EMBEDDING__BASE_URL"):
            config["base_url"] = base_url
        if dims := os.getenv("CHUNKGRAPH_EMBEDDING__DIMS"):
            config["dims"] = int(dims)
        if batch_size := os.getenv("CHUNKGRAPH_EMBEDDING__BATCH_SIZE"):
            config["batch_size"] = int(batch_size)
        if concurrency := os.getenv("CHUNKGRAPH_EMBEDDING__MAX_CONCURRENCY"):
            config["max_concurrency"] = int(concurrency)
        if rpm := os.getenv("CHUNKGRAPH_EMBEDDING__REQUESTS_PER_MINUTE"):
            config["requests_per_minute"] = int(rpm)
        if timeout := os.getenv("CHUNKGRAPH_EMBEDDING__TIMEOUT"):
            config["timeout"] = float(timeout)
        return config

    def __repr__(self) -> str:
        # api_key deliberately omitted
        return f"EmbeddingConfig(provider={self.provider}, model={self.model}, dims={self.dims})"
