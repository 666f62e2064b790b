"""Indexing configuration for chunkgraph.

Covers file discovery, per-file hierarchy building and the project-wide
linking pass.
"""

import os
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_EXCLUDE_PATTERNS = [
    "**/node_modules/**",
    "**/.git/**",
    "**/__pycache__/**",
    "**/.venv/**",
    "**/venv/**",
    "**/dist/**",
    "**/build/**",
    "**/target/**",
]


class IndexingConfig(BaseModel):
    """Indexing configuration.

    Configuration can be provided via:
    - Environment variables (CHUNKGRAPH_INDEXING__*)
    - Keyword arguments
    - Default values
    """

    # Discovery
    include_patterns: list[str] = Field(
        default_factory=lambda: ["**/*"],
        description="Glob patterns of files to consider",
    )
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS),
        description="Glob patterns of files to skip",
    )
    max_file_size_kb: int = Field(
        default=512, gt=0, description="Files larger than this are skipped"
    )

    # Parallelism
    max_workers: int = Field(
        default=0,
        ge=0,
        description="Parser worker processes (0 = auto, 1 = run inline)",
    )

    # Hierarchy building
    block_complexity_threshold: int = Field(
        default=10, ge=0, description="Functions above this complexity are split into blocks"
    )
    block_size_threshold: int = Field(
        default=500, ge=0, description="Minimum function size (chars) before block splitting"
    )
    block_min_chars: int = Field(
        default=100, ge=0, description="Minimum size (chars) of an emitted block"
    )

    # Linking
    similarity_threshold: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Minimum similarity for a semantic neighbor"
    )
    max_semantic_neighbors: int = Field(
        default=10, ge=0, description="Semantic neighbors retained per chunk"
    )
    cross_reference_confidence: float = Field(
        default=0.8, ge=0.0, le=1.0, description="Confidence assigned to dependency edges"
    )
    parallel_similarity_min_nodes: int = Field(
        default=2000,
        ge=2,
        description="Node count from which similarity is partitioned across processes",
    )
    generate_overviews: bool = Field(
        default=True, description="Emit project/framework/layer overview records"
    )

    # Sparse vectors
    bm25_k1: float = Field(default=1.2, gt=0.0, description="BM25 term saturation")
    bm25_b: float = Field(default=0.75, ge=0.0, le=1.0, description="BM25 length normalization")

    @field_validator("include_patterns", "exclude_patterns", mode="before")
    def split_patterns(cls, v: Any) -> Any:
        """Accept comma-separated strings for pattern lists."""
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v

    @classmethod
    def load_from_env(cls) -> dict[str, Any]:
        """Load indexing config from environment variables."""
        config: dict[str, Any] = {}
        if workers := os.getenv("CHUNKGRAPH_INDEXING__MAX_WORKERS"):
            config["max_workers"] = int(workers)
        if include := os.getenv("CHUNKGRAPH_INDEXING__INCLUDE"):
            config["include_patterns"] = include
        if exclude := os.getenv("CHUNKGRAPH_INDEXING__EXCLUDE"):
            config["exclude_patterns"] = exclude
        if size := os.getenv("CHUNKGRAPH_INDEXING__MAX_FILE_SIZE_KB"):
            config["max_file_size_kb"] = int(size)
        if threshold := os.getenv("CHUNKGRAPH_INDEXING__SIMILARITY_THRESHOLD"):
            config["similarity_threshold"] = float(threshold)
        if neighbors := os.getenv("CHUNKGRAPH_INDEXING__MAX_SEMANTIC_NEIGHBORS"):
            config["max_semantic_neighbors"] = int(neighbors)
        if overviews := os.getenv("CHUNKGRAPH_INDEXING__GENERATE_OVERVIEWS"):
            config["generate_overviews"] = overviews.lower() in ("1", "true", "yes")
        return config

    def __repr__(self) -> str:
        return (
            f"IndexingConfig(max_workers={self.max_workers}, "
            f"similarity_threshold={self.similarity_threshold})"
        )
