"""Top-level configuration aggregating indexing, embedding and ranking sections."""

from pydantic import BaseModel, Field

from chunkgraph.core.config.embedding_config import EmbeddingConfig
from chunkgraph.core.config.indexing_config import IndexingConfig
from chunkgraph.core.config.ranking_config import RankingConfig


class ChunkGraphConfig(BaseModel):
    indexing: IndexingConfig = Field(default_factory=IndexingConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)

    @classmethod
    def from_env(cls) -> "ChunkGraphConfig":
        """Build a config from CHUNKGRAPH_* environment variables over defaults."""
        return cls(
            indexing=IndexingConfig(**IndexingConfig.load_from_env()),
            embedding=EmbeddingConfig(**EmbeddingConfig.load_from_env()),
            ranking=RankingConfig(**RankingConfig.load_from_env()),
        )
