from .config import ChunkGraphConfig
from .embedding_config import EmbeddingConfig
from .indexing_config import IndexingConfig
from .ranking_config import RankingConfig

__all__ = ["ChunkGraphConfig", "EmbeddingConfig", "IndexingConfig", "RankingConfig"]
