"""Tests for environment loading and validation of the configuration sections."""

import pytest
from pydantic import ValidationError

from chunkgraph.core.config.config import ChunkGraphConfig
from chunkgraph.core.config.embedding_config import EmbeddingConfig
from chunkgraph.core.config.indexing_config import DEFAULT_EXCLUDE_PATTERNS, IndexingConfig
from chunkgraph.core.config.ranking_config import RankingConfig


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("OPENAI_API_KEY", "CHUNKGRAPH_EMBEDDING__API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_indexing_defaults(self):
        config = IndexingConfig()

        assert config.include_patterns == ["**/*"]
        assert config.exclude_patterns == DEFAULT_EXCLUDE_PATTERNS
        assert config.max_workers == 0
        assert config.similarity_threshold == 0.3

    def test_ranking_defaults(self):
        config = RankingConfig()

        assert config.max_results == 50
        assert config.max_history_queries == 100
        assert config.learning_increment == 0.1

    def test_embedding_not_configured_without_key(self, clean_env):
        config = EmbeddingConfig(**EmbeddingConfig.load_from_env())

        assert not config.is_configured()


class TestEnvironmentLoading:
    def test_sections_read_their_prefix(self, clean_env):
        clean_env.setenv("CHUNKGRAPH_INDEXING__MAX_WORKERS", "1")
        clean_env.setenv("CHUNKGRAPH_INDEXING__EXCLUDE", "**/gen/**, **/vendor/**")
        clean_env.setenv("CHUNKGRAPH_INDEXING__GENERATE_OVERVIEWS", "false")
        clean_env.setenv("CHUNKGRAPH_EMBEDDING__DIMS", "256")
        clean_env.setenv("CHUNKGRAPH_RANKING__MAX_RESULTS", "20")

        config = ChunkGraphConfig.from_env()

        assert config.indexing.max_workers == 1
        assert config.indexing.exclude_patterns == ["**/gen/**", "**/vendor/**"]
        assert config.indexing.generate_overviews is False
        assert config.embedding.dims == 256
        assert config.ranking.max_results == 20

    def test_openai_key_fallback(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-from-env")

        config = EmbeddingConfig(**EmbeddingConfig.load_from_env())

        assert config.api_key.get_secret_value() == "sk-from-env"
        assert config.is_configured()
        assert "sk-from-env" not in repr(config)


class TestValidation:
    def test_rejects_invalid_base_url(self):
        with pytest.raises(ValidationError):
            EmbeddingConfig(base_url="api.example.com")

    def test_rejects_out_of_range_threshold(self):
        with pytest.raises(ValidationError):
            IndexingConfig(similarity_threshold=1.5)

    def test_rejects_non_positive_max_results(self):
        with pytest.raises(ValidationError):
            RankingConfig(max_results=0)
