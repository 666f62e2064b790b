"""chunkgraph - hierarchical code chunk graphs with dynamic ranking."""

__version__ = "0.1.0"

__all__ = [
    "DynamicRankingEngine",
    "IndexingPipeline",
    "__version__",
]


def __getattr__(name: str):
    if name == "IndexingPipeline":
        from .services.indexing_pipeline import IndexingPipeline  # lazy

        return IndexingPipeline
    if name == "DynamicRankingEngine":
        from .services.ranking import DynamicRankingEngine  # lazy

        return DynamicRankingEngine
    raise AttributeError(name)
