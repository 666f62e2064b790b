"""Providers package for chunkgraph - concrete implementations of abstract interfaces.

Use lazy import to avoid importing the OpenAI client and networkx during package import.
"""

__all__ = [
    "NetworkXDependencyGraph",
    "OpenAIEmbeddingProvider",
    "OpenAILLMProvider",
]


def __getattr__(name: str):
    if name == "NetworkXDependencyGraph":
        from .graph import NetworkXDependencyGraph  # lazy

        return NetworkXDependencyGraph
    if name == "OpenAIEmbeddingProvider":
        from .embeddings import OpenAIEmbeddingProvider  # lazy

        return OpenAIEmbeddingProvider
    if name == "OpenAILLMProvider":
        from .llm import OpenAILLMProvider  # lazy

        return OpenAILLMProvider
    raise AttributeError(name)
