from .dependency_graph import DependencyGraphProvider
from .embedding_provider import EmbeddingProvider
from .file_classifier import FileClassification, FileClassifier, NullFileClassifier
from .llm_provider import CompletionOptions, LLMProvider, LLMResponse
from .store import KeyValueStore

__all__ = [
    "CompletionOptions",
    "DependencyGraphProvider",
    "EmbeddingProvider",
    "FileClassification",
    "FileClassifier",
    "KeyValueStore",
    "LLMProvider",
    "LLMResponse",
    "NullFileClassifier",
]
