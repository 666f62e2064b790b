"""File classification interface.

Classification is opaque enrichment data: the hierarchy builder copies it
into chunk metadata and tags but never recomputes it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class FileClassification:
    primary: str | None = None
    secondary: str | None = None
    tertiary: str | None = None
    confidence: float = 0.0


class FileClassifier(ABC):
    @abstractmethod
    def classify(self, file_path: str) -> FileClassification:
        """Classify a file by framework, category and role."""


class NullFileClassifier(FileClassifier):
    """Classifier that knows nothing; used when no classifier is wired in."""

    def classify(self, file_path: str) -> FileClassification:
        return FileClassification()
