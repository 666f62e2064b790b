"""BM25 sparse vectors over a shared corpus.

Document frequencies are fitted once over every chunk in the forest so that
term weights are comparable across records.
"""

import math
from collections import Counter

from chunkgraph.utils.text import tokenize


class SparseVectorizer:
    """Corpus-wide BM25 term weighting."""

    def __init__(self, k1: float = 1.2, b: float = 0.75) -> None:
        self.k1 = k1
        self.b = b
        self._document_frequencies: Counter[str] = Counter()
        self._document_count = 0
        self._average_length = 0.0

    @property
    def document_count(self) -> int:
        return self._document_count

    @property
    def vocabulary_size(self) -> int:
        return len(self._document_frequencies)

    def fit(self, documents: list[str]) -> "SparseVectorizer":
        """Rebuild document frequencies from ``documents``."""
        self._document_frequencies = Counter()
        total_length = 0
        for document in documents:
            tokens = tokenize(document)
            total_length += len(tokens)
            self._document_frequencies.update(set(tokens))
        self._document_count = len(documents)
        self._average_length = total_length / len(documents) if documents else 0.0
        return self

    def idf(self, term: str) -> float:
        df = self._document_frequencies.get(term, 0)
        return math.log((self._document_count + 1) / (df + 1)) + 1.0

    def transform(self, text: str) -> dict[str, float]:
        """Sparse BM25 term weights of ``text`` against the fitted corpus."""
        tokens = tokenize(text)
        if not tokens:
            return {}
        avg = self._average_length or len(tokens)
        length_norm = 1 - self.b + self.b * (len(tokens) / avg)

        vector: dict[str, float] = {}
        for term, tf in sorted(Counter(tokens).items()):
            weight = self.idf(term) * tf / (tf + self.k1 * length_norm)
            vector[term] = round(weight, 6)
        return vector

    def score(self, query: str, vector: dict[str, float]) -> float:
        """Dot product of a query's terms with a document's sparse vector."""
        return sum(vector.get(term, 0.0) for term in set(tokenize(query)))
