from .rate_limiter import RateLimiter
from .sparse_vectors import SparseVectorizer
from .text import jaccard, tokenize, word_set

__all__ = ["RateLimiter", "SparseVectorizer", "jaccard", "tokenize", "word_set"]
