"""Tokenization helpers shared by sparse vectors, similarity and ranking."""

import re

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_DELIMITER_RE = re.compile(r"[_\-.]")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_NUMBER_RE = re.compile(r"^\d+$")

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "were", "will", "with", "var", "let", "const",
        "if", "else", "return", "true", "false", "null", "undefined",
    }
)


def tokenize(text: str) -> list[str]:
    """Split code text into lowercase index terms.

    camelCase, snake_case, kebab-case and dotted names are split into their
    parts; single characters, stop words and bare numbers are dropped.
    """
    text = _CAMEL_BOUNDARY_RE.sub(" ", text)
    text = _DELIMITER_RE.sub(" ", text)
    text = _PUNCTUATION_RE.sub(" ", text).lower()
    return [
        token
        for token in text.split()
        if len(token) > 1 and token not in STOP_WORDS and not _NUMBER_RE.match(token)
    ]


def word_set(text: str) -> frozenset[str]:
    """Whitespace-delimited lowercase words, as used for content Jaccard."""
    return frozenset(text.lower().split())


def jaccard(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union
