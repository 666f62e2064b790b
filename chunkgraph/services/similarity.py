"""Pairwise semantic similarity between chunk nodes.

# FILE_CONTEXT: Hot path of the linking stage, quadratic in node count
# ROLE: Composite content/tag/structure similarity with exact Jaccard terms
# PRUNING: A pair is skipped only when the size-ratio upper bound of both
#       Jaccard terms cannot lift it above the threshold, so the retained
#       neighbors and their order match the unpruned computation
# CRITICAL: score_partition must stay top-level and picklable
"""

from collections.abc import Iterable
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass

from loguru import logger

from chunkgraph.core.models.chunk import ChunkNode, SemanticNeighbor
from chunkgraph.utils.text import jaccard, word_set

CONTENT_WEIGHT = 0.4
TAG_WEIGHT = 0.3
KIND_WEIGHT = 0.2
LEVEL_WEIGHT = 0.1


@dataclass(frozen=True)
class SimilarityItem:
    """Read-only projection of a chunk node used for pair scoring."""

    id: str
    words: frozenset[str]
    tags: frozenset[str]
    kind: str
    level: int
    language: str
    framework: str | None

    @classmethod
    def from_node(cls, node: ChunkNode) -> "SimilarityItem":
        return cls(
            id=node.id,
            words=word_set(node.content),
            tags=frozenset(node.metadata.tags),
            kind=node.kind.value,
            level=node.level,
            language=node.metadata.language.value,
            framework=node.metadata.framework,
        )


def similarity(a: SimilarityItem, b: SimilarityItem) -> float:
    score = (
        CONTENT_WEIGHT * jaccard(a.words, b.words)
        + TAG_WEIGHT * jaccard(a.tags, b.tags)
        + (KIND_WEIGHT if a.kind == b.kind else 0.0)
        + (LEVEL_WEIGHT if a.level == b.level else 0.0)
    )
    return min(1.0, score)


def similarity_upper_bound(a: SimilarityItem, b: SimilarityItem) -> float:
    """Cheap bound using |A∩B|/|A∪B| <= min(|A|,|B|)/max(|A|,|B|)."""
    return (
        CONTENT_WEIGHT * _size_ratio(len(a.words), len(b.words))
        + TAG_WEIGHT * _size_ratio(len(a.tags), len(b.tags))
        + (KIND_WEIGHT if a.kind == b.kind else 0.0)
        + (LEVEL_WEIGHT if a.level == b.level else 0.0)
    )


def similarity_reason(a: SimilarityItem, b: SimilarityItem) -> str:
    if a.kind == b.kind:
        return f"Same type: {a.kind}"
    if a.language == b.language:
        return "Same language"
    if a.framework is not None and a.framework == b.framework:
        return "Same framework"
    return "Content similarity"


def _size_ratio(m: int, n: int) -> float:
    largest = max(m, n)
    return min(m, n) / largest if largest else 0.0


def score_partition(
    items: list[SimilarityItem], rows: range, threshold: float
) -> list[tuple[int, int, float]]:
    """Score pairs (i, j) with i in ``rows`` and j > i. Returns retained pairs."""
    retained: list[tuple[int, int, float]] = []
    for i in rows:
        a = items[i]
        for j in range(i + 1, len(items)):
            b = items[j]
            if similarity_upper_bound(a, b) <= threshold:
                continue
            score = similarity(a, b)
            if score > threshold:
                retained.append((i, j, score))
    return retained


class SimilarityIndex:
    """Compute the top-k semantic neighbors of every node."""

    def __init__(
        self,
        threshold: float = 0.3,
        max_neighbors: int = 10,
        parallel_min_nodes: int = 2000,
        max_workers: int | None = None,
    ) -> None:
        self.threshold = threshold
        self.max_neighbors = max_neighbors
        self.parallel_min_nodes = parallel_min_nodes
        self.max_workers = max_workers

    def compute(self, nodes: Iterable[ChunkNode]) -> dict[str, list[SemanticNeighbor]]:
        items = [SimilarityItem.from_node(node) for node in nodes]
        if len(items) >= self.parallel_min_nodes and (self.max_workers or 0) != 1:
            pairs = self._score_parallel(items)
        else:
            pairs = score_partition(items, range(len(items)), self.threshold)

        candidates: dict[int, list[tuple[int, float]]] = {i: [] for i in range(len(items))}
        for i, j, score in pairs:
            candidates[i].append((j, score))
            candidates[j].append((i, score))

        neighbors: dict[str, list[SemanticNeighbor]] = {}
        for i, scored in candidates.items():
            scored.sort(key=lambda entry: (-entry[1], items[entry[0]].id))
            neighbors[items[i].id] = [
                SemanticNeighbor(
                    target_id=items[j].id,
                    similarity=score,
                    reason=similarity_reason(items[i], items[j]),
                )
                for j, score in scored[: self.max_neighbors]
            ]

        logger.debug(
            f"[Link] Similarity over {len(items)} nodes retained {len(pairs)} pairs"
        )
        return neighbors

    def _score_parallel(self, items: list[SimilarityItem]) -> list[tuple[int, int, float]]:
        partitions = _balanced_partitions(len(items), (self.max_workers or 4) * 4)
        logger.info(
            f"[Link] Partitioning similarity of {len(items)} nodes into "
            f"{len(partitions)} slices"
        )
        pairs: list[tuple[int, int, float]] = []
        with ProcessPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(score_partition, items, rows, self.threshold)
                for rows in partitions
            ]
            for future in futures:
                pairs.extend(future.result())
        return pairs


def _balanced_partitions(n: int, parts: int) -> list[range]:
    """Split row indices so each slice covers a similar number of pairs."""
    if n == 0:
        return []
    total_pairs = n * (n - 1) // 2
    target = max(1, total_pairs // max(1, parts))
    partitions: list[range] = []
    start = 0
    acc = 0
    for i in range(n):
        acc += n - i - 1
        if acc >= target:
            partitions.append(range(start, i + 1))
            start = i + 1
            acc = 0
    if start < n:
        partitions.append(range(start, n))
    return partitions
