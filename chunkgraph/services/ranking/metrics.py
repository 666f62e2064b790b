"""Quality metrics over a ranked result list."""

import numpy as np

from chunkgraph.core.models.ranking import RankedResult, RankingMetrics


def precision(ranked_ids: list[str], relevant: set[str]) -> float:
    if not ranked_ids:
        return 0.0
    return sum(1 for rid in ranked_ids if rid in relevant) / len(ranked_ids)


def recall(ranked_ids: list[str], relevant: set[str]) -> float:
    if not relevant:
        return 0.0
    return sum(1 for rid in ranked_ids if rid in relevant) / len(relevant)


def ndcg(ranked_ids: list[str], relevant: set[str]) -> float:
    """Binary-relevance nDCG over the whole ranked list."""
    if not ranked_ids or not relevant:
        return 0.0
    gains = np.array([1.0 if rid in relevant else 0.0 for rid in ranked_ids])
    discounts = 1.0 / np.log2(np.arange(2, len(ranked_ids) + 2))
    dcg = float(np.sum(gains * discounts))
    ideal_hits = min(len(relevant), len(ranked_ids))
    idcg = float(np.sum(discounts[:ideal_hits]))
    return dcg / idcg if idcg else 0.0


def mean_reciprocal_rank(ranked_ids: list[str], relevant: set[str]) -> float:
    for position, rid in enumerate(ranked_ids, start=1):
        if rid in relevant:
            return 1.0 / position
    return 0.0


def diversity_score(results: list[RankedResult]) -> float:
    types: set[str] = set()
    frameworks: set[str] = set()
    for result in results:
        if result.record is None:
            continue
        types.add(result.record.semantic_type)
        framework = result.record.metadata.get("framework")
        if framework:
            frameworks.add(framework)
    return (min(1.0, len(types) / 5) + min(1.0, len(frameworks) / 3)) / 2


def compute_metrics(
    results: list[RankedResult], relevant_ids: set[str] | None = None
) -> RankingMetrics:
    scores = np.array([r.final_ranking_score for r in results], dtype=float)
    average = float(scores.mean()) if scores.size else 0.0
    metrics = RankingMetrics(
        average_ranking_score=average,
        diversity_score=diversity_score(results),
        result_count=len(results),
    )
    if relevant_ids is None:
        return metrics

    ranked_ids = [r.id for r in results]
    return RankingMetrics(
        average_ranking_score=metrics.average_ranking_score,
        diversity_score=metrics.diversity_score,
        result_count=metrics.result_count,
        precision=precision(ranked_ids, relevant_ids),
        recall=recall(ranked_ids, relevant_ids),
        ndcg=ndcg(ranked_ids, relevant_ids),
        mrr=mean_reciprocal_rank(ranked_ids, relevant_ids),
    )
