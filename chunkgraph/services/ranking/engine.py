"""Dynamic ranking engine: multi-signal scoring over hybrid-search candidates.

# FILE_CONTEXT: Final stage before answer generation
# ROLE: Score, filter, diversify and personalize one query's candidates
# CONCURRENCY_MODEL: Synchronous and reentrant per query. The only shared
#   mutable state lives in the rule and preference stores, which serialize
#   writers per key, and in the bounded query history.
# PIPELINE:
#   1. Signals     - content, metadata, temporal, quality, context, authority
#   2. Filtering   - rules by ascending priority, then component filters
#   3. Scoring     - combined x multiplier + weighted criteria + bias bonuses
#   4. Diversity   - after a stable sort, novelty bonus per first-seen value
#   5. Personalize - learned framework/type/complexity preferences
"""

import threading
from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from chunkgraph.core.config.ranking_config import RankingConfig
from chunkgraph.core.models.ranking import (
    FilterRule,
    QueryComponent,
    QueryContext,
    RankedResult,
    RankingMetrics,
    RankingOptions,
    SearchCandidate,
    UserInteraction,
    UserPreference,
)
from chunkgraph.core.types.common import InteractionAction
from chunkgraph.interfaces.store import KeyValueStore
from chunkgraph.services.ranking.filters import apply_filters
from chunkgraph.services.ranking.metrics import compute_metrics
from chunkgraph.services.ranking.signals import (
    SignalCalculator,
    complexity_category,
    confidence_score,
    freshness_factor,
)
from chunkgraph.services.ranking.stores import FilterRuleStore, UserPreferenceStore

DIVERSITY_TYPE_BONUS = 0.05
DIVERSITY_FRAMEWORK_BONUS = 0.05
DIVERSITY_COMPLEXITY_BONUS = 0.03

PERSONAL_FRAMEWORK_WEIGHT = 0.1
PERSONAL_TYPE_WEIGHT = 0.08
PERSONAL_COMPLEXITY_WEIGHT = 0.05

DEFAULT_PREFERENCE = 0.5
_POSITIVE_ACTIONS = (InteractionAction.CLICK, InteractionAction.COPY)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _explain(result: RankedResult, fragment: str) -> None:
    if not result.ranking_explanation or result.ranking_explanation == "base scoring":
        result.ranking_explanation = fragment
    else:
        result.ranking_explanation = f"{result.ranking_explanation}, {fragment}"


class DynamicRankingEngine:
    """Rank hybrid-search candidates against a decomposed query."""

    def __init__(
        self,
        config: RankingConfig | None = None,
        rule_store: KeyValueStore[FilterRule] | None = None,
        preference_store: KeyValueStore[UserPreference] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the engine.

        Args:
            config: Ranking limits and defaults
            rule_store: Filter rule registry; seeded with the default rules when None
            preference_store: Learned per-user preferences
            clock: Source of "now" for freshness computations
        """
        self.config = config or RankingConfig()
        self._rules = rule_store if rule_store is not None else FilterRuleStore()
        self._preferences = (
            preference_store if preference_store is not None else UserPreferenceStore()
        )
        self._clock = clock

        self._signals = SignalCalculator()

        self._history: OrderedDict[str, list[RankedResult]] = OrderedDict()
        self._history_lock = threading.Lock()

    @property
    def authority_scores(self) -> dict[str, float]:
        """External authority per chunk id, e.g. from version control history."""
        return self._signals.authority_scores

    @authority_scores.setter
    def authority_scores(self, scores: dict[str, float]) -> None:
        self._signals.authority_scores = scores

    @property
    def update_frequencies(self) -> dict[str, float]:
        return self._signals.update_frequencies

    @update_frequencies.setter
    def update_frequencies(self, frequencies: dict[str, float]) -> None:
        self._signals.update_frequencies = frequencies

    # Ranking -------------------------------------------------------------

    def rank_results(
        self,
        candidates: list[SearchCandidate],
        query: str,
        components: list[QueryComponent],
        context: QueryContext,
        options: RankingOptions | None = None,
    ) -> list[RankedResult]:
        """Run the five ranking stages and return at most ``max_results`` results."""
        if options is None:
            options = RankingOptions.default()
            options.freshness_bias = self.config.default_freshness_bias
            options.authority_bias = self.config.default_authority_bias

        logger.debug(f"[Rank] Ranking {len(candidates)} candidates for '{query}'")

        results = self._compute_signals(candidates, query, components, context)
        results = apply_filters(results, self._rules.values(), components, context)
        self._score(results, options)

        if options.diversity_promotion:
            results = self._diversify(results)
        if options.personalized_ranking:
            self._personalize(results, context)

        final = sorted(results, key=lambda r: r.final_ranking_score, reverse=True)
        final = final[: self.config.max_results]

        if options.learning_enabled:
            self._store_history(query, final)

        average = sum(r.final_ranking_score for r in final) / len(final) if final else 0.0
        logger.info(f"[Rank] {len(final)} results with avg score {average:.3f}")
        return final

    def _compute_signals(
        self,
        candidates: list[SearchCandidate],
        query: str,
        components: list[QueryComponent],
        context: QueryContext,
    ) -> list[RankedResult]:
        now = self._clock()
        results = []
        for candidate in candidates:
            signals = self._signals.compute(candidate, query, components, context, now)
            results.append(
                RankedResult(
                    candidate=candidate,
                    signals=signals,
                    final_ranking_score=candidate.combined_score,
                    confidence_score=confidence_score(signals),
                    freshness_factor=freshness_factor(candidate.record, now),
                    authority_factor=self._signals.authority_factor(candidate.id),
                )
            )
        return results

    def _score(self, results: list[RankedResult], options: RankingOptions) -> None:
        for result in results:
            score = result.candidate.combined_score * result.filter_multiplier
            explanations: list[str] = []

            for criterion in options.criteria:
                if not criterion.enabled:
                    continue
                signal = result.signal(criterion.name)
                if signal is None:
                    continue
                contribution = signal.value * criterion.weight
                score += contribution
                explanations.append(f"{criterion.name}: {contribution * 100:.1f}%")

            if options.freshness_bias > 0:
                boost = result.freshness_factor * options.freshness_bias * 0.1
                score += boost
                explanations.append(f"freshness boost: {boost * 100:.1f}%")

            if options.authority_bias > 0:
                boost = result.authority_factor * options.authority_bias * 0.1
                score += boost
                explanations.append(f"authority boost: {boost * 100:.1f}%")

            if result.filter_multiplier != 1.0:
                explanations.append(f"filter rules: x{result.filter_multiplier:.2f}")

            result.final_ranking_score = score
            result.ranking_explanation = ", ".join(explanations) or "base scoring"

    def _diversify(self, results: list[RankedResult]) -> list[RankedResult]:
        ordered = sorted(results, key=lambda r: r.final_ranking_score, reverse=True)
        seen_types: set[str] = set()
        seen_frameworks: set[str] = set()
        seen_complexities: set[str] = set()

        for result in ordered:
            record = result.record
            if record is None:
                continue
            bonus = 0.0
            chunk_type = record.semantic_type
            framework = record.metadata.get("framework")
            bucket = complexity_category(float(record.metadata.get("complexity", 1)))

            if chunk_type not in seen_types:
                bonus += DIVERSITY_TYPE_BONUS
                seen_types.add(chunk_type)
            if framework and framework not in seen_frameworks:
                bonus += DIVERSITY_FRAMEWORK_BONUS
                seen_frameworks.add(framework)
            if bucket not in seen_complexities:
                bonus += DIVERSITY_COMPLEXITY_BONUS
                seen_complexities.add(bucket)

            result.diversity_factor = bonus
            if bonus:
                _explain(result, f"diversity: {bonus * 100:.1f}%")
            result.final_ranking_score += bonus
        return ordered

    def _personalize(self, results: list[RankedResult], context: QueryContext) -> None:
        if not context.user_id:
            return
        prefs = self._preferences.get(context.user_id)
        if prefs is None or not prefs.learning_enabled:
            return

        for result in results:
            record = result.record
            if record is None:
                continue
            boost = 0.0
            framework = record.metadata.get("framework")
            if framework and framework in prefs.framework_preferences:
                boost += prefs.framework_preferences[framework] * PERSONAL_FRAMEWORK_WEIGHT

            content_type = record.semantic_type
            if content_type in prefs.content_type_preferences:
                boost += prefs.content_type_preferences[content_type] * PERSONAL_TYPE_WEIGHT

            complexity = float(record.metadata.get("complexity", 1))
            normalized = max(-1.0, min(1.0, (complexity - 5) / 5))
            alignment = max(0.0, 1 - abs(normalized - prefs.complexity_preference))
            boost += alignment * PERSONAL_COMPLEXITY_WEIGHT

            result.personalized_factor = boost
            if boost:
                _explain(result, f"personalization: {boost * 100:.1f}%")
            result.final_ranking_score += boost

    def _store_history(self, query: str, results: list[RankedResult]) -> None:
        with self._history_lock:
            self._history.pop(query, None)
            self._history[query] = results
            while len(self._history) > self.config.max_history_queries:
                evicted, _ = self._history.popitem(last=False)
                logger.debug(f"[Rank] Evicted history for '{evicted}'")

    # Rules ---------------------------------------------------------------

    def add_filter_rule(self, rule: FilterRule) -> None:
        self._rules.put(rule.id, rule)

    def remove_filter_rule(self, rule_id: str) -> bool:
        return self._rules.delete(rule_id)

    def get_filter_rules(self) -> list[FilterRule]:
        return self._rules.values()

    # Preferences ---------------------------------------------------------

    def get_user_preferences(self, user_id: str) -> UserPreference | None:
        return self._preferences.get(user_id)

    def update_user_preferences(self, user_id: str, **fields: Any) -> UserPreference:
        """Merge ``fields`` into the user's preferences, creating them if missing."""

        def _merge(existing: UserPreference | None) -> UserPreference:
            prefs = existing or UserPreference(user_id=user_id)
            for name, value in fields.items():
                if not hasattr(prefs, name) or name == "user_id":
                    raise ValueError(f"Unknown preference field: {name}")
                setattr(prefs, name, value)
            if not -1.0 <= prefs.complexity_preference <= 1.0:
                raise ValueError("complexity_preference must be in [-1, 1]")
            return prefs

        return self._preferences.update(user_id, _merge)

    def record_user_interaction(self, user_id: str, interaction: UserInteraction) -> None:
        """Append to the user's history and learn from positive feedback.

        Only users with learning enabled are tracked.
        """
        prefs = self._preferences.get(user_id)
        if prefs is None or not prefs.learning_enabled:
            return

        increment = self.config.learning_increment
        cap = self.config.max_interactions

        def _learn(existing: UserPreference | None) -> UserPreference:
            prefs = existing or UserPreference(user_id=user_id, learning_enabled=True)
            prefs.interaction_history.append(interaction)
            if len(prefs.interaction_history) > cap:
                prefs.interaction_history = prefs.interaction_history[-cap:]

            if interaction.action in _POSITIVE_ACTIONS:
                framework = interaction.context.get("framework")
                content_type = interaction.context.get("content_type")
                if framework:
                    current = prefs.framework_preferences.get(framework, DEFAULT_PREFERENCE)
                    prefs.framework_preferences[framework] = min(1.0, current + increment)
                if content_type:
                    current = prefs.content_type_preferences.get(
                        content_type, DEFAULT_PREFERENCE
                    )
                    prefs.content_type_preferences[content_type] = min(
                        1.0, current + increment
                    )
            return prefs

        self._preferences.update(user_id, _learn)

    # Metrics -------------------------------------------------------------

    def get_ranking_metrics(
        self, query: str, relevant_ids: set[str] | None = None
    ) -> RankingMetrics | None:
        """Metrics for a query ranked with learning enabled, or None if unknown."""
        results = self._history.get(query)
        if results is None:
            return None
        return compute_metrics(results, relevant_ids)

    @property
    def history_size(self) -> int:
        return len(self._history)
