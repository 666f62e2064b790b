"""Models for query decomposition input and dynamic ranking output."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from chunkgraph.core.models.chunk import ChunkRecord
from chunkgraph.core.types.common import (
    FilterAction,
    FilterOperator,
    InteractionAction,
    SignalSource,
    UserRole,
)


@dataclass(frozen=True)
class RankingSignal:
    """One scored, explainable contributor to a candidate's relevance."""

    name: str
    value: float
    confidence: float
    source: SignalSource
    explanation: str


@dataclass(frozen=True)
class MetadataFilter:
    """Condition on a dotted field path of a chunk record, e.g. ``metadata.importance``."""

    field: str
    operator: FilterOperator
    value: Any = None
    weight: float = 1.0


@dataclass
class FilterRule:
    id: str
    name: str
    condition: list[MetadataFilter]
    action: FilterAction
    strength: float = 0.0
    priority: int = 0
    applicable_contexts: list[str] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not 0.0 <= self.strength <= 2.0:
            raise ValueError(f"Filter rule strength must be in [0, 2], got {self.strength}")


@dataclass(frozen=True)
class UserInteraction:
    query_id: str
    result_id: str
    action: InteractionAction
    value: float | None = None
    context: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class UserPreference:
    """Learned per-user ranking weights."""

    user_id: str
    framework_preferences: dict[str, float] = field(default_factory=dict)
    content_type_preferences: dict[str, float] = field(default_factory=dict)
    complexity_preference: float = 0.0
    freshness_preference: float = 0.5
    authority_preference: float = 0.5
    interaction_history: list[UserInteraction] = field(default_factory=list)
    learning_enabled: bool = False

    def __post_init__(self) -> None:
        if not -1.0 <= self.complexity_preference <= 1.0:
            raise ValueError("complexity_preference must be in [-1, 1]")


@dataclass(frozen=True)
class RankingCriterion:
    """Weighted reference to a ranking signal by name."""

    name: str
    weight: float
    enabled: bool = True


@dataclass
class RankingOptions:
    criteria: list[RankingCriterion] = field(default_factory=list)
    learning_enabled: bool = False
    diversity_promotion: bool = False
    personalized_ranking: bool = False
    freshness_bias: float = 0.0
    authority_bias: float = 0.0

    @classmethod
    def default(cls) -> "RankingOptions":
        return cls(
            criteria=[
                RankingCriterion("query_alignment", 0.2),
                RankingCriterion("metadata_importance", 0.15),
                RankingCriterion("code_structure_quality", 0.1),
                RankingCriterion("documentation_quality", 0.05),
                RankingCriterion("framework_alignment", 0.1),
                RankingCriterion("component_type_alignment", 0.1),
                RankingCriterion("error_free_quality", 0.05),
            ]
        )


@dataclass(frozen=True)
class ComponentIntent:
    action: str
    subject: str = ""
    scope: str | None = None
    context: str | None = None


@dataclass(frozen=True)
class QueryComponent:
    """One facet of a decomposed query."""

    id: str
    intent: ComponentIntent
    keywords: list[str] = field(default_factory=list)
    entities: list[str] = field(default_factory=list)
    filters: list[MetadataFilter] = field(default_factory=list)
    priority: int = 0


@dataclass
class QueryContext:
    user_role: UserRole = UserRole.DEVELOPER
    user_id: str | None = None
    active_frameworks: list[str] = field(default_factory=list)
    contexts: list[str] = field(default_factory=list)


@dataclass
class SearchCandidate:
    """A hybrid-search hit handed to the ranking engine.

    ``record`` may be missing when the upstream search only knows the id.
    """

    id: str
    combined_score: float
    record: ChunkRecord | None = None
    semantic_score: float = 0.0
    keyword_score: float = 0.0


@dataclass
class RankedResult:
    candidate: SearchCandidate
    signals: list[RankingSignal] = field(default_factory=list)
    final_ranking_score: float = 0.0
    ranking_explanation: str = ""
    confidence_score: float = 0.0
    freshness_factor: float = 0.5
    authority_factor: float = 0.5
    filter_multiplier: float = 1.0
    diversity_factor: float = 0.0
    personalized_factor: float = 0.0

    @property
    def id(self) -> str:
        return self.candidate.id

    @property
    def record(self) -> ChunkRecord | None:
        return self.candidate.record

    def signal(self, name: str) -> RankingSignal | None:
        for signal in self.signals:
            if signal.name == name:
                return signal
        return None


@dataclass(frozen=True)
class RankingMetrics:
    average_ranking_score: float
    diversity_score: float
    result_count: int
    precision: float | None = None
    recall: float | None = None
    ndcg: float | None = None
    mrr: float | None = None
